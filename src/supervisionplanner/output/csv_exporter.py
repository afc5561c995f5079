"""CSV export of placed sessions.

Rows are (Date, Client, Start, End) with 12-hour clock times, in the
order the sessions were placed.
"""

from pathlib import Path
from typing import Iterable, Union

import pandas as pd

from supervisionplanner.domain.models import ScheduledBlock
from supervisionplanner.domain.timeparse import format_time

COLUMNS = ["Date", "Client", "Start", "End"]


class CSVExporter:
    """Renders sessions as a table.

    Example:
        >>> exporter = CSVExporter()
        >>> exporter.export(result.blocks, "supervision_schedule.csv")
    """

    def to_dataframe(self, blocks: Iterable[ScheduledBlock]) -> pd.DataFrame:
        """Build a DataFrame with one row per session."""
        rows = [
            {
                "Date": b.date.isoformat(),
                "Client": b.client_id,
                "Start": format_time(b.start),
                "End": format_time(b.end),
            }
            for b in blocks
        ]
        return pd.DataFrame(rows, columns=COLUMNS)

    def to_csv_string(self, blocks: Iterable[ScheduledBlock]) -> str:
        """Render the CSV text."""
        return self.to_dataframe(blocks).to_csv(index=False, lineterminator="\n")

    def export(self, blocks: Iterable[ScheduledBlock], output_path: Union[str, Path]) -> None:
        """Write the CSV to a file."""
        self.to_dataframe(blocks).to_csv(
            output_path, index=False, encoding="utf-8", lineterminator="\n"
        )
