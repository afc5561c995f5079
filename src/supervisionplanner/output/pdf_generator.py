"""PDF generation for schedule output.

This module creates printable PDF schedules showing:
- One timeline row per working date with each client's sessions
- A progress page with scheduled vs. target hours per client
"""

from datetime import date
from io import BytesIO
from pathlib import Path
from typing import Union

from supervisionplanner.domain.models import ScheduledBlock, ScheduleRequest
from supervisionplanner.domain.timeparse import format_time, format_weekday_mdy
from supervisionplanner.output.summary import ProgressSummary
from supervisionplanner.scheduling.availability import AvailabilityResolver

# Client colors (RGB tuples, 0-1 scale), assigned in request order
PALETTE = [
    (0.4, 0.7, 0.4),  # Green
    (0.4, 0.4, 0.8),  # Blue
    (0.8, 0.6, 0.2),  # Orange
    (0.7, 0.4, 0.7),  # Purple
    (0.3, 0.7, 0.8),  # Teal
    (0.8, 0.4, 0.4),  # Red
    (0.6, 0.6, 0.3),  # Olive
    (0.6, 0.6, 0.6),  # Gray
]
AVAILABLE_COLOR = (0.93, 0.96, 0.93)
OFF_COLOR = (0.95, 0.95, 0.95)


def _require_canvas():
    try:
        from reportlab.lib.pagesizes import landscape, letter
        from reportlab.pdfgen import canvas
    except ImportError:
        raise ImportError(
            "reportlab is required for PDF generation. "
            "Install with: pip install reportlab"
        )
    return canvas, landscape(letter)


class PDFGenerator:
    """Generates printable PDF schedules.

    Example:
        >>> generator = PDFGenerator()
        >>> generator.generate(result.blocks, request, "schedule.pdf")
    """

    def __init__(
        self,
        page_width: float = 792,  # Letter landscape width (11")
        page_height: float = 612,  # Letter landscape height (8.5")
        margin: float = 36,  # 0.5 inch margins
    ):
        self.page_width = page_width
        self.page_height = page_height
        self.margin = margin

    def generate(
        self,
        blocks: list[ScheduledBlock],
        request: ScheduleRequest,
        output_path: Union[str, Path],
        include_summary: bool = True,
    ) -> None:
        """Generate PDF schedule and save to file.

        Args:
            blocks: Sessions to render.
            request: The request the sessions were generated for.
            output_path: Path to save the PDF.
            include_summary: Whether to include the progress page.
        """
        canvas, pagesize = _require_canvas()
        c = canvas.Canvas(str(output_path), pagesize=pagesize)
        self._draw(c, blocks, request, include_summary)
        c.save()

    def generate_to_buffer(
        self,
        blocks: list[ScheduledBlock],
        request: ScheduleRequest,
        include_summary: bool = True,
    ) -> BytesIO:
        """Generate PDF and return as bytes buffer."""
        canvas, pagesize = _require_canvas()
        buffer = BytesIO()
        c = canvas.Canvas(buffer, pagesize=pagesize)
        self._draw(c, blocks, request, include_summary)
        c.save()
        buffer.seek(0)
        return buffer

    def _draw(self, c, blocks, request: ScheduleRequest, include_summary: bool) -> None:
        colors = {
            client.id: PALETTE[i % len(PALETTE)]
            for i, client in enumerate(request.clients)
        }
        self._draw_schedule_pages(c, blocks, request, colors)
        if include_summary:
            self._draw_summary_page(c, blocks, request, colors)

    def _time_bounds(self, request: ScheduleRequest, blocks: list[ScheduledBlock]) -> tuple[int, int]:
        """Whole-hour span covering all availability and sessions."""
        starts = [b.start for b in blocks]
        ends = [b.end for b in blocks]
        for day_blocks in request.supervisor.daily_avail.values():
            starts.extend(b.start for b in day_blocks)
            ends.extend(b.end for b in day_blocks)
        if not starts:
            return 8 * 60, 18 * 60
        return (min(starts) // 60) * 60, -(-max(ends) // 60) * 60

    def _draw_schedule_pages(
        self,
        c,
        blocks: list[ScheduledBlock],
        request: ScheduleRequest,
        colors: dict[str, tuple],
    ) -> None:
        """Draw main schedule pages with one timeline per date."""
        resolver = AvailabilityResolver(request.supervisor)
        dates = [d for d in request.schedule_dates if resolver.is_open(d)]
        by_date: dict[date, list[ScheduledBlock]] = {}
        for blk in blocks:
            by_date.setdefault(blk.date, []).append(blk)

        day_start, day_end = self._time_bounds(request, blocks)

        row_height = 24
        header_height = 60
        footer_height = 40
        usable_height = self.page_height - 2 * self.margin - header_height - footer_height
        rows_per_page = max(1, int(usable_height / row_height))

        timeline_left = self.margin + 90  # Space for dates
        timeline_right = self.page_width - self.margin - 20
        timeline_width = timeline_right - timeline_left

        total_pages = max(1, (len(dates) + rows_per_page - 1) // rows_per_page)
        for page_num in range(total_pages):
            page_dates = dates[page_num * rows_per_page : (page_num + 1) * rows_per_page]

            self._draw_header(c, request, len(blocks))
            self._draw_time_axis(
                c,
                day_start,
                day_end,
                timeline_left,
                self.page_height - self.margin - header_height - 20,
                timeline_width,
            )

            y = self.page_height - self.margin - header_height - 30
            for d in page_dates:
                y -= row_height
                self._draw_date_row(
                    c,
                    d,
                    by_date.get(d, []),
                    resolver.supervisor_blocks(d),
                    colors,
                    day_start,
                    day_end,
                    timeline_left,
                    timeline_width,
                    y,
                    row_height - 4,
                )

            self._draw_legend(c, request, colors, self.margin, self.margin + 10)

            c.setFont("Helvetica", 9)
            c.drawCentredString(
                self.page_width / 2,
                self.margin - 10,
                f"Page {page_num + 1} of {total_pages}",
            )
            c.showPage()

    def _draw_header(self, c, request: ScheduleRequest, session_count: int) -> None:
        """Draw page header with date range and title."""
        c.setFont("Helvetica-Bold", 16)
        c.drawString(
            self.margin,
            self.page_height - self.margin - 20,
            f"Supervision Schedule - {request.start_date.strftime('%B %d, %Y')} "
            f"to {request.end_date.strftime('%B %d, %Y')}",
        )

        c.setFont("Helvetica", 10)
        c.drawString(
            self.margin,
            self.page_height - self.margin - 35,
            f"Clients: {len(request.clients)}    Sessions: {session_count}",
        )

    def _draw_time_axis(
        self,
        c,
        day_start: int,
        day_end: int,
        x: float,
        y: float,
        width: float,
    ) -> None:
        """Draw time axis with hour markers."""
        span = day_end - day_start
        c.setFont("Helvetica", 8)
        c.setStrokeColorRGB(0.7, 0.7, 0.7)

        for minute in range(day_start, day_end + 1, 60):
            tick_x = x + (minute - day_start) / span * width
            c.line(tick_x, y, tick_x, y - 5)
            label = format_time(minute % 1440).replace(":00", "").replace(" ", "")
            c.drawCentredString(tick_x, y + 5, label)

    def _draw_date_row(
        self,
        c,
        d: date,
        day_blocks: list[ScheduledBlock],
        available,
        colors: dict[str, tuple],
        day_start: int,
        day_end: int,
        timeline_x: float,
        timeline_width: float,
        y: float,
        height: float,
    ) -> None:
        """Draw a single date's row."""
        span = day_end - day_start

        def to_x(minute: int) -> float:
            return timeline_x + (minute - day_start) / span * timeline_width

        c.setFillColorRGB(0, 0, 0)
        c.setFont("Helvetica", 9)
        c.drawString(self.margin, y + height / 2 - 3, format_weekday_mdy(d))

        c.setFillColorRGB(*OFF_COLOR)
        c.rect(timeline_x, y, timeline_width, height, fill=1, stroke=0)

        c.setFillColorRGB(*AVAILABLE_COLOR)
        for blk in available:
            c.rect(to_x(blk.start), y, to_x(blk.end) - to_x(blk.start), height, fill=1, stroke=0)

        for blk in day_blocks:
            bx = to_x(blk.start)
            bw = to_x(blk.end) - bx
            c.setFillColorRGB(*colors.get(blk.client_id, (0.5, 0.5, 0.5)))
            c.rect(bx, y, bw, height, fill=1, stroke=0)

            c.setFillColorRGB(0, 0, 0)
            c.setFont("Helvetica-Bold", 6)
            c.drawCentredString(bx + bw / 2, y + height / 2 - 2, blk.client_id[:10])

            c.setStrokeColorRGB(0.3, 0.3, 0.3)
            c.setLineWidth(0.5)
            c.rect(bx, y, bw, height, fill=0, stroke=1)

    def _draw_legend(
        self,
        c,
        request: ScheduleRequest,
        colors: dict[str, tuple],
        x: float,
        y: float,
    ) -> None:
        """Draw legend for client colors."""
        c.setFillColorRGB(0, 0, 0)
        c.setFont("Helvetica-Bold", 8)
        c.drawString(x, y, "Legend:")

        c.setFont("Helvetica", 7)
        current_x = x + 45
        for client in request.clients[:9]:
            c.setFillColorRGB(*colors[client.id])
            c.rect(current_x, y - 2, 12, 10, fill=1, stroke=1)
            c.setFillColorRGB(0, 0, 0)
            c.drawString(current_x + 15, y, client.id[:10])
            current_x += 70

    def _draw_summary_page(
        self,
        c,
        blocks: list[ScheduledBlock],
        request: ScheduleRequest,
        colors: dict[str, tuple],
    ) -> None:
        """Draw progress page with scheduled vs. target hours."""
        summary = ProgressSummary.from_blocks(blocks, request.clients)

        c.setFillColorRGB(0, 0, 0)
        c.setFont("Helvetica-Bold", 16)
        c.drawString(self.margin, self.page_height - self.margin - 20, "Progress Summary")

        y = self.page_height - self.margin - 60
        c.setFont("Helvetica", 10)
        c.drawString(
            self.margin,
            y,
            f"Scheduled {summary.total_scheduled_minutes / 60:.2f}h of "
            f"{summary.total_target_minutes / 60:.2f}h target",
        )
        y -= 30

        bar_x = self.margin + 120
        bar_width = 400
        for progress in summary.clients:
            if y < self.margin + 20:
                c.showPage()
                y = self.page_height - self.margin - 20

            c.setFillColorRGB(0, 0, 0)
            c.setFont("Helvetica", 9)
            c.drawString(self.margin, y, progress.client_id[:18])

            c.setFillColorRGB(*OFF_COLOR)
            c.rect(bar_x, y - 2, bar_width, 10, fill=1, stroke=0)
            c.setFillColorRGB(*colors.get(progress.client_id, (0.5, 0.5, 0.5)))
            c.rect(bar_x, y - 2, bar_width * progress.percent_complete / 100, 10, fill=1, stroke=0)

            c.setFillColorRGB(0, 0, 0)
            c.drawString(
                bar_x + bar_width + 10,
                y,
                f"{progress.scheduled_minutes / 60:.2f}h / {progress.target_minutes / 60:.2f}h"
                f" ({progress.remaining_minutes / 60:.2f}h left)",
            )
            y -= 18

        c.showPage()
