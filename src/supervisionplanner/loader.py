"""Loading schedule requests from JSON documents.

Example document::

    {
      "start_date": "2025-03-01",
      "end_date": "2025-03-31",
      "supervisor": {
        "active_days": ["mon", "tue", "wed", "thu", "fri"],
        "unavailable_days": "03-17-25, 2025-03-18",
        "daily_avail": {"mon": "9 am-5 pm", "tue": [{"start": 540, "end": 1020}]},
        "date_overrides": {"2025-03-12": "1 pm-3 pm"},
        "rounding_minutes": 15,
        "allow_sub_hour_if_unavoidable": false,
        "max_sessions_per_week_per_client": 2
      },
      "clients": [
        {"id": "C1", "monthly_hours": 6, "min_session_mins": 60,
         "windows": {"mon": "9 am-12 pm", "thu": "1 pm-4 pm"},
         "max_sessions_per_week": 2,
         "preferred_day_slots": [["mon"], ["thu"]]}
      ]
    }

Times may be minute integers, ``{"start": .., "end": ..}`` objects,
``"9 am-12 pm"`` strings or lists of either.
"""

import json
import logging
from datetime import date
from pathlib import Path
from typing import Any, Optional, Union

from supervisionplanner.domain.errors import RequestError, SchedulerError
from supervisionplanner.domain.models import (
    ClientRule,
    DayKey,
    DayWindow,
    ScheduleRequest,
    SupervisorConfig,
    TimeBlock,
)
from supervisionplanner.domain.timeparse import normalize_closed_dates, parse_time

logger = logging.getLogger(__name__)


def load_request(path: Union[str, Path]) -> ScheduleRequest:
    """Read a JSON request document from disk."""
    try:
        data = json.loads(Path(path).read_text())
    except json.JSONDecodeError as exc:
        raise RequestError(f"{path}: invalid JSON ({exc})") from exc
    return request_from_dict(data)


def request_from_dict(data: dict[str, Any]) -> ScheduleRequest:
    """Build a ScheduleRequest from a decoded JSON document.

    Raises:
        RequestError: If required data is missing or inconsistent.
    """
    try:
        start_date = _parse_date(data["start_date"])
        end_date = _parse_date(data["end_date"])
        if start_date > end_date:
            raise RequestError(f"start_date {start_date} is after end_date {end_date}")

        supervisor = _parse_supervisor(data.get("supervisor", {}), start_date, end_date)
        clients = [_parse_client(c) for c in data.get("clients", [])]
    except KeyError as exc:
        raise RequestError(f"Missing required field: {exc.args[0]}") from exc
    except RequestError:
        raise
    except (SchedulerError, ValueError, TypeError) as exc:
        raise RequestError(str(exc)) from exc

    seen = set()
    for client in clients:
        if client.id in seen:
            raise RequestError(f"Duplicate client id: {client.id}")
        seen.add(client.id)

    logger.debug(
        "Loaded request %s..%s with %d clients", start_date, end_date, len(clients)
    )
    return ScheduleRequest(
        start_date=start_date,
        end_date=end_date,
        clients=clients,
        supervisor=supervisor,
    )


def _parse_date(value: Any) -> date:
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


def _parse_minute(value: Any) -> int:
    if isinstance(value, int):
        return value
    return parse_time(str(value))


def _parse_blocks(value: Any) -> list[TimeBlock]:
    """Strictly parse any accepted block notation."""
    if value is None:
        return []
    if isinstance(value, str):
        blocks = []
        for part in value.split(","):
            if not part.strip():
                continue
            pieces = [p.strip() for p in part.split("-")]
            if len(pieces) != 2:
                raise RequestError(f"Bad time range: {part.strip()!r}")
            blocks.append(TimeBlock(parse_time(pieces[0]), parse_time(pieces[1])))
        return blocks
    if isinstance(value, dict):
        return [TimeBlock(_parse_minute(value["start"]), _parse_minute(value["end"]))]
    if isinstance(value, list):
        return [blk for item in value for blk in _parse_blocks(item)]
    raise RequestError(f"Unsupported time block notation: {value!r}")


def _parse_day_map(raw: dict[str, Any]) -> dict[DayKey, list[TimeBlock]]:
    result: dict[DayKey, list[TimeBlock]] = {}
    for day, value in (raw or {}).items():
        result.setdefault(DayKey.parse(day), []).extend(_parse_blocks(value))
    return result


def _optional_int(value: Any) -> Optional[int]:
    if value is None:
        return None
    return int(value)


def _parse_closed(raw: Any, start_date: date, end_date: date) -> list[date]:
    if isinstance(raw, list):
        raw = ",".join(str(v) for v in raw)
    return normalize_closed_dates(raw or "", start_date, end_date)


def _parse_supervisor(raw: dict[str, Any], start_date: date, end_date: date) -> SupervisorConfig:
    config = SupervisorConfig(
        unavailable_days=_parse_closed(raw.get("unavailable_days"), start_date, end_date),
        daily_avail=_parse_day_map(raw.get("daily_avail", {})),
        date_overrides={
            _parse_date(d): _parse_blocks(value)
            for d, value in (raw.get("date_overrides") or {}).items()
        },
        rounding_minutes=int(raw.get("rounding_minutes", 15)),
        allow_sub_hour_if_unavoidable=bool(raw.get("allow_sub_hour_if_unavoidable", False)),
        max_sessions_per_week_per_client=_optional_int(
            raw.get("max_sessions_per_week_per_client")
        ),
    )
    if "active_days" in raw:
        config.active_days = {DayKey.parse(d) for d in raw["active_days"]}
    return config


def _parse_client(raw: dict[str, Any]) -> ClientRule:
    windows = [
        DayWindow(day=day, blocks=blocks)
        for day, blocks in _parse_day_map(raw.get("windows", {})).items()
        if blocks
    ]
    slots = [
        frozenset(DayKey.parse(d) for d in slot)
        for slot in raw.get("preferred_day_slots", [])
        if slot
    ]
    return ClientRule(
        id=str(raw["id"]).strip(),
        monthly_hours=float(raw["monthly_hours"]),
        min_session_mins=_optional_int(raw.get("min_session_mins", 60)),
        windows=windows,
        max_sessions_per_week=_optional_int(raw.get("max_sessions_per_week")),
        preferred_day_slots=slots,
        prefer_no_sub_hour=bool(raw.get("prefer_no_sub_hour", True)),
    )
