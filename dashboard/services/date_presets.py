from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Callable, Union
from zoneinfo import ZoneInfo

from dashboard.core.config import settings
from dashboard.schemas.listing import DateRange

Clock = Union[date, datetime, Callable[[], Union[date, datetime]], None]


class UnknownPreset(ValueError):
    def __init__(self, name: str):
        super().__init__(f'Rango de fechas desconocido: "{name}"')
        self.name = name


def current_day(now: Clock = None) -> date:
    if now is None:
        return datetime.now(ZoneInfo(settings.DASHBOARD_TIMEZONE)).date()
    if callable(now):
        now = now()
    if isinstance(now, datetime):
        return now.date()
    return now


def today(now: Clock = None) -> DateRange:
    day = current_day(now)
    return DateRange(date_from=day, date_to=day)


def last_7_days(now: Clock = None) -> DateRange:
    day = current_day(now)
    return DateRange(date_from=day - timedelta(days=7), date_to=day)


def last_30_days(now: Clock = None) -> DateRange:
    day = current_day(now)
    return DateRange(date_from=day - timedelta(days=30), date_to=day)


def this_month(now: Clock = None) -> DateRange:
    day = current_day(now)
    return DateRange(date_from=day.replace(day=1), date_to=day)


PRESETS: dict[str, Callable[[Clock], DateRange]] = {
    "today": today,
    "last_7_days": last_7_days,
    "last_30_days": last_30_days,
    "this_month": this_month,
}


def resolve_preset(name: str, now: Clock = None) -> DateRange:
    preset = PRESETS.get(str(name or "").strip())
    if preset is None:
        raise UnknownPreset(name)
    return preset(now)
