import re
from datetime import datetime, date, time
from typing import Union, Optional

TIMESTAMP_FMT = "%Y-%m-%d %H:%M:%S"
_MONTH_KEY_RE = re.compile(r"[0-9]{6}")


def day_key(dt: Union[datetime, date]) -> str:
    return dt.strftime("%Y%m%d")


def month_key(dt: Union[datetime, date]) -> str:
    return dt.strftime("%Y%m")


def is_month_key(s: Optional[str]) -> bool:
    if not s or not _MONTH_KEY_RE.fullmatch(s):
        return False
    return 1 <= int(s[4:]) <= 12


def parse_date(d: Union[str, datetime, date, None]) -> Optional[date]:
    if isinstance(d, datetime):
        return d.date()
    if isinstance(d, date):
        return d
    if isinstance(d, str):
        for fmt in ("%Y-%m-%d", "%Y-%m-%d %H:%M:%S"):
            try:
                return datetime.strptime(d.strip(), fmt).date()
            except ValueError:
                continue
    return None


def start_of_day(d: date) -> datetime:
    return datetime.combine(d, time.min)


def end_of_day(d: date) -> datetime:
    return datetime.combine(d, time.max)


def format_timestamp(ts: Optional[datetime]) -> Optional[str]:
    if ts is None:
        return None
    return ts.strftime(TIMESTAMP_FMT)
