import re
from typing import NamedTuple, Optional

MAX_CODE_LEN = 12
SEQUENCE_WIDTH = 4

LOCATION_FALLBACK = "LOC"
DEPARTMENT_FALLBACK = "DEPT"

_NON_CODE_CHARS = re.compile(r"[^A-Z0-9]")
_DAY_KEY_RE = re.compile(r"[0-9]{8}")
_SEQUENCE_RE = re.compile(r"[0-9]+")


def normalize_code(text: Optional[str], fallback: str = "NA") -> str:
    """Turn free text into a short uppercase token safe inside a complaint number."""
    token = _NON_CODE_CHARS.sub("", (text or "").strip().upper())[:MAX_CODE_LEN]
    return token or fallback


def normalize_location(text: Optional[str]) -> str:
    return normalize_code(text, LOCATION_FALLBACK)


def normalize_department(text: Optional[str]) -> str:
    return normalize_code(text, DEPARTMENT_FALLBACK)


class ComplaintNumberParts(NamedTuple):
    org: str
    location_code: str
    day_key: str
    department_code: str
    sequence: int


def complaint_prefix(org: str, location_code: str, day_key: str, department_code: str) -> str:
    """
    Everything before the sequence, including the trailing slash.
    Numbers sharing a prefix sort by sequence as long as the padding holds.
    """
    return f"{org}/{location_code}/{day_key}/{department_code}/"


def build_complaint_number(org: str, location_code: str, day_key: str,
                           department_code: str, sequence: int) -> str:
    # widths past 9999 simply grow
    return f"{complaint_prefix(org, location_code, day_key, department_code)}{sequence:0{SEQUENCE_WIDTH}d}"


def parse_complaint_number(number: str) -> ComplaintNumberParts:
    parts = (number or "").split("/")
    if len(parts) != 5:
        raise ValueError(f"Malformed complaint number: {number!r}")
    org, loc, day, dept, seq = parts
    if not _DAY_KEY_RE.fullmatch(day) or not _SEQUENCE_RE.fullmatch(seq):
        raise ValueError(f"Malformed complaint number: {number!r}")
    return ComplaintNumberParts(org, loc, day, dept, int(seq))
