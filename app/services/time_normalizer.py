"""
Slot time parsing.

Doctor templates hold free-form strings such as ``"9:00"``, ``"09:00"`` or
``"02:30 PM"``. ``normalize`` turns them into a ``CanonicalTime`` when it can
and wraps anything else in a ``RawTime`` instead of raising, so that filters
over templates stay total. A ``RawTime`` never equals a ``CanonicalTime``.
"""
import enum
import re
from typing import NamedTuple, Optional, Tuple, Union

from ..core.errors import ValidationError

_TWENTY_FOUR_HOUR = re.compile(r"^(\d{1,2}):(\d{2})$")
_MERIDIEM = re.compile(r"^(\d{1,2}):(\d{2}) ?(AM|PM)$")


class CanonicalTime(NamedTuple):
    hour: int
    minute: int

    def __str__(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"


class RawTime(NamedTuple):
    value: str

    def __str__(self) -> str:
        return self.value


SlotTime = Union[CanonicalTime, RawTime]


class DayPeriod(str, enum.Enum):
    MORNING = "AM"
    AFTERNOON = "PM"

    @classmethod
    def parse(cls, value: str) -> "DayPeriod":
        key = (value or "").strip().upper()
        if key in ("AM", "MORNING"):
            return cls.MORNING
        if key in ("PM", "AFTERNOON"):
            return cls.AFTERNOON
        raise ValidationError(f"Time must be 'AM' or 'PM', got '{value}'")


def normalize(raw) -> SlotTime:
    """Parse a slot string into 24-hour form, falling back to ``RawTime``."""
    if isinstance(raw, (CanonicalTime, RawTime)):
        return raw
    if raw is None:
        return RawTime("")

    text = str(raw).strip().upper()

    match = _TWENTY_FOUR_HOUR.match(text)
    if match:
        hour, minute = int(match.group(1)), int(match.group(2))
        if hour <= 23 and minute <= 59:
            return CanonicalTime(hour, minute)
        return RawTime(text)

    match = _MERIDIEM.match(text)
    if match:
        hour, minute = int(match.group(1)), int(match.group(2))
        if not 1 <= hour <= 12 or minute > 59:
            return RawTime(text)
        if match.group(3) == "AM":
            hour = 0 if hour == 12 else hour
        elif hour != 12:
            hour += 12
        return CanonicalTime(hour, minute)

    return RawTime(text)


def classify(time) -> Optional[DayPeriod]:
    """Morning/afternoon bucket of a slot, ``None`` when it cannot be told."""
    time = normalize(time)
    if isinstance(time, CanonicalTime):
        return DayPeriod.MORNING if time.hour < 12 else DayPeriod.AFTERNOON
    if "AM" in time.value:
        return DayPeriod.MORNING
    if "PM" in time.value:
        return DayPeriod.AFTERNOON
    return None


def sort_key(time) -> Tuple:
    time = normalize(time)
    if isinstance(time, CanonicalTime):
        return (0, time.hour, time.minute, "")
    return (1, 0, 0, time.value.lower())
