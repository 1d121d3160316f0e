from __future__ import annotations

from datetime import date
from enum import Enum


class Weekday(str, Enum):
    """Day of the week on which a course level holds sessions."""

    SUNDAY = "sunday"
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"

    @classmethod
    def from_ordinal(cls, ordinal: int) -> "Weekday":
        """Sunday=0 .. Saturday=6."""
        return _SUNDAY_FIRST[ordinal % 7]

    @classmethod
    def from_date(cls, value: date) -> "Weekday":
        # date.weekday() is Monday=0; shift to the Sunday-first table.
        return cls.from_ordinal(value.weekday() + 1)

    @property
    def label(self) -> str:
        return WEEKDAY_LABELS[self]

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


_SUNDAY_FIRST = (
    Weekday.SUNDAY,
    Weekday.MONDAY,
    Weekday.TUESDAY,
    Weekday.WEDNESDAY,
    Weekday.THURSDAY,
    Weekday.FRIDAY,
    Weekday.SATURDAY,
)

# Display labels used by the club's UI.
WEEKDAY_LABELS = {
    Weekday.MONDAY: "Pazartesi",
    Weekday.TUESDAY: "Salı",
    Weekday.WEDNESDAY: "Çarşamba",
    Weekday.THURSDAY: "Perşembe",
    Weekday.FRIDAY: "Cuma",
    Weekday.SATURDAY: "Cumartesi",
    Weekday.SUNDAY: "Pazar",
}


class LevelTier(str, Enum):
    """Proficiency tier of a course level."""

    TEMEL = "temel"
    TEKNIK = "teknik"
    PERFORMANS = "performans"

    @property
    def label(self) -> str:
        return self.value.capitalize()


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"


class AttendanceStatus(str, Enum):
    """Attendance status stored in the database."""

    PRESENT = "PRESENT"
    ABSENT = "ABSENT"
    EXCUSED = "EXCUSED"


class PaymentStatus(str, Enum):
    PAID = "PAID"
    PENDING = "PENDING"
    EXCUSED = "EXCUSED"
