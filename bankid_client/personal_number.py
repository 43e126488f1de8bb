"""Swedish personal identity number ("personnummer") parsing and rendering."""

from __future__ import annotations

from typing import Any, Dict, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_serializer, model_validator

from .errors import InvalidPersonalNumber

SEPARATORS = ("-", " ")

_DIGITS = frozenset("0123456789")
# year, month, day, serial
_GROUP_WIDTHS = (2, 2, 4)
_ACCEPTED_LENGTHS = (10, 11, 12, 13)


def _split_groups(digits: str) -> Tuple[str, ...]:
    """Slice ``digits`` into (year, month, day, serial) at fixed offsets."""
    year_width = len(digits) - sum(_GROUP_WIDTHS)
    groups = []
    offset = 0
    for width in (year_width, *_GROUP_WIDTHS):
        group = digits[offset : offset + width]
        if len(group) != width or width <= 0:
            break
        groups.append(group)
        offset += width
    if offset != len(digits):
        return ()
    return tuple(groups)


def _scan(text: Any) -> Dict[str, int]:
    """Run the fixed grammar over ``text`` and return the four numeric fields.

    Accepted shapes are ``YYYYMMDDNNNN`` and ``YYYYMMDD-NNNN`` (``-`` or a
    space). The two-digit-year shapes ``YYMMDDNNNN`` and ``YYMMDD-NNNN`` are
    recognised but rejected, since the century cannot be known.
    """
    if not isinstance(text, str):
        raise InvalidPersonalNumber(f"expected text, got {type(text).__name__}")

    if len(text) not in _ACCEPTED_LENGTHS:
        raise InvalidPersonalNumber(f"unexpected length {len(text)}")

    if len(text) % 2:
        position = len(text) - 5
        if text[position] not in SEPARATORS:
            raise InvalidPersonalNumber(
                "only '-' or ' ' may separate the last four digits"
            )
        digits = text[:position] + text[position + 1 :]
    else:
        digits = text

    if not all(char in _DIGITS for char in digits):
        raise InvalidPersonalNumber("contains characters other than digits")

    groups = _split_groups(digits)
    if len(groups) != 4:
        raise InvalidPersonalNumber("unexpected capture shape")

    year_text, month_text, day_text, serial_text = groups
    if len(year_text) != 4:
        raise InvalidPersonalNumber(
            "two-digit year is ambiguous, a four-digit year is required"
        )

    year, month, day, serial = (int(group) for group in groups)
    if year < 1000:
        raise InvalidPersonalNumber(f"year {year_text} is out of range")
    if not 1 <= month <= 12:
        raise InvalidPersonalNumber(f"month {month_text} is out of range")
    if not 1 <= day <= 31:
        raise InvalidPersonalNumber(f"day {day_text} is out of range")

    return {"year": year, "month": month, "day": day, "serial": serial}


class PersonalNumber(BaseModel):
    """A validated personal identity number.

    Serializes to, and validates from, the canonical twelve digit string so
    it can be embedded directly in request and response models::

        >>> pnr = PersonalNumber.parse("19871010-1234")
        >>> str(pnr)
        '198710101234'
    """

    model_config = ConfigDict(frozen=True)

    year: int = Field(ge=1000, le=9999)
    month: int = Field(ge=1, le=12)
    day: int = Field(ge=1, le=31)
    serial: int = Field(ge=0, le=9999)

    @classmethod
    def parse(cls, text: str) -> "PersonalNumber":
        """Parse ``text`` or raise :class:`InvalidPersonalNumber`."""
        return cls(**_scan(text))

    @classmethod
    def is_valid(cls, text: str) -> bool:
        try:
            _scan(text)
        except InvalidPersonalNumber:
            return False
        return True

    @model_validator(mode="before")
    @classmethod
    def _from_text(cls, data: Any) -> Any:
        if isinstance(data, str):
            return _scan(data)
        return data

    @model_serializer(mode="plain")
    def _to_text(self) -> str:
        return self.render()

    def render(self) -> str:
        """Return the canonical wire form ``YYYYMMDDNNNN``."""
        return f"{self.year:04d}{self.month:02d}{self.day:02d}{self.serial:04d}"

    def masked(self) -> str:
        """Return the number with its serial hidden, for log output."""
        return f"{self.year:04d}{self.month:02d}{self.day:02d}****"

    def __str__(self) -> str:
        return self.render()
