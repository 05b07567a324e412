"""Cron-Felder: Parsen einzelner Zeitfelder und Mengen-Lookup.

Ein Feld ist eine der sechs Positionen eines Ausdrucks::

    *  *  *  *  *  *
    |  |  |  |  |  |
    |  |  |  |  |  +----- Jahr (2020 - 2099, optional)
    |  |  |  |  +-------- Wochentag (0 - 6, Sonntag = 0)
    |  |  |  +----------- Monat (1 - 12)
    |  |  +-------------- Tag im Monat (1 - 31)
    |  +----------------- Stunde (0 - 23)
    +-------------------- Minute (0 - 59)

Erlaubte Formen pro Feld: ``*``, einzelne Zahl (``9``), Bereich (``3-6``)
oder eine Komma-Liste aus Zahlen und Bereichen (``1,4,6-9``).
"""

from __future__ import annotations

import bisect
import re
from dataclasses import dataclass

from minutecron.core.errors import InvalidExpressionError

# Unterhalb dieser Größe ist lineare Suche schneller als Bisektion
LINEAR_SCAN_THRESHOLD = 10

_NUMBER_RE = re.compile(r"[0-9]+")
_RANGE_RE = re.compile(r"([0-9]+)-([0-9]+)")
_LIST_RE = re.compile(r"[0-9-]+(,[0-9-]+)+")


@dataclass(frozen=True, slots=True)
class FieldDomain:
    """Name und inklusiver Wertebereich eines Feldes."""

    name: str
    minimum: int
    maximum: int

    def parse(self, text: str) -> tuple[int, ...]:
        return parse_field(text, self.minimum, self.maximum)


MINUTE = FieldDomain("minute", 0, 59)
HOUR = FieldDomain("hour", 0, 23)
DAY = FieldDomain("day", 1, 31)
MONTH = FieldDomain("month", 1, 12)
WEEKDAY = FieldDomain("weekday", 0, 6)
YEAR = FieldDomain("year", 2020, 2099)

REQUIRED_FIELDS: tuple[FieldDomain, ...] = (MINUTE, HOUR, DAY, MONTH, WEEKDAY)


def parse_field(text: str, minimum: int, maximum: int) -> tuple[int, ...]:
    """Parst ein einzelnes Zeitfeld in eine sortierte Wertemenge.

    Die Formen werden in fester Reihenfolge probiert: Wildcard, Zahl,
    Bereich, Liste. Listen-Elemente dürfen nur Zahlen oder Bereiche sein.

    Args:
        text: Feldtext, z.B. ``"0,15,30,45"`` oder ``"1-4"``.
        minimum: Kleinster erlaubter Wert (inklusiv).
        maximum: Größter erlaubter Wert (inklusiv).

    Returns:
        Aufsteigend sortiertes Tupel ohne Duplikate.

    Raises:
        InvalidExpressionError: Wenn keine Form passt oder Grenzen
            verletzt sind.
    """
    if text == "*":
        return tuple(range(minimum, maximum + 1))

    if _NUMBER_RE.fullmatch(text):
        value = int(text)
        if minimum <= value <= maximum:
            return (value,)

    match = _RANGE_RE.fullmatch(text)
    if match:
        low, high = int(match.group(1)), int(match.group(2))
        # Gleiche oder absteigende Grenzen sind ungültig
        if low >= minimum and high <= maximum and high > low:
            return tuple(range(low, high + 1))

    if _LIST_RE.fullmatch(text):
        values: set[int] = set()
        for term in text.split(","):
            values.update(_parse_term(term, minimum, maximum, text))
        return tuple(sorted(values))

    raise InvalidExpressionError(text, field_text=text)


def _parse_term(term: str, minimum: int, maximum: int, field_text: str) -> tuple[int, ...]:
    """Parst ein Listen-Element (Zahl oder Bereich)."""
    if not (_NUMBER_RE.fullmatch(term) or _RANGE_RE.fullmatch(term)):
        raise InvalidExpressionError(field_text, field_text=field_text)
    try:
        return parse_field(term, minimum, maximum)
    except InvalidExpressionError as exc:
        raise InvalidExpressionError(field_text, field_text=field_text) from exc


def contains(values: tuple[int, ...] | list[int], value: int) -> bool:
    """Prüft ob ``value`` in der aufsteigend sortierten Folge ``values`` liegt.

    Kleine Folgen werden linear durchsucht, große per Bisektion.
    Werte außerhalb von ``[values[0], values[-1]]`` werden ohne Suche
    abgelehnt.
    """
    if len(values) < LINEAR_SCAN_THRESHOLD:
        return value in values
    if value < values[0] or value > values[-1]:
        return False
    idx = bisect.bisect_left(values, value)
    return idx < len(values) and values[idx] == value
