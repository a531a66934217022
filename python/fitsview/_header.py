# This file is part of fitsview.
#
# See the COPYRIGHT file at the top-level directory of this distribution
# for details of code ownership.
#
# Use of this source code is governed by a 3-clause BSD-style
# license that can be found in the LICENSE file.

from __future__ import annotations

__all__ = ("CARD_SIZE", "FitsHeader")

import re
from collections.abc import Iterable, Iterator, Mapping
from typing import final

import astropy.io.fits

from ._errors import FormatError

CARD_SIZE = 80
"""Number of characters in one FITS header card."""

_KEYWORD_SIZE = 8
_VALUE_START = 10

_STRING_VALUE = re.compile(r"'((?:[^']|'')*)'")

# Keywords whose value columns hold free text rather than a value.
_COMMENTARY_KEYWORDS = frozenset({"", "COMMENT", "HISTORY"})


@final
class FitsHeader(Mapping[str, str]):
    """An immutable mapping from FITS keywords to their raw value strings.

    Parameters
    ----------
    values
        Mapping or iterable of ``(keyword, value)`` pairs.  Keywords and
        values are trimmed; when a keyword is repeated the last value wins.

    Notes
    -----
    The raw value of a card is everything in columns 11-80, so it may still
    hold FITS string quotes and a trailing ``/ comment``.  The typed accessors
    (`get_str`, `get_float`, `get_int`) strip both.
    """

    def __init__(self, values: Mapping[str, str] | Iterable[tuple[str, str]] = ()):
        items = values.items() if isinstance(values, Mapping) else values
        self._values = {k.strip(): v.strip() for k, v in items}

    @classmethod
    def from_cards(cls, cards: Iterable[str]) -> FitsHeader:
        """Build a header from 80-character card images, stopping at the
        ``END`` card.
        """
        pairs = []
        for card in cards:
            keyword = card[:_KEYWORD_SIZE].strip()
            if keyword == "END":
                break
            pairs.append((keyword, card[_VALUE_START:CARD_SIZE]))
        return cls(pairs)

    def __getitem__(self, key: str) -> str:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"FitsHeader({self._values!r})"

    def get_str(self, key: str, default: str | None = None) -> str:
        """Return the value of a keyword as a string.

        FITS string quoting is removed (including ``''`` escapes and trailing
        blanks inside the quotes); for unquoted values any trailing
        ``/ comment`` is dropped.

        Raises
        ------
        FormatError
            Raised if the keyword is absent and no default is given.
        """
        if key not in self._values:
            if default is None:
                raise FormatError(f"Required header keyword {key!r} is missing.")
            return default
        return _strip_value(self._values[key])

    def get_float(self, key: str, default: float | None = None) -> float:
        """Return the value of a keyword as a `float`.

        Raises
        ------
        FormatError
            Raised if the keyword is absent and no default is given, or if
            its value is not a number.
        """
        if key not in self._values:
            if default is None:
                raise FormatError(f"Required header keyword {key!r} is missing.")
            return default
        text = _strip_value(self._values[key])
        try:
            # Fortran-style exponents are legal in FITS.
            return float(text.replace("D", "E").replace("d", "e"))
        except ValueError:
            raise FormatError(f"Header keyword {key!r} has non-numeric value {text!r}.") from None

    def get_int(self, key: str, default: int | None = None) -> int:
        """Return the value of a keyword as an `int`.

        Raises
        ------
        FormatError
            Raised if the keyword is absent and no default is given, or if
            its value is not an integer.
        """
        if key not in self._values:
            if default is None:
                raise FormatError(f"Required header keyword {key!r} is missing.")
            return default
        text = _strip_value(self._values[key])
        try:
            return int(text)
        except ValueError:
            pass
        value = self.get_float(key)
        if not value.is_integer():
            raise FormatError(f"Header keyword {key!r} has non-integer value {text!r}.")
        return int(value)

    def to_astropy(self) -> astropy.io.fits.Header:
        """Convert to an `astropy.io.fits.Header`.

        Commentary keywords are dropped, since only their last occurrence is
        retained here.
        """
        result = astropy.io.fits.Header()
        for key, raw in self._values.items():
            if key in _COMMENTARY_KEYWORDS:
                continue
            result[key] = _coerce_value(raw)
        return result


def _strip_value(raw: str) -> str:
    if raw.startswith("'"):
        if (match := _STRING_VALUE.match(raw)) is None:
            raise FormatError(f"Unterminated string value {raw!r}.")
        return match.group(1).replace("''", "'").rstrip()
    return raw.split("/", 1)[0].strip()


def _coerce_value(raw: str) -> str | bool | int | float:
    if raw.startswith("'"):
        return _strip_value(raw)
    text = _strip_value(raw)
    match text:
        case "T":
            return True
        case "F":
            return False
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text.replace("D", "E").replace("d", "e"))
    except ValueError:
        return text
