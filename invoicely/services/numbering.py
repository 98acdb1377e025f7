"""
Invoice number allocation.

Numbers are ``prefix + zero-padded sequence`` (``INV-001``, ``042``). The
next sequence is one past the highest number already issued under the same
prefix, but never below the user's configured start number.

Nothing here touches the database: callers read the settings and the
existing numbers, and are responsible for persisting the result under a
per-user uniqueness constraint.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable

MIN_DIGITS = 3

_DIGITS_RE = re.compile(r"[0-9]+")


def _coerce_start_number(value) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return 1
    return number if number > 0 else 1


@dataclass(frozen=True)
class NumberingConfig:
    """A user's invoice numbering preferences."""

    prefix: str = ""
    start_number: int = 1

    def __post_init__(self):
        object.__setattr__(self, "prefix", self.prefix or "")
        object.__setattr__(self, "start_number", _coerce_start_number(self.start_number))

    @classmethod
    def from_settings(cls, settings) -> "NumberingConfig":
        """Build a config from a ``BusinessSettings`` document (or None)."""
        if settings is None:
            return cls()
        return cls(
            prefix=getattr(settings, "invoice_prefix", None),
            start_number=getattr(settings, "invoice_start_number", None),
        )


def format_invoice_number(prefix: str, sequence: int) -> str:
    """Return an invoice number like ``INV-007``; longer sequences are kept whole."""
    return f"{prefix or ''}{sequence:0{MIN_DIGITS}d}"


def parse_sequence(invoice_number: str | None, prefix: str) -> int | None:
    """Return the numeric part of *invoice_number* under *prefix*, or None.

    With an empty prefix only purely numeric numbers count. Numbers that
    don't carry the prefix, or whose remainder isn't all digits, are ignored.
    """
    if not invoice_number:
        return None
    if prefix:
        if not invoice_number.startswith(prefix):
            return None
        remainder = invoice_number[len(prefix):]
    else:
        remainder = invoice_number
    if not _DIGITS_RE.fullmatch(remainder):
        return None
    return int(remainder)


def next_invoice_number(config: NumberingConfig, existing_numbers: Iterable[str]) -> str:
    """Compute the next invoice number for a user.

    The result is deterministic for a given snapshot of *existing_numbers*;
    two callers working from the same snapshot get the same answer.
    """
    sequences = [
        seq
        for seq in (parse_sequence(number, config.prefix) for number in existing_numbers)
        if seq is not None
    ]
    max_existing = max(sequences, default=0)
    return format_invoice_number(config.prefix, max(max_existing + 1, config.start_number))
