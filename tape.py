"""
Tape — A finite, dynamically growing single-track Turing tape.

The tape is a string of symbols plus a signed head position. Any index
outside the string reads as the blank symbol. Writing outside the current
bounds grows the string first; moving left past the first cell grows it by
one blank and keeps the head anchored at index 0.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

from config import DEFAULT_BLANK_SYMBOL
from errors import InvalidMoveError

# Head offsets for each canonical move
MOVES: Dict[str, int] = {
    "L": -1,
    "R": 1,
    "N": 0,
}

VALID_MOVES = frozenset(MOVES.keys())

_MOVE_ALIASES: Dict[str, str] = {
    "l": "L", "left": "L",
    "r": "R", "right": "R",
    "n": "N", "none": "N", "stay": "N",
}


def normalize_move(direction: Any) -> str:
    """Return the canonical move ('L', 'R' or 'N') or raise InvalidMoveError."""
    if not isinstance(direction, str):
        raise InvalidMoveError(direction)
    canonical = _MOVE_ALIASES.get(direction.strip().lower())
    if canonical is None:
        raise InvalidMoveError(direction)
    return canonical


def validate_blank_symbol(symbol: Any) -> str:
    """A blank symbol must be exactly one character."""
    if not isinstance(symbol, str) or len(symbol) != 1:
        raise ValueError(f"Blank symbol must be a single character, got {symbol!r}")
    return symbol


class Tape:
    """Finite tape with blank fill outside its bounds and a movable head."""

    def __init__(
        self,
        value: str = "",
        head: int = 0,
        blank_symbol: Optional[str] = None,
    ) -> None:
        if not isinstance(value, str):
            raise TypeError(f"Tape value must be a string, got {type(value).__name__}")
        self._value = value
        self._head = int(head)
        self.blank_symbol = validate_blank_symbol(
            blank_symbol if blank_symbol is not None else DEFAULT_BLANK_SYMBOL
        )

    # ── Properties ───────────────────────────────────────────────────

    @property
    def value(self) -> str:
        """Current tape contents."""
        return self._value

    @property
    def head(self) -> int:
        """Current head position (may be negative or past the right edge)."""
        return self._head

    def __len__(self) -> int:
        return len(self._value)

    # ── Core Operations ──────────────────────────────────────────────

    def read_at(self, position: int) -> str:
        """Symbol at `position`; the blank symbol outside [0, len)."""
        if 0 <= position < len(self._value):
            return self._value[position]
        return self.blank_symbol

    def read(self) -> str:
        """Symbol under the head."""
        return self.read_at(self._head)

    def _grow_to(self, position: int) -> Tuple[str, int]:
        """Return (value, position) with the tape padded so that position is a valid index."""
        value = self._value
        if position < 0:
            value = self.blank_symbol * -position + value
            position = 0
        elif position >= len(value):
            value = value + self.blank_symbol * (position - len(value) + 1)
        return value, position

    def write(self, symbol: str) -> str:
        """Write a symbol under the head, growing the tape if needed. Returns the new value."""
        if not isinstance(symbol, str) or len(symbol) != 1:
            raise ValueError(f"Tape symbols must be single characters, got {symbol!r}")
        value, head = self._grow_to(self._head)
        self._value = value[:head] + symbol + value[head + 1:]
        self._head = head
        return self._value

    def move(self, direction: str) -> int:
        """Move the head one cell. Returns the new head position."""
        head = self._head + MOVES[normalize_move(direction)]
        if head < 0:
            self._value, head = self._grow_to(head)
        self._head = head
        return self._head

    def jump(self, position: int) -> int:
        """Place the head on an arbitrary cell without touching the contents."""
        self._head = int(position)
        return self._head

    def replace_symbol(self, old: str, new: str) -> str:
        """Rewrite every occurrence of `old` with `new`."""
        self._value = self._value.replace(old, new)
        return self._value

    def copy(self) -> "Tape":
        return Tape(self._value, self._head, self.blank_symbol)

    # ── Serialization ────────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the tape to a JSON-compatible dict."""
        return {
            "value": self._value,
            "head": self._head,
            "blank_symbol": self.blank_symbol,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Tape":
        """Deserialize a tape from a dict (as produced by to_dict)."""
        return cls(
            value=data.get("value", ""),
            head=int(data.get("head", 0)),
            blank_symbol=data.get("blank_symbol"),
        )

    # ── Display ──────────────────────────────────────────────────────

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Tape):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return f"Tape(value={self._value!r}, head={self._head})"

    def status(self) -> str:
        """Human-readable status string."""
        return (
            f"Head: {self._head} | "
            f"Current cell: '{self.read()}' | "
            f"Tape length: {len(self._value)}"
        )
