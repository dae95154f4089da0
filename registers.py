"""
Registers — State registry and machine log.

The state registry maps opaque state keys to display names. The machine
log keeps the pre-step condition of every executed step, plus typed
failure records for operations that raised.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, Iterable, Iterator, List, Optional, Tuple, Union

from config import DEFAULT_FINAL_STATE, DEFAULT_INITIAL_STATE
from turing_machine import Condition

_MOVE_WORDS: Dict[str, str] = {"L": "left", "R": "right"}


# ── State Registry ───────────────────────────────────────────────────

class StateRegistry:
    """Ordered mapping of state key -> display name."""

    def __init__(
        self,
        entries: Optional[Iterable[Tuple[Hashable, str]]] = None,
        final_state: Hashable = DEFAULT_FINAL_STATE,
    ) -> None:
        self.final_state = final_state
        if entries is None:
            entries = [
                (final_state, str(final_state)),
                (DEFAULT_INITIAL_STATE, str(DEFAULT_INITIAL_STATE)),
            ]
        self._names: Dict[Hashable, str] = {}
        for key, name in entries:
            self._names[key] = name

    def __contains__(self, key: object) -> bool:
        try:
            return key in self._names
        except TypeError:
            return False

    def __len__(self) -> int:
        return len(self._names)

    def __iter__(self) -> Iterator[Hashable]:
        return iter(self._names)

    def keys(self) -> List[Hashable]:
        return list(self._names)

    def name_of(self, key: Hashable) -> str:
        """Display name of a state; falls back to str(key) for unregistered keys."""
        return self._names.get(key, str(key))

    def selectable(self) -> List[Hashable]:
        """Keys that can serve as an initial state (everything but the final state)."""
        return [key for key in self._names if key != self.final_state]

    def fallback(self, exclude: Optional[Hashable] = None) -> Optional[Hashable]:
        for key in self.selectable():
            if key != exclude:
                return key
        return None

    def add(self, key: Optional[Hashable] = None, name: Optional[str] = None) -> Hashable:
        """
        Register a new state and return its key.

        Without a key the next free integer is used; without a name the
        first unused `q<n>` name is chosen.
        """
        if key is None:
            key = len(self._names)
            while key in self._names:
                key += 1
        elif key in self._names:
            raise ValueError(f"State '{key}' is already registered")
        if name is None:
            taken = set(self._names.values())
            n = len(self._names) - 1
            while f"q{n}" in taken:
                n += 1
            name = f"q{n}"
        self._names[key] = name
        return key

    def rename(self, key: Hashable, name: str) -> None:
        if key not in self._names:
            raise KeyError(f"Unknown state '{key}'")
        self._names[key] = name

    def remove(self, key: Hashable) -> str:
        """Unregister a state. Returns its display name."""
        if key not in self._names:
            raise KeyError(f"Unknown state '{key}'")
        return self._names.pop(key)

    def copy(self) -> "StateRegistry":
        return StateRegistry(self._names.items(), final_state=self.final_state)

    def to_list(self) -> List[List[Any]]:
        """JSON entries: [[key, name], ...]."""
        return [[key, name] for key, name in self._names.items()]

    @classmethod
    def from_list(
        cls,
        entries: Iterable[Iterable[Any]],
        final_state: Hashable = DEFAULT_FINAL_STATE,
    ) -> "StateRegistry":
        return cls([tuple(entry) for entry in entries], final_state=final_state)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StateRegistry):
            return NotImplemented
        return self.final_state == other.final_state and self.to_list() == other.to_list()

    def __repr__(self) -> str:
        return f"StateRegistry({self.to_list()!r})"


# ── Log Entries ──────────────────────────────────────────────────────

_DETAIL_ATTRS = ("state", "symbol", "move", "max_steps")


@dataclass(frozen=True)
class FailureRecord:
    """A failed run/step, stored in the log instead of the exception object."""

    kind: str
    message: str
    details: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_exception(cls, exc: BaseException) -> "FailureRecord":
        details = {
            attr: getattr(exc, attr)
            for attr in _DETAIL_ATTRS
            if hasattr(exc, attr)
        }
        return cls(kind=type(exc).__name__, message=str(exc), details=details)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "error",
            "kind": self.kind,
            "message": self.message,
            "details": dict(self.details),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FailureRecord":
        return cls(
            kind=data.get("kind", "Error"),
            message=data.get("message", ""),
            details=dict(data.get("details") or {}),
        )


LogEntry = Union[Condition, FailureRecord]


def entry_from_dict(data: Dict[str, Any]) -> LogEntry:
    if data.get("type") == "error":
        return FailureRecord.from_dict(data)
    return Condition.from_dict(data)


def entry_to_dict(entry: LogEntry) -> Dict[str, Any]:
    return entry.to_dict()


def format_entry(
    entry: LogEntry,
    final_state: Hashable = DEFAULT_FINAL_STATE,
    states: Optional[StateRegistry] = None,
) -> str:
    """Human-readable line for one log entry."""
    if isinstance(entry, FailureRecord):
        return f"Error: {entry.message}"

    name = states.name_of if states is not None else str
    head = f"Step {entry.step + 1}: <{entry.symbol}, {name(entry.state)}>"
    instruction = entry.instruction
    if instruction is None:
        return f"{head} -> no instruction"

    parts = [f"Write «{instruction.new_symbol}»"]
    if instruction.move in _MOVE_WORDS:
        parts.append(f"shift {_MOVE_WORDS[instruction.move]}")
    if instruction.new_state == final_state:
        parts.append("final state reached")
    else:
        parts.append(f"go to state {name(instruction.new_state)}")
    return (
        f"{head} -> <{instruction.new_symbol}, {name(instruction.new_state)}> "
        f"({', '.join(parts)})"
    )


class MachineLog:
    """Ordered log of conditions and failure records."""

    def __init__(self, entries: Optional[Iterable[LogEntry]] = None) -> None:
        self._entries: List[LogEntry] = list(entries or [])

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[LogEntry]:
        return iter(self._entries)

    def __getitem__(self, index: int) -> LogEntry:
        return self._entries[index]

    def append(self, entry: LogEntry) -> None:
        self._entries.append(entry)

    def extend(self, entries: Iterable[LogEntry]) -> None:
        self._entries.extend(entries)

    def clear(self) -> None:
        self._entries.clear()

    def conditions(self) -> List[Condition]:
        return [e for e in self._entries if isinstance(e, Condition)]

    def failures(self) -> List[FailureRecord]:
        return [e for e in self._entries if isinstance(e, FailureRecord)]

    @property
    def last_failed(self) -> bool:
        return bool(self._entries) and isinstance(self._entries[-1], FailureRecord)

    def to_list(self) -> List[Dict[str, Any]]:
        return [entry_to_dict(e) for e in self._entries]

    @classmethod
    def from_list(cls, data: Iterable[Dict[str, Any]]) -> "MachineLog":
        return cls(entry_from_dict(item) for item in data)

    def copy(self) -> "MachineLog":
        return MachineLog(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MachineLog):
            return NotImplemented
        return self._entries == other._entries

    def __repr__(self) -> str:
        return f"MachineLog(entries={len(self._entries)})"
