"""
TuringMachine — Deterministic single-tape Turing machine engine.

Owns the input, the transition table, the run options and the mutable
condition (tape, head, state, step). Every step is committed atomically:
a failing lookup or an invalid move leaves the machine untouched.
The blank symbol is per-instance configuration; the class-level
BLANK_SYMBOL only seeds new instances.
"""

from __future__ import annotations

import copy
import dataclasses
import logging
from dataclasses import dataclass
from typing import (
    Any,
    Dict,
    Hashable,
    Iterable,
    List,
    NamedTuple,
    Optional,
    Tuple,
    Union,
)

from config import (
    DEFAULT_BLANK_SYMBOL,
    DEFAULT_FINAL_STATE,
    DEFAULT_INITIAL_STATE,
    DEFAULT_MAX_STEPS,
)
from errors import (
    LookupFailure,
    MaxStepsExceededError,
    NoInstructionError,
    UnknownStateError,
)
from tape import Tape, normalize_move, validate_blank_symbol

logger = logging.getLogger("tmsim.machine")

StateKey = Hashable


# ── Value Types ──────────────────────────────────────────────────────

@dataclass(frozen=True)
class Instruction:
    """(state, symbol) -> (new_symbol, move, new_state)."""

    state: StateKey
    symbol: str
    move: str
    new_symbol: str
    new_state: StateKey

    def replace_symbol(self, old: str, new: str) -> "Instruction":
        """Copy with every `old` read/write symbol rewritten to `new`."""
        return dataclasses.replace(
            self,
            symbol=new if self.symbol == old else self.symbol,
            new_symbol=new if self.new_symbol == old else self.new_symbol,
        )

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Instruction":
        """Accepts snake_case keys, or the camelCase keys of older exports."""
        return cls(
            state=data["state"],
            symbol=data["symbol"],
            move=data["move"],
            new_symbol=data["new_symbol"] if "new_symbol" in data else data["newSymbol"],
            new_state=data["new_state"] if "new_state" in data else data["newState"],
        )


@dataclass(frozen=True)
class MachineOptions:
    initial_state: StateKey = DEFAULT_INITIAL_STATE
    initial_position: int = 0
    final_state: StateKey = DEFAULT_FINAL_STATE
    max_steps: int = DEFAULT_MAX_STEPS

    def __post_init__(self) -> None:
        if isinstance(self.max_steps, bool) or not isinstance(self.max_steps, int) or self.max_steps < 1:
            raise ValueError(f"max_steps must be a positive integer, got {self.max_steps!r}")
        if isinstance(self.initial_position, bool) or not isinstance(self.initial_position, int):
            raise ValueError(
                f"initial_position must be an integer, got {self.initial_position!r}"
            )

    def merged(self, **partial: Any) -> "MachineOptions":
        """Return new options with `partial` applied. Unknown keys raise TypeError."""
        return dataclasses.replace(self, **partial)

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MachineOptions":
        return cls().merged(**data)


@dataclass(frozen=True)
class Condition:
    """Read-only snapshot of the machine, derived on every read."""

    tape_value: str
    state: StateKey
    head_position: int
    step: int
    symbol: str
    instruction: Optional[Instruction]
    is_final: bool

    def to_dict(self) -> Dict[str, Any]:
        data = dataclasses.asdict(self)
        data["instruction"] = self.instruction.to_dict() if self.instruction else None
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Condition":
        instruction = data.get("instruction")
        return cls(
            tape_value=data["tape_value"],
            state=data["state"],
            head_position=int(data["head_position"]),
            step=int(data["step"]),
            symbol=data["symbol"],
            instruction=Instruction.from_dict(instruction) if instruction else None,
            is_final=bool(data["is_final"]),
        )


class RunResult(NamedTuple):
    result: str
    logs: List[Condition]


InstructionLike = Union[Instruction, Dict[str, Any]]
OptionsLike = Union[MachineOptions, Dict[str, Any], None]

_CONDITION_FIELDS = frozenset({"state", "head_position", "tape_value", "step"})


def build_transition_table(
    instructions: Iterable[Instruction],
) -> Dict[Tuple[StateKey, str], Instruction]:
    """Index instructions by (state, symbol). On duplicates the later instruction wins."""
    table: Dict[Tuple[StateKey, str], Instruction] = {}
    for instruction in instructions:
        key = (instruction.state, instruction.symbol)
        if key in table:
            logger.warning(
                f"Duplicate transition for state '{key[0]}' and symbol '{key[1]}'; "
                f"using the later one"
            )
        table[key] = instruction
    return table


# ── Engine ───────────────────────────────────────────────────────────

class TuringMachine:
    """
    Deterministic single-tape Turing machine.

    Construct from (input, instructions, options) or clone an existing
    machine with TuringMachine(other). Clones evolve independently.
    """

    LEFT = "L"
    RIGHT = "R"
    NONE = "N"

    # Seeds the blank symbol of machines constructed without one
    BLANK_SYMBOL: str = DEFAULT_BLANK_SYMBOL

    def __init__(
        self,
        input_tape: Union[str, "TuringMachine", None] = None,
        instructions: Optional[Iterable[InstructionLike]] = None,
        options: OptionsLike = None,
        blank_symbol: Optional[str] = None,
        states: Optional[Any] = None,
    ) -> None:
        if isinstance(input_tape, TuringMachine):
            self._clone_from(input_tape)
            return

        self._blank_symbol = validate_blank_symbol(
            blank_symbol if blank_symbol is not None else type(self).BLANK_SYMBOL
        )
        self._input = input_tape or ""
        self._states = states
        self._options = self._coerce_options(options)
        self.set_instructions(instructions or [])
        self._tape = Tape(self._input, self._options.initial_position, self._blank_symbol)
        self._state: StateKey = self._options.initial_state
        self._step = 0

    def _clone_from(self, other: "TuringMachine") -> None:
        self._blank_symbol = other._blank_symbol
        self._input = other._input
        self._states = copy.deepcopy(other._states)
        self._options = other._options
        self._instructions = list(other._instructions)
        self._table = dict(other._table)
        self._tape = other._tape.copy()
        self._state = other._state
        self._step = other._step

    @staticmethod
    def _coerce_options(options: OptionsLike) -> MachineOptions:
        if options is None:
            return MachineOptions()
        if isinstance(options, MachineOptions):
            return options
        return MachineOptions.from_dict(options)

    def copy(self) -> "TuringMachine":
        """Deep clone of this machine."""
        return TuringMachine(self)

    # ── Configuration ────────────────────────────────────────────────

    def set_input(self, input_tape: str) -> None:
        self._input = input_tape

    def get_input(self) -> str:
        return self._input

    def set_instructions(self, instructions: Iterable[InstructionLike]) -> None:
        self._instructions: List[Instruction] = [
            item if isinstance(item, Instruction) else Instruction.from_dict(item)
            for item in instructions
        ]
        self._table = build_transition_table(self._instructions)

    def get_instructions(self) -> List[Instruction]:
        return list(self._instructions)

    def set_options(self, **partial: Any) -> None:
        """Merge `partial` into the current options."""
        self._options = self._options.merged(**partial)

    def get_options(self) -> MachineOptions:
        return self._options

    @property
    def states(self) -> Optional[Any]:
        """Attached state registry, if any."""
        return self._states

    def set_states(self, states: Optional[Any]) -> None:
        self._states = states

    # ── Blank Symbol ─────────────────────────────────────────────────

    @property
    def blank_symbol(self) -> str:
        return self._blank_symbol

    @classmethod
    def set_default_blank_symbol(cls, symbol: str) -> None:
        """Change the blank symbol given to machines constructed afterwards."""
        cls.BLANK_SYMBOL = validate_blank_symbol(symbol)

    def set_blank_symbol(self, new_symbol: str) -> None:
        """
        Substitute the blank symbol of this machine.

        Every occurrence of the old blank in the input, the tape and the
        instruction table is rewritten, so the table stays consistent.
        """
        new_symbol = validate_blank_symbol(new_symbol)
        old_symbol = self._blank_symbol
        if new_symbol == old_symbol:
            return
        self._input = self._input.replace(old_symbol, new_symbol)
        self._tape.replace_symbol(old_symbol, new_symbol)
        self._tape.blank_symbol = new_symbol
        self.set_instructions(
            instruction.replace_symbol(old_symbol, new_symbol)
            for instruction in self._instructions
        )
        self._blank_symbol = new_symbol
        logger.debug(f"Blank symbol changed from '{old_symbol}' to '{new_symbol}'")

    # ── Condition ────────────────────────────────────────────────────

    @property
    def is_final(self) -> bool:
        return self._state == self._options.final_state

    def set_current_condition(self, **changes: Any) -> None:
        """
        Overwrite parts of the current condition directly, bypassing
        transitions (e.g. relocating the head). Accepted keys: state,
        head_position, tape_value, step.
        """
        unknown = set(changes) - _CONDITION_FIELDS
        if unknown:
            raise TypeError(f"Unknown condition fields: {sorted(unknown)}")
        tape_value = changes.get("tape_value", self._tape.value)
        head_position = changes.get("head_position", self._tape.head)
        step = changes.get("step", self._step)
        if isinstance(step, bool) or not isinstance(step, int) or step < 0:
            raise ValueError(f"step must be a non-negative integer, got {step!r}")
        self._tape = Tape(tape_value, head_position, self._blank_symbol)
        self._state = changes.get("state", self._state)
        self._step = step

    def get_current_condition(self) -> Condition:
        """Snapshot of the current condition. Never mutates the machine."""
        symbol = self._tape.read()
        try:
            instruction: Optional[Instruction] = self.lookup(self._state, symbol)
        except LookupFailure:
            instruction = None
        return Condition(
            tape_value=self._tape.value,
            state=self._state,
            head_position=self._tape.head,
            step=self._step,
            symbol=symbol,
            instruction=instruction,
            is_final=self.is_final,
        )

    # ── Transition Lookup ────────────────────────────────────────────

    def lookup(self, state: StateKey, symbol: str) -> Instruction:
        """
        Return the instruction for (state, symbol).

        Raises UnknownStateError when a state registry is attached and does
        not know `state`, NoInstructionError when the table has no entry.
        """
        if self._states is not None and state not in self._states:
            raise UnknownStateError(state)
        try:
            return self._table[(state, symbol)]
        except KeyError:
            raise NoInstructionError(state, symbol) from None

    # ── Execution ────────────────────────────────────────────────────

    def step(self) -> str:
        """Execute one transition and return the new tape value. No-op once final."""
        if self.is_final:
            return self._tape.value

        symbol = self._tape.read()
        instruction = self.lookup(self._state, symbol)
        move = normalize_move(instruction.move)

        tape = self._tape.copy()
        tape.write(instruction.new_symbol)
        tape.move(move)

        logger.debug(
            f"Step {self._step + 1}: <{symbol}, {self._state}> -> "
            f"<{instruction.new_symbol}, {move}, {instruction.new_state}>"
        )
        self._tape = tape
        self._state = instruction.new_state
        self._step += 1
        return tape.value

    def run(self) -> RunResult:
        """
        Step until the final state is reached.

        Returns the final tape value and the pre-step condition of every
        executed step. Raises MaxStepsExceededError when max_steps steps do
        not reach the final state; the collected log is discarded.
        """
        logs: List[Condition] = []
        result = self._tape.value
        if self.is_final:
            return RunResult(result, logs)

        max_steps = self._options.max_steps
        for _ in range(max_steps):
            logs.append(self.get_current_condition())
            result = self.step()
            if self.is_final:
                logger.info(f"Final state '{self._state}' reached after {self._step} steps")
                return RunResult(result, logs)

        logger.info(f"Run stopped: final state not reached within {max_steps} steps")
        raise MaxStepsExceededError(max_steps)

    def reset(self) -> None:
        """Restore the input tape, initial state and position, and step 0."""
        self._tape = Tape(self._input, self._options.initial_position, self._blank_symbol)
        self._state = self._options.initial_state
        self._step = 0

    # ── Serialization ────────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        """Serialize constructor arguments and the current condition."""
        return {
            "input": self._input,
            "instructions": [i.to_dict() for i in self._instructions],
            "options": self._options.to_dict(),
            "blank_symbol": self._blank_symbol,
            "current": {
                "tape_value": self._tape.value,
                "state": self._state,
                "head_position": self._tape.head,
                "step": self._step,
            },
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], states: Optional[Any] = None) -> "TuringMachine":
        """Rebuild a machine from to_dict() output."""
        machine = cls(
            data.get("input", ""),
            data.get("instructions", []),
            data.get("options"),
            blank_symbol=data.get("blank_symbol"),
            states=states,
        )
        current = data.get("current")
        if current:
            machine.set_current_condition(**current)
        return machine

    # ── Display ──────────────────────────────────────────────────────

    def __repr__(self) -> str:
        return (
            f"TuringMachine(state={self._state!r}, head={self._tape.head}, "
            f"step={self._step}, tape={self._tape.value!r})"
        )
