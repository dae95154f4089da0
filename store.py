"""
MachineSession — Copy-on-write holder for a machine and its registers.

Every update builds a new TuringMachine from the current one, mutates the
copy and swaps it in, so earlier machine objects handed out to callers
never change. State registry edits likewise build a new registry that only
the new machine sees. Failed runs and steps are recorded in the log as typed
FailureRecords. The whole session can be exported to / imported from JSON.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Hashable, Iterable, List, Optional

from alphabet import filter_instructions
from config import VALID_ACTIONS
from errors import AlreadyFinalError, MachineError
from registers import FailureRecord, MachineLog, StateRegistry
from tape import validate_blank_symbol
from turing_machine import Condition, InstructionLike, TuringMachine

logger = logging.getLogger("tmsim.store")

SESSION_KEYS = frozenset({"machine", "registers"})


def derive_states(machine: TuringMachine) -> StateRegistry:
    """Registry covering the final, initial and current states and every state the table uses."""
    options = machine.get_options()
    keys: List[Hashable] = [options.final_state, options.initial_state]
    keys.append(machine.get_current_condition().state)
    for instruction in machine.get_instructions():
        keys.extend((instruction.state, instruction.new_state))
    entries: Dict[Hashable, str] = {}
    for key in keys:
        if key is not None and key not in entries:
            entries[key] = str(key)
    return StateRegistry(entries.items(), final_state=options.final_state)


class MachineSession:
    """A machine plus its alphabet, state registry and execution log."""

    def __init__(
        self,
        machine: Optional[TuringMachine] = None,
        states: Optional[StateRegistry] = None,
        alphabet: Optional[Iterable[str]] = None,
        log: Optional[MachineLog] = None,
    ) -> None:
        machine = machine if machine is not None else TuringMachine()
        self.states = states if states is not None else derive_states(machine)
        self.alphabet: List[str] = list(alphabet or [])
        self.log = log if log is not None else MachineLog()
        self.machine = self._adopt(TuringMachine(machine))

    def _adopt(self, machine: TuringMachine) -> TuringMachine:
        machine.set_states(self.states)
        return machine

    def _next_machine(self) -> TuringMachine:
        return self._adopt(TuringMachine(self.machine))

    # ── Machine Updates ──────────────────────────────────────────────

    def set_machine(self, machine: TuringMachine) -> None:
        """Adopt a clone of `machine`; the caller's object is left alone."""
        self.machine = self._adopt(TuringMachine(machine))

    def set_instructions(self, instructions: Iterable[InstructionLike]) -> None:
        machine = self._next_machine()
        machine.set_instructions(instructions)
        self.machine = machine

    def set_head_position(self, position: int, is_initial: bool = False) -> None:
        """Relocate the head; optionally make it the initial position too."""
        machine = self._next_machine()
        machine.set_current_condition(head_position=position)
        if is_initial:
            machine.set_options(initial_position=position)
        self.machine = machine

    def set_options(self, **options: Any) -> None:
        """
        Update run options. An unregistered initial state falls back to the
        first selectable state. While the machine has not stepped yet, the
        current state and head follow the new initial values.
        """
        if "initial_state" in options and options["initial_state"] not in self.states:
            fallback = self.states.fallback()
            logger.warning(
                f"Initial state '{options['initial_state']}' is not registered; "
                f"falling back to '{fallback}'"
            )
            options["initial_state"] = fallback
        machine = self._next_machine()
        machine.set_options(**options)
        if "final_state" in options:
            states = self.states.copy()
            states.final_state = options["final_state"]
            self.states = states
            machine.set_states(states)

        current = machine.get_current_condition()
        if current.step == 0:
            machine.set_current_condition(
                state=options.get("initial_state", current.state),
                head_position=options.get("initial_position", current.head_position),
            )
        self.machine = machine

    def set_input(self, input_tape: str) -> None:
        """Replace the input and reset the machine onto it."""
        machine = self._next_machine()
        machine.set_input(input_tape)
        machine.reset()
        self.machine = machine

    def set_alphabet(self, alphabet: Iterable[str]) -> None:
        """Set the alphabet and drop instructions that use symbols outside it."""
        self.alphabet = list(alphabet)
        machine = self._next_machine()
        kept = filter_instructions(machine.get_instructions(), self.alphabet, machine.blank_symbol)
        dropped = len(machine.get_instructions()) - len(kept)
        if dropped:
            logger.info(f"Dropped {dropped} instruction(s) outside the new alphabet")
        machine.set_instructions(kept)
        self.machine = machine

    def set_blank_symbol(self, symbol: str) -> None:
        symbol = validate_blank_symbol(symbol)
        if symbol in self.alphabet:
            raise ValueError(f"Blank symbol '{symbol}' is already in the alphabet")
        machine = self._next_machine()
        machine.set_blank_symbol(symbol)
        self.machine = machine

    # ── State Registry ───────────────────────────────────────────────

    def add_state(self, name: Optional[str] = None, key: Optional[Hashable] = None) -> Hashable:
        states = self.states.copy()
        key = states.add(key=key, name=name)
        self.states = states
        self.machine = self._next_machine()
        return key

    def rename_state(self, key: Hashable, name: str) -> None:
        states = self.states.copy()
        states.rename(key, name)
        self.states = states
        self.machine = self._next_machine()

    def delete_state(self, key: Hashable) -> None:
        """
        Unregister a state, drop every instruction that reads or targets it,
        and move options and the current state that used it to a fallback.
        """
        states = self.states.copy()
        states.remove(key)
        fallback = states.fallback()
        if states.final_state == key:
            states.final_state = fallback
        self.states = states
        machine = self._next_machine()
        machine.set_instructions(
            i for i in machine.get_instructions()
            if i.state != key and i.new_state != key
        )
        options = machine.get_options()
        changes: Dict[str, Any] = {}
        if options.initial_state == key:
            changes["initial_state"] = fallback
        if options.final_state == key:
            changes["final_state"] = fallback
        if changes:
            machine.set_options(**changes)
        if machine.get_current_condition().state == key:
            machine.set_current_condition(state=fallback)
        self.machine = machine

    # ── Execution ────────────────────────────────────────────────────

    def execute(self, action: str) -> Condition:
        """
        Run or step the machine.

        Raises AlreadyFinalError if the machine is already final. Engine
        failures are appended to the log as FailureRecords; the machine keeps
        the steps it executed before the failure.
        """
        if action not in VALID_ACTIONS:
            raise ValueError(f"Invalid action '{action}'")
        if self.machine.is_final:
            raise AlreadyFinalError(self.machine.get_current_condition().state)

        machine = self._next_machine()
        try:
            if action == "run":
                result = machine.run()
                self.log.extend(result.logs)
            else:
                condition = machine.get_current_condition()
                machine.step()
                self.log.append(condition)
        except MachineError as e:
            logger.warning(f"{action} failed: {e}")
            self.log.append(FailureRecord.from_exception(e))

        self.machine = machine
        return machine.get_current_condition()

    def reset(self) -> None:
        """Reset the machine to its initial condition and clear the log."""
        machine = self._next_machine()
        machine.reset()
        self.machine = machine
        self.log = MachineLog()

    # ── Serialization ────────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        return {
            "machine": self.machine.to_dict(),
            "registers": {
                "alphabet": list(self.alphabet),
                "states": self.states.to_list(),
                "logs": self.log.to_list(),
            },
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MachineSession":
        for key in data:
            if key not in SESSION_KEYS:
                raise ValueError(f'Import failed: Invalid key "{key}"')

        machine = TuringMachine.from_dict(data.get("machine") or {})
        registers = data.get("registers") or {}
        states = None
        if registers.get("states") is not None:
            states = StateRegistry.from_list(
                registers["states"],
                final_state=machine.get_options().final_state,
            )
        return cls(
            machine=machine,
            states=states,
            alphabet=registers.get("alphabet"),
            log=MachineLog.from_list(registers.get("logs") or []),
        )

    def export_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)

    def import_json(self, text: str) -> None:
        """Replace this session with the one described by `text`."""
        other = MachineSession.from_dict(json.loads(text))
        self.states = other.states
        self.alphabet = other.alphabet
        self.log = other.log
        self.machine = self._adopt(other.machine)

    def save(self, path: Path) -> None:
        """Persist the session to a JSON file."""
        path.write_text(self.export_json(), encoding="utf-8")

    @classmethod
    def load(cls, path: Path) -> "MachineSession":
        """Load a session from a JSON file. Returns a fresh session if the file is missing."""
        if not path.exists():
            return cls()
        return cls.from_dict(json.loads(path.read_text(encoding="utf-8")))

    # ── Display ──────────────────────────────────────────────────────

    def __repr__(self) -> str:
        return (
            f"MachineSession(machine={self.machine!r}, states={len(self.states)}, "
            f"log={len(self.log)})"
        )
