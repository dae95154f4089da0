"""
Errors raised by the machine engine.

Every error is terminal for the operation that raised it. The engine never
recovers internally; callers decide whether to keep or discard machine state.
"""

from __future__ import annotations

from typing import Hashable


class MachineError(Exception):
    """Base class for all simulator errors."""
    pass


class LookupFailure(MachineError):
    """Raised when no instruction can be resolved for the current condition."""
    pass


class NoInstructionError(LookupFailure):
    """Raised when the transition table has no entry for (state, symbol)."""

    def __init__(self, state: Hashable, symbol: str) -> None:
        self.state = state
        self.symbol = symbol
        super().__init__(
            f"No instruction found for state '{state}' and symbol '{symbol}'"
        )


class UnknownStateError(LookupFailure):
    """Raised when a state key is not present in the attached state registry."""

    def __init__(self, state: Hashable) -> None:
        self.state = state
        super().__init__(f"Unknown state '{state}'")


class InvalidMoveError(MachineError):
    """Raised when a move direction is not one of L, R or N."""

    def __init__(self, move: object) -> None:
        self.move = move
        super().__init__(f"Invalid move '{move}'")


class MaxStepsExceededError(MachineError):
    """Raised by run() when the final state is not reached within the budget."""

    def __init__(self, max_steps: int) -> None:
        self.max_steps = max_steps
        super().__init__(f"Maximum number of steps reached ({max_steps})")


class AlreadyFinalError(MachineError):
    """Raised by callers that refuse to continue a machine sitting in its final state."""

    def __init__(self, state: Hashable) -> None:
        self.state = state
        super().__init__("Machine has already finished")
