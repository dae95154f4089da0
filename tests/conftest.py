"""
Shared test fixtures for the tmsim test suite.
"""

import sys
from pathlib import Path

import pytest

# Ensure project root is on the path
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

BLANK = "λ"
TEST_INPUT = "1010"


@pytest.fixture(autouse=True)
def restore_default_blank_symbol():
    """Undo any change a test makes to the class-level blank default."""
    from turing_machine import TuringMachine
    saved = TuringMachine.BLANK_SYMBOL
    yield
    TuringMachine.BLANK_SYMBOL = saved


@pytest.fixture
def tape():
    """Fresh Tape holding '111'."""
    from tape import Tape
    return Tape("111", blank_symbol=BLANK)


@pytest.fixture
def flip_instructions():
    """Swap 0 <-> 1 moving right; the blank symbol leads to the final state."""
    from turing_machine import Instruction
    return [
        Instruction("q0", "0", "R", "1", "q0"),
        Instruction("q0", "1", "R", "0", "q0"),
        Instruction("q0", BLANK, "R", BLANK, "!"),
    ]


@pytest.fixture
def looping_instructions():
    """Walks right over blanks forever without reaching the final state."""
    from turing_machine import Instruction
    return [Instruction("q0", BLANK, "R", BLANK, "q0")]


@pytest.fixture
def machine(flip_instructions):
    """TuringMachine on '1010' with the flip table and default options."""
    from turing_machine import TuringMachine
    return TuringMachine(TEST_INPUT, flip_instructions, blank_symbol=BLANK)


@pytest.fixture
def session(machine):
    """MachineSession wrapping the flip machine."""
    from store import MachineSession
    return MachineSession(machine=machine)
