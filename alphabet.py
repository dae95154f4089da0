"""
Alphabet helpers: build an alphabet from text, validate strings against it,
and prune instructions that use symbols outside of it.
"""

from __future__ import annotations

from typing import Iterable, List

from turing_machine import Instruction


def create_alphabet(text: str) -> List[str]:
    """Sorted list of the unique characters in `text`."""
    return sorted(set(text))


def validate_string(text: str, alphabet: Iterable[str]) -> bool:
    """True if every character of `text` belongs to `alphabet`."""
    allowed = set(alphabet)
    return all(char in allowed for char in text)


def filter_instructions(
    instructions: Iterable[Instruction],
    alphabet: Iterable[str],
    blank_symbol: str,
) -> List[Instruction]:
    """Keep instructions whose read and write symbols are in the alphabet or blank."""
    allowed = set(alphabet) | {blank_symbol}
    return [
        instruction
        for instruction in instructions
        if instruction.symbol in allowed and instruction.new_symbol in allowed
    ]
