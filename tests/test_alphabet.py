"""
Tests for alphabet helpers.
"""

from alphabet import create_alphabet, filter_instructions, validate_string
from turing_machine import Instruction


class TestCreateAlphabet:
    def test_unique_sorted(self):
        assert create_alphabet("1010") == ["0", "1"]
        assert create_alphabet("cab") == ["a", "b", "c"]

    def test_empty(self):
        assert create_alphabet("") == []


class TestValidateString:
    def test_valid(self):
        assert validate_string("1010", ["0", "1"]) is True

    def test_invalid(self):
        assert validate_string("102", ["0", "1"]) is False

    def test_empty_string_is_valid(self):
        assert validate_string("", []) is True


class TestFilterInstructions:
    def test_keeps_blank_and_alphabet(self, flip_instructions):
        kept = filter_instructions(flip_instructions, ["0", "1"], "λ")
        assert kept == flip_instructions

    def test_drops_foreign_read_or_write(self, flip_instructions):
        kept = filter_instructions(flip_instructions, ["0"], "λ")
        assert kept == [flip_instructions[2]]

    def test_drops_foreign_write_only(self):
        rule = Instruction("q0", "0", "R", "x", "q0")
        assert filter_instructions([rule], ["0"], "λ") == []
