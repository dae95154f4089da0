#!/usr/bin/env python3
"""
tmsim — Entry point.

Loads a saved machine session, runs, steps, resets or just shows it,
renders the tape and the execution log, and saves the session back.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.table import Table
from rich.text import Text

from config import LOG_LEVEL, SESSION_STATE_FILE
from errors import AlreadyFinalError
from registers import FailureRecord, format_entry
from store import MachineSession

# ── Logging ──────────────────────────────────────────────────────────
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger("tmsim")

ACTIONS = ("run", "step", "reset", "show")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Deterministic single-tape Turing machine simulator")
    ap.add_argument("action", choices=ACTIONS, nargs="?", default="show", help="What to do with the machine")
    ap.add_argument("-f", "--session", type=Path, default=SESSION_STATE_FILE, help="Path to the session JSON file")
    ap.add_argument("-i", "--input", help="Replace the input tape (resets the machine)")
    ap.add_argument("-n", "--count", type=int, default=1, help="Number of steps for the 'step' action")
    ap.add_argument("--blank", help="Substitute the blank symbol before executing")
    ap.add_argument("--no-save", action="store_true", help="Do not write the session back")
    return ap


def render_tape(session: MachineSession) -> Text:
    """Tape contents with the cell under the head highlighted."""
    condition = session.machine.get_current_condition()
    blank = session.machine.blank_symbol
    head = condition.head_position
    first = min(0, head)
    last = max(len(condition.tape_value) - 1, head)

    text = Text()
    for position in range(first, last + 1):
        if 0 <= position < len(condition.tape_value):
            symbol = condition.tape_value[position]
        else:
            symbol = blank
        text.append(f" {symbol} ", style="reverse bold" if position == head else "")
    return text


def render_log(session: MachineSession) -> Table:
    final_state = session.machine.get_options().final_state
    table = Table(title="Machine Log")
    table.add_column("#", justify="right")
    table.add_column("Entry")
    for index, entry in enumerate(session.log, start=1):
        style = "red" if isinstance(entry, FailureRecord) else ""
        table.add_row(str(index), Text(format_entry(entry, final_state, session.states), style=style))
    return table


def render(console: Console, session: MachineSession) -> None:
    condition = session.machine.get_current_condition()
    console.print(render_tape(session))
    console.print(
        Text(
            f"State: {session.states.name_of(condition.state)} | "
            f"Head: {condition.head_position} | Step: {condition.step} | "
            f"Final: {condition.is_final}"
        )
    )
    if len(session.log):
        console.print(render_log(session))


def execute(session: MachineSession, action: str, count: int = 1) -> None:
    """Apply `action` to the session; stops early on failure or the final state."""
    if action == "reset":
        session.reset()
        return
    if action == "show":
        return

    repeat = count if action == "step" else 1
    for _ in range(repeat):
        try:
            session.execute(action)
        except AlreadyFinalError as e:
            logger.info(str(e))
            break
        if session.log.last_failed or session.machine.is_final:
            break


def main(argv: Optional[List[str]] = None, console: Optional[Console] = None) -> int:
    """Load the session, apply the requested action, render and save."""
    args = build_parser().parse_args(argv)
    console = console or Console()

    session = MachineSession.load(args.session)
    logger.info(f"Session loaded from {args.session}: {session!r}")

    if args.input is not None:
        session.set_input(args.input)
    if args.blank is not None:
        try:
            session.set_blank_symbol(args.blank)
        except ValueError as e:
            logger.error(f"Cannot use blank symbol {args.blank!r}: {e}")
            return 2

    # Only failures recorded by this invocation count towards the exit code
    logged_before = len(session.log)
    execute(session, args.action, args.count)
    render(console, session)

    if not args.no_save:
        session.save(args.session)
        logger.info(f"Session saved to {args.session}")

    return 1 if len(session.log) > logged_before and session.log.last_failed else 0


if __name__ == "__main__":
    sys.exit(main())
