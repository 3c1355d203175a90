"""terminal status output with in-place line updates and spinners."""

import asyncio
import sys
from dataclasses import dataclass
from typing import Optional, Sequence

from rich.console import Console
from rich.control import Control
from rich.segment import ControlType

SPINNER_FRAMES = ("- ", "\\ ", "| ", "/ ")
DEFAULT_SPINNER_INTERVAL = 0.08

ERASE_LINE = Control((ControlType.ERASE_IN_LINE, 2))


@dataclass
class TerminalState:
    """bookkeeping shared by everything that writes through one renderer."""
    lines_written: int = 0
    cursor_hidden: bool = False
    active_spinners: int = 0


@dataclass
class Spinner:
    """handle for a running spinner. `task` is None for inert spinners."""
    line: int
    text: str
    group: Optional[str] = None
    frame: int = 0
    task: Optional["asyncio.Task[None]"] = None


class StatusRenderer:
    """
    ordered terminal output where some lines are permanent and others are
    rewritten in place.

    live lines are addressed by their offset above the cursor, so every
    write goes through this class to keep `state.lines_written` accurate.
    when stdout is not a terminal, rewrites degrade to plain writes.
    """

    def __init__(
        self,
        console: Optional[Console] = None,
        error_console: Optional[Console] = None,
        state: Optional[TerminalState] = None,
        frames: Sequence[str] = SPINNER_FRAMES,
        spinner_interval: float = DEFAULT_SPINNER_INTERVAL,
        spinner_in_front: bool = True,
    ):
        """
        initialize the renderer.

        args:
            console: rich console for stdout. if not provided, creates new one.
            error_console: rich console for stderr. if not provided, creates new one.
            state: terminal bookkeeping. a fresh one is created when omitted.
            frames: spinner animation frames
            spinner_interval: seconds between spinner frames
            spinner_in_front: render the frame before the message instead of after it
        """
        self.console = console or Console(highlight=False)
        self.error_console = error_console or Console(stderr=True, highlight=False)
        self.state = state or TerminalState()
        self.frames = tuple(frames)
        self.spinner_interval = spinner_interval
        self.spinner_in_front = spinner_in_front

    @property
    def interactive(self) -> bool:
        return self.console.is_terminal

    def append_line(self, text: str, group: Optional[str] = None):
        """write a new permanent line."""
        self._write(self.console, text, group)
        self.state.lines_written += 1

    def error_line(self, text: str, group: Optional[str] = None):
        """write a new permanent line to stderr."""
        self._write(self.error_console, text, group)
        self.state.lines_written += 1

    def update_line(self, text: str, offset: int = 1, group: Optional[str] = None):
        """
        rewrite the line `offset` rows above the cursor.

        the cursor ends up where it started, so repeated calls can reuse
        the same offset. offsets are not checked against the lines written.
        """
        if not self.interactive:
            self._write(self.console, text, group)
            return

        self.console.control(Control.move(0, -offset), ERASE_LINE)
        self._write(self.console, text, group)
        # writing the line already moved us down by one
        self.console.control(Control.move(0, offset - 1))

    def update_group_line(self, text: str, group: str, offset: int = 1):
        """rewrite a line, prefixing it with a group header."""
        self.update_line(text, offset, group)

    def start_spinner(self, text: str, group: Optional[str] = None) -> Spinner:
        """
        append `text` and animate a spinner on that line.

        must be called while an asyncio event loop is running. on a
        non-interactive destination the line is written once and the
        returned spinner is inert.
        """
        spinner = Spinner(line=self.state.lines_written, text=text, group=group)
        self.append_line(text, group)
        if not self.interactive:
            return spinner

        self._hide_cursor()
        self.state.active_spinners += 1
        spinner.task = asyncio.get_running_loop().create_task(self._spin(spinner))
        return spinner

    def stop_spinner(self, spinner: Spinner, final_text: Optional[str] = None, group: Optional[str] = None):
        """
        stop a spinner and settle its line.

        the line shows `final_text` when given, otherwise the spinner's own
        message without a frame. call once per spinner.
        """
        group = group or spinner.group
        if spinner.task is None:
            if final_text is not None:
                self.update_line(final_text, self.state.lines_written - spinner.line, group)
            return

        spinner.task.cancel()
        spinner.task = None
        text = final_text if final_text is not None else spinner.text
        self.update_line(text, self.state.lines_written - spinner.line, group)

        self.state.active_spinners = max(self.state.active_spinners - 1, 0)
        if self.state.active_spinners == 0:
            self._show_cursor()

    def force_exit(self, has_secondary_line: bool):
        """
        clear live status lines, restore the cursor and exit the process.

        used when the process is interrupted while a spinner may be running.
        """
        if self.interactive:
            self.console.control(ERASE_LINE)
            for _ in range(2 if has_secondary_line else 1):
                self.console.control(Control.move(0, -1), ERASE_LINE)
            self._show_cursor()
        self.state.active_spinners = 0
        sys.exit(0)

    def close(self):
        """restore the terminal on normal exit."""
        if self.state.cursor_hidden:
            self._show_cursor()
        self.state.active_spinners = 0

    def frame_text(self, spinner: Spinner) -> str:
        frame = self.frames[spinner.frame]
        if self.spinner_in_front:
            return f"{frame}{spinner.text}"
        return f"{spinner.text}{frame}"

    async def _spin(self, spinner: Spinner):
        while True:
            await asyncio.sleep(self.spinner_interval)
            spinner.frame = (spinner.frame + 1) % len(self.frames)
            self.update_line(self.frame_text(spinner), self.state.lines_written - spinner.line, spinner.group)

    def _hide_cursor(self):
        self.console.show_cursor(False)
        self.state.cursor_hidden = True

    def _show_cursor(self):
        self.console.show_cursor(True)
        self.state.cursor_hidden = False

    @staticmethod
    def _write(console: Console, text: str, group: Optional[str]):
        header = f"[{group}]: " if group else ""
        console.out(f"{header}{text}", highlight=False)
