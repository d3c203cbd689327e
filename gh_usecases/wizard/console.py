"""Terminal access for the wizard steps.

Steps talk to a ``Console`` rather than to click directly, so tests can
drive them with a scripted console. Every read is a coroutine: the click
implementation runs the blocking terminal call on a worker thread, which
keeps the event loop (and the debounced search timer) running while the
user types.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

import click


class Key(str, Enum):
    UP = "up"
    DOWN = "down"
    TAB = "tab"
    SHIFT_TAB = "shift_tab"
    ENTER = "enter"
    ESCAPE = "escape"
    BACKSPACE = "backspace"
    SPACE = "space"
    CHARACTER = "character"
    OTHER = "other"


@dataclass(frozen=True)
class KeyPress:
    key: Key
    char: str = ""


_ESCAPE_SEQUENCES = {
    "\x1b[A": Key.UP,
    "\x1bOA": Key.UP,
    "\x1b[B": Key.DOWN,
    "\x1bOB": Key.DOWN,
    "\x1b[Z": Key.SHIFT_TAB,
    "\x1b": Key.ESCAPE,
    "\t": Key.TAB,
    "\r": Key.ENTER,
    "\n": Key.ENTER,
    "\x7f": Key.BACKSPACE,
    "\x08": Key.BACKSPACE,
    " ": Key.SPACE,
}


def parse_key(raw: str) -> KeyPress:
    """Translate what ``click.getchar`` returned into a key press."""
    if raw in _ESCAPE_SEQUENCES:
        return KeyPress(_ESCAPE_SEQUENCES[raw], raw if raw == " " else "")
    if len(raw) == 1 and raw.isprintable():
        return KeyPress(Key.CHARACTER, raw)
    if raw == "\x03":
        raise KeyboardInterrupt
    return KeyPress(Key.OTHER)


class Console(ABC):
    """What a step may do with the terminal."""

    @abstractmethod
    def echo(self, message: str = "", fg: str | None = None, bold: bool = False) -> None:
        pass

    @abstractmethod
    async def prompt(self, text: str, default: str | None = None, hide_input: bool = False) -> str:
        """Read one line; an empty answer returns ``default`` (or ``""``)."""
        pass

    @abstractmethod
    async def confirm(self, text: str, default: bool = True) -> bool:
        pass

    @abstractmethod
    async def choose(self, text: str, options: list[str], default: int = 0) -> int:
        """Show a numbered list and return the index of the chosen option."""
        pass

    @abstractmethod
    async def read_key(self) -> KeyPress:
        pass

    def echo_lines(self, lines: list[str], fg: str | None = None) -> None:
        for line in lines:
            self.echo(line, fg=fg)


class ClickConsole(Console):
    """Console on the real terminal, built on click."""

    def echo(self, message: str = "", fg: str | None = None, bold: bool = False) -> None:
        click.echo(click.style(message, fg=fg, bold=bold) if fg or bold else message)

    async def prompt(self, text: str, default: str | None = None, hide_input: bool = False) -> str:
        value = await asyncio.to_thread(
            click.prompt,
            text,
            default=default if default is not None else "",
            hide_input=hide_input,
            show_default=bool(default) and not hide_input,
        )
        return str(value)

    async def confirm(self, text: str, default: bool = True) -> bool:
        return bool(await asyncio.to_thread(click.confirm, text, default=default))

    async def choose(self, text: str, options: list[str], default: int = 0) -> int:
        click.echo(click.style(text, bold=True))
        for number, option in enumerate(options, start=1):
            click.echo(f"  {number}. {option}")
        click.echo()
        choice = await asyncio.to_thread(
            click.prompt,
            "Enter choice",
            type=click.Choice([str(number) for number in range(1, len(options) + 1)]),
            default=str(default + 1),
        )
        return int(choice) - 1

    async def read_key(self) -> KeyPress:
        return parse_key(await asyncio.to_thread(click.getchar))
