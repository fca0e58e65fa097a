"""Interactive prompts for asking the user questions on a terminal."""

from __future__ import annotations

import getpass
import sys
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TextIO

_YES = frozenset({"y", "yes"})
_NO = frozenset({"n", "no"})


class UI(ABC):
    """Something that can ask the user for input."""

    @abstractmethod
    def select(self, message: str, options: Sequence[str]) -> int:
        """Let the user pick one of ``options``; return its index."""

    @abstractmethod
    def input(self, message: str, default_value: str) -> str:
        """Ask for a line of text, falling back to ``default_value``."""

    @abstractmethod
    def confirm(self, message: str, default_value: bool) -> bool:
        """Ask a yes or no question."""

    @abstractmethod
    def password(self, message: str) -> str:
        """Ask for text without echoing it."""


@dataclass
class User(UI):
    """Asks questions through ``reader`` and shows choices on ``out``.

    End of input from the reader propagates as EOFError.
    """

    reader: Callable[[str], str] = input
    secret_reader: Callable[[str], str] = getpass.getpass
    out: TextIO | None = None

    def _stream(self) -> TextIO:
        return self.out if self.out is not None else sys.stdout

    def select(self, message: str, options: Sequence[str]) -> int:
        """Show numbered ``options`` and return the index of the chosen one.

        The answer may be the option's number or its exact text; anything
        else asks again.
        """
        if not options:
            raise ValueError("please provide options to select from")
        out = self._stream()
        print(f"? {message}", file=out)
        for number, option in enumerate(options, start=1):
            print(f"  {number}) {option}", file=out)
        while True:
            answer = self.reader(f"Choose 1-{len(options)}: ").strip()
            if answer.isdigit() and 1 <= int(answer) <= len(options):
                return int(answer) - 1
            if answer in options:
                return list(options).index(answer)
            print(f"Sorry, {answer!r} is not a valid choice.", file=out)

    def input(self, message: str, default_value: str) -> str:
        """Ask for a line of text; an empty answer gives ``default_value``."""
        suffix = f" ({default_value})" if default_value else ""
        answer = self.reader(f"? {message}{suffix} ")
        return answer if answer else default_value

    def confirm(self, message: str, default_value: bool) -> bool:
        """Ask a yes or no question; an empty answer gives ``default_value``."""
        hint = "(Y/n)" if default_value else "(y/N)"
        while True:
            answer = self.reader(f"? {message} {hint} ").strip().lower()
            if not answer:
                return default_value
            if answer in _YES:
                return True
            if answer in _NO:
                return False
            print("Sorry, your reply was invalid: answer yes or no.", file=self._stream())

    def password(self, message: str) -> str:
        """Ask for a secret without echoing what is typed."""
        return self.secret_reader(f"? {message} ")