"""Interactive prompts.

Batch and wizard logic only see the Prompter protocol; ConsolePrompter is the
real implementation backed by input(). EOF and Ctrl-C become UserAbortedError.
"""

import logging
from typing import Any, Callable, Optional, Protocol, Sequence

from rigup.exceptions import UserAbortedError

logger = logging.getLogger(__name__)

YES_ANSWERS = ("y", "yes")
NO_ANSWERS = ("n", "no")


class Prompter(Protocol):
    def ask(self, question: str, default: Optional[str] = None) -> str:  # pragma: no cover - protocol
        ...

    def choose(
        self, question: str, options: Sequence[str], default_index: int = 0
    ) -> int:  # pragma: no cover - protocol
        ...

    def confirm(self, question: str, default: bool = True) -> bool:  # pragma: no cover - protocol
        ...


class ConsolePrompter:
    """Prompter reading answers from the console.

    Args:
        input_fn: Replacement for input() (tests, non-tty front ends)
        output_fn: Replacement for print()
    """

    def __init__(
        self,
        input_fn: Callable[[str], str] = input,
        output_fn: Callable[[str], Any] = print,
    ):
        self._input = input_fn
        self._output = output_fn

    def _read(self, prompt: str) -> str:
        try:
            return self._input(prompt).strip()
        except (EOFError, KeyboardInterrupt) as e:
            raise UserAbortedError("input aborted") from e

    def ask(self, question: str, default: Optional[str] = None) -> str:
        """Ask a free-form question; empty input selects the default."""
        suffix = f" [{default}]" if default else ""
        answer = self._read(f"{question}{suffix}: ")
        return answer or (default or "")

    def choose(self, question: str, options: Sequence[str], default_index: int = 0) -> int:
        """Show a numbered menu and return the zero-based selected index."""
        if not options:
            raise ValueError("choose() needs at least one option")
        self._output(question)
        for number, option in enumerate(options, 1):
            marker = " [DEFAULT]" if number - 1 == default_index else ""
            self._output(f"[{number}] {option}{marker}")

        while True:
            answer = self._read(f"Choice [1-{len(options)}]: ")
            if not answer:
                return default_index
            if answer.isdigit() and 1 <= int(answer) <= len(options):
                return int(answer) - 1
            self._output(f"Invalid choice: {answer}. Must be 1-{len(options)}.")

    def confirm(self, question: str, default: bool = True) -> bool:
        hint = "Y/n" if default else "y/N"
        while True:
            answer = self._read(f"{question} [{hint}]: ").lower()
            if not answer:
                return default
            if answer in YES_ANSWERS:
                return True
            if answer in NO_ANSWERS:
                return False
            self._output("Please answer y or n.")


def confirm_write(prompter: Prompter, question: str, write: Callable[[Any], None]) -> Callable[[Any], None]:
    """Wrap a write capability so it only runs after confirmation.

    A declined confirmation raises UserAbortedError, which the reconciler
    reports as a skip rather than a failure.
    """

    def confirmed_write(value: Any) -> None:
        if not prompter.confirm(question, default=True):
            raise UserAbortedError(f"declined: {question}")
        write(value)

    return confirmed_write
