"""
Console prompt helpers.

Reading and printing go through injectable callables so the menu can be
driven from tests with scripted answers.
"""

from typing import Callable, Optional

from orderdesk.core.exceptions import ValidationError

InputFn = Callable[[str], str]
OutputFn = Callable[[str], None]


class Prompter:
    """Reads answers from the console, trimming surrounding whitespace."""

    def __init__(self, input_fn: InputFn = input, output_fn: OutputFn = print):
        self.input_fn = input_fn
        self.output_fn = output_fn

    def say(self, message: str = "") -> None:
        self.output_fn(message)

    def ask(self, label: str) -> str:
        return self.input_fn(f"{label}: ").strip()

    def ask_keep(self, label: str, current: object) -> Optional[str]:
        """Ask for a new value; an empty answer keeps ``current`` and returns None."""
        answer = self.input_fn(f"{label} (current: {current}, Enter to keep): ").strip()
        return answer or None

    def ask_yes_no(self, question: str) -> bool:
        return self.input_fn(f"{question} (y/n): ").strip().lower() in ("y", "yes")

    def ask_id(self, label: str) -> int:
        """
        Ask for a positive integer identity.

        Raises:
            ValidationError: If the answer is not a positive integer
        """
        answer = self.ask(label)
        try:
            value = int(answer)
        except ValueError:
            raise ValidationError(f"{label} must be a whole number", value=answer) from None
        if value <= 0:
            raise ValidationError(f"{label} must be greater than 0", value=value)
        return value
