"""Declarative field validation shared by every store.

A store describes its input as a list of ``FieldRule`` objects and calls
``validate`` to get human-readable messages back, at most one per field::

    TITLE = FieldRule("title", "Title", min_length=5, max_length=100)
    errors = validate(payload, [TITLE, ...])
"""

import re
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Mapping, Optional, Pattern, Sequence

from .errors import ValidationFailed

WALLET_ADDRESS = re.compile(r"^0x[a-fA-F0-9]{40}$")
EMAIL = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE = re.compile(r"^\+?[1-9]\d{0,15}$")
CONTENT_ID = re.compile(r"^[a-zA-Z0-9]{46,59}$")


def is_blank(value: Any) -> bool:
    return value is None or not str(value).strip()


def is_wallet_address(value: Any) -> bool:
    return isinstance(value, str) and bool(WALLET_ADDRESS.match(value))


def strip_phone_punctuation(value: str) -> str:
    return re.sub(r"[\s\-()]", "", value)


@dataclass(frozen=True)
class FieldRule:
    """Constraints for one input field.

    Checks run in order (presence, length, pattern, choices) and stop at the
    first failure. Optional fields that are absent are not checked further.
    """

    name: str
    label: str
    required: bool = True
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    pattern: Optional[Pattern] = None
    choices: Optional[Sequence[str]] = None
    normalize: Optional[Callable[[str], str]] = None
    required_message: Optional[str] = None
    min_message: Optional[str] = None
    max_message: Optional[str] = None
    pattern_message: Optional[str] = None
    choices_message: Optional[str] = None

    def check(self, value: Any) -> Optional[str]:
        if is_blank(value):
            if self.required:
                return self.required_message or f"{self.label} is required"
            return None

        text = str(value)
        if self.min_length is not None and len(text) < self.min_length:
            return self.min_message or f"{self.label} must be at least {self.min_length} characters long"
        if self.max_length is not None and len(text) > self.max_length:
            return self.max_message or f"{self.label} must be less than {self.max_length} characters"

        if self.pattern is not None:
            candidate = self.normalize(text) if self.normalize else text
            if not self.pattern.match(candidate):
                return self.pattern_message or f"Invalid {self.label.lower()} format"

        if self.choices is not None and text not in self.choices:
            return self.choices_message or f"Invalid {self.label.lower()}"
        return None


def validate(data: Mapping[str, Any], rules: Iterable[FieldRule]) -> List[str]:
    errors = []
    for rule in rules:
        message = rule.check(data.get(rule.name))
        if message:
            errors.append(message)
    return errors


def first_error(data: Mapping[str, Any], rules: Iterable[FieldRule]) -> Optional[str]:
    for rule in rules:
        message = rule.check(data.get(rule.name))
        if message:
            return message
    return None


def raise_for_errors(errors: List[str]) -> None:
    if errors:
        raise ValidationFailed(errors)
