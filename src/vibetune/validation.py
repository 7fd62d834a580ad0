"""Input validation and sanitizing for user-supplied text."""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, ClassVar


@dataclass(frozen=True)
class ValidationRule:
    """Constraints applied to a single named field."""

    required: bool = False
    min_length: int | None = None
    max_length: int | None = None
    pattern: re.Pattern[str] | None = None
    custom: Callable[[Any], str | None] | None = None
    message: str | None = None


@dataclass
class ValidationResult:
    """Outcome of validating one or more fields."""

    is_valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return not value


_PASSWORD_SPECIALS = "@$!%*?&"

DEFAULT_PROFANITY = ("badword1", "badword2")


class Validator:
    """Rule table driven validator.

    Unknown field names always validate. A required field that is empty
    fails with its rule message and no further checks run.
    """

    RULES: ClassVar[dict[str, ValidationRule]] = {
        "email": ValidationRule(
            required=True,
            pattern=re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$"),
            message="Please enter a valid email address",
        ),
        "password": ValidationRule(
            required=True,
            min_length=8,
            max_length=128,
            pattern=re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]"),
            message=(
                "Password must be 8-128 characters with uppercase, lowercase, "
                "number, and special character"
            ),
        ),
        "username": ValidationRule(
            required=True,
            min_length=3,
            max_length=30,
            pattern=re.compile(r"^[a-zA-Z0-9_-]+$"),
            message="Username must be 3-30 characters, letters, numbers, hyphens, and underscores only",
        ),
        "message": ValidationRule(
            required=True,
            min_length=1,
            max_length=1000,
            message="Message must be 1-1000 characters",
        ),
        "conversation_topic": ValidationRule(
            required=True,
            min_length=3,
            max_length=100,
            message="Topic must be 3-100 characters",
        ),
        "conversation_id": ValidationRule(
            required=True,
            max_length=128,
            message="Conversation id is required (max 128 characters)",
        ),
        "profile_id": ValidationRule(
            required=True,
            max_length=128,
            message="Profile id is required (max 128 characters)",
        ),
    }

    def __init__(
        self,
        rules: Mapping[str, ValidationRule] | None = None,
        profanity: tuple[str, ...] = DEFAULT_PROFANITY,
    ) -> None:
        self._rules = dict(self.RULES)
        if rules:
            self._rules.update(rules)
        self._profanity = tuple(word.lower() for word in profanity)

    def validate_field(self, field_name: str, value: Any) -> ValidationResult:
        rule = self._rules.get(field_name)
        if rule is None:
            return ValidationResult(is_valid=True)

        if _is_empty(value):
            if rule.required:
                return ValidationResult(
                    is_valid=False,
                    errors=[rule.message or f"{field_name} is required"],
                )
            return ValidationResult(is_valid=True)

        errors: list[str] = []

        if isinstance(value, str):
            if rule.min_length is not None and len(value) < rule.min_length:
                errors.append(
                    rule.message or f"{field_name} must be at least {rule.min_length} characters"
                )
            if rule.max_length is not None and len(value) > rule.max_length:
                errors.append(
                    rule.message or f"{field_name} must be no more than {rule.max_length} characters"
                )
            if rule.pattern is not None and not rule.pattern.search(value):
                errors.append(rule.message or f"{field_name} format is invalid")

        if rule.custom is not None:
            custom_error = rule.custom(value)
            if custom_error:
                errors.append(custom_error)

        return ValidationResult(is_valid=not errors, errors=errors)

    def validate_fields(self, fields: Mapping[str, Any]) -> ValidationResult:
        """Validate every field, collecting all errors and warnings."""
        result = ValidationResult(is_valid=True)
        for field_name, value in fields.items():
            field_result = self.validate_field(field_name, value)
            if not field_result.is_valid:
                result.is_valid = False
                result.errors.extend(field_result.errors)
            result.warnings.extend(field_result.warnings)
        return result

    @staticmethod
    def sanitize_input(text: str) -> str:
        """Strip angle brackets, ``javascript:`` and inline event handlers."""
        text = re.sub(r"[<>]", "", text)
        text = re.sub(r"javascript:", "", text, flags=re.IGNORECASE)
        text = re.sub(r"on\w+=", "", text, flags=re.IGNORECASE)
        return text.strip()

    def contains_profanity(self, text: str) -> bool:
        lowered = text.lower()
        return any(word in lowered for word in self._profanity)

    def validate_and_sanitize(self, text: str, field_name: str) -> tuple[str, ValidationResult]:
        """Sanitize ``text`` then validate it.

        Returns:
            The sanitized text and its validation result.
        """
        sanitized = self.sanitize_input(text)
        result = self.validate_field(field_name, sanitized)
        if self.contains_profanity(sanitized):
            result.errors.append("Please use appropriate language")
            result.is_valid = False
        return sanitized, result

    def validate_password(self, password: str) -> ValidationResult:
        """Validate a password and add strength hints as warnings."""
        result = self.validate_field("password", password)
        password = password or ""
        if len(password) < 12:
            result.warnings.append("Consider using a longer password for better security")
        if not re.search(r"[a-z]", password):
            result.warnings.append("Add lowercase letters for better security")
        if not re.search(r"[A-Z]", password):
            result.warnings.append("Add uppercase letters for better security")
        if not re.search(r"\d", password):
            result.warnings.append("Add numbers for better security")
        if not any(c in _PASSWORD_SPECIALS for c in password):
            result.warnings.append("Add special characters for better security")
        return result

    def validate_email(self, email: str) -> ValidationResult:
        return self.validate_field("email", email)

    def validate_message(self, message: str) -> ValidationResult:
        return self.validate_field("message", message)

    def validate_topic(self, topic: str) -> ValidationResult:
        return self.validate_field("conversation_topic", topic)
