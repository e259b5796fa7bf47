"""
Request validation helpers

Fluent validator that collects every error message instead of stopping at
the first one, so handlers can answer with the full list.

Usage:
    result = (
        Validator()
        .array(items, "items")
        .array_min_length(items, 1, "items")
        .get_result()
    )
    if not result.valid:
        raise ValidationFailed(result.errors)
"""
import math
import re
from dataclasses import dataclass, field
from typing import Any, Iterable, List
from urllib.parse import urlparse


EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
UUID_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE)
MAX_STRING_LENGTH = 10000


@dataclass
class ValidationResult:
    valid: bool
    errors: List[str] = field(default_factory=list)


def is_number(value: Any) -> bool:
    """True for real ints and floats (bool excluded, NaN excluded)"""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return not (isinstance(value, float) and math.isnan(value))


def is_valid_url(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    parsed = urlparse(value)
    return bool(parsed.scheme and parsed.netloc)


class Validator:
    def __init__(self):
        self.errors: List[str] = []

    def required(self, value: Any, field_name: str) -> "Validator":
        if value is None or value == "":
            self.errors.append(f"{field_name} is required")
        return self

    def string(self, value: Any, field_name: str) -> "Validator":
        if not isinstance(value, str):
            self.errors.append(f"{field_name} must be a string")
        return self

    def number(self, value: Any, field_name: str) -> "Validator":
        if not is_number(value):
            self.errors.append(f"{field_name} must be a valid number")
        return self

    def positive_number(self, value: Any, field_name: str) -> "Validator":
        self.number(value, field_name)
        if is_number(value) and value <= 0:
            self.errors.append(f"{field_name} must be positive")
        return self

    def min(self, value: Any, minimum: float, field_name: str) -> "Validator":
        if is_number(value) and value < minimum:
            self.errors.append(f"{field_name} must be at least {minimum}")
        return self

    def max(self, value: Any, maximum: float, field_name: str) -> "Validator":
        if is_number(value) and value > maximum:
            self.errors.append(f"{field_name} must be at most {maximum}")
        return self

    def min_length(self, value: Any, minimum: int, field_name: str) -> "Validator":
        if isinstance(value, str) and len(value) < minimum:
            self.errors.append(f"{field_name} must be at least {minimum} characters")
        return self

    def max_length(self, value: Any, maximum: int, field_name: str) -> "Validator":
        if isinstance(value, str) and len(value) > maximum:
            self.errors.append(f"{field_name} must be at most {maximum} characters")
        return self

    def email(self, value: Any, field_name: str) -> "Validator":
        if not isinstance(value, str) or not EMAIL_RE.match(value):
            self.errors.append(f"{field_name} must be a valid email address")
        return self

    def url(self, value: Any, field_name: str) -> "Validator":
        if not is_valid_url(value):
            self.errors.append(f"{field_name} must be a valid URL")
        return self

    def uuid(self, value: Any, field_name: str) -> "Validator":
        if not isinstance(value, str) or not UUID_RE.match(value):
            self.errors.append(f"{field_name} must be a valid UUID")
        return self

    def enum(self, value: Any, allowed_values: Iterable[Any], field_name: str) -> "Validator":
        allowed = list(allowed_values)
        if value not in allowed:
            self.errors.append(f"{field_name} must be one of: {', '.join(str(v) for v in allowed)}")
        return self

    def array(self, value: Any, field_name: str) -> "Validator":
        if not isinstance(value, list):
            self.errors.append(f"{field_name} must be an array")
        return self

    def array_min_length(self, value: Any, minimum: int, field_name: str) -> "Validator":
        if isinstance(value, list) and len(value) < minimum:
            self.errors.append(f"{field_name} must contain at least {minimum} items")
        return self

    def array_max_length(self, value: Any, maximum: int, field_name: str) -> "Validator":
        if isinstance(value, list) and len(value) > maximum:
            self.errors.append(f"{field_name} must contain at most {maximum} items")
        return self

    def custom(self, condition: bool, message: str) -> "Validator":
        if not condition:
            self.errors.append(message)
        return self

    def get_result(self) -> ValidationResult:
        return ValidationResult(valid=not self.errors, errors=list(self.errors))

    def reset(self) -> "Validator":
        self.errors = []
        return self


def sanitize_string(value: str) -> str:
    """Trim, drop angle brackets and cap length"""
    return re.sub(r"[<>]", "", value.strip())[:MAX_STRING_LENGTH]


def sanitize_email(value: str) -> str:
    return value.strip().lower()


def sanitize_price(price: float) -> float:
    return max(0.0, round(price * 100) / 100)
