"""
Field validators shared by the form-handling services.

Each validator returns ``None`` when the value is acceptable, or the
user-facing error message otherwise. ``collect_errors`` folds the results of
several validators into the field-keyed map carried by
``FormValidationException``.
"""
import math
import re
from urllib.parse import urlparse

from spoonjoy.core.exception.exceptions import FormValidationException

TITLE_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 2000
STEP_DESCRIPTION_MAX_LENGTH = 5000
STEP_TITLE_MAX_LENGTH = 200
SERVINGS_MAX_LENGTH = 100
UNIT_NAME_MAX_LENGTH = 50
INGREDIENT_NAME_MAX_LENGTH = 100

QUANTITY_MIN = 0.001
QUANTITY_MAX = 99999

USERNAME_MIN_LENGTH = 3
PASSWORD_MIN_LENGTH = 8

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def validate_title(title: str) -> str | None:
    trimmed = title.strip()
    if not trimmed:
        return "Title is required"
    if len(trimmed) > TITLE_MAX_LENGTH:
        return "Title must be 200 characters or less"
    return None


def validate_description(description: str | None) -> str | None:
    if not description:
        return None
    if len(description.strip()) > DESCRIPTION_MAX_LENGTH:
        return "Description must be 2,000 characters or less"
    return None


def validate_servings(servings: str | None) -> str | None:
    if not servings:
        return None
    if len(servings.strip()) > SERVINGS_MAX_LENGTH:
        return "Servings must be 100 characters or less"
    return None


def validate_image_url(url: str | None) -> str | None:
    if not url or not url.strip():
        return None
    parsed = urlparse(url.strip())
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return "Please enter a valid URL"
    return None


def validate_step_title(step_title: str | None) -> str | None:
    if not step_title:
        return None
    if len(step_title.strip()) > STEP_TITLE_MAX_LENGTH:
        return "Step title must be 200 characters or less"
    return None


def validate_step_description(description: str) -> str | None:
    trimmed = description.strip()
    if not trimmed:
        return "Step description is required"
    if len(trimmed) > STEP_DESCRIPTION_MAX_LENGTH:
        return "Description must be 5,000 characters or less"
    return None


def validate_step_reference(output_step_num: int | None, current_step_num: int) -> str | None:
    """A step may only use the output of a step that comes before it."""
    if output_step_num is None:
        return "Step reference must be a step number"
    if output_step_num < 1:
        return "Step reference must be a positive step number"
    if output_step_num >= current_step_num:
        return f"Step {current_step_num} can only use output from earlier steps"
    return None


def validate_quantity(quantity: float) -> str | None:
    if not math.isfinite(quantity):
        return "Quantity must be a valid number"
    if quantity < QUANTITY_MIN or quantity > QUANTITY_MAX:
        return "Quantity must be between 0.001 and 99,999"
    return None


def validate_unit_name(unit_name: str) -> str | None:
    trimmed = unit_name.strip()
    if not trimmed:
        return "Unit name is required"
    if len(trimmed) > UNIT_NAME_MAX_LENGTH:
        return "Unit name must be 50 characters or less"
    return None


def validate_ingredient_name(ingredient_name: str) -> str | None:
    trimmed = ingredient_name.strip()
    if not trimmed:
        return "Ingredient name is required"
    if len(trimmed) > INGREDIENT_NAME_MAX_LENGTH:
        return "Ingredient name must be 100 characters or less"
    return None


def validate_email(email: str) -> str | None:
    if not email.strip():
        return "Email is required"
    if not EMAIL_PATTERN.match(email.strip()):
        return "Please enter a valid email address"
    return None


def validate_username(username: str) -> str | None:
    if not username.strip():
        return "Username is required"
    if len(username.strip()) < USERNAME_MIN_LENGTH:
        return "Username must be at least 3 characters"
    return None


def validate_new_password(password: str) -> str | None:
    if len(password) < PASSWORD_MIN_LENGTH:
        return "Password must be at least 8 characters"
    return None


def collect_errors(**checks: str | None) -> dict[str, str]:
    return {field: message for field, message in checks.items() if message}


def raise_for_errors(**checks: str | None) -> None:
    errors = collect_errors(**checks)
    if errors:
        raise FormValidationException(errors=errors)


def parse_int(value) -> int | None:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


def parse_float(value) -> float | None:
    if value is None or not str(value).strip():
        return None
    try:
        return float(str(value).strip())
    except ValueError:
        return None
