import re
from typing import Any, Dict, List

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def _is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    try:
        float(value)
    except (TypeError, ValueError):
        return False
    return True


def _option_values(field: Dict[str, Any]) -> List[Any]:
    return [opt.get("value") for opt in field.get("options") or [] if isinstance(opt, dict)]


def validate_submission(fields: List[Dict[str, Any]], data: Dict[str, Any]) -> Dict[str, str]:
    """
    Check submitted values against a form's field definitions.

    Returns a mapping of field name -> error message; empty when the
    submission is valid. At most one error is reported per field.
    """
    errors = {}

    for field in fields or []:
        name = field.get("name")
        label = field.get("label") or name
        field_type = field.get("type")
        value = data.get(name)

        if field.get("required"):
            if field_type == "checkbox":
                if value is not True:
                    errors[name] = f"{label} is required"
                    continue
            elif value is None or value == "":
                errors[name] = f"{label} is required"
                continue

        if value is None or value == "" or value is False:
            continue

        if field_type == "email":
            if not isinstance(value, str) or not EMAIL_PATTERN.fullmatch(value):
                errors[name] = f"{label} must be a valid email"
        elif field_type == "number":
            if not _is_number(value):
                errors[name] = f"{label} must be a number"
        elif field_type == "select":
            if value not in _option_values(field):
                errors[name] = f"{label} has an invalid value"

    return errors
