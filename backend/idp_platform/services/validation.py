import logging
import re
from typing import Any, Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)

Errors = Dict[str, List[str]]


def _add(errors: Errors, name: str, message: str) -> None:
    errors.setdefault(name, []).append(message)


def _int_rule(value: Any) -> int:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return int(value)
    return int(str(value).strip())


def _float_rule(value: Any) -> float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    return float(str(value).strip())


def _allowed_values(rules: Dict[str, Any]) -> Optional[List[Any]]:
    allowed = rules.get("allowedValues")
    if not isinstance(allowed, list) or not allowed:
        return None
    values = []
    for entry in allowed:
        values.append(entry.get("value") if isinstance(entry, dict) else entry)
    return values


def _validate_string(name: str, value: Any, rules: Dict[str, Any], errors: Errors) -> None:
    if not isinstance(value, str):
        _add(errors, name, "Must be a string")
        return
    if "minLength" in rules:
        min_length = _int_rule(rules["minLength"])
        if len(value) < min_length:
            _add(errors, name, f"Must be at least {min_length} characters long")
    if "maxLength" in rules:
        max_length = _int_rule(rules["maxLength"])
        if len(value) > max_length:
            _add(errors, name, f"Must be at most {max_length} characters long")
    if "pattern" in rules:
        try:
            pattern = re.compile(str(rules["pattern"]))
        except re.error:
            logger.warning("ignoring invalid pattern for property %s: %s", name, rules["pattern"])
            return
        if not pattern.fullmatch(value):
            message = rules.get("patternMessage")
            _add(errors, name, str(message) if message is not None else "Does not match required pattern")


def _validate_number(name: str, value: Any, rules: Dict[str, Any], errors: Errors) -> None:
    if isinstance(value, bool):
        _add(errors, name, "Must be a number")
        return
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            _add(errors, name, "Must be a valid number")
            return
    else:
        _add(errors, name, "Must be a number")
        return
    if "min" in rules:
        minimum = _float_rule(rules["min"])
        if number < minimum:
            _add(errors, name, f"Must be at least {minimum}")
    if "max" in rules:
        maximum = _float_rule(rules["max"])
        if number > maximum:
            _add(errors, name, f"Must be at most {maximum}")


def _validate_boolean(name: str, value: Any, errors: Errors) -> None:
    if isinstance(value, bool):
        return
    if isinstance(value, str):
        if value.lower() not in ("true", "false"):
            _add(errors, name, "Must be a boolean (true or false)")
        return
    _add(errors, name, "Must be a boolean")


def _validate_list(name: str, value: Any, rules: Dict[str, Any], errors: Errors) -> None:
    allowed = _allowed_values(rules)
    if not isinstance(value, list):
        # Select-style list properties hold a single chosen value.
        if allowed is not None and not isinstance(value, (dict, set, tuple)):
            if value not in allowed:
                _add(errors, name, "Must be one of: " + ", ".join(str(item) for item in allowed))
            return
        _add(errors, name, "Must be a list")
        return
    if "minItems" in rules:
        min_items = _int_rule(rules["minItems"])
        if len(value) < min_items:
            _add(errors, name, f"Must contain at least {min_items} items")
    if "maxItems" in rules:
        max_items = _int_rule(rules["maxItems"])
        if len(value) > max_items:
            _add(errors, name, f"Must contain at most {max_items} items")
    if allowed is not None:
        invalid = [item for item in value if item not in allowed]
        if invalid:
            _add(errors, name, "Must be one of: " + ", ".join(str(item) for item in allowed))


def validate_properties(values: Optional[Dict[str, Any]], schemas: Iterable[Dict[str, Any]]) -> Errors:
    """Validate property values against schema records.

    Returns a mapping of property name to error messages; empty when valid.
    """
    values = values or {}
    schemas = list(schemas)
    by_name = {schema["property_name"]: schema for schema in schemas}
    errors: Errors = {}

    for schema in schemas:
        if not schema.get("required"):
            continue
        value = values.get(schema["property_name"])
        if value is None or (isinstance(value, str) and not value.strip()):
            _add(errors, schema["property_name"], "Property is required")

    for name, value in values.items():
        schema = by_name.get(name)
        if schema is None:
            _add(errors, name, "Unknown property")
            continue
        if value is None:
            continue
        rules = schema.get("validation_rules") or {}
        data_type = schema.get("data_type")
        if data_type == "STRING":
            _validate_string(name, value, rules, errors)
        elif data_type == "NUMBER":
            _validate_number(name, value, rules, errors)
        elif data_type == "BOOLEAN":
            _validate_boolean(name, value, errors)
        elif data_type == "LIST":
            _validate_list(name, value, rules, errors)
    return errors


def format_errors(errors: Errors) -> str:
    return "".join(f"{name}: {', '.join(messages)}; " for name, messages in errors.items())
