"""
Field validators shared by block schemas and collection hooks, plus strict
JSON schema validation of a normalized block against its kind.
"""
import logging
from typing import Any, Dict, List, Optional, Union

from jsonschema import Draft7Validator

from richtext.converters import is_stringified_canonical

from .schema import PLAIN_TEXT_TYPES, BlockKind, FieldSchema, FieldType

logger = logging.getLogger(__name__)

DANGEROUS_PROTOCOLS = ("javascript:", "data:", "vbscript:", "file:")


def validate_url(value: Optional[str]) -> Union[bool, str]:
    """True when acceptable, otherwise the error message. Empty is allowed."""
    if not value or not value.strip():
        return True

    url = value.strip().lower()
    for protocol in DANGEROUS_PROTOCOLS:
        if url.startswith(protocol):
            return f"Invalid URL: {protocol} protocol is not allowed for security reasons"

    if url.startswith("/") or url.startswith("http://") or url.startswith("https://"):
        return True
    return "URL must start with / (internal), http://, or https://"


def validate_max_length(max_length: int, field_name: str = "Field"):
    def validator(value: Optional[str]) -> Union[bool, str]:
        if not value:
            return True
        if len(value) > max_length:
            return f"{field_name} must be {max_length} characters or less (currently {len(value)})"
        return True
    return validator


def validate_min_items(min_items: int, field_name: str = "Field"):
    def validator(value: Optional[List[Any]]) -> Union[bool, str]:
        if not isinstance(value, list):
            return f"{field_name} must have at least {min_items} item(s)"
        if len(value) < min_items:
            return f"{field_name} must have at least {min_items} item(s) (currently {len(value)})"
        return True
    return validator


def _is_plain_string(value: Any) -> bool:
    # A stringified rich-text document is corruption, not over-long text
    return isinstance(value, str) and not is_stringified_canonical(value)


class BlockValidator:
    """
    Validates normalized blocks against the JSON schema of their kind. Returns
    the list of problems instead of raising, so callers decide what is fatal.
    """
    def __init__(self):
        self._validators: Dict[str, Draft7Validator] = {}

    def _validator_for(self, kind: BlockKind) -> Draft7Validator:
        if kind.slug not in self._validators:
            self._validators[kind.slug] = Draft7Validator(kind.json_schema())
        return self._validators[kind.slug]

    def validate(self, block: Dict[str, Any], kind: BlockKind) -> List[str]:
        errors = []
        for error in self._validator_for(kind).iter_errors(block):
            path = ".".join(str(p) for p in error.absolute_path)
            errors.append(f"{path}: {error.message}" if path else error.message)

        errors.extend(self._check_fields(block, kind.fields))

        if errors:
            logger.debug(f"Block {kind.slug} failed validation: {errors}")
        return errors

    def check_fields(self, block: Dict[str, Any], kind: BlockKind) -> List[str]:
        """
        Field validators only: max length of plain text and URL safety. Applied
        on every write; values of the wrong type are left to the repair passes.
        """
        return self._check_fields(block, kind.fields, check_lengths=True)

    def _check_fields(
        self,
        data: Dict[str, Any],
        fields: List[FieldSchema],
        prefix: str = "",
        check_lengths: bool = False,
    ) -> List[str]:
        errors = []
        for f in fields:
            value = data.get(f.name)
            result = True
            if f.type == FieldType.URL and isinstance(value, str):
                result = validate_url(value)
            elif check_lengths and f.max_length and f.type in PLAIN_TEXT_TYPES and _is_plain_string(value):
                result = validate_max_length(f.max_length, f.display_name)(value)
            elif f.type == FieldType.ARRAY and isinstance(value, list):
                for index, item in enumerate(value):
                    if isinstance(item, dict):
                        errors.extend(
                            self._check_fields(item, f.fields, f"{prefix}{f.name}.{index}.", check_lengths)
                        )
            if result is not True:
                errors.append(f"{prefix}{f.name}: {result}")
        return errors
