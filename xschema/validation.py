"""Validates values and JSON files against xschema schemas.

This module provides the functional interface on top of
xschema.validator.Validator.
"""

import json
from typing import Any, Dict, List, Optional

from xschema.exceptions import ValidationError
from xschema.jsonstoxschema import convert_json_schema
from xschema.utils import error_path
from xschema.validator import DEFAULT_MAX_DEPTH, Validator


class ValidationResult:
    """Result of validating a value against a schema."""

    def __init__(self, is_valid: bool, error: Optional[Dict[str, Any]] = None, instance_path: str = None):
        self.is_valid = is_valid
        self.error = error
        self.instance_path = instance_path

    @property
    def path(self) -> Optional[str]:
        """JSON pointer of the failing location in the value, if invalid."""
        if self.error is None:
            return None
        return error_path(self.error)[0]

    def __bool__(self) -> bool:
        return self.is_valid

    def __str__(self) -> str:
        if self.is_valid:
            return "Valid" + (f": {self.instance_path}" if self.instance_path else "")
        prefix = f"{self.instance_path}: " if self.instance_path else ""
        path, leaf = error_path(self.error)
        return f"Invalid: {prefix}{leaf} at {path}"

    def __repr__(self) -> str:
        return f"ValidationResult(is_valid={self.is_valid}, error={self.error})"


def validate(schema: Any, value: Any, max_depth: Optional[int] = DEFAULT_MAX_DEPTH) -> ValidationResult:
    """Validates a value against a schema.

    Args:
        schema: A Root or a schema node
        value: The value to validate
        max_depth: Nested reference resolutions allowed on one path, if limited

    Returns:
        ValidationResult with the error tree, if any

    Raises:
        RefError: If the schema holds an unresolvable reference.
    """
    reason = Validator(schema, max_depth=max_depth).validate(value)
    return ValidationResult(is_valid=reason is None, error=reason)


def is_valid(schema: Any, value: Any) -> bool:
    """Checks a value against a schema, discarding error details."""
    return Validator(schema).is_valid(value)


def validate_or_raise(schema: Any, value: Any) -> None:
    """Validates a value and raises if it does not match.

    Raises:
        ValidationError: If the value does not match; carries the error tree.
        RefError: If the schema holds an unresolvable reference.
    """
    reason = Validator(schema).validate(value)
    if reason is not None:
        raise ValidationError(reason, error_path(reason)[0])


def validate_file(instance_file: str, schema_file: str, draft: str = None) -> List[ValidationResult]:
    """Validates a JSON or JSONL instance file against a JSON Schema file.

    Args:
        instance_file: Path to a JSON document, or JSONL with one value per line
        schema_file: Path to a JSON Schema document
        draft: 'draft4', 'draft6' or 'draft7', detected from $schema if not provided

    Returns:
        List of ValidationResult for each instance in the file
    """
    with open(schema_file, 'r', encoding='utf-8') as f:
        document = json.load(f)
    validator = Validator(convert_json_schema(document, draft=draft))

    with open(instance_file, 'r', encoding='utf-8') as f:
        content = f.read().strip()

    instances = []
    instance_paths = []
    try:
        instances = [json.loads(content)]
        instance_paths = [instance_file]
    except json.JSONDecodeError:
        for i, line in enumerate(content.split('\n')):
            line = line.strip()
            if line:
                instances.append(json.loads(line))
                instance_paths.append(f"{instance_file}:{i+1}")

    results = []
    for instance, path in zip(instances, instance_paths):
        reason = validator.validate(instance)
        results.append(ValidationResult(is_valid=reason is None, error=reason, instance_path=path))
    return results
