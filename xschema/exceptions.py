"""Exceptions raised by xschema.

Data that does not match a schema is never reported through an exception
inside the validator; the checks return error trees instead. The classes
below cover broken schemas and the opt-in raising API.
"""

from typing import Any, List, Optional


class XSchemaError(Exception):
    """
    Base exception for xschema.

    Attributes:
        message: Human-readable error description
        context: Optional context about where the error occurred
    """

    def __init__(self, message: str, context: Optional[str] = None) -> None:
        self.message = message
        self.context = context
        full_message = message
        if context:
            full_message = f"{message} (context: {context})"
        super().__init__(full_message)


class SchemaError(XSchemaError):
    """Exception raised when a schema is malformed."""


class RefError(SchemaError):
    """
    Exception raised when a reference cannot be resolved.

    Attributes:
        pointer: The pointer of the reference
        uri: The absolute URI of the reference, if any
    """

    def __init__(self, pointer: str, uri: Optional[str] = None,
                 message: Optional[str] = None) -> None:
        self.pointer = pointer
        self.uri = uri
        if message is None:
            message = f"Reference not found: {uri or pointer}"
        super().__init__(message)


class CircularRefError(RefError):
    """
    Exception raised when a chain of references leads back to itself.

    Attributes:
        cycle_path: The references forming the cycle
    """

    def __init__(self, cycle_path: List[str]) -> None:
        self.cycle_path = cycle_path
        cycle_str = ' -> '.join(cycle_path)
        super().__init__(cycle_path[-1], message=f"Circular reference detected: {cycle_str}")


class RefDepthError(RefError):
    """Exception raised when validation nests too many reference resolutions."""

    def __init__(self, pointer: str, max_depth: int) -> None:
        self.max_depth = max_depth
        super().__init__(
            pointer, message=f"Maximum reference depth {max_depth} exceeded at {pointer}")


class ValidationError(XSchemaError):
    """
    Exception raised by validate_or_raise when a value does not match.

    Attributes:
        reason: The error tree produced by the validator
        path: JSON pointer of the failing location in the value
    """

    def __init__(self, reason: Any, path: str = "#") -> None:
        self.reason = reason
        self.path = path
        super().__init__(f"Value does not match schema: {reason}", context=path)
