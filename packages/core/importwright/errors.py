"""Error taxonomy for import planning.

Every failure raised by the pipeline derives from ImportwrightError so batch
runs can report it against the request that caused it. `kind` is the stable
name used in reports and JSON output.
"""

from __future__ import annotations


class ImportwrightError(Exception):
    kind = "error"
    retryable = False


class UnknownType(ImportwrightError):
    kind = "unknown_type"

    def __init__(self, resource_type: str):
        self.resource_type = resource_type
        super().__init__(f"Unknown resource type {resource_type!r}: no schema registered")


class NotFound(ImportwrightError):
    kind = "not_found"

    def __init__(self, resource_type: str, external_id: str):
        self.resource_type = resource_type
        self.external_id = external_id
        super().__init__(f"No {resource_type} object found with id {external_id!r}")


class AmbiguousID(ImportwrightError):
    kind = "ambiguous_id"

    def __init__(self, resource_type: str, external_id: str, matches: int):
        self.resource_type = resource_type
        self.external_id = external_id
        self.matches = matches
        super().__init__(f"Id {external_id!r} matched {matches} {resource_type} objects; expected exactly one")


class TransientError(ImportwrightError):
    """Retryable remote failure (timeout, rate limit, 5xx)."""

    kind = "transient"
    retryable = True

    def __init__(self, reason: str, attempts: int = 1):
        self.reason = reason
        self.attempts = attempts
        super().__init__(reason)

    def __str__(self) -> str:
        if self.attempts > 1:
            return f"{self.reason} (gave up after {self.attempts} attempts)"
        return self.reason


class RemoteError(ImportwrightError):
    """Non-retryable remote failure."""

    kind = "remote"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class TypeMismatch(ImportwrightError):
    kind = "type_mismatch"

    def __init__(self, attribute: str, expected: str, actual: str):
        self.attribute = attribute
        self.expected = expected
        self.actual = actual
        super().__init__(f"Attribute {attribute!r}: expected {expected}, got {actual}")


class MissingRequiredAttribute(ImportwrightError):
    kind = "missing_required"

    def __init__(self, attribute: str):
        self.attribute = attribute
        super().__init__(f"Required attribute {attribute!r} is missing from the fetched object")


class DuplicateAddress(ImportwrightError):
    kind = "duplicate_address"

    def __init__(self, address: str, existing_id: str, requested_id: str):
        self.address = address
        self.existing_id = existing_id
        self.requested_id = requested_id
        super().__init__(
            f"{address} is already bound to {existing_id!r}; refusing to bind it to {requested_id!r}. "
            f"Unbind it first to re-import."
        )


class InvalidAddress(ImportwrightError):
    kind = "invalid_address"

    def __init__(self, address: str):
        self.address = address
        super().__init__(f"Invalid resource address {address!r}: expected <resource_type>.<local_name>")


class NotBound(ImportwrightError):
    kind = "not_bound"

    def __init__(self, address: str):
        self.address = address
        super().__init__(f"{address} has no current binding")


class LedgerCorrupt(ImportwrightError):
    kind = "ledger_corrupt"


class SchemaError(ImportwrightError):
    kind = "schema"


class ParseError(ImportwrightError):
    kind = "parse"

    def __init__(self, message: str, line: int = 0, column: int = 0):
        self.line = line
        self.column = column
        if line:
            message = f"{message} (line {line}, column {column})"
        super().__init__(message)


__all__ = [
    "AmbiguousID",
    "DuplicateAddress",
    "ImportwrightError",
    "InvalidAddress",
    "LedgerCorrupt",
    "MissingRequiredAttribute",
    "NotBound",
    "NotFound",
    "ParseError",
    "RemoteError",
    "SchemaError",
    "TransientError",
    "TypeMismatch",
    "UnknownType",
]
