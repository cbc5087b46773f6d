from __future__ import annotations

from typing import ClassVar, Literal

ErrorLevel = Literal["warn", "error", "fatal"]


class ExplorerError(Exception):
    """Base class for errors surfaced to the user-facing error channel."""

    level: ClassVar[ErrorLevel] = "error"


class ResolutionError(ExplorerError):
    """Raised when a column label cannot be resolved to a field."""

    level: ClassVar[ErrorLevel] = "warn"


class ColumnNotFoundError(ResolutionError):
    def __init__(self, label: str) -> None:
        super().__init__(f'Unknown column "{label}"')
        self.label = label


class EditValidationError(ExplorerError):
    """Raised when a proposed value does not satisfy the target field's type."""

    level: ClassVar[ErrorLevel] = "warn"


class NotANumberError(EditValidationError):
    def __init__(self, label: str, raw: object) -> None:
        super().__init__(f"Column {label!r} expects a number, not {raw!r}")
        self.label = label
        self.raw = raw


class NotAnIntegerError(EditValidationError):
    def __init__(self, label: str, raw: object) -> None:
        super().__init__(f"Column {label!r} expects an integer, not {raw!r}")
        self.label = label
        self.raw = raw


class KeyCollisionError(EditValidationError):
    def __init__(self, key: int) -> None:
        super().__init__(f"Position {key} is already used by another record")
        self.key = key


class TypeContractError(ExplorerError):
    """Raised when a value on hand does not match a field's declared type.

    This is a programming error class (e.g. an editor handing a number to a text
    field), not a normal validation failure.
    """


class InputStreamError(ExplorerError):
    """The query input stream failed; the filter pipeline is no longer usable."""

    level: ClassVar[ErrorLevel] = "fatal"


class DuplicateKeyError(ValueError):
    """Raised when a dataset contains the same position more than once."""


class RegistryError(ValueError):
    """Raised when a column mapping is not total or has duplicate labels."""
