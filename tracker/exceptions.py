"""Exceptions raised by the tracker core."""

from __future__ import annotations

from typing import Optional


class TrackerError(Exception):
    """Base exception for tracker errors."""


class ParseError(TrackerError):
    """Raised by strict parsers when a value does not match the vocabulary.

    Normalization code catches it and falls back to a default value.
    """

    def __init__(self, message: str, value: object = None):
        super().__init__(message)
        self.value = value


class ValidationError(TrackerError):
    """Raised when a requested change is not allowed."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class NotFoundError(TrackerError):
    """Raised when a record or project id is unknown."""

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(f"{resource_type} with ID '{resource_id}' not found")
        self.resource_type = resource_type
        self.resource_id = resource_id


class IngestionError(TrackerError):
    """Raised when a workbook cannot be read into rows."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message)
        self.original_error = original_error
