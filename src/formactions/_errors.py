"""formactions error hierarchy.

All formactions-specific errors inherit from FormActionsError for easy catching.
Filesystem failures are not wrapped; they surface as ``OSError``.
"""


class FormActionsError(Exception):
    """Base error for all formactions operations."""


class ConfigError(FormActionsError):
    """Invalid or missing configuration."""


class RouteParseError(FormActionsError):
    """A path does not match the ``<actions-root>/<name>.<ext>`` shape."""


class ExtractionError(FormActionsError):
    """An action file could not be parsed or its loader could not be isolated."""
