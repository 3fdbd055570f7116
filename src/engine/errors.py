"""
Farkle Engine - Errors

Every failure the engine reports is a subclass of FarkleError. A farkle is
not an error; it is a terminal turn phase.
"""


class FarkleError(Exception):
    """Base class for engine errors."""


class InvalidSelection(FarkleError, ValueError):
    """The chosen dice do not form a legal scoring selection of the current roll."""


class IllegalTransition(FarkleError, RuntimeError):
    """An operation was attempted in a state that does not allow it."""


class ConfigurationError(FarkleError, ValueError):
    """Match or scoring configuration is invalid."""


class SnapshotError(FarkleError, ValueError):
    """A persisted match record could not be restored."""
