"""Custom exceptions for the rigup reconciliation engine.

This module defines the error taxonomy shared by the reconciler and adapters:
- NotFoundError: Setting is absent (treated as "absent", never fatal)
- WriteFailedError: Applying a target value failed
- PreconditionMissingError: A required tool or resource is unavailable
- UserAbortedError: An interactive prompt was declined or interrupted
- CommandError: An external command exited non-zero
- ConfigurationError: Bootstrap YAML is invalid
"""

from typing import Optional, Sequence


class RigupError(Exception):
    """Base class for all rigup errors."""


class NotFoundError(RigupError):
    """Raised by a read capability when the setting does not exist.

    The reconciler treats this as "absent", which is distinct from a
    mismatched value.

    Args:
        setting: Identifier of the missing setting (registry value, git key...)
        location: Where it was looked up (optional)
    """

    def __init__(self, setting: str, location: Optional[str] = None):
        self.setting = setting
        self.location = location
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.location:
            return f"{self.setting} not found in {self.location}"
        return f"{self.setting} not found"


class WriteFailedError(RigupError):
    """Raised when a write capability cannot apply its target value.

    Args:
        message: Error description
        original_error: Underlying exception (optional)
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.message = message
        self.original_error = original_error
        super().__init__(self.message)

    def __str__(self) -> str:
        """Return string representation with original error context if available."""
        if self.original_error:
            return f"{self.message} (original: {self.original_error})"
        return self.message


class PreconditionMissingError(RigupError):
    """Raised when a spec depends on something that is not available.

    Example:
        >>> raise PreconditionMissingError("git is not on PATH")
    """


class UserAbortedError(RigupError):
    """Raised when the operator declines or interrupts an interactive prompt."""


class CommandError(RigupError):
    """Raised when an external command exits with a non-zero status.

    Args:
        argv: Command that was executed
        returncode: Exit status
        stderr: Captured standard error (optional)
    """

    def __init__(self, argv: Sequence[str], returncode: int, stderr: str = ""):
        self.argv = list(argv)
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(str(self))

    def __str__(self) -> str:
        message = f"Command failed ({self.returncode}): {' '.join(self.argv)}"
        if self.stderr.strip():
            message = f"{message}: {self.stderr.strip()}"
        return message


class ConfigurationError(RigupError):
    """Raised when configuration is invalid.

    Used for:
    - Invalid YAML syntax in the bootstrap file
    - Missing bootstrap file
    - Malformed configuration structure

    Includes file path and line number context when available.

    Args:
        message: Error description
        file_path: Path to problematic config file (optional)
        line_number: Line number where error occurred (optional)

    Example:
        >>> raise ConfigurationError(
        ...     "git.user_email must be a string",
        ...     file_path="bootstrap.yaml",
        ...     line_number=4
        ... )
    """

    def __init__(
        self,
        message: str,
        file_path: Optional[str] = None,
        line_number: Optional[int] = None,
    ):
        self.message = message
        self.file_path = file_path
        self.line_number = line_number
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with file/line context if available."""
        parts = [self.message]
        if self.file_path:
            parts.append(f"in file: {self.file_path}")
        if self.line_number:
            parts.append(f"at line: {self.line_number}")
        return " ".join(parts)

    def __str__(self) -> str:
        """Return formatted error message."""
        return self._format_message()
