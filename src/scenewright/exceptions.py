"""Custom exception hierarchy for SceneWright with helpful error messages."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from scenewright.models import Conflict


class SceneWrightError(Exception):
    """Base exception with helpful formatting for all SceneWright errors.

    Provides structured error messages with hints and details to help users
    understand and fix problems.
    """

    def __init__(
        self,
        message: str,
        hint: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize exception with structured error information.

        Args:
            message: Primary error message describing what went wrong
            hint: Optional hint suggesting how to fix the problem
            details: Optional dictionary with additional debugging information
        """
        self.message = message
        self.hint = hint
        self.details = details
        super().__init__(self.format_error())

    def format_error(self) -> str:
        """Format the error message with hint and details.

        Returns:
            Formatted error string with all available information
        """
        output = f"Error: {self.message}"
        if self.hint:
            output += f"\nHint: {self.hint}"
        if self.details:
            details_str = "\n".join(
                f"  {key}: {value}" for key, value in self.details.items()
            )
            output += f"\nDetails:\n{details_str}"
        return output


class ConfigurationError(SceneWrightError):
    """Configuration errors including invalid settings and missing config files."""

    pass


class ValidationError(SceneWrightError):
    """Input validation errors, raised before any side effect takes place."""

    pass


class ConflictError(SceneWrightError):
    """Base class for save conflicts that the caller must resolve."""

    def __init__(
        self,
        message: str,
        subject_id: str,
        holder_identity: str | None = None,
        timestamp: Any = None,
        hint: str | None = None,
        conflicts: list[Conflict] | None = None,
    ) -> None:
        """Initialize conflict error.

        Args:
            message: Error message
            subject_id: Scene (or document) the conflict is about
            holder_identity: Identity holding the lease or last modifying it
            timestamp: When the conflicting lease/modification happened
            hint: Optional hint
            conflicts: Every conflict found by the check that raised this,
                reported back to the caller in the save result
        """
        self.subject_id = subject_id
        self.conflicts = list(conflicts or [])
        self.holder_identity = holder_identity
        self.timestamp = timestamp
        details: dict[str, Any] = {"subject_id": subject_id}
        if holder_identity:
            details["holder_identity"] = holder_identity
        if timestamp is not None:
            details["timestamp"] = timestamp
        super().__init__(message=message, hint=hint, details=details)


class LockConflictError(ConflictError):
    """Scene is leased by another identity."""

    pass


class VersionConflictError(ConflictError):
    """Local view is stale relative to the server copy."""

    pass


class SceneWrightPermissionError(SceneWrightError):
    """Write denied by the remote store."""

    pass


class BackendError(SceneWrightError):
    """Transport or server fault in the remote document store."""

    pass


class RecordSchemaError(BackendError):
    """A stored record does not match its expected schema."""

    pass


def check_identifiers(**identifiers: str | None) -> None:
    """Check that all required identifiers are present.

    Args:
        **identifiers: Mapping of identifier name to value

    Raises:
        ValidationError: If any identifier is missing or blank
    """
    missing = [
        name for name, value in identifiers.items() if not value or not value.strip()
    ]
    if missing:
        raise ValidationError(
            message=f"Missing required identifier(s): {', '.join(missing)}",
            hint="Provide project, screenplay and identity before saving",
            details={"missing": missing},
        )


def check_config_keys(config: dict[str, Any]) -> None:
    """Check for common configuration mistakes.

    Args:
        config: Configuration dictionary to validate

    Raises:
        ConfigurationError: With hints about correct configuration keys
    """
    wrong_keys = {
        "db_path": "store_path",
        "user_id": "identity",
        "page_height": "max_page_height",
        "autosave_delay": "autosave_delay_seconds",
    }

    for wrong, correct in wrong_keys.items():
        if wrong in config:
            raise ConfigurationError(
                message=f"Invalid configuration key '{wrong}'",
                hint=f"Use '{correct}' instead of '{wrong}'",
                details={
                    "found_keys": list(config.keys()),
                    "invalid_key": wrong,
                    "correct_key": correct,
                },
            )
