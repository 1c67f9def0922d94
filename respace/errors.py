"""
Error handling for respace.

Structured error codes for launch, probe, close and configuration failures.
Only UnknownItemTypeError and LaunchCommandError ever reach the scheduler's
per-item accounting; probe errors are degraded inside the probe and close
errors are swallowed per artifact group.
"""

from enum import Enum
from typing import Optional, Dict, Any


class ErrorCode(Enum):
    """
    Error codes for respace.

    - 1000-1099: Launch errors
    - 1100-1199: Scripting bridge errors
    - 1200-1299: Close errors
    - 1300-1399: Configuration errors
    """

    # Launch errors (1000-1099)
    LAUNCH_FAILED = 1000
    PATH_NOT_FOUND = 1001
    UNKNOWN_ITEM_TYPE = 1002

    # Scripting bridge errors (1100-1199)
    SCRIPT_FAILED = 1100
    SCRIPT_TIMEOUT = 1101
    BRIDGE_UNAVAILABLE = 1102

    # Close errors (1200-1299)
    CLOSE_FAILED = 1200
    QUIT_FAILED = 1201

    # Configuration errors (1300-1399)
    CONFIG_LOAD_FAILED = 1300
    WORKSPACE_NOT_FOUND = 1301
    SESSION_STORE_FAILED = 1302


class RespaceError(Exception):
    """Base exception for respace errors."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        suggestion: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize respace error.

        Args:
            code: Error code from ErrorCode enum
            message: Human-readable error message
            suggestion: Suggested recovery action
            context: Additional context for debugging
        """
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.context = context or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert error to dictionary for JSON output.

        Returns:
            Error dictionary with code, message, suggestion, and context
        """
        result = {
            "code": self.code.value,
            "message": self.message
        }

        if self.suggestion:
            result["suggestion"] = self.suggestion

        if self.context:
            result["context"] = self.context

        return result


class LaunchCommandError(RespaceError):
    """The OS refused or errored on a launch command."""

    def __init__(self, item_name: str, reason: str, code: ErrorCode = ErrorCode.LAUNCH_FAILED):
        """
        Initialize launch command error.

        Args:
            item_name: Display name of the item that failed to launch
            reason: Reason for failure
            code: LAUNCH_FAILED or PATH_NOT_FOUND
        """
        super().__init__(
            code=code,
            message=f"Failed to launch {item_name}: {reason}",
            suggestion="Check that the item's path or identifier is correct",
            context={"item_name": item_name, "reason": reason}
        )


class UnknownItemTypeError(RespaceError):
    """An item was dispatched whose type has no registered strategy."""

    def __init__(self, item_type: str):
        super().__init__(
            code=ErrorCode.UNKNOWN_ITEM_TYPE,
            message=f"Unknown item type: {item_type}",
            suggestion="Register a launch strategy for this item type",
            context={"item_type": item_type}
        )


class ScriptBridgeError(RespaceError):
    """osascript exited with an error or could not be started."""

    def __init__(self, reason: str, returncode: Optional[int] = None, code: ErrorCode = ErrorCode.SCRIPT_FAILED):
        """
        Initialize scripting bridge error.

        Args:
            reason: stderr text or exception message
            returncode: osascript exit code, if it ran
            code: SCRIPT_FAILED or BRIDGE_UNAVAILABLE
        """
        context: Dict[str, Any] = {"reason": reason}
        if returncode is not None:
            context["returncode"] = returncode

        super().__init__(
            code=code,
            message=f"Scripting bridge call failed: {reason}",
            suggestion="Grant Automation and Accessibility permissions to the calling terminal",
            context=context
        )


class ScriptTimeoutError(ScriptBridgeError):
    """osascript did not finish within its time bound."""

    def __init__(self, timeout: float):
        super().__init__(
            reason=f"timed out after {timeout}s",
            code=ErrorCode.SCRIPT_TIMEOUT,
        )
        self.timeout = timeout


class CloseError(RespaceError):
    """Closing a window or quitting an application failed."""

    def __init__(self, process_name: str, reason: str, code: ErrorCode = ErrorCode.CLOSE_FAILED):
        super().__init__(
            code=code,
            message=f"Failed to close {process_name}: {reason}",
            context={"process_name": process_name, "reason": reason}
        )


class ConfigLoadError(RespaceError):
    """Configuration or workspace document loading error."""

    def __init__(self, file_path: str, reason: str):
        """
        Initialize configuration load error.

        Args:
            file_path: Path to configuration file
            reason: Reason for load failure
        """
        super().__init__(
            code=ErrorCode.CONFIG_LOAD_FAILED,
            message=f"Failed to load configuration from {file_path}: {reason}",
            suggestion="Check file syntax and permissions",
            context={"file_path": file_path, "reason": reason}
        )


class WorkspaceNotFoundError(RespaceError):
    """No workspace matches the requested name or id."""

    def __init__(self, name: str):
        super().__init__(
            code=ErrorCode.WORKSPACE_NOT_FOUND,
            message=f"Workspace not found: {name}",
            suggestion="Run 'respace list' to see available workspaces",
            context={"name": name}
        )


def error_message(error: BaseException) -> str:
    """Return the user-facing message for any exception."""
    if isinstance(error, RespaceError):
        return error.message
    return str(error) or error.__class__.__name__
