"""Custom exceptions for the taint reconciler."""


class TaintReconcilerError(Exception):
    """Base exception for all taint reconciler errors."""

    def __init__(self, message: str, details: str = None):
        """Initialize the exception.

        Args:
            message: Main error message
            details: Additional details or suggestions
        """
        self.message = message
        self.details = details
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format the complete error message.

        Returns:
            Formatted error message with details
        """
        if self.details:
            return f"{self.message}\n\nDetails: {self.details}"
        return self.message


class ListError(TaintReconcilerError):
    """Exception raised when candidate nodes cannot be listed."""

    pass


class ConflictError(TaintReconcilerError):
    """Exception raised when a node changed since it was last observed."""

    def __init__(self, node: str, resource_version: str | None = None, details: str = None):
        self.node = node
        self.resource_version = resource_version
        super().__init__(f"Conflict updating node {node} at version {resource_version}", details)


class UpdateError(TaintReconcilerError):
    """Exception raised when a node's taints cannot be updated."""

    def __init__(
        self, message: str, details: str = None, node: str | None = None, attempts: int = 0
    ):
        self.node = node
        self.attempts = attempts
        super().__init__(message, details)


class ConfigurationError(TaintReconcilerError):
    """Exception raised for configuration errors."""

    pass


class CancelledError(TaintReconcilerError):
    """Exception raised when a stop request interrupts work on a node."""

    def __init__(self, node: str | None = None, attempts: int = 0):
        self.node = node
        self.attempts = attempts
        super().__init__(f"Stopped while updating node {node}")
