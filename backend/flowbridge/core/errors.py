# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Custom exceptions for FlowBridge.

All exceptions inherit from FlowBridgeError for consistent error handling.
"""

from typing import List, Optional


class FlowBridgeError(Exception):
    """Base exception for all FlowBridge errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[dict] = None
    ):
        """
        Initialize FlowBridge error.

        Args:
            message: Human-readable error message
            status_code: HTTP status code
            details: Additional error details
        """
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Convert error to dictionary for API response."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "status_code": self.status_code,
            "details": self.details
        }


class EngineError(FlowBridgeError):
    """Automation engine returned a non-2xx response or could not be reached."""

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        endpoint: Optional[str] = None,
        details: Optional[dict] = None
    ):
        """
        Initialize engine error.

        Args:
            message: Error message (includes engine response text when available)
            status: HTTP status returned by the engine, None for transport failures
            endpoint: Endpoint or URL that failed
            details: Additional error details
        """
        # Transport failures surface as bad gateway
        super().__init__(message, status_code=status or 502, details=details)
        self.status = status
        self.endpoint = endpoint


class NotFoundError(FlowBridgeError):
    """Resource not found."""

    def __init__(self, resource: str, identifier: str, details: Optional[dict] = None):
        """
        Initialize not found error.

        Args:
            resource: Type of resource (e.g., "Workflow", "Execution")
            identifier: Resource identifier
            details: Additional error details
        """
        message = f"{resource} not found: {identifier}"
        super().__init__(message, status_code=404, details=details)
        self.resource = resource
        self.identifier = identifier


class ConfigurationError(FlowBridgeError):
    """Configuration error."""

    def __init__(self, message: str, setting: Optional[str] = None, details: Optional[dict] = None):
        """
        Initialize configuration error.

        Args:
            message: Configuration error message
            setting: Name of the missing or invalid setting
            details: Additional error details
        """
        super().__init__(message, status_code=500, details=details)
        self.setting = setting


class NoTriggerFoundError(FlowBridgeError):
    """Workflow has no node carrying a webhook identifier."""

    def __init__(self, workflow_id: str, details: Optional[dict] = None):
        super().__init__(
            f"No webhook trigger found in workflow: {workflow_id}",
            status_code=400,
            details=details
        )
        self.workflow_id = workflow_id


class WebhookNotFoundError(FlowBridgeError):
    """Every webhook URL in the fallback chain answered 404."""

    def __init__(self, attempted_urls: List[str], details: Optional[dict] = None):
        """
        Initialize webhook not found error.

        Args:
            attempted_urls: URLs tried, in order
            details: Additional error details
        """
        message = f"Webhook not found after {len(attempted_urls)} attempts: {', '.join(attempted_urls)}"
        super().__init__(message, status_code=404, details=details)
        self.attempted_urls = list(attempted_urls)


class ExecutionError(FlowBridgeError):
    """Execution error."""

    def __init__(self, message: str, workflow_id: Optional[str] = None, details: Optional[dict] = None):
        super().__init__(message, status_code=500, details=details)
        self.workflow_id = workflow_id


class AgentNoResponseError(FlowBridgeError):
    """Agent workflow produced no text reply before the deadline."""

    def __init__(self, wait_ms: int, details: Optional[dict] = None):
        super().__init__(
            f"AI Agent did not respond within {wait_ms}ms. "
            "Check that the workflow has a \"Respond to Webhook\" node.",
            status_code=504,
            details=details
        )
        self.wait_ms = wait_ms


# Error Message Utilities

def sanitize_error_for_user(error: Exception, include_type: bool = True) -> str:
    """
    Sanitize error messages for user display.

    Args:
        error: The exception to sanitize
        include_type: Whether to include exception type

    Returns:
        User-friendly error message without stack trace
    """
    error_msg = str(error).strip()

    # Limit message length
    if len(error_msg) > 500:
        error_msg = error_msg[:500] + "..."

    if include_type:
        return f"{error.__class__.__name__}: {error_msg}"

    return error_msg
