"""
Custom Exceptions

Defines custom exceptions with context for key material handling.
"""

from typing import Dict, Any, Optional, List


class KeyMaterialError(Exception):
    """Base exception for key material errors."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}
        # Secondary failures that happened while this one was propagating
        self.suppressed: List[BaseException] = []

    def __str__(self):
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} (Context: {context_str})"
        return self.message


class ReleaseError(KeyMaterialError):
    """Exception raised when materialized credentials cannot be removed."""

    def __init__(self, message: str, path: Optional[str] = None,
                 material: Optional[str] = None, **kwargs):
        context = kwargs.copy()
        if path:
            context['path'] = path
        if material:
            context['material'] = material

        super().__init__(message, context)


class MaterializationError(KeyMaterialError):
    """Exception raised when credentials cannot be written to disk."""

    def __init__(self, message: str, endpoint: Optional[str] = None,
                 path: Optional[str] = None, **kwargs):
        context = kwargs.copy()
        if endpoint:
            context['endpoint'] = endpoint
        if path:
            context['path'] = path

        super().__init__(message, context)


class ConfigurationError(KeyMaterialError):
    """Exception raised when configuration is invalid."""

    def __init__(self, message: str, config_file: Optional[str] = None,
                 config_path: Optional[str] = None, **kwargs):
        context = kwargs.copy()
        if config_file:
            context['config_file'] = config_file
        if config_path:
            context['config_path'] = config_path

        super().__init__(message, context)


class LaunchError(KeyMaterialError):
    """Exception raised when a process using key material cannot be run."""

    def __init__(self, message: str, command: Optional[str] = None,
                 timeout_seconds: Optional[float] = None, **kwargs):
        context = kwargs.copy()
        if command:
            context['command'] = command
        if timeout_seconds:
            context['timeout_seconds'] = timeout_seconds

        super().__init__(message, context)


def format_error_context(error: Exception) -> Dict[str, Any]:
    """
    Format error context for logging or reporting.

    Args:
        error: Exception instance

    Returns:
        Dictionary with error context information
    """
    if isinstance(error, KeyMaterialError):
        return {
            'error_type': error.__class__.__name__,
            'message': error.message,
            'context': error.context,
            'suppressed': [str(e) for e in error.suppressed]
        }
    else:
        return {
            'error_type': error.__class__.__name__,
            'message': str(error),
            'context': {},
            'suppressed': []
        }
