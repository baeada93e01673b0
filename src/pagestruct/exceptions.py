#  Copyright (c) 2025 Tom Villani, Ph.D.
"""Custom exceptions for the pagestruct library.

The layout analyzers themselves never raise for bad geometry: invalid values
are filtered and empty input produces documented defaults. The exceptions
below cover programmer and configuration errors only.

Exception Hierarchy
-------------------
- PageStructError (base exception)

  - ValidationError (parameter/option validation)
    - ConfigurationError (config file discovery and parsing)

"""

from typing import Any


class PageStructError(Exception):
    """Base exception class for all pagestruct-specific errors.

    Parameters
    ----------
    message : str
        Human-readable description of the error
    original_error : Exception, optional
        The original exception that caused this error, if applicable

    Attributes
    ----------
    message : str
        The error message
    original_error : Exception or None
        The wrapped original exception, if any

    """

    def __init__(self, message: str, original_error: Exception | None = None):
        """Initialize the error with a message and optional original exception."""
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class ValidationError(PageStructError):
    """Exception raised for invalid input parameters or options.

    Parameters
    ----------
    message : str
        Description of the validation error
    parameter_name : str, optional
        Name of the invalid parameter
    parameter_value : any, optional
        The invalid value that was provided
    original_error : Exception, optional
        The original exception that caused this error

    Attributes
    ----------
    parameter_name : str or None
        The name of the problematic parameter
    parameter_value : any
        The value that caused the error

    """

    def __init__(
        self,
        message: str,
        parameter_name: str | None = None,
        parameter_value: Any = None,
        original_error: Exception | None = None,
    ):
        """Initialize the validation error with parameter details."""
        super().__init__(message, original_error=original_error)
        self.parameter_name = parameter_name
        self.parameter_value = parameter_value


class ConfigurationError(ValidationError):
    """Exception raised when a configuration file cannot be used.

    Parameters
    ----------
    message : str
        Description of the configuration problem
    config_path : str, optional
        Path of the offending configuration file
    original_error : Exception, optional
        The original exception that caused this error

    """

    def __init__(self, message: str, config_path: str | None = None, original_error: Exception | None = None):
        """Initialize the configuration error."""
        super().__init__(
            message, parameter_name="config", parameter_value=config_path, original_error=original_error
        )
        self.config_path = config_path
