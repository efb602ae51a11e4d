"""Bucket CLI Exception Hierarchy - Centralized exception handling for CLI commands"""

import logging
import sys
from datetime import datetime
from functools import wraps
from typing import Any, Dict, Optional

from rich.console import Console

from ..bucket_core.exceptions import BucketScoutError


class ScoutCLIError(Exception):
    """Base exception for all CLI-related errors"""

    def __init__(self, message: str, error_code: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.context = context or {}
        self.timestamp = datetime.now()

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/reporting"""
        return {
            'error_type': self.__class__.__name__,
            'error_code': self.error_code,
            'message': self.message,
            'context': self.context,
            'timestamp': self.timestamp.isoformat()
        }


class ConfigurationError(ScoutCLIError):
    """Configuration-related errors"""

    def __init__(self, message: str, config_file: Optional[str] = None,
                 config_key: Optional[str] = None):
        context = {}
        if config_file:
            context['config_file'] = config_file
        if config_key:
            context['config_key'] = config_key
        super().__init__(message, "CONFIG_ERROR", context)


class CommandError(ScoutCLIError):
    """Command execution errors"""

    def __init__(self, message: str, command: Optional[str] = None,
                 exit_code: Optional[int] = None):
        context = {}
        if command:
            context['command'] = command
        if exit_code is not None:
            context['exit_code'] = exit_code
        super().__init__(message, "COMMAND_ERROR", context)


class ExportError(ScoutCLIError):
    """Snapshot export errors"""

    def __init__(self, message: str, file_path: Optional[str] = None,
                 format_type: Optional[str] = None):
        context = {}
        if file_path:
            context['file_path'] = file_path
        if format_type:
            context['format'] = format_type
        super().__init__(message, "EXPORT_ERROR", context)


class CLIErrorHandler:
    """Centralized error handling for CLI operations"""

    def __init__(self, logger: Optional[logging.Logger] = None,
                 console: Optional[Console] = None):
        self.logger = logger or logging.getLogger(__name__)
        self.console = console or Console(stderr=True)

    def handle_error(self, error: Exception, context: Optional[Dict[str, Any]] = None,
                     exit_on_error: bool = False) -> None:
        """Log the error and print a user-facing message"""
        if isinstance(error, ScoutCLIError):
            error_data = error.to_dict()
            if context:
                error_data['context'].update(context)
            self.logger.debug(f"CLI Error: {error.message}", extra={'error_data': error_data})
            self._print_user_error(error)
        else:
            self.logger.error(f"Unexpected error: {error}", exc_info=True)
            self.console.print(f"[red]✗ An unexpected error occurred: {error}[/red]")

        if exit_on_error:
            sys.exit(1)

    def _print_user_error(self, error: ScoutCLIError) -> None:
        self.console.print(f"[red]✗ Error: {error.message}[/red]")
        for key, value in error.context.items():
            self.console.print(f"  [dim]{key}: {value}[/dim]")

        suggestion = self._get_error_suggestion(error)
        if suggestion:
            self.console.print(f"[yellow]Suggestion: {suggestion}[/yellow]")

    def _get_error_suggestion(self, error: ScoutCLIError) -> Optional[str]:
        """Get actionable suggestion based on error type and context"""
        if isinstance(error, ConfigurationError):
            if 'config_file' in error.context:
                return f"Check configuration file syntax: {error.context['config_file']}"
            return "Run 'bucketscout --help' to see all configuration options"

        if isinstance(error, ExportError):
            return "Check that the output directory exists and is writable"

        if isinstance(error, CommandError):
            if 'command' in error.context:
                return f"Check command syntax: bucketscout {error.context['command']} --help"
            return "Run 'bucketscout --help' to see available commands"

        return None


def handle_cli_error(func):
    """Decorator for consistent CLI error handling; exits with status 1"""
    command = func.__name__.replace("_command", "")

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ScoutCLIError as e:
            CLIErrorHandler().handle_error(e, context={"function": func.__name__}, exit_on_error=True)
        except BucketScoutError as e:
            CLIErrorHandler().handle_error(CommandError(str(e), command=command), exit_on_error=True)

    return wrapper
