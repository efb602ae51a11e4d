from .cli import main_cli
from .cli_exceptions import (
    ScoutCLIError, CommandError, ConfigurationError, ExportError, CLIErrorHandler
)

__all__ = [
    "main_cli",
    "ScoutCLIError", "CommandError", "ConfigurationError", "ExportError", "CLIErrorHandler"
]
