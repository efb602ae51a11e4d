"""Base CLI Components - Logging setup and shared rich formatting for commands"""

import logging
import sys
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from rich.console import Console
from rich.table import Table

from ..bucket_core.constants import DEFAULT_LOG_FORMAT, NOISY_LOGGERS
from ..bucket_core.models import BucketRecord


BADGE_STYLES = {
    "ListBucket": "bold red",
    "ACL Read": "bold red",
    "ACL Write": "bold magenta",
    "Private": "green"
}


# ===============================================================================
# LOGGING
# ===============================================================================

class CLILoggingManager:
    """Centralized logging management for CLI operations"""

    def __init__(self, name: str = "bucketscout", level: int = logging.WARNING,
                 log_file: Optional[Path] = None):
        self.name = name
        self.log_file = log_file
        self.loggers: Dict[str, logging.Logger] = {}
        self.handlers: Dict[str, logging.Handler] = {}
        self._setup_base_logging(level)

    def _setup_base_logging(self, level: int) -> None:
        root_logger = logging.getLogger()
        root_logger.setLevel(logging.DEBUG)

        # Remove existing handlers to avoid duplication
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)

        detailed_formatter = logging.Formatter(fmt=DEFAULT_LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')
        simple_formatter = logging.Formatter(fmt='%(levelname)s - %(message)s')

        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(simple_formatter)
        root_logger.addHandler(console_handler)
        self.handlers['console'] = console_handler

        if self.log_file is not None:
            file_handler = logging.FileHandler(self.log_file, mode='a', encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(detailed_formatter)
            root_logger.addHandler(file_handler)
            self.handlers['file'] = file_handler

        for logger_name in NOISY_LOGGERS:
            logging.getLogger(logger_name).setLevel(logging.WARNING)

    def get_logger(self, name: str) -> logging.Logger:
        """Get or create a logger under the CLI namespace"""
        full_name = f"{self.name}.{name}"
        if full_name not in self.loggers:
            self.loggers[full_name] = logging.getLogger(full_name)
        return self.loggers[full_name]

    def set_console_level(self, level: int) -> None:
        if 'console' in self.handlers:
            self.handlers['console'].setLevel(level)

    def close(self) -> None:
        root_logger = logging.getLogger()
        for handler in self.handlers.values():
            root_logger.removeHandler(handler)
            handler.close()
        self.handlers.clear()


_logging_manager: Optional[CLILoggingManager] = None


def setup_cli_logging(log_level: str = "WARNING", log_file: Optional[str] = None) -> CLILoggingManager:
    """(Re)configure CLI logging from a level name and optional log file"""
    global _logging_manager

    if _logging_manager is not None:
        _logging_manager.close()

    level = getattr(logging, str(log_level).upper(), logging.WARNING)
    _logging_manager = CLILoggingManager(level=level, log_file=Path(log_file) if log_file else None)
    return _logging_manager


def get_cli_logger(name: str) -> logging.Logger:
    """Get a CLI logger with standardized configuration"""
    if _logging_manager is None:
        return logging.getLogger(f"bucketscout.{name}")
    return _logging_manager.get_logger(name)


# ===============================================================================
# FORMATTING
# ===============================================================================

def format_badges(record: BucketRecord) -> str:
    """Rich markup for a record's permission badges"""
    return " ".join(f"[{BADGE_STYLES.get(badge, 'white')}]{badge}[/]" for badge in record.badges)


def build_bucket_table(records: Iterable[BucketRecord], title: str = "Discovered Buckets") -> Table:
    """Table of stored buckets in the order given"""
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("Hostname", style="cyan", no_wrap=True)
    table.add_column("Permissions")
    table.add_column("Region", style="blue")
    table.add_column("Owner", style="dim")
    table.add_column("Discovered", style="dim", no_wrap=True)

    for record in records:
        table.add_row(
            record.hostname,
            format_badges(record),
            record.region or "-",
            record.owner or "-",
            record.discovered_at.strftime("%Y-%m-%d %H:%M:%S")
        )
    return table


def show_summary(console: Console, stats: Dict[str, Any], title: str = "Scan Summary") -> None:
    """Two-column metric table"""
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Metric", style="cyan", no_wrap=True)
    table.add_column("Value", style="green", no_wrap=True)

    for key, value in stats.items():
        formatted_key = key.replace('_', ' ').title()
        if isinstance(value, bool):
            formatted_value = "on" if value else "off"
        elif isinstance(value, int):
            formatted_value = f"{value:,}"
        else:
            formatted_value = str(value)
        table.add_row(formatted_key, formatted_value)

    console.print(table)
