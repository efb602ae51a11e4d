#!/usr/bin/env python3
"""
bucketscout - Main Entry Point
"""

import sys
import logging

from .bucket_core.constants import DEFAULT_LOG_FORMAT, NOISY_LOGGERS


def setup_logging(argv=None):
    """Configure logging before the CLI parses its options"""
    argv = sys.argv if argv is None else argv
    verbose = '--verbose' in argv or '-V' in argv
    quiet = '--quiet' in argv or '-q' in argv

    if quiet:
        log_level = logging.WARNING
    elif verbose:
        log_level = logging.DEBUG
    else:
        log_level = logging.WARNING

    logging.basicConfig(
        level=log_level,
        format=DEFAULT_LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stderr)]
    )

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    return log_level


def main():
    """Main entry point"""
    try:
        setup_logging()
        logger = logging.getLogger(__name__)
        logger.debug("Starting bucketscout CLI")

        from .bucket_cli.cli import main_cli
        return main_cli(obj={})

    except KeyboardInterrupt:
        print("\nCancelled by user", file=sys.stderr)
        return 130

    except Exception as e:
        logging.error(f"Unexpected error: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
