"""
Common CLI utilities and decorators for consistent command behavior.
"""

import json
import logging
import sys
from functools import wraps
from typing import Generator

import click

from .exit_codes import (
    SUCCESS, INTERRUPTED,
    get_exit_code_for_exception, CommandError
)
from .format_utils import format_output, get_format_from_env

logger = logging.getLogger(__name__)


def _print_error(error_obj):
    print(json.dumps(error_obj, ensure_ascii=False), flush=True)


def standard_command(func):
    """
    Decorator that provides standard CLI behavior:
    - Clean data output on stdout (JSONL by default)
    - Log messages on stderr
    - --quiet/-q suppresses data output
    - Consistent error handling and exit codes

    The command returns a generator, list or dict of output objects,
    or None when it printed its own output.
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        quiet = kwargs.get('quiet', False)
        output_format = kwargs.get('format') or get_format_from_env('jsonl')

        try:
            result = func(*args, **kwargs)

            if isinstance(result, dict):
                result = [result]

            if result is None:
                pass
            elif quiet:
                # Consume the generator so the command still runs
                for _ in result:
                    pass
            elif isinstance(result, (Generator, list, tuple)):
                for line in format_output(iter(result), output_format):
                    print(line, flush=True)

            sys.exit(SUCCESS)

        except KeyboardInterrupt:
            logger.error("Interrupted by user")
            sys.exit(INTERRUPTED)
        except click.ClickException:
            raise
        except CommandError as e:
            logger.error(str(e))
            if not quiet:
                _print_error({
                    "error": str(e),
                    "type": type(e).__name__,
                    "exit_code": e.exit_code,
                })
            sys.exit(e.exit_code)
        except Exception as e:
            logger.error(f"Command failed: {e}")
            if not quiet:
                _print_error({"error": str(e), "type": type(e).__name__})
            sys.exit(get_exit_code_for_exception(e))

    return wrapper


# Standard options that many commands share
common_options = {
    'quiet': click.option('-q', '--quiet', is_flag=True,
                          help='Suppress data output'),
    'verbose': click.option('-v', '--verbose', is_flag=True,
                            help='Show debug log messages'),
    'format': click.option('-f', '--format',
                           type=click.Choice(['json', 'jsonl', 'yaml']),
                           help='Output format (default: jsonl, or from BUILDBOARD_FORMAT env)'),
}


def add_common_options(*option_names):
    """
    Decorator to add common options to a command.

    Example:
        @add_common_options('quiet', 'format')
        def my_command(quiet, format):
            ...
    """
    def decorator(func):
        for name in reversed(option_names):
            if name in common_options:
                func = common_options[name](func)
        return func
    return decorator
