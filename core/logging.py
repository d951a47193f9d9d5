"""
Logging configuration for the rlist queue engine using eliot.

This module provides structured logging throughout the package using eliot,
which provides context-aware logging with support for nested actions and
structured data.
"""

from config import LOG_FILE, LOG_LEVEL
import eliot
import logging
import sys
from eliot import Logger, log_message, start_action, write_traceback
from eliot.stdlib import EliotHandler
from pathlib import Path


class HumanReadableDestination:
    """Destination that formats logs in a human-readable format."""

    # Too noisy for a terminal; still written to the JSON log file
    skip_messages = {
        "queue_operation",
        "logging_setup",
    }

    def __init__(self, file):
        self.file = file

    def __call__(self, message):
        """Format and write log message."""
        # Skip internal eliot action start/stop messages
        if message.get("action_type") and not message.get("message_type"):
            return

        msg_type = message.get("message_type", "")
        if msg_type in self.skip_messages:
            return

        action = message.get("action", msg_type)
        description = message.get("description", "")
        trigger = message.get("trigger_source", "")

        if msg_type == "player_action":
            track = message.get("track", "")
            if track:
                output = f"[{trigger.upper() or 'PLAYER'}] {action}: {track}"
            elif description:
                output = f"[{trigger.upper() or 'PLAYER'}] {description}"
            else:
                output = f"[{trigger.upper() or 'PLAYER'}] {action}"
        elif msg_type == "error_occurred":
            output = f"[ERROR] {message.get('error_type', '')}: {message.get('error_message', '')}"
        elif description:
            output = description
        elif "message" in message:
            output = message["message"]
        else:
            return

        if output and output.strip():
            self.file.write(output + "\n")
            self.file.flush()


def setup_logging(log_level: str = LOG_LEVEL, log_file: str | None = LOG_FILE) -> None:
    """
    Set up eliot logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path to write raw JSON logs to (always logs to stdout as well)
    """
    eliot.add_destinations(HumanReadableDestination(sys.stdout))

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        eliot.to_file(open(log_path, "a"))

    # Route stdlib logging through eliot
    logger = logging.getLogger()
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    logger.addHandler(EliotHandler())

    log_message(
        message_type="logging_setup", log_level=log_level, log_file=log_file or "stdout", message="Eliot logging configured"
    )


def get_logger(name: str) -> Logger:
    """
    Get an eliot logger instance for a specific component.

    The returned Logger is meant for start_action(); use log_message()
    directly for plain messages.

    Args:
        name: Component name

    Returns:
        Eliot Logger instance
    """
    return Logger()


queue_logger = get_logger("rlist_queue")
player_logger = get_logger("rlist_player")
persist_logger = get_logger("rlist_persist")


def log_queue_operation(operation: str, **context):
    """
    Log queue operations with context.

    Args:
        operation: Queue operation (replace, advance, remove, reorder, etc.)
        **context: Additional context data
    """
    log_message(message_type="queue_operation", operation=operation, **context)


def log_player_action(action: str, **context):
    """
    Log player actions with context.

    Args:
        action: Player action (play, next, previous, stop, etc.)
        **context: Additional context data
    """
    log_message(message_type="player_action", action=action, **context)


def log_error(logger: Logger, error: Exception, **context):
    """
    Log errors with full context and traceback.

    Args:
        logger: Eliot logger instance
        error: Exception that occurred
        **context: Additional context data
    """
    if error.__traceback__ is not None:
        write_traceback(logger, exc_info=(type(error), error, error.__traceback__))
    log_message(message_type="error_occurred", error_message=str(error), error_type=type(error).__name__, **context)


__all__ = [
    "get_logger",
    "log_error",
    "log_player_action",
    "log_queue_operation",
    "persist_logger",
    "player_logger",
    "queue_logger",
    "setup_logging",
    "start_action",
]
