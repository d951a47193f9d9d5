"""Unit tests for logging helpers and configuration parsing."""

import inspect
import io
import logging
import sys
from pathlib import Path
from unittest.mock import patch

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from config import LOG_FILE, LOG_LEVEL, _optional_int, _validate_repeat_mode
from core.logging import HumanReadableDestination, log_error, log_player_action, queue_logger, setup_logging


class TestHumanReadableDestination:
    """Test terminal formatting of eliot messages."""

    def setup_method(self):
        self.out = io.StringIO()
        self.destination = HumanReadableDestination(self.out)

    def test_player_action_with_track(self):
        self.destination({"message_type": "player_action", "action": "next_track_selected", "trigger_source": "gui", "track": "A - B"})

        assert self.out.getvalue() == "[GUI] next_track_selected: A - B\n"

    def test_player_action_with_description(self):
        self.destination({"message_type": "player_action", "action": "stop", "description": "Playback stopped (end_of_queue)"})

        assert self.out.getvalue() == "[PLAYER] Playback stopped (end_of_queue)\n"

    def test_error_message(self):
        self.destination({"message_type": "error_occurred", "error_type": "InvalidIndex", "error_message": "bad"})

        assert self.out.getvalue() == "[ERROR] InvalidIndex: bad\n"

    def test_queue_operations_are_skipped(self):
        """Test that per-operation queue messages stay out of the terminal."""
        self.destination({"message_type": "queue_operation", "operation": "advance"})

        assert self.out.getvalue() == ""

    def test_action_boundaries_are_skipped(self):
        self.destination({"action_type": "next_track", "action_status": "started"})

        assert self.out.getvalue() == ""

    def test_plain_message(self):
        self.destination({"message_type": "state_restored", "message": "Restored queue of 3 track(s)"})

        assert self.out.getvalue() == "Restored queue of 3 track(s)\n"


class TestLogHelpers:
    """Test the structured logging helpers."""

    def test_log_player_action(self):
        with patch("core.logging.log_message") as mock_log_message:
            log_player_action("stop", reason="user_initiated")

        mock_log_message.assert_called_once_with(message_type="player_action", action="stop", reason="user_initiated")

    def test_log_error_without_traceback(self):
        """Test that an exception that was never raised is logged without a traceback."""
        with (
            patch("core.logging.log_message") as mock_log_message,
            patch("core.logging.write_traceback") as mock_write_traceback,
        ):
            log_error(queue_logger, ValueError("nope"), index=3)

        mock_write_traceback.assert_not_called()
        mock_log_message.assert_called_once_with(
            message_type="error_occurred", error_message="nope", error_type="ValueError", index=3
        )

    def test_log_error_with_traceback(self):
        try:
            raise KeyError("missing")
        except KeyError as e:
            error = e

        with patch("core.logging.log_message"), patch("core.logging.write_traceback") as mock_write_traceback:
            log_error(queue_logger, error)

        mock_write_traceback.assert_called_once()


class TestSetupLogging:
    """Test eliot destination setup."""

    def test_setup_with_log_file(self, tmp_path):
        """Test that a JSON log file destination is added and its directory created."""
        log_file = tmp_path / "logs" / "rlist.log"

        with patch("core.logging.eliot") as mock_eliot, patch("core.logging.logging.getLogger") as mock_get_logger:
            setup_logging("debug", str(log_file))

        assert log_file.parent.is_dir()
        destination = mock_eliot.add_destinations.call_args[0][0]
        assert isinstance(destination, HumanReadableDestination)
        mock_eliot.to_file.assert_called_once()
        mock_eliot.to_file.call_args[0][0].close()
        mock_get_logger.return_value.setLevel.assert_called_once_with(logging.DEBUG)

    def test_setup_defaults_come_from_config(self):
        """Test that setup without arguments uses RLIST_LOG_LEVEL and RLIST_LOG_FILE."""
        defaults = inspect.signature(setup_logging).parameters

        with patch("core.logging.eliot"), patch("core.logging.logging.getLogger") as mock_get_logger:
            setup_logging()

        assert defaults["log_level"].default == LOG_LEVEL
        assert defaults["log_file"].default == LOG_FILE
        mock_get_logger.return_value.setLevel.assert_called_once_with(getattr(logging, LOG_LEVEL.upper(), logging.INFO))


class TestConfigParsing:
    """Test environment value casting."""

    def test_repeat_mode_aliases(self):
        assert _validate_repeat_mode("ALL") == "all"
        assert _validate_repeat_mode(" none ") == "off"
        assert _validate_repeat_mode("sometimes") == "off"

    def test_optional_int(self):
        assert _optional_int("") is None
        assert _optional_int(" 42 ") == 42
