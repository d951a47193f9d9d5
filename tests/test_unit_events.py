"""Unit tests for EventEmitter."""

import pytest
import sys
from pathlib import Path
from unittest.mock import Mock, patch

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from core.events import EventEmitter


@pytest.fixture
def emitter():
    return EventEmitter(max_listeners=2)


class TestEventEmitter:
    """Test subscribe/emit behavior."""

    def test_emit_passes_payload(self, emitter):
        """Test that listeners receive keyword payloads as a dict."""
        listener = Mock()
        emitter.on("queue_change", listener)

        emitter.emit("queue_change", operation="replace", size=3)

        listener.assert_called_once_with({"operation": "replace", "size": 3})

    def test_emit_without_listeners(self, emitter):
        """Test that emitting an unknown event is a no-op."""
        emitter.emit("nothing", value=1)

    def test_subscribe_twice_calls_once(self, emitter):
        """Test that the same listener is only registered once."""
        listener = Mock()
        emitter.on("exhausted", listener)
        emitter.on("exhausted", listener)

        emitter.emit("exhausted")

        assert listener.call_count == 1
        assert emitter.listener_count("exhausted") == 1

    def test_off(self, emitter):
        """Test unsubscribing a listener."""
        listener = Mock()
        emitter.on("exhausted", listener)

        emitter.off("exhausted", listener)
        emitter.emit("exhausted")

        listener.assert_not_called()
        assert emitter.listener_count("exhausted") == 0

    def test_once(self, emitter):
        """Test that once listeners fire a single time."""
        listener = Mock()
        emitter.once("track_change", listener)

        emitter.emit("track_change", index=0)
        emitter.emit("track_change", index=1)

        listener.assert_called_once_with({"index": 0})

    def test_failing_listener_does_not_stop_others(self, emitter):
        """Test that an exception in one listener is logged and the rest still run."""
        failing = Mock(side_effect=RuntimeError("boom"))
        healthy = Mock()
        emitter.on("queue_change", failing)
        emitter.on("queue_change", healthy)

        with patch("core.events.log_error") as mock_log_error:
            emitter.emit("queue_change", size=1)

        healthy.assert_called_once_with({"size": 1})
        mock_log_error.assert_called_once()
        assert isinstance(mock_log_error.call_args[0][1], RuntimeError)

    def test_listener_limit_warning(self, emitter):
        """Test that exceeding max listeners logs a warning message."""
        with patch("core.events.log_message") as mock_log_message:
            for _ in range(3):
                emitter.on("queue_change", Mock())

        mock_log_message.assert_called_once()
        assert mock_log_message.call_args.kwargs["message_type"] == "listener_limit_exceeded"

    def test_remove_all_listeners(self, emitter):
        """Test removing listeners for one event and for all events."""
        emitter.on("a", Mock())
        emitter.on("b", Mock())

        emitter.remove_all_listeners("a")
        assert emitter.listener_count("a") == 0
        assert emitter.listener_count("b") == 1

        emitter.remove_all_listeners()
        assert emitter.listener_count("b") == 0
