"""Save and restore a listening session as JSON."""

import random
from config import STATE_FILE
from core.events import EventEmitter
from core.exceptions import CorruptState
from core.logging import log_error, persist_logger
from core.queue import QueueEngine
from core.track import PlaybackContext, RepeatMode, Track
from eliot import log_message, start_action
from pathlib import Path
from pydantic import BaseModel, Field, ValidationError


class QueueSnapshot(BaseModel):
    """Serializable copy of a queue engine's state."""

    tracks: list[Track] = Field(default_factory=list)
    queue_index: int | None = None
    user_queue_count: int = Field(0, ge=0)
    shuffle: bool = False
    shuffled_order: list[int] = Field(default_factory=list)
    shuffle_cursor: int = Field(0, ge=0)
    repeat: RepeatMode = RepeatMode.OFF
    context: PlaybackContext | None = None

    @classmethod
    def from_engine(cls, engine: QueueEngine) -> "QueueSnapshot":
        return cls(
            tracks=list(engine.tracks),
            queue_index=engine.current_index,
            user_queue_count=engine.user_queue_count,
            shuffle=engine.shuffle_enabled,
            shuffled_order=list(engine.shuffled_order),
            shuffle_cursor=engine.shuffle_cursor,
            repeat=engine.repeat_mode,
            context=engine.context,
        )

    def to_engine(self, rng: random.Random | None = None, events: EventEmitter | None = None) -> QueueEngine:
        """Rebuild a queue engine from this snapshot.

        Raises:
            CorruptState: if the snapshot fields contradict each other
        """
        return QueueEngine.restore(
            self.tracks,
            self.queue_index,
            user_queue_count=self.user_queue_count,
            shuffle=self.shuffle,
            order=self.shuffled_order,
            cursor=self.shuffle_cursor,
            repeat=self.repeat,
            context=self.context,
            rng=rng,
            events=events,
        )


def save_state(engine: QueueEngine, path: str | Path = STATE_FILE) -> Path:
    """Write the engine's state to a JSON file.

    Args:
        engine: Queue engine to save
        path: Destination file, parent directories are created

    Returns:
        The path written
    """
    path = Path(path)
    with start_action(persist_logger, "save_state", path=str(path), queue_size=len(engine)):
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            tmp_path.write_text(QueueSnapshot.from_engine(engine).model_dump_json(indent=2), encoding="utf-8")
            tmp_path.replace(path)
        except OSError as e:
            log_error(persist_logger, e, path=str(path))
            tmp_path.unlink(missing_ok=True)
            raise
    return path


def load_state(path: str | Path = STATE_FILE, rng: random.Random | None = None, events: EventEmitter | None = None) -> QueueEngine | None:
    """Load a saved session.

    Args:
        path: JSON file written by save_state
        rng: Random source for future shuffles
        events: Event emitter for the restored engine

    Returns:
        The restored engine, or None if the file is missing or unusable
    """
    path = Path(path)
    if not path.exists():
        log_message(message_type="state_not_found", path=str(path), message=f"No saved queue state at {path}")
        return None

    with start_action(persist_logger, "load_state", path=str(path)):
        try:
            snapshot = QueueSnapshot.model_validate_json(path.read_text(encoding="utf-8"))
            engine = snapshot.to_engine(rng=rng, events=events)
        except (OSError, ValidationError, CorruptState) as e:
            log_error(persist_logger, e, path=str(path))
            return None

    log_message(
        message_type="state_restored",
        path=str(path),
        queue_size=len(engine),
        message=f"Restored queue of {len(engine)} track(s)",
    )
    return engine
