from collections.abc import Iterable
from config import AUTOPLAY_ENABLED, RESTART_THRESHOLD
from core.autoplay import RandomAutoplay
from core.exceptions import QueueError
from core.logging import log_error, log_player_action, player_logger
from core.queue import QueueEngine
from core.track import PlaybackContext, RepeatMode, Track
from eliot import start_action
from typing import Protocol


class AudioPlayer(Protocol):
    """Audio output as seen by the playback controller."""

    @property
    def position(self) -> float:
        """Seconds into the loaded track."""
        ...

    def load(self, track: Track) -> None:
        """Load a track and start playing it."""
        ...

    def restart(self) -> None:
        """Play the loaded track again from the start."""
        ...

    def stop(self) -> None: ...


class PlaybackController:
    """Drives an audio player from the queue engine.

    The controller reacts to button presses and end-of-track notifications,
    asks the engine what plays next, and tells the audio player to load it.
    """

    def __init__(
        self,
        engine: QueueEngine,
        player: AudioPlayer,
        autoplay: RandomAutoplay | None = None,
        autoplay_enabled: bool = AUTOPLAY_ENABLED,
        restart_threshold: float = RESTART_THRESHOLD,
    ):
        self.engine = engine
        self.player = player
        self.autoplay = autoplay
        self.autoplay_enabled = autoplay_enabled
        self.restart_threshold = restart_threshold
        self.is_playing = False
        self.stop_after_current = False  # One-time flag, cleared when it fires

    def play_tracks(self, tracks: Iterable[Track], start_index: int = 0, context: PlaybackContext | None = None) -> Track:
        """Start a new session and play its first track."""
        with start_action(player_logger, "play_tracks"):
            try:
                track = self.engine.replace(tracks, start_index, context)
            except QueueError as e:
                log_error(player_logger, e, start_index=start_index)
                raise

            log_player_action(
                "play_tracks",
                trigger_source="gui",
                track=track.display_name,
                queue_size=len(self.engine),
                context=context.kind if context else None,
            )
            self._play(track)
            return track

    def next_track(self, trigger_source: str = "gui") -> Track | None:
        """Play the next track, asking autoplay for more when the queue is exhausted."""
        with start_action(player_logger, "next_track"):
            if self.engine.is_empty:
                log_player_action("next_no_queue", trigger_source=trigger_source, description="Next pressed but queue is empty")
                return None

            track = self.engine.advance()
            if track is None and self._autoplay_active():
                if self.autoplay.extend(self.engine):
                    track = self.engine.advance()

            if track is None:
                log_player_action(
                    "next_exhausted",
                    trigger_source=trigger_source,
                    description="End of queue reached, stopping playback",
                )
                self.stop("end_of_queue")
                return None

            log_player_action("next_track_selected", trigger_source=trigger_source, track=track.display_name)
            self._play(track)
            return track

    def previous_track(self, trigger_source: str = "gui") -> Track | None:
        """Go back one track, or restart the current one if it has played for a while."""
        with start_action(player_logger, "previous_track"):
            current = self.engine.current_track
            if current is None:
                return None

            if self.player.position > self.restart_threshold:
                log_player_action("restart_current", trigger_source=trigger_source, track=current.display_name)
                self.player.restart()
                return current

            track = self.engine.retreat()
            if track is None:
                log_player_action("restart_current", trigger_source=trigger_source, track=current.display_name)
                self.player.restart()
                return current

            log_player_action("previous_track_selected", trigger_source=trigger_source, track=track.display_name)
            self._play(track)
            return track

    def on_track_end(self) -> Track | None:
        """Handle the audio player's end-of-track notification."""
        if not self.is_playing:
            log_player_action(
                "track_end_ignored",
                trigger_source="automatic",
                reason="not_playing",
                description="Track end event ignored because player is not in playing state",
            )
            return None

        if self.stop_after_current:
            self.stop_after_current = False
            self.stop("stop_after_current")
            return None

        if self.engine.repeat_mode is RepeatMode.ONE:
            self.player.restart()
            return self.engine.current_track

        return self.next_track(trigger_source="automatic")

    def play_from_queue(self, index: int) -> Track:
        """Play a specific queue entry (double-click in the queue view)."""
        with start_action(player_logger, "play_from_queue", index=index):
            try:
                track = self.engine.jump_to(index)
            except QueueError as e:
                log_error(player_logger, e, index=index)
                raise

            log_player_action("play_from_queue", trigger_source="gui", track=track.display_name, index=index)
            self._play(track)
            return track

    def add_to_queue(self, tracks: Iterable[Track]) -> None:
        """Queue tracks to play next; starts playback if nothing is loaded."""
        with start_action(player_logger, "add_to_queue"):
            was_empty = self.engine.is_empty
            self.engine.insert_priority(tracks)
            log_player_action(
                "add_to_queue",
                trigger_source="gui",
                queued=self.engine.user_queue_count,
                queue_size=len(self.engine),
            )
            if was_empty and self.engine.current_track is not None:
                self._play(self.engine.current_track)

    def toggle_stop_after_current(self) -> bool:
        self.stop_after_current = not self.stop_after_current
        log_player_action("toggle_stop_after_current", trigger_source="gui", enabled=self.stop_after_current)
        return self.stop_after_current

    def stop(self, reason: str = "user_initiated") -> None:
        self.player.stop()
        self.is_playing = False
        log_player_action("stop", trigger_source="automatic", reason=reason, description=f"Playback stopped ({reason})")

    def _autoplay_active(self) -> bool:
        return self.autoplay_enabled and self.autoplay is not None and self.engine.repeat_mode is RepeatMode.OFF

    def _play(self, track: Track) -> None:
        self.player.load(track)
        self.is_playing = True
