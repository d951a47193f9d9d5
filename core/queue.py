import random
from collections.abc import Iterable
from config import DEFAULT_REPEAT, SHUFFLE_SEED
from core.events import EventEmitter
from core.exceptions import CannotRemoveCurrent, CorruptState, EmptyQueue, InvalidIndex, InvalidRange
from core.logging import log_queue_operation
from core.track import PlaybackContext, RepeatMode, Track, UpcomingEntry


class QueueEngine:
    """Playback queue with priority slots, shuffle and repeat (session-only).

    The queue is the ordered list of tracks for one listening session. The
    current position is an index into it, or None when nothing is loaded.
    The ``user_queue_count`` entries right after the current position are
    priority slots: tracks the user explicitly queued, which play before any
    linear or shuffled continuation.

    When shuffle is on, ``_order`` is the session's play order: history, then
    the current index at ``_order[_cursor]``, then the shuffled continuation.
    Priority slots never appear in it; a priority track is added at
    ``_cursor + 1`` when it becomes current.
    """

    def __init__(self, rng: random.Random | None = None, repeat: RepeatMode | str = DEFAULT_REPEAT, events: EventEmitter | None = None):
        self._rng = rng if rng is not None else random.Random(SHUFFLE_SEED)
        self.events = events if events is not None else EventEmitter()
        self._tracks: list[Track] = []
        self._index: int | None = None
        self._priority = 0
        self._shuffle = False
        self._order: list[int] = []
        self._cursor = 0
        self._repeat = RepeatMode.parse(repeat)
        self._context: PlaybackContext | None = None

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._tracks)

    def __repr__(self) -> str:
        return (
            f"<QueueEngine tracks={len(self._tracks)} index={self._index} "
            f"priority={self._priority} shuffle={self._shuffle} repeat={self._repeat.value}>"
        )

    @property
    def is_empty(self) -> bool:
        return self._index is None

    @property
    def current_index(self) -> int | None:
        return self._index

    @property
    def current_track(self) -> Track | None:
        if self._index is None:
            return None
        return self._tracks[self._index]

    @property
    def user_queue_count(self) -> int:
        return self._priority

    @property
    def shuffle_enabled(self) -> bool:
        return self._shuffle

    @property
    def repeat_mode(self) -> RepeatMode:
        return self._repeat

    @property
    def context(self) -> PlaybackContext | None:
        return self._context

    @property
    def tracks(self) -> tuple[Track, ...]:
        return tuple(self._tracks)

    @property
    def shuffled_order(self) -> tuple[int, ...]:
        """Play order while shuffled (empty when linear)."""
        return tuple(self._order)

    @property
    def shuffle_cursor(self) -> int:
        return self._cursor

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    def history(self) -> list[Track]:
        """Tracks played before the current one, in play order."""
        return [self._tracks[i] for i in self._history_indices()]

    def upcoming(self) -> list[UpcomingEntry]:
        """Tracks that will play next, priority slots first."""
        entries = [UpcomingEntry(i, self._tracks[i], True) for i in self._priority_range()]
        entries.extend(UpcomingEntry(i, self._tracks[i], False) for i in self._continuation_indices())
        return entries

    def upcoming_tracks(self) -> list[Track]:
        return [entry.track for entry in self.upcoming()]

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def replace(self, tracks: Iterable[Track], start_index: int = 0, context: PlaybackContext | None = None) -> Track:
        """Start a new session from a list of tracks.

        Args:
            tracks: Tracks making up the new queue
            start_index: Index of the track to play first
            context: Source the tracks came from (album, playlist, ...)

        Returns:
            The track now playing

        Raises:
            EmptyQueue: if tracks is empty
            InvalidIndex: if start_index is out of bounds
        """
        tracks = self._coerce_tracks(tracks)
        if not tracks:
            raise EmptyQueue()
        if not 0 <= start_index < len(tracks):
            raise InvalidIndex(start_index, len(tracks))

        log_queue_operation(
            "replace",
            count=len(tracks),
            start_index=start_index,
            shuffle_enabled=self._shuffle,
            context=context.kind if context else None,
        )

        previous = self.current_track
        self._tracks = tracks
        self._index = start_index
        self._priority = 0
        self._context = context
        if self._shuffle:
            self._order = [start_index] + self._shuffled(i for i in range(len(tracks)) if i != start_index)
        else:
            self._order = []
        self._cursor = 0

        self._emit_queue_change("replace")
        self._emit_track_change(previous)
        return self.current_track

    def clear(self) -> None:
        """Drop the whole session, current track included."""
        if self._index is None:
            return

        log_queue_operation("clear", count=len(self._tracks))

        previous = self.current_track
        self._tracks = []
        self._index = None
        self._priority = 0
        self._order = []
        self._cursor = 0
        self._context = None

        self._emit_queue_change("clear")
        self._emit_track_change(previous)

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def advance(self) -> Track | None:
        """Move to the next track.

        Priority slots come first, then the shuffled or linear continuation.
        Under repeat "one" this is a no-op returning the current track.

        Returns:
            The new current track, or None if the queue is empty or exhausted
            (an ``exhausted`` event is emitted in the latter case)
        """
        if self._index is None:
            return None

        if self._repeat is RepeatMode.ONE:
            log_queue_operation("advance", index=self._index, repeat=self._repeat.value)
            return self.current_track

        previous = self.current_track
        if not self._step_forward():
            if self._repeat is not RepeatMode.ALL:
                return self._exhaust()
            self._restart_cycle()

        log_queue_operation("advance", index=self._index, user_queue_count=self._priority, shuffle_enabled=self._shuffle)
        self._emit_track_change(previous)
        return self.current_track

    def retreat(self) -> Track | None:
        """Move back to the most recently played track.

        Pending priority tracks move along so that they still play next.
        At the start of history, repeat "all" wraps to the end of the play
        order; otherwise nothing changes.

        Returns:
            The new current track, or None if there is nothing to go back to
        """
        if self._index is None:
            return None

        previous = self.current_track
        if not self._step_back():
            target = self._wrap_target() if self._repeat is RepeatMode.ALL else None
            if target is None:
                return None
            self._land(target)

        log_queue_operation("retreat", index=self._index, user_queue_count=self._priority, shuffle_enabled=self._shuffle)
        self._emit_track_change(previous)
        return self.current_track

    def jump_to(self, index: int) -> Track:
        """Make the track at a queue index current, as if by repeated advance/retreat.

        Priority tracks passed over on the way are consumed. Repeat mode is
        ignored.

        Args:
            index: Absolute queue index

        Returns:
            The new current track

        Raises:
            InvalidIndex: if index is out of bounds
        """
        self._check_index(index)
        if index == self._index:
            return self.current_track

        log_queue_operation("jump_to", index=index, from_index=self._index)

        previous = self.current_track
        upcoming = self._upcoming_indices()
        if index in upcoming:
            for _ in range(upcoming.index(index) + 1):
                self._step_forward()
        else:
            history = self._history_indices()
            for _ in range(len(history) - history.index(index)):
                self._step_back()

        self._emit_track_change(previous)
        return self.current_track

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def insert_priority(self, tracks: Iterable[Track]) -> None:
        """Queue tracks to play next, after any previously queued ones.

        Args:
            tracks: Tracks to insert, in play order
        """
        tracks = self._coerce_tracks(tracks)
        if not tracks:
            return

        if self._index is None:
            # Nothing loaded: the first track plays, the rest stay queued
            log_queue_operation("insert_priority", count=len(tracks), insert_position=0)
            self._tracks = tracks
            self._index = 0
            self._priority = len(tracks) - 1
            self._order = [0] if self._shuffle else []
            self._cursor = 0
            self._context = PlaybackContext(kind="queue")
            self._emit_queue_change("insert_priority")
            self._emit_track_change(None)
            return

        insert_pos = self._index + self._priority + 1
        log_queue_operation("insert_priority", count=len(tracks), insert_position=insert_pos, current_index=self._index)

        layout = list(range(insert_pos)) + tracks + list(range(insert_pos, len(self._tracks)))
        self._relayout(layout)
        self._priority += len(tracks)

        self._emit_queue_change("insert_priority")

    def extend(self, tracks: Iterable[Track]) -> None:
        """Append tracks after everything else (autoplay path).

        While shuffled the new tracks are shuffled among themselves and play
        after the existing continuation.

        Args:
            tracks: Tracks to append
        """
        tracks = self._coerce_tracks(tracks)
        if not tracks:
            return

        if self._index is None:
            self.replace(tracks, 0, PlaybackContext(kind="autoplay"))
            return

        log_queue_operation("extend", count=len(tracks), queue_size=len(self._tracks))

        start = len(self._tracks)
        self._tracks.extend(tracks)
        if self._shuffle:
            self._order.extend(self._shuffled(range(start, start + len(tracks))))

        self._emit_queue_change("extend")

    def remove_at(self, index: int) -> Track:
        """Remove the track at a queue index.

        Args:
            index: Absolute queue index, history or upcoming

        Returns:
            The removed track

        Raises:
            InvalidIndex: if index is out of bounds
            CannotRemoveCurrent: if index is the current position
        """
        self._check_index(index)
        if index == self._index:
            raise CannotRemoveCurrent(index)

        removed = self._tracks[index]
        log_queue_operation("remove", index=index, current_index=self._index, track_id=removed.id)

        if index in self._priority_range():
            self._priority -= 1
        self._relayout([i for i in range(len(self._tracks)) if i != index])

        self._emit_queue_change("remove")
        return removed

    def reorder(self, from_index: int, to_index: int) -> None:
        """Move an upcoming track to the upcoming slot held by another.

        The move works on the upcoming play order, as with list.pop() then
        list.insert(): the track at ``from_index`` ends up where the track at
        ``to_index`` is now. While linear this is the same as moving it to
        queue position ``to_index``. Dropping a track among the queued tracks
        queues it; dragging a queued track out of them unqueues it.

        Raises:
            InvalidIndex: if either index is out of bounds
            InvalidRange: if either index is the current track or history
        """
        self._check_index(from_index)
        self._check_index(to_index)
        upcoming = self._upcoming_indices()
        if from_index not in upcoming:
            raise InvalidRange(from_index, to_index, "source is not an upcoming track")
        if to_index not in upcoming:
            raise InvalidRange(from_index, to_index, "destination is not an upcoming track")
        if from_index == to_index:
            return

        log_queue_operation("reorder", from_index=from_index, to_index=to_index, current_index=self._index)

        to_pos = upcoming.index(to_index)
        upcoming.remove(from_index)
        upcoming.insert(to_pos, from_index)

        was_priority = from_index in self._priority_range()
        is_priority = to_pos < self._priority
        if was_priority and not is_priority:
            self._priority -= 1
        elif is_priority and not was_priority:
            self._priority += 1

        block = upcoming[: self._priority]
        if self._shuffle:
            self._order = self._order[: self._cursor + 1] + upcoming[self._priority :]
            pending = set(block)
            rest = [i for i in range(len(self._tracks)) if i not in pending]
            pos = rest.index(self._index) + 1
            layout = rest[:pos] + block + rest[pos:]
        else:
            layout = list(range(self._index + 1)) + upcoming

        self._relayout(layout)
        self._emit_queue_change("reorder")

    def clear_upcoming(self) -> int:
        """Drop every upcoming track, keeping history and the current track.

        Returns:
            Number of tracks removed
        """
        if self._index is None:
            return 0

        upcoming = set(self._upcoming_indices())
        log_queue_operation("clear_upcoming", count=len(upcoming), current_index=self._index)
        if not upcoming:
            return 0

        self._priority = 0
        self._relayout([i for i in range(len(self._tracks)) if i not in upcoming])

        self._emit_queue_change("clear_upcoming")
        return len(upcoming)

    # ------------------------------------------------------------------
    # Modes
    # ------------------------------------------------------------------

    def set_shuffle(self, enabled: bool) -> bool:
        """Turn shuffle on or off.

        Turning it on keeps the linear history as history and shuffles the
        not-yet-played, non-priority tracks. Turning it off lays the queue out
        as shuffle-order history, current track, queued tracks, then the
        remaining tracks in their original relative order. The current track
        and the set of history tracks never change.

        Args:
            enabled: New shuffle state

        Returns:
            The shuffle state
        """
        enabled = bool(enabled)
        if enabled == self._shuffle:
            return self._shuffle

        log_queue_operation("set_shuffle", enabled=enabled, current_index=self._index, queue_size=len(self._tracks))

        if enabled:
            if self._index is not None:
                continuation = self._continuation_indices()
                self._order = list(range(self._index + 1)) + self._shuffled(continuation)
                self._cursor = self._index
            self._shuffle = True
        else:
            if self._index is not None:
                layout = (
                    self._order[: self._cursor]
                    + [self._index]
                    + list(self._priority_range())
                    + sorted(self._order[self._cursor + 1 :])
                )
                self._relayout(layout)
            self._shuffle = False
            self._order = []
            self._cursor = 0

        self.events.emit("shuffle_change", enabled=enabled)
        self._emit_queue_change("set_shuffle")
        return self._shuffle

    def toggle_shuffle(self) -> bool:
        """Toggle shuffle mode on/off and return new state."""
        return self.set_shuffle(not self._shuffle)

    def set_repeat(self, mode: RepeatMode | str) -> RepeatMode:
        mode = RepeatMode.parse(mode)
        if mode is not self._repeat:
            log_queue_operation("set_repeat", mode=mode.value)
            self._repeat = mode
            self.events.emit("repeat_change", mode=mode)
        return self._repeat

    def cycle_repeat(self) -> RepeatMode:
        """Cycle repeat mode off -> all -> one -> off."""
        return self.set_repeat(self._repeat.next())

    # ------------------------------------------------------------------
    # Consistency
    # ------------------------------------------------------------------

    def check_invariants(self) -> None:
        """Raise AssertionError describing the first broken invariant."""
        size = len(self._tracks)
        if self._index is None:
            _require(size == 0, f"no current index but {size} track(s) queued")
            _require(self._priority == 0, f"no current index but priority count {self._priority}")
            _require(not self._order, "no current index but a shuffle order exists")
            return

        _require(0 <= self._index < size, f"current index {self._index} out of range for {size} track(s)")
        _require(
            0 <= self._priority <= size - self._index - 1,
            f"priority count {self._priority} does not fit after index {self._index}",
        )
        if not self._shuffle:
            _require(not self._order, "shuffle order kept while shuffle is off")
            return

        order = set(self._order)
        priority = set(self._priority_range())
        _require(len(order) == len(self._order), "duplicate entry in shuffle order")
        _require(all(0 <= i < size for i in self._order), "shuffle order references a missing track")
        _require(not order & priority, "shuffle order references a priority slot")
        _require(order | priority == set(range(size)), "track missing from both shuffle order and priority slots")
        _require(0 <= self._cursor < len(self._order), f"shuffle cursor {self._cursor} out of range")
        _require(self._order[self._cursor] == self._index, "shuffle cursor does not point at the current track")

    @classmethod
    def restore(
        cls,
        tracks: Iterable[Track],
        queue_index: int | None,
        user_queue_count: int = 0,
        shuffle: bool = False,
        order: Iterable[int] = (),
        cursor: int = 0,
        repeat: RepeatMode | str = RepeatMode.OFF,
        context: PlaybackContext | None = None,
        rng: random.Random | None = None,
        events: EventEmitter | None = None,
    ) -> "QueueEngine":
        """Rebuild an engine from saved state.

        Raises:
            CorruptState: if the saved fields are not mutually consistent
        """
        engine = cls(rng=rng, repeat=repeat, events=events)
        engine._tracks = engine._coerce_tracks(tracks)
        engine._index = queue_index
        engine._priority = user_queue_count
        engine._shuffle = bool(shuffle)
        engine._order = list(order) if shuffle else []
        engine._cursor = cursor if shuffle else 0
        engine._context = context
        try:
            engine.check_invariants()
        except AssertionError as e:
            raise CorruptState(str(e)) from e
        return engine

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _priority_range(self) -> range:
        if self._index is None:
            return range(0)
        return range(self._index + 1, self._index + 1 + self._priority)

    def _history_indices(self) -> list[int]:
        if self._index is None:
            return []
        if self._shuffle:
            return self._order[: self._cursor]
        return list(range(self._index))

    def _continuation_indices(self) -> list[int]:
        """Upcoming indices after the priority slots, in play order."""
        if self._index is None:
            return []
        if self._shuffle:
            return self._order[self._cursor + 1 :]
        return list(range(self._index + 1 + self._priority, len(self._tracks)))

    def _upcoming_indices(self) -> list[int]:
        return list(self._priority_range()) + self._continuation_indices()

    def _step_forward(self) -> bool:
        """Move to the next upcoming track; False if there is none."""
        if self._priority:
            self._index += 1
            self._priority -= 1
            if self._shuffle:
                self._cursor += 1
                self._order.insert(self._cursor, self._index)
            return True

        if self._shuffle:
            if self._cursor + 1 >= len(self._order):
                return False
            self._cursor += 1
            self._index = self._order[self._cursor]
            return True

        if self._index + 1 >= len(self._tracks):
            return False
        self._index += 1
        return True

    def _step_back(self) -> bool:
        """Move to the last history track; False if history is empty."""
        history = self._history_indices()
        if not history:
            return False
        self._land(history[-1])
        return True

    def _wrap_target(self) -> int | None:
        """Track to wrap to when retreating past the start under repeat all."""
        if self._shuffle:
            return self._order[-1] if len(self._order) > 1 else None
        priority = self._priority_range()
        candidates = [i for i in range(len(self._tracks)) if i != self._index and i not in priority]
        return candidates[-1] if candidates else None

    def _land(self, target: int) -> None:
        """Make a non-priority index current, keeping pending priority slots next."""
        block = list(self._priority_range())
        self._index = target
        if self._shuffle:
            self._cursor = self._order.index(target)
        if not block:
            return

        pending = set(block)
        rest = [i for i in range(len(self._tracks)) if i not in pending]
        pos = rest.index(target) + 1
        self._relayout(rest[:pos] + block + rest[pos:])

    def _restart_cycle(self) -> None:
        """Start over after the last track under repeat all."""
        if not self._shuffle:
            self._index = 0
            return

        order = self._shuffled(range(len(self._tracks)))
        if len(order) > 1 and order[0] == self._index:
            swap = self._rng.randrange(1, len(order))
            order[0], order[swap] = order[swap], order[0]
        self._order = order
        self._cursor = 0
        self._index = order[0]

    def _exhaust(self) -> None:
        log_queue_operation("exhausted", index=self._index, queue_size=len(self._tracks))
        self.events.emit("exhausted", index=self._index, track=self.current_track)
        return None

    def _relayout(self, layout: list) -> None:
        """Rebuild the queue from a layout and remap every stored index.

        Each layout item is either an existing queue index or a new Track.
        Existing indices left out of the layout are dropped, and dropped from
        the shuffle order too. The current index must be in the layout.
        """
        tracks = []
        mapping = {}
        for position, item in enumerate(layout):
            if isinstance(item, Track):
                tracks.append(item)
            else:
                mapping[item] = position
                tracks.append(self._tracks[item])

        self._tracks = tracks
        if self._index is not None:
            self._index = mapping[self._index]
        if self._shuffle:
            self._order = [mapping[i] for i in self._order if i in mapping]
            if self._index is not None:
                self._cursor = self._order.index(self._index)

    def _shuffled(self, indices: Iterable[int]) -> list[int]:
        indices = list(indices)
        self._rng.shuffle(indices)
        return indices

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._tracks):
            raise InvalidIndex(index, len(self._tracks))

    @staticmethod
    def _coerce_tracks(tracks: Iterable[Track]) -> list[Track]:
        return [t if isinstance(t, Track) else Track.model_validate(t) for t in tracks]

    def _emit_queue_change(self, operation: str) -> None:
        self.events.emit("queue_change", operation=operation, size=len(self._tracks), index=self._index)

    def _emit_track_change(self, previous: Track | None) -> None:
        self.events.emit("track_change", track=self.current_track, previous_track=previous, index=self._index)


def _require(condition: bool, message: str) -> None:
    if not condition:
        raise AssertionError(message)
