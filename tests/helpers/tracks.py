"""Track builders shared by the test suite."""

from core.track import Track


def make_tracks(count: int, start: int = 1) -> list[Track]:
    """Build distinct tracks t<start>..t<start+count-1>."""
    return [
        Track(id=i, title=f"t{i}", artist="Test Artist", album="Test Album", duration=180.0, path=f"/test/song{i}.mp3")
        for i in range(start, start + count)
    ]


def titles(items) -> list[str]:
    """Titles of tracks or upcoming entries, for compact assertions."""
    return [getattr(item, "track", item).title for item in items]
