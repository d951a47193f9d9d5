from decouple import config
from pathlib import Path

# Logging Configuration
LOG_LEVEL = config('RLIST_LOG_LEVEL', default='INFO')
LOG_FILE = config('RLIST_LOG_FILE', default='') or None

# Session persistence
STATE_FILE = Path(config('RLIST_STATE_FILE', default=str(Path.home() / '.rlist' / 'player_state.json'))).expanduser()

# Queue Configuration
REPEAT_MODES = ('off', 'all', 'one')


def _validate_repeat_mode(mode: str) -> str:
    """Validate repeat mode against known values.

    Args:
        mode: Repeat mode string from the environment

    Returns:
        The lowercased mode, or 'off' if unknown
    """
    mode = mode.strip().lower()
    # 'none' is what older state files stored
    if mode == 'none':
        return 'off'
    return mode if mode in REPEAT_MODES else 'off'


def _optional_int(value: str) -> int | None:
    """Cast an optional integer setting; blank means unset."""
    value = value.strip()
    return int(value) if value else None


DEFAULT_REPEAT = _validate_repeat_mode(config('RLIST_DEFAULT_REPEAT', default='off'))
SHUFFLE_SEED = config('RLIST_SHUFFLE_SEED', default='', cast=_optional_int)

# Playback controls
# Seconds into a track after which "previous" restarts the track instead
RESTART_THRESHOLD = config('RLIST_RESTART_THRESHOLD', default=3.0, cast=float)

# Autoplay Configuration
AUTOPLAY_ENABLED = config('RLIST_AUTOPLAY_ENABLED', default=False, cast=bool)
AUTOPLAY_BATCH_SIZE = config('RLIST_AUTOPLAY_BATCH_SIZE', default=10, cast=int)

# Event emitter
MAX_LISTENERS = config('RLIST_MAX_LISTENERS', default=10, cast=int)
