from tests.mocks.audio_mock import MockAudioPlayer, MockLibrary

__all__ = [
    'MockAudioPlayer',
    'MockLibrary',
]
