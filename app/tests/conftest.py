import sys
from pathlib import Path

import pytest

APP_ROOT = Path(__file__).resolve().parents[1]
if str(APP_ROOT) not in sys.path:
    sys.path.insert(0, str(APP_ROOT))

from chip8.emulator import Emulator  # noqa: E402


def program(*words: int) -> bytes:
    """Assemble 16-bit instruction words into a big-endian program image."""
    return b"".join(word.to_bytes(2, "big") for word in words)


@pytest.fixture
def make_emulator():
    def factory(*words: int, legacy_mode: bool = False, seed: int = 1234) -> Emulator:
        emu = Emulator(legacy_mode=legacy_mode, seed=seed)
        emu.Load(program(*words))
        return emu

    return factory
