from typing import Dict, Final, Iterable, Optional

from bitarray import bitarray  # type: ignore

NUM_KEYS: Final[int] = 16


class Keypad:
    """State of the 16-key hexadecimal keypad (0x0 - 0xF).

    The front end writes it; the machine only reads it.
    """

    def __init__(self, pressed: Optional[Iterable[int]] = None) -> None:
        self._bits = bitarray(NUM_KEYS)
        self._bits.setall(0)
        for key in pressed or ():
            self.press(key)

    def __repr__(self) -> str:
        held = ",".join(f"{k:X}" for k in self.pressed_keys())
        return f"<Keypad pressed=[{held}]>"

    def __getitem__(self, key: int) -> bool:
        return bool(self._bits[key & 0xF])

    def __setitem__(self, key: int, pressed: bool) -> None:
        self._bits[key & 0xF] = bool(pressed)

    def press(self, key: int) -> None:
        self[key] = True

    def release(self, key: int) -> None:
        self[key] = False

    def release_all(self) -> None:
        self._bits.setall(0)

    def update(self, states: Dict[int, bool]) -> None:
        """Apply a batch of key states at once."""
        for key, pressed in states.items():
            self[key] = pressed

    def pressed_keys(self) -> list[int]:
        return [i for i in range(NUM_KEYS) if self._bits[i]]

    def first_pressed(self) -> Optional[int]:
        """Lowest-numbered key currently held, or None."""
        index = self._bits.find(1)
        return None if index < 0 else index
