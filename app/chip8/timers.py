from typing import Final

TIMER_HZ: Final[int] = 60


class Timers:
    """
    Delay and sound countdown timers.

    Both hold a value clamped to 0..255 and are decremented once per `tick()`. The host calls `tick()`
    at TIMER_HZ, independently of how many instructions it executes.
    """

    def __init__(self) -> None:
        self._delay: int = 0
        self._sound: int = 0

    def __repr__(self) -> str:
        return f"<Timers delay={self._delay} sound={self._sound}>"

    def reset(self) -> None:
        self._delay = 0
        self._sound = 0

    @property
    def delay(self) -> int:
        return self._delay

    @delay.setter
    def delay(self, value: int) -> None:
        self._delay = max(0, min(value, 0xFF))

    @property
    def sound(self) -> int:
        return self._sound

    @sound.setter
    def sound(self, value: int) -> None:
        self._sound = max(0, min(value, 0xFF))

    @property
    def tone_active(self) -> bool:
        return self._sound > 0

    def tick(self) -> bool:
        """
        Decrement both timers toward zero.

        Returns:
            True if the sound timer went from 1 to 0 during this call (tone off).
        """
        if self._delay > 0:
            self._delay -= 1

        if self._sound > 0:
            self._sound -= 1
            return self._sound == 0
        return False
