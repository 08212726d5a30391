from collections import deque
from typing import Final

from chip8.exception import StackOverflow, StackUnderflow

STACK_SIZE: Final[int] = 16


class CallStack:
    """Fixed-depth LIFO of 16-bit return addresses."""

    def __init__(self, size: int = STACK_SIZE) -> None:
        self.size: Final[int] = size
        self._frames: deque[int] = deque()

    def __len__(self) -> int:
        return len(self._frames)

    def __repr__(self) -> str:
        frames = ", ".join(f"{addr:03X}" for addr in self._frames)
        return f"<CallStack depth={len(self._frames)} [{frames}]>"

    @property
    def depth(self) -> int:
        return len(self._frames)

    def reset(self) -> None:
        self._frames.clear()

    def push(self, addr: int) -> None:
        if len(self._frames) >= self.size:
            raise StackOverflow(len(self._frames))
        self._frames.append(addr & 0xFFFF)

    def pop(self) -> int:
        if not self._frames:
            raise StackUnderflow()
        return self._frames.pop()

    def peek(self) -> int:
        if not self._frames:
            raise StackUnderflow()
        return self._frames[-1]
