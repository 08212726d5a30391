from typing import Final

import numpy as np
from numpy.typing import NDArray

from chip8.memory import PROGRAM_START

NUM_REGISTERS: Final[int] = 16
VF: Final[int] = 0xF


class Registers:
    """
    CHIP-8 register file.

    - V0..VF: unsigned bytes, wrap mod 256 on write. VF doubles as the
      carry / borrow / collision flag.
    - I: 16-bit index register.
    - PC: 16-bit program counter, starts at 0x200.
    """

    def __init__(self) -> None:
        self.V: NDArray[np.uint8] = np.zeros(NUM_REGISTERS, dtype=np.uint8)
        self._I: int = 0
        self._PC: int = PROGRAM_START

    def __repr__(self) -> str:
        regs = " ".join(f"V{i:X}={int(v):02X}" for i, v in enumerate(self.V))
        return f"<Registers PC={self._PC:04X} I={self._I:04X} {regs}>"

    def reset(self) -> None:
        self.V.fill(0)
        self._I = 0
        self._PC = PROGRAM_START

    def get(self, x: int) -> int:
        return int(self.V[x])

    def set(self, x: int, value: int) -> None:
        self.V[x] = value & 0xFF

    @property
    def I(self) -> int:  # noqa: E743
        return self._I

    @I.setter
    def I(self, value: int) -> None:  # noqa: E743
        self._I = value & 0xFFFF

    @property
    def PC(self) -> int:
        return self._PC

    @PC.setter
    def PC(self, value: int) -> None:
        self._PC = value & 0xFFFF

    @property
    def flag(self) -> int:
        return int(self.V[VF])

    @flag.setter
    def flag(self, value: int) -> None:
        self.V[VF] = 1 if value else 0
