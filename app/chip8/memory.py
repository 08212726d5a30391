from typing import Final, Union

import numpy as np
from numpy.typing import NDArray

from chip8.exception import RomTooLarge

MEMORY_SIZE: Final[int] = 0x1000
PROGRAM_START: Final[int] = 0x200
MAX_PROGRAM_SIZE: Final[int] = MEMORY_SIZE - PROGRAM_START  # 0xE00
FONT_START: Final[int] = 0x000
GLYPH_SIZE: Final[int] = 5

FONTSET: Final[bytes] = bytes(
    [
        0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
        0x20, 0x60, 0x20, 0x20, 0x70,  # 1
        0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
        0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
        0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
        0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
        0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
        0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
        0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
        0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
        0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
        0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
        0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
        0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
        0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
        0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
    ]
)


class Memory:
    """
    The 4 KB CHIP-8 address space.

    Layout:
      - 0x000 - 0x04F: interpreter fontset (16 glyphs x 5 bytes)
      - 0x050 - 0x1FF: zero
      - 0x200 - 0xFFF: loaded program
    """

    def __init__(self) -> None:
        self.RAM: NDArray[np.uint8] = np.zeros(MEMORY_SIZE, dtype=np.uint8)
        self.reset()

    def __len__(self) -> int:
        return MEMORY_SIZE

    def reset(self) -> None:
        """Zero-fill memory and place the fontset at address 0."""
        self.RAM.fill(0)
        self.RAM[FONT_START : FONT_START + len(FONTSET)] = np.frombuffer(FONTSET, dtype=np.uint8)

    def load(self, rom: Union[bytes, bytearray]) -> int:
        """
        Copy a program image to 0x200.

        Raises:
            RomTooLarge: if the image does not fit in the 0xE00 bytes of program space.

        Returns:
            Number of bytes copied.
        """
        size = len(rom)
        if size > MAX_PROGRAM_SIZE:
            raise RomTooLarge(size, MAX_PROGRAM_SIZE)
        self.RAM[PROGRAM_START : PROGRAM_START + size] = np.frombuffer(bytes(rom), dtype=np.uint8)
        return size

    def read_byte(self, addr: int) -> int:
        assert 0 <= addr < MEMORY_SIZE, f"address ${addr:X} out of range"
        return int(self.RAM[addr])

    def write_byte(self, addr: int, value: int) -> None:
        assert 0 <= addr < MEMORY_SIZE, f"address ${addr:X} out of range"
        self.RAM[addr] = value & 0xFF

    def read_word(self, addr: int) -> int:
        """Big-endian 16-bit read: high byte at `addr`, low byte at `addr+1`."""
        return (self.read_byte(addr) << 8) | self.read_byte((addr + 1) & (MEMORY_SIZE - 1))

    def _span(self, addr: int, length: int) -> NDArray[np.intp]:
        # Block transfers wrap at the top of the 12-bit address space
        assert 0 <= addr < MEMORY_SIZE, f"address ${addr:X} out of range"
        return (np.arange(length) + addr) & (MEMORY_SIZE - 1)

    def read_block(self, addr: int, length: int) -> bytes:
        return self.RAM[self._span(addr, length)].tobytes()

    def write_block(self, addr: int, data: Union[bytes, bytearray, list[int]]) -> None:
        values = np.array([v & 0xFF for v in data], dtype=np.uint8)
        self.RAM[self._span(addr, len(values))] = values
