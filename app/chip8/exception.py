from typing import Final


class Chip8Error(Exception):
    """Base exception for every fatal CHIP-8 machine error."""

    pass


class RomTooLarge(Chip8Error):
    def __init__(self, size: int, capacity: int):
        self.size: Final[int] = size
        self.capacity: Final[int] = capacity
        super().__init__(f"ROM is {size} bytes, program memory holds {capacity}")


class StackOverflow(Chip8Error):
    def __init__(self, depth: int):
        self.depth: Final[int] = depth
        super().__init__(f"Call stack overflow at depth {depth}")


class StackUnderflow(Chip8Error):
    def __init__(self) -> None:
        super().__init__("Return with an empty call stack")


class UnknownInstruction(Chip8Error):
    def __init__(self, raw: int, address: int):
        self.raw: Final[int] = raw
        self.address: Final[int] = address
        super().__init__(f"Unknown instruction ${raw:04X} at ${address:03X}")
