from pathlib import Path
from typing import Final, Optional, Tuple, Union

from returns.result import Failure, Result, Success

from chip8.logger import log
from chip8.memory import MAX_PROGRAM_SIZE


class Rom:
    """
    A CHIP-8 program image.

    CHIP-8 ROMs are headerless: the file is the raw instruction stream that
    gets copied to 0x200. Validation is limited to the size bounds.
    """

    MAX_SIZE: Final[int] = MAX_PROGRAM_SIZE

    def __init__(self, data: bytes = b"", file: str = "") -> None:
        self.data: bytes = bytes(data)
        self.file: str = file

    def __repr__(self) -> str:
        return f"<Rom file={self.file!r} size={len(self.data)} bytes>"

    def __len__(self) -> int:
        return len(self.data)

    @property
    def name(self) -> str:
        return Path(self.file).stem if self.file else "<memory>"

    @classmethod
    def from_bytes(cls, data: bytes) -> Result["Rom", str]:
        """
        Validate a program image.

        Returns:
            Result containing either a Rom instance or an error string.
        """
        if not isinstance(data, (bytes, bytearray)):
            return Failure(f"Expected bytes or bytearray, got {type(data).__name__}")

        if len(data) == 0:
            return Failure("ROM is empty")

        if len(data) > cls.MAX_SIZE:
            return Failure(f"ROM too large: {len(data)} bytes, maximum {cls.MAX_SIZE}")

        if len(data) % 2:
            log.warning(f"ROM has an odd length ({len(data)} bytes); last instruction is incomplete")

        return Success(cls(data))

    @classmethod
    def is_valid_file(cls, filepath: Union[Path, str]) -> Tuple[bool, Optional[str]]:
        """
        Check if a file is a loadable CHIP-8 ROM.

        Returns:
            (is_valid, error_message); error_message is None when valid.
        """
        result = cls.from_file(filepath)
        if isinstance(result, Success):
            return True, None
        return False, result.failure()

    @classmethod
    def from_file(cls, filepath: Union[Path, str]) -> Result["Rom", str]:
        try:
            with open(filepath, "rb") as f:
                data = f.read()
        except OSError as e:
            return Failure(f"Failed to read file {filepath}: {e}")

        def attach_file(rom: "Rom") -> "Rom":
            rom.file = str(filepath)
            return rom

        return cls.from_bytes(data).map(attach_file)
