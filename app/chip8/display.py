from typing import Final, Union

import numpy as np
from numpy.typing import NDArray

DISPLAY_WIDTH: Final[int] = 64
DISPLAY_HEIGHT: Final[int] = 32


class Display:
    """
    64x32 monochrome framebuffer.

    Pixels are stored row-major as `frame[y, x]`. Every mutation sets `dirty`;
    only the consumer clears it, after it has rendered the current frame.
    """

    def __init__(self) -> None:
        self._frame: NDArray[np.bool_] = np.zeros((DISPLAY_HEIGHT, DISPLAY_WIDTH), dtype=np.bool_)
        self.dirty: bool = False

    def __repr__(self) -> str:
        return f"<Display lit={int(self._frame.sum())} dirty={self.dirty}>"

    def __str__(self) -> str:
        return "\n".join("".join("#" if px else "." for px in row) for row in self._frame)

    @property
    def frame(self) -> NDArray[np.bool_]:
        """Read-only view of the bitmap for renderers."""
        view = self._frame.view()
        view.flags.writeable = False
        return view

    def pixel(self, x: int, y: int) -> bool:
        return bool(self._frame[y, x])

    def reset(self) -> None:
        self._frame.fill(False)
        self.dirty = False

    def clear(self) -> None:
        self._frame.fill(False)
        self.dirty = True

    def clear_dirty(self) -> None:
        self.dirty = False

    def draw(self, x0: int, y0: int, sprite: Union[bytes, bytearray]) -> bool:
        """
        XOR a sprite onto the framebuffer.

        Each byte of `sprite` is one row, most-significant bit leftmost. The
        anchor wraps around the screen; pixels past the right or bottom edge
        are clipped.

        Returns:
            True if any pixel was turned from on to off (collision).
        """
        x = x0 % DISPLAY_WIDTH
        y = y0 % DISPLAY_HEIGHT
        self.dirty = True

        if not sprite:
            return False

        bits = np.unpackbits(np.frombuffer(bytes(sprite), dtype=np.uint8).reshape(-1, 1), axis=1).astype(np.bool_)
        rows = min(bits.shape[0], DISPLAY_HEIGHT - y)
        cols = min(8, DISPLAY_WIDTH - x)
        bits = bits[:rows, :cols]

        target = self._frame[y : y + rows, x : x + cols]
        collision = bool(np.any(target & bits))
        target ^= bits
        return collision
