"""Double-buffered cell storage."""
from typing import Generic, Tuple, TypeVar

import numpy as np

T = TypeVar('T')


class PingPong(Generic[T]):
    """Two slots whose read/write roles alternate on every ``swap``.

    The slot returned by ``read`` always holds the latest generation and is
    never the slot returned by ``write``.
    """

    def __init__(self, front: T, back: T):
        self.slots = [front, back]
        self.index = 0

    @property
    def read(self) -> T:
        return self.slots[self.index]

    @property
    def write(self) -> T:
        return self.slots[1 - self.index]

    def swap(self) -> None:
        self.index = 1 - self.index

    def replace(self, front: T, back: T) -> None:
        """Install new slots, ``front`` becoming the readable one."""
        self.slots = [front, back]
        self.index = 0


class CellGrid(PingPong):
    """Ping-pong pair of ``(height, width, channels)`` uint8 arrays.

    ``xp`` is the array module (``numpy`` or ``cupy``) the buffers live in.
    """

    def __init__(self, width: int, height: int, channels: int, xp=np):
        self.xp = xp
        self.width = width
        self.height = height
        self.channels = channels
        super().__init__(self._zeros(), self._zeros())

    def _zeros(self):
        return self.xp.zeros((self.height, self.width, self.channels), dtype=self.xp.uint8)

    @property
    def shape(self) -> Tuple[int, int, int]:
        return (self.height, self.width, self.channels)

    def clear(self) -> None:
        for buffer in self.slots:
            buffer.fill(0)
        self.index = 0

    def load(self, field) -> None:
        """Copy ``field`` into the readable buffer."""
        if tuple(field.shape) != self.shape:
            raise ValueError(f"Field shape {tuple(field.shape)} doesn't match grid size {self.shape}")
        self.read[...] = self.xp.asarray(field, dtype=self.xp.uint8)

    def reshape(self, width: int, height: int, channels: int) -> None:
        """Reallocate both buffers, copying the overlapping region of the current one."""
        old = self.read
        self.width, self.height, self.channels = width, height, channels
        front = self._zeros()
        min_h = min(old.shape[0], height)
        min_w = min(old.shape[1], width)
        if old.shape[2] == channels:
            front[:min_h, :min_w, :] = old[:min_h, :min_w, :]
        self.replace(front, self._zeros())
