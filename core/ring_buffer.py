from collections import deque
from typing import List

import numpy as np


class RingBuffer:
    """
    Bounded history of spectrum sweeps feeding the waterfall display.

    The simulation is tick-driven on a single thread, so no locking is done;
    when full, the oldest sweep is discarded.
    """
    def __init__(self, maxsize: int = 200):
        """
        Initialize the ring buffer.

        Args:
            maxsize: The maximum number of sweeps kept. Older sweeps are discarded.
        """
        self.maxsize = maxsize
        self.buffer = deque(maxlen=maxsize)

    def put(self, row: np.ndarray) -> None:
        """
        Append one sweep. The row is copied so later trace swaps cannot alter history.

        Args:
            row: Power values in dBm, one per bin.
        """
        self.buffer.append(np.array(row, dtype=float, copy=True))

    def as_array(self) -> np.ndarray:
        """
        Stack the history, newest sweep last.

        Returns:
            2-D array of shape (sweeps, bins); empty (0, 0) when nothing is stored.
        """
        if not self.buffer:
            return np.empty((0, 0))
        return np.vstack(list(self.buffer))

    def clear(self):
        self.buffer.clear()

    def to_list(self) -> List[List[float]]:
        return self.as_array().tolist()

    def load(self, rows: List[List[float]]) -> None:
        self.clear()
        for row in rows[-self.maxsize:]:
            self.put(np.asarray(row, dtype=float))
