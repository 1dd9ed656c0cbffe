"""
Spectrum analyzer trace modes and per-trace buffers.
"""
from dataclasses import dataclass, field
from enum import Enum

import numpy as np


class TraceMode(Enum):
    CLEAR_WRITE = "clearwrite"
    HOLD = "hold"
    MAX_HOLD = "maxhold"
    MIN_HOLD = "minhold"
    AVERAGE = "average"


@dataclass
class Trace:
    """
    One analyzer trace.

    Updates build a new array and swap it in, so a reader never sees a
    half-written buffer.
    """
    mode: TraceMode = TraceMode.CLEAR_WRITE
    is_visible: bool = True
    is_updating: bool = True
    data: np.ndarray = field(default_factory=lambda: np.empty(0))

    def set_mode(self, mode: TraceMode, num_bins: int) -> None:
        """
        Switch mode. Hold freezes the trace; the accumulating modes start
        from a fresh buffer.
        """
        self.mode = mode
        self.is_updating = mode is not TraceMode.HOLD
        if mode in (TraceMode.MAX_HOLD, TraceMode.MIN_HOLD, TraceMode.AVERAGE):
            self.reset(num_bins)

    def reset(self, num_bins: int) -> None:
        fill = np.inf if self.mode is TraceMode.MIN_HOLD else -np.inf
        self.data = np.full(num_bins, fill)

    def update(self, sweep: np.ndarray, average_weight: float = 0.2) -> None:
        """
        Fold one sweep into the trace according to its mode.

        Args:
            sweep: Power per bin (dBm) for this tick
            average_weight: Weight of the new sweep in Average mode
        """
        if not self.is_updating or self.mode is TraceMode.HOLD:
            return
        if self.data.shape != sweep.shape:
            self.reset(sweep.size)

        if self.mode is TraceMode.CLEAR_WRITE:
            updated = sweep.copy()
        elif self.mode is TraceMode.MAX_HOLD:
            updated = np.maximum(self.data, sweep)
        elif self.mode is TraceMode.MIN_HOLD:
            updated = np.minimum(self.data, sweep)
        else:
            with np.errstate(invalid='ignore'):
                blended = (1.0 - average_weight) * self.data + average_weight * sweep
            # Bins with no history yet take the new value directly
            updated = np.where(np.isfinite(self.data), blended, sweep)

        self.data = updated

    def to_dict(self) -> dict:
        return {
            'mode': self.mode.value,
            'is_visible': self.is_visible,
            'is_updating': self.is_updating,
            'data': self.data.tolist(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Trace':
        return cls(
            mode=TraceMode(data['mode']),
            is_visible=bool(data.get('is_visible', True)),
            is_updating=bool(data.get('is_updating', True)),
            data=np.asarray(data.get('data', []), dtype=float),
        )
