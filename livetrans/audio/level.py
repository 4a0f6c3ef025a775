from __future__ import annotations

import math
from typing import Optional

import numpy as np


def block_dbfs(block: np.ndarray, *, floor_db: float = -160.0) -> float:
    """RMS level of an int16 or float block in dB relative to full scale."""
    data = np.asarray(block)
    if data.size == 0:
        return floor_db
    if np.issubdtype(data.dtype, np.integer):
        samples = data.astype(np.float64) / 32768.0
    else:
        samples = data.astype(np.float64)
    rms = float(np.sqrt(np.mean(samples ** 2)))
    if rms <= 0.0:
        return floor_db
    return max(floor_db, 20.0 * math.log10(rms))


class LevelMeter:
    """
    Smoothed input power in [0, 1] for a live level display.
    `floor_db` maps to 0.0 and 0 dBFS maps to 1.0.
    """

    def __init__(self, floor_db: float = -50.0, smoothing: float = 0.6) -> None:
        if floor_db >= 0:
            raise ValueError("floor_db must be < 0")
        if not 0.0 <= smoothing < 1.0:
            raise ValueError("smoothing must be in [0, 1)")
        self.floor_db = float(floor_db)
        self.smoothing = float(smoothing)
        self.power = 0.0
        self.prev_power: Optional[float] = None

    def reset(self) -> None:
        self.power = 0.0
        self.prev_power = None

    def update(self, block: np.ndarray) -> float:
        db = block_dbfs(block, floor_db=self.floor_db)
        normalized = min(1.0, max(0.0, (db - self.floor_db) / -self.floor_db))
        if self.prev_power is None:
            power = normalized
        else:
            power = self.smoothing * self.prev_power + (1.0 - self.smoothing) * normalized
        self.prev_power = power
        self.power = power
        return power
