"""Stand-in ranking source used until a live rank fetcher is plugged in."""

from __future__ import annotations

from typing import List, Optional

import numpy as np


class RankingSimulator:
    """Produces plausible ranking matrices: strong near the center, fading outwards."""

    def __init__(self, *, unranked_share: float = 0.8, seed: Optional[int] = None) -> None:
        self.unranked_share = unranked_share
        self.rng = np.random.default_rng(seed)

    def simulate(self, size: int) -> List[List[int]]:
        if size < 1:
            raise ValueError("size must be at least 1")

        half = size / 2
        offset = size // 2
        matrix: List[List[int]] = []
        for row in range(size):
            cells: List[int] = []
            for col in range(size):
                distance = float(np.hypot(row - offset, col - offset)) / half
                cells.append(self._rank_for(distance))
            matrix.append(cells)
        return matrix

    def _rank_for(self, normalized_distance: float) -> int:
        if normalized_distance < 0.3:
            return int(self.rng.integers(1, 11))
        if normalized_distance < 0.6:
            return int(self.rng.integers(11, 21))
        if self.rng.random() < self.unranked_share:
            return 21
        return int(self.rng.integers(11, 21))


def simulate_rankings(size: int, seed: Optional[int] = None) -> List[List[int]]:
    return RankingSimulator(seed=seed).simulate(size)


__all__ = ["RankingSimulator", "simulate_rankings"]
