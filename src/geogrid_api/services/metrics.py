"""Ranking matrix aggregation: AGR, ATGR, SoLV and visibility shares."""

from __future__ import annotations

import math
from typing import Iterable, Sequence, Union

import numpy as np

from ..models.domain import KeywordMetrics, Metrics

UNRANKED_CLAMP = 21
FOUND_THRESHOLD = 20
TOP_THREE = 3
TOP_TEN = 10

Rankings = Union[Sequence[int], Sequence[Sequence[int]]]


def _flatten(rankings: Iterable) -> np.ndarray:
    flat = []
    for item in rankings:
        if isinstance(item, (list, tuple, np.ndarray)):
            flat.extend(item)
        else:
            flat.append(item)
    return np.asarray(flat, dtype=float)


def _percent(count: int, total: int) -> float:
    return 100.0 * count / total if total else 0.0


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class MetricsAggregator:
    """Reduces a ranking matrix to the headline grid metrics.

    Zero cells mean no data was collected: they only count towards
    ``not_ranked_count`` and are left out of every mean and percentage.
    """

    def compute(self, matrix: Rankings) -> Metrics:
        values = _flatten(matrix)
        no_data = int(np.count_nonzero(values <= 0))
        observed = values[values > 0]
        total = int(observed.size)

        if total == 0:
            return Metrics(not_ranked_count=no_data)

        clamped = np.minimum(observed, UNRANKED_CLAMP)
        found = observed[observed <= FOUND_THRESHOLD]
        top_three = int(np.count_nonzero(observed <= TOP_THREE))
        top_ten = int(np.count_nonzero(observed <= TOP_TEN))
        unranked = int(np.count_nonzero(observed > FOUND_THRESHOLD))

        atgr = float(found.mean()) if found.size else 0.0
        top3_pct = _percent(top_three, total)

        return Metrics(
            agr=float(clamped.mean()),
            atgr=atgr,
            solv=f"{_round_half_up(top3_pct)}%",
            average_rank=float(observed.mean()),
            visibility_percentage=top3_pct,
            top20_average_rank=atgr,
            top3_visibility_pct=top3_pct,
            top10_visibility_pct=_percent(top_ten, total),
            found_visibility_pct=_percent(int(found.size), total),
            top_three_count=top_three,
            top_ten_count=top_ten,
            not_ranked_count=unranked + no_data,
            total_rankings=total,
        )

    def keyword_metrics(self, rankings: Rankings) -> KeywordMetrics:
        """Distribution of a keyword's rankings, zeros included in the total."""

        values = _flatten(rankings)
        total = int(values.size)
        ranked = values[values > 0]
        top_three = int(np.count_nonzero(ranked <= TOP_THREE))
        top_ten = int(np.count_nonzero(ranked <= TOP_TEN))
        not_ranked = int(np.count_nonzero((values == 0) | (values > TOP_TEN)))

        average = float(ranked.mean()) if ranked.size else 0.0

        return KeywordMetrics(
            total_rankings=total,
            top_three_count=top_three,
            top_ten_count=top_ten,
            not_ranked_count=not_ranked,
            top3_percentage=_percent(top_three, total),
            top10_percentage=_percent(top_ten - top_three, total),
            other_percentage=_percent(not_ranked, total),
            average_ranking=round(average, 2),
            visibility_score=round(_percent(top_ten, total), 2),
        )


_default_aggregator = MetricsAggregator()


def compute_metrics(matrix: Rankings) -> Metrics:
    return _default_aggregator.compute(matrix)


def compute_keyword_metrics(rankings: Rankings) -> KeywordMetrics:
    return _default_aggregator.keyword_metrics(rankings)


__all__ = ["MetricsAggregator", "compute_metrics", "compute_keyword_metrics"]
