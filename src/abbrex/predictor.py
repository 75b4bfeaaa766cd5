from __future__ import annotations
import logging
from dataclasses import replace
from typing import Callable, Dict, List, Optional, Sequence, Tuple, TypeVar

from . import config as CFG
from .DB.api import ExpansionStore
from .models import Abbreviation, Context, Expansion

log = logging.getLogger(__name__)

T = TypeVar("T")


def weight_scores(scores: Sequence[float], weights: Sequence[float]) -> List[float]:
    """
    Adjust scores by weights and rescale so the result sums to 1.

        scores  weights   weighted
         .21     360       .6027
         .64      61       .3112
         .15      72       .0861

    Falls back to equal shares when nothing carries weight.
    """
    if len(scores) != len(weights):
        raise ValueError(
            f"Length of scores ({len(scores)}) and weights ({len(weights)}) do not match."
        )
    n = len(scores)
    if n == 0:
        return []

    weights_total = float(sum(weights))
    if weights_total == 0:
        return [1.0 / n] * n

    weighted = [s * w / weights_total for s, w in zip(scores, weights)]
    weighted_total = sum(weighted)
    if weighted_total == 0:
        return [1.0 / n] * n
    return [x / weighted_total for x in weighted]


def normalize(confidences: Sequence[float], weights: Optional[Sequence[float]] = None) -> List[float]:
    """Rescale confidences to sum to 1 (uniform weights unless given)."""
    if weights is None or not any(weights):
        weights = [1.0] * len(confidences)
    return weight_scores(confidences, weights)


class _ScoringCache:
    """
    Memoizes store lookups for one prediction call.

    Each distinct (expansion, distance) total and (expansion, distance, word)
    count is fetched once. A failing lookup is logged and reads as "not found".
    """

    def __init__(self, store: ExpansionStore) -> None:
        self.store = store
        self._word_ids: Dict[Tuple[str, int], Optional[int]] = {}
        self._counts: Dict[Tuple[int, int, int], int] = {}
        self._totals: Dict[Tuple[int, int], int] = {}

    def _safe(self, what: str, fn: Callable[[], T], default: T) -> T:
        try:
            return fn()
        except Exception as exc:
            log.warning("Store lookup %s failed (%r); treating as not found", what, exc)
            return default

    def word_id(self, word: str, expansion_id: int) -> Optional[int]:
        key = (word, expansion_id)
        if key not in self._word_ids:
            self._word_ids[key] = self._safe(
                f"word_exists_for_expansion{key}",
                lambda: self.store.word_exists_for_expansion(word, expansion_id),
                None,
            )
        return self._word_ids[key]

    def count(self, expansion_id: int, distance: int, word_id: int) -> int:
        key = (expansion_id, distance, word_id)
        if key not in self._counts:
            self._counts[key] = self._safe(
                f"count_word_occurrences_at_distance{key}",
                lambda: self.store.count_word_occurrences_at_distance(expansion_id, distance, word_id),
                0,
            )
        return self._counts[key]

    def total(self, expansion_id: int, distance: int) -> int:
        key = (expansion_id, distance)
        if key not in self._totals:
            self._totals[key] = self._safe(
                f"count_all_occurrences_at_distance{key}",
                lambda: self.store.count_all_occurrences_at_distance(expansion_id, distance),
                0,
            )
        return self._totals[key]

    def expansions(self, abbr_id: int) -> List[Tuple[int, str]]:
        return self._safe(
            f"get_expansions({abbr_id})", lambda: list(self.store.get_expansions(abbr_id)), []
        )

    def examples(self, abbr_id: int, expansion_id: int) -> int:
        return self._safe(
            f"count_examples({abbr_id}, {expansion_id})",
            lambda: self.store.count_examples(abbr_id, expansion_id),
            0,
        )


def probability_at(cache: _ScoringCache, expansion_id: int, distance: int, word_id: int) -> float:
    total = cache.total(expansion_id, distance)
    if total == 0:
        return 0.0
    return cache.count(expansion_id, distance, word_id) / total


def local_match_score(
    cache: _ScoringCache, context: Context, expansion_id: int, word_id: int, distance: int
) -> float:
    """
    How typical the word is on its side of the abbreviation.

    Every in-window distance on the same side contributes its probability,
    weighted by 1/(|d|+1). Zero probabilities away from the word's own
    position are left out of both sums.
    """
    score = 0.0
    possible = 0.0
    for d in context.side(distance):
        p = probability_at(cache, expansion_id, d, word_id)
        if p == 0 and d != distance:
            continue
        weight = 1.0 / (abs(d) + 1)
        score += p * weight
        possible += weight
    return score / possible if possible else 0.0


def expansion_confidence(cache: _ScoringCache, context: Context, expansion_id: int) -> float:
    """Mean local match score over context words ever seen with the expansion."""
    scores: List[float] = []
    for distance, word in context.neighbours():
        word_id = cache.word_id(word, expansion_id)
        if word_id is None:
            # unseen word: no signal either way
            continue
        scores.append(local_match_score(cache, context, expansion_id, word_id, distance))
    if not scores:
        return 0.0
    return min(1.0, max(0.0, sum(scores) / len(scores)))


class Predictor:
    """Scores and ranks the registered expansions of detected abbreviations."""

    def __init__(
        self,
        store: ExpansionStore,
        *,
        threshold: float = CFG.THRESHOLD,
        prior_weighting: bool = CFG.PRIOR_WEIGHTING,
    ) -> None:
        self.store = store
        self.threshold = threshold
        self.prior_weighting = prior_weighting

    def predict(self, abbr: Abbreviation) -> Abbreviation:
        """Return a copy of `abbr` carrying its ranked expansions."""
        if abbr.id is None or abbr.context is None:
            return replace(abbr, expansions=())
        return replace(abbr, expansions=tuple(self.rank(abbr.id, abbr.context, abbr.always)))

    def rank(self, abbr_id: int, context: Context, always: bool = False) -> List[Expansion]:
        cache = _ScoringCache(self.store)
        candidates = cache.expansions(abbr_id)
        if not candidates:
            return []

        confidences = [expansion_confidence(cache, context, eid) for eid, _ in candidates]

        if always:
            weights = None
            if self.prior_weighting:
                weights = [cache.examples(abbr_id, eid) for eid, _ in candidates]
            confidences = normalize(confidences, weights)
            kept = [
                Expansion(id=eid, value=value, confidence=c)
                for (eid, value), c in zip(candidates, confidences)
            ]
        else:
            kept = [
                Expansion(id=eid, value=value, confidence=c)
                for (eid, value), c in zip(candidates, confidences)
                if c >= self.threshold
            ]

        # stable: equal confidences keep the store's order
        kept.sort(key=lambda e: e.confidence, reverse=True)
        log.debug("Ranked %d/%d expansions for abbreviation %s", len(kept), len(candidates), abbr_id)
        return kept
