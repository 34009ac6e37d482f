"""
Candidate pool: gate filter and initial weights.

Filters the catalog by the player's classification gate, then seeds each
surviving item with weight = (popularity + epsilon) ** alpha.

The public entry point is get_candidate_pool.
"""

import logging
from typing import Dict, List, Tuple

from ..errors import EmptyCatalogError
from ..models.config import DEFAULT_CONFIG, EngineConfig
from ..models.item import Classification, GateChoice, Item

logger = logging.getLogger(__name__)

_GATE_CLASSIFICATION = {
    GateChoice.INCLUDE: Classification.GENERATED,
    GateChoice.EXCLUDE: Classification.MANUAL,
}


def _passes_gate(item: Item, gate: GateChoice) -> bool:
    """EITHER keeps everything; INCLUDE/EXCLUDE keep one classification. UNKNOWN only survives EITHER."""
    if gate == GateChoice.EITHER:
        return True
    return item.classification == _GATE_CLASSIFICATION[gate]


def filter_by_gate(items: List[Item], gate: GateChoice) -> List[Item]:
    """Return the items eligible under gate, in input order."""
    gate = GateChoice(gate)
    return [item for item in items if _passes_gate(item, gate)]


def _popularity(item: Item, use_play_bonus: bool) -> float:
    popularity = item.popularity if use_play_bonus else item.popularity_base
    return max(popularity, 0.0)


def initialize_weights(
    items: List[Item],
    alpha: float,
    epsilon: float,
    use_play_bonus: bool = True,
) -> Dict[str, float]:
    """
    Initial unnormalized weights: (popularity + epsilon) ** alpha.

    epsilon keeps zero-popularity items strictly positive; alpha < 1 flattens
    the popularity prior. Raises EmptyCatalogError for no items.
    """
    if not items:
        raise EmptyCatalogError("No candidate items to weight")
    return {
        item.id: (_popularity(item, use_play_bonus) + epsilon) ** alpha
        for item in items
    }


def get_candidate_pool(
    items: List[Item],
    gate: GateChoice,
    config: EngineConfig = DEFAULT_CONFIG,
) -> Tuple[List[Item], Dict[str, float]]:
    """
    Filter items by gate and seed their weights.

    Returns (candidates, weights). Raises EmptyCatalogError when the gate
    leaves nothing.
    """
    candidates = filter_by_gate(items, gate)
    if not candidates:
        logger.info("[candidate_pool] EMPTY_AFTER_GATE gate=%s total=%s", gate, len(items))
        raise EmptyCatalogError(f"No items match gate {GateChoice(gate).value}")
    weights = initialize_weights(
        candidates,
        config.alpha,
        config.popularity_epsilon,
        use_play_bonus=config.use_play_bonus,
    )
    logger.debug("[candidate_pool] POOL_READY gate=%s candidates=%s", gate, len(candidates))
    return candidates, weights
