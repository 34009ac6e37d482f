"""
Catalog provider abstraction.

Supplies the items, tag dictionary and summary groupings the engine guesses
over, and records the popularity play bonus after a correct guess.
Implementations: in-memory (tests, simulation) and JSON file (local play).
"""

import json
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol, Union

from ..models.config import DEFAULT_CONFIG
from ..models.item import GateChoice, Item, SummaryGroup, Tag, ensure_items
from ..stages.candidate_pool import filter_by_gate
from ..utils.json_files import atomic_write_json

logger = logging.getLogger(__name__)


class CatalogProvider(Protocol):
    """Protocol for catalog access. Implement for in-memory data or a JSON file."""

    def list_candidates(self, gate: GateChoice) -> List[Item]:
        """Return items eligible under gate."""
        ...

    def get_item(self, item_id: str) -> Optional[Item]:
        """Return the item if it exists, else None."""
        ...

    def has_tag(self, item_id: str, tag_key: str) -> bool:
        """True if the item carries tag_key (derived tags above the provider threshold)."""
        ...

    def list_tags(self) -> List[Tag]:
        """Tag dictionary entries."""
        ...

    def list_summary_groups(self) -> List[SummaryGroup]:
        """Summary groupings asked as single questions."""
        ...

    def add_play_bonus(self, item_id: str, amount: float) -> None:
        """Increase the item's popularity play bonus by amount."""
        ...


class InMemoryCatalogProvider:
    """
    Catalog held in memory. Used by tests, simulation and as the base for JSON files.

    derived_confidence_threshold only affects has_tag; it defaults to
    DEFAULT_CONFIG and should match the EngineConfig the engine runs with.
    """

    def __init__(
        self,
        items: Iterable[Union[Dict, Item]],
        tags: Optional[Iterable[Union[Dict, Tag]]] = None,
        summary_groups: Optional[Iterable[Union[Dict, SummaryGroup]]] = None,
        derived_confidence_threshold: Optional[float] = None,
    ):
        self._items: Dict[str, Item] = {}
        for item in ensure_items(list(items)):
            self._items[item.id] = item
        self._tags: Dict[str, Tag] = {}
        for tag in tags or []:
            tag = Tag.model_validate(tag) if isinstance(tag, dict) else tag
            self._tags[tag.tag_key] = tag
        self._summary_groups: List[SummaryGroup] = [
            SummaryGroup.model_validate(g) if isinstance(g, dict) else g
            for g in summary_groups or []
        ]
        if derived_confidence_threshold is None:
            derived_confidence_threshold = DEFAULT_CONFIG.derived_confidence_threshold
        self._threshold = derived_confidence_threshold

    @property
    def derived_confidence_threshold(self) -> float:
        return self._threshold

    def list_candidates(self, gate: GateChoice) -> List[Item]:
        return filter_by_gate(list(self._items.values()), gate)

    def list_items(self) -> List[Item]:
        return list(self._items.values())

    def get_item(self, item_id: str) -> Optional[Item]:
        return self._items.get(item_id)

    def has_tag(self, item_id: str, tag_key: str) -> bool:
        item = self._items.get(item_id)
        return item is not None and item.has_tag(tag_key, self._threshold)

    def list_tags(self) -> List[Tag]:
        return list(self._tags.values())

    def list_summary_groups(self) -> List[SummaryGroup]:
        return list(self._summary_groups)

    def add_play_bonus(self, item_id: str, amount: float) -> None:
        item = self._items.get(item_id)
        if item is None:
            logger.warning("[catalog] PLAY_BONUS_UNKNOWN_ITEM item=%s", item_id)
            return
        item.popularity_play_bonus += amount


class JsonCatalogProvider(InMemoryCatalogProvider):
    """
    Catalog backed by a JSON file: {"items": [...], "tags": [...], "summary_groups": [...]}.

    The play bonus is written back to the file.
    """

    def __init__(
        self,
        path: Union[Path, str],
        derived_confidence_threshold: Optional[float] = None,
    ):
        self._path = Path(path)
        with open(self._path, encoding="utf-8") as f:
            data = json.load(f)
        if isinstance(data, list):
            data = {"items": data}
        super().__init__(
            data.get("items", []),
            tags=data.get("tags", []),
            summary_groups=data.get("summary_groups", []),
            derived_confidence_threshold=derived_confidence_threshold,
        )
        logger.info(
            "[catalog] LOADED path=%s items=%s tags=%s summaries=%s",
            self._path, len(self._items), len(self._tags), len(self._summary_groups),
        )

    def _save(self) -> None:
        out = {
            "items": [item.model_dump(mode="json") for item in self._items.values()],
            "tags": [tag.model_dump(mode="json") for tag in self._tags.values()],
            "summary_groups": [g.model_dump(mode="json") for g in self._summary_groups],
        }
        atomic_write_json(self._path, out)

    def add_play_bonus(self, item_id: str, amount: float) -> None:
        super().add_play_bonus(item_id, amount)
        if item_id in self._items:
            self._save()
