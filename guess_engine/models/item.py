"""
Item model — a guessable catalog entry with its tag references.

Also holds the tag dictionary entries (Tag), summary groupings (SummaryGroup)
and the enums used to filter the catalog (Classification, GateChoice).
Built from catalog dicts via Item.model_validate(d) or ensure_items().
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Set, Union

from pydantic import BaseModel, ConfigDict, Field


class Classification(str, Enum):
    """How an item was produced."""

    GENERATED = "GENERATED"
    MANUAL = "MANUAL"
    UNKNOWN = "UNKNOWN"


class GateChoice(str, Enum):
    """Player's answer to the opening classification gate."""

    INCLUDE = "INCLUDE"
    EXCLUDE = "EXCLUDE"
    EITHER = "EITHER"


class TagType(str, Enum):
    OFFICIAL = "OFFICIAL"
    DERIVED = "DERIVED"
    STRUCTURAL = "STRUCTURAL"


class TagRef(BaseModel):
    """
    A tag carried by an item.

    confidence is None for asserted (official/structural) tags and a 0..1
    score for derived tags.
    """

    tag_key: str
    confidence: Optional[float] = None

    @property
    def is_derived(self) -> bool:
        return self.confidence is not None


class Tag(BaseModel):
    """Tag dictionary entry."""

    model_config = ConfigDict(extra="allow")

    tag_key: str
    display_name: str = ""
    tag_type: TagType = TagType.OFFICIAL
    category: Optional[str] = None
    question_text: Optional[str] = None

    @property
    def label(self) -> str:
        return self.display_name or self.tag_key


class SummaryGroup(BaseModel):
    """
    A set of tags asked as one question.

    An item possesses the summary attribute when it carries ANY of the tags.
    """

    model_config = ConfigDict(extra="allow")

    id: str
    label: str = ""
    question_text: Optional[str] = None
    tag_keys: List[str] = Field(default_factory=list)
    category: Optional[str] = None

    @property
    def candidate_key(self) -> str:
        """Key used when a summary competes with plain tags during selection."""
        return f"summary:{self.id}"


class Item(BaseModel):
    """
    Guessable item.

    popularity = popularity_base + popularity_play_bonus; the play bonus grows
    each time the item is guessed correctly.
    """

    model_config = ConfigDict(extra="allow")

    id: str
    title: str = ""
    author: str = ""
    popularity_base: float = 0.0
    popularity_play_bonus: float = 0.0
    classification: Classification = Classification.UNKNOWN
    tags: List[TagRef] = Field(default_factory=list)

    @property
    def popularity(self) -> float:
        return self.popularity_base + self.popularity_play_bonus

    def get_tag_ref(self, tag_key: str) -> Optional[TagRef]:
        for ref in self.tags:
            if ref.tag_key == tag_key:
                return ref
        return None

    def has_tag(self, tag_key: str, threshold: float, derived_only: bool = False) -> bool:
        """
        True if the item carries tag_key.

        Asserted refs always count unless derived_only; derived refs count when
        their confidence is at least threshold.
        """
        ref = self.get_tag_ref(tag_key)
        if ref is None:
            return False
        if ref.confidence is None:
            return not derived_only
        return ref.confidence >= threshold

    def has_any_tag(self, tag_keys: List[str], threshold: float) -> bool:
        return any(self.has_tag(k, threshold) for k in tag_keys)

    def tag_keys(self, threshold: float, derived_only: bool = False) -> Set[str]:
        """Keys of all tags this item counts as carrying."""
        return {
            ref.tag_key
            for ref in self.tags
            if self.has_tag(ref.tag_key, threshold, derived_only=derived_only)
        }


def ensure_items(items: List[Union[Dict[str, Any], "Item"]]) -> List["Item"]:
    """Convert list of dicts or Items to list of Item models."""
    return [
        Item.model_validate(i) if isinstance(i, dict) else i
        for i in items
    ]
