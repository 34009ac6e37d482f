"""
Shared fixtures: small hand-checkable catalogs and engines wired to in-memory adapters.

Catalogs:
---------
- three_bit_items: 8 items a..h, tags fantasy/romance/school set by the bits
  of the item's index (a=000 ... h=111), equal popularity, distinct title
  initials and authors. Any item is pinned down by the three tag answers.
- skewed_items: the 3-item popularity example [0, 0, 100], no tags.
- split_catalog: three_bit plus a derived tag per item (zd0 on even, zd1 on odd
  indices). With split_config, Q2 is a forced confirm at confidence 1/8, so
  the soft/hard choice goes to the 50/50 split.
"""

import itertools
from typing import Dict, List, Optional

import pytest

from guess_engine import (
    EngineConfig,
    GuessEngine,
    InMemoryCatalogProvider,
    InMemorySessionRepository,
    Item,
    SeededRandomSource,
)

THREE_BIT_TITLES = [
    "Alpha Road",
    "Bravo Song",
    "Charlie Days",
    "Delta Force",
    "Echo Park",
    "Foxtrot Tales",
    "Golf Club",
    "Hotel Stories",
]

THREE_BIT_TAGS = ["fantasy", "romance", "school"]


def make_item(
    item_id: str,
    tags: Optional[List[str]] = None,
    derived: Optional[Dict[str, float]] = None,
    popularity: float = 0.0,
    classification: str = "MANUAL",
    title: str = "",
    author: str = "",
) -> Item:
    refs = [{"tag_key": k} for k in tags or []]
    refs += [{"tag_key": k, "confidence": c} for k, c in (derived or {}).items()]
    return Item.model_validate(
        {
            "id": item_id,
            "title": title or item_id,
            "author": author,
            "popularity_base": popularity,
            "classification": classification,
            "tags": refs,
        }
    )


def counter_ids(prefix: str = "s"):
    counter = itertools.count(1)
    return lambda: f"{prefix}{next(counter)}"


@pytest.fixture
def three_bit_items() -> List[Item]:
    items = []
    for index, item_id in enumerate("abcdefgh"):
        tags = [tag for bit, tag in enumerate(THREE_BIT_TAGS) if index & (1 << bit)]
        items.append(
            make_item(
                item_id,
                tags=tags,
                title=THREE_BIT_TITLES[index],
                author=f"Author {item_id.upper()}",
            )
        )
    return items


@pytest.fixture
def three_bit_catalog(three_bit_items) -> InMemoryCatalogProvider:
    return InMemoryCatalogProvider(
        three_bit_items,
        tags=[{"tag_key": key, "display_name": key.title()} for key in THREE_BIT_TAGS],
    )


@pytest.fixture
def skewed_items() -> List[Item]:
    return [
        make_item("i1", popularity=0, title="Alpha", author="Ann"),
        make_item("i2", popularity=0, title="Beta", author="Bob"),
        make_item("i3", popularity=100, title="Gamma", author="Gus"),
    ]


@pytest.fixture
def skewed_catalog(skewed_items) -> InMemoryCatalogProvider:
    return InMemoryCatalogProvider(skewed_items)


@pytest.fixture
def split_catalog(three_bit_items) -> InMemoryCatalogProvider:
    items = []
    for index, item in enumerate(three_bit_items):
        asserted = [ref.tag_key for ref in item.tags]
        derived = {"zd0": 0.9} if index % 2 == 0 else {"zd1": 0.9}
        items.append(make_item(item.id, tags=asserted, derived=derived, title=item.title))
    return InMemoryCatalogProvider(items)


@pytest.fixture
def split_config() -> EngineConfig:
    return EngineConfig(forced_confirm_indices=[2])


@pytest.fixture
def skewed_config() -> EngineConfig:
    return EngineConfig(alpha=1.0, popularity_epsilon=0.5)


def build_engine(catalog, config: Optional[EngineConfig] = None, seed: int = 7) -> GuessEngine:
    return GuessEngine(
        catalog,
        InMemorySessionRepository(),
        config=config or EngineConfig(),
        rng=SeededRandomSource(seed),
        id_factory=counter_ids(),
    )


@pytest.fixture
def three_bit_engine(three_bit_catalog) -> GuessEngine:
    return build_engine(three_bit_catalog)


@pytest.fixture
def skewed_engine(skewed_catalog, skewed_config) -> GuessEngine:
    return build_engine(skewed_catalog, skewed_config)
