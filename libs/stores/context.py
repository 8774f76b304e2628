"""Process-wide data context.

Built once at startup from the JSON files under ``data_dir`` and passed by
reference into the matcher and the retrieval registry. Nothing in the
pipeline mutates it.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict

import structlog

from libs.stores.explicit_memory import ExplicitMemoryStore
from libs.stores.statistics import PrecomputedStatisticsStore
from libs.vocabulary.matcher import EntityMapping, EntityMatcher, EntityType, EntityVocabulary

logger = structlog.get_logger(__name__)

VOCABULARY_FILE = "entity_vocabulary.json"
EXPLICIT_MEMORY_FILE = "explicit_memory.json"
STATISTICS_FILE = "precomputed_statistics.json"

_VOCABULARY_SECTIONS = {
    "assumptions": EntityType.ASSUMPTION,
    "products": EntityType.PRODUCT,
    "categories": EntityType.CATEGORY,
}


@dataclass(frozen=True)
class DataContext:
    """Vocabulary plus the two read-only data stores."""

    vocabulary: EntityVocabulary
    explicit_memory: ExplicitMemoryStore
    statistics: PrecomputedStatisticsStore
    matcher: EntityMatcher = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, "matcher", EntityMatcher(self.vocabulary, self.statistics.years()))


def build_vocabulary(data: Dict[str, Any]) -> EntityVocabulary:
    """Build the vocabulary from its JSON representation."""
    entries = {}
    for section, entity_type in _VOCABULARY_SECTIONS.items():
        entries[entity_type] = [EntityMapping.model_validate(raw) for raw in data.get(section, [])]
    return EntityVocabulary(entries)


def _read_json(path: Path) -> Dict[str, Any]:
    with path.open(encoding="utf-8") as f:
        return json.load(f)


def load_data_context(data_dir: Path) -> DataContext:
    """Load vocabulary, explicit memory and statistics from ``data_dir``."""
    data_dir = Path(data_dir)
    context = DataContext(
        vocabulary=build_vocabulary(_read_json(data_dir / VOCABULARY_FILE)),
        explicit_memory=ExplicitMemoryStore(_read_json(data_dir / EXPLICIT_MEMORY_FILE)),
        statistics=PrecomputedStatisticsStore(_read_json(data_dir / STATISTICS_FILE)),
    )
    logger.info(
        "Data context loaded",
        data_dir=str(data_dir),
        vocabulary_entries=len(context.vocabulary),
        products=len(context.explicit_memory.product_codes()),
        years=context.statistics.years(),
    )
    return context
