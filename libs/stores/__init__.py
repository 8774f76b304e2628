"""Read-only data stores.

Provides:
- Explicit memory (assumption ↔ product relationships, design history)
- Precomputed statistics (yearly product metrics and aggregates)
- DataContext (both stores plus the vocabulary, loaded once)
"""

from libs.stores.context import DataContext, build_vocabulary, load_data_context
from libs.stores.explicit_memory import ExplicitMemoryStore
from libs.stores.statistics import PrecomputedStatisticsStore

__all__ = [
    "DataContext",
    "ExplicitMemoryStore",
    "PrecomputedStatisticsStore",
    "build_vocabulary",
    "load_data_context",
]
