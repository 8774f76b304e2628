"""Controlled vocabulary and entity resolution.

Provides:
- EntityMapping records loaded once at process start
- EntityMatcher (exact / alias / fuzzy resolution of free-text terms)
"""

from libs.vocabulary.matcher import (
    EntityMapping,
    EntityMatcher,
    EntityType,
    EntityVocabulary,
    MatchType,
    ResolvedMatch,
    normalize,
)

__all__ = [
    "EntityMapping",
    "EntityMatcher",
    "EntityType",
    "EntityVocabulary",
    "MatchType",
    "ResolvedMatch",
    "normalize",
]
