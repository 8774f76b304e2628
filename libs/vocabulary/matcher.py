"""Entity vocabulary and term matcher.

Resolves free-text terms pulled from a question to stable entity codes.
Matching is a coarse three-tier scheme evaluated in priority order,
first hit wins:

1. exact match against a primary name  -> confidence 1.0
2. exact match against an alias        -> confidence 0.9
3. substring match in either direction -> confidence 0.7

Both sides are normalized by case-folding and removing all whitespace.
A term that matches nothing yields ``None``; the matcher never guesses.

Note: the substring tier scores a one-character difference the same as a
long phrase that happens to contain a short name, so short names are a
likely source of false positives. Any match below 0.9 goes through the
confirmation sub-flow before it can influence planning.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import structlog
from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = structlog.get_logger(__name__)

EXACT_CONFIDENCE = 1.0
ALIAS_CONFIDENCE = 0.9
FUZZY_CONFIDENCE = 0.7

_WHITESPACE = re.compile(r"\s+")
_YEAR = re.compile(r"(?<!\d)(\d{4})(?!\d)")


class EntityType(str, Enum):
    """Entity types the pipeline recognizes."""

    ASSUMPTION = "assumption"
    PRODUCT = "product"
    CATEGORY = "category"
    YEAR = "year"


class MatchType(str, Enum):
    """How a term matched its entity."""

    EXACT = "exact"
    ALIAS = "alias"
    FUZZY = "fuzzy"


class EntityMapping(BaseModel):
    """Canonical record for one vocabulary entity."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    code: str = Field(min_length=1, description="Stable identifier, unique within its entity type")
    primary_name: str = Field(alias="primaryName", min_length=1, description="Canonical display name")
    aliases: Tuple[str, ...] = Field(default=(), description="Alternative names, in priority order")
    category: str = Field(description="Grouping the entity belongs to")

    @field_validator("primary_name")
    @classmethod
    def primary_name_must_not_be_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("primaryName must not be empty")
        return v


class ResolvedMatch(BaseModel):
    """Result of matching one extracted term against the vocabulary."""

    model_config = ConfigDict(frozen=True)

    entity_type: EntityType
    code: str
    matched_term: str = Field(description="Original text from the question")
    primary_name: str
    category: Optional[str] = None
    confidence: float = Field(ge=0.0, le=1.0)
    match_type: MatchType

    @property
    def needs_confirmation(self) -> bool:
        return self.confidence < ALIAS_CONFIDENCE


def normalize(text: str) -> str:
    """Case-fold and strip every whitespace character."""
    return _WHITESPACE.sub("", text).casefold()


class EntityVocabulary:
    """Immutable, per-type collection of entity mappings."""

    def __init__(self, entries: Dict[EntityType, Iterable[EntityMapping]]):
        self._entries: Dict[EntityType, Tuple[EntityMapping, ...]] = {}
        for entity_type, mappings in entries.items():
            if entity_type is EntityType.YEAR:
                raise ValueError("Years are resolved against the statistics store, not the vocabulary")
            mappings = tuple(mappings)
            codes = [m.code for m in mappings]
            duplicates = sorted({c for c in codes if codes.count(c) > 1})
            if duplicates:
                raise ValueError(f"Duplicate {entity_type.value} codes: {', '.join(duplicates)}")
            self._entries[entity_type] = mappings

    def entries(self, entity_type: EntityType) -> Tuple[EntityMapping, ...]:
        return self._entries.get(entity_type, ())

    def get(self, entity_type: EntityType, code: str) -> Optional[EntityMapping]:
        for mapping in self.entries(entity_type):
            if mapping.code == code:
                return mapping
        return None

    def __len__(self) -> int:
        return sum(len(v) for v in self._entries.values())


class EntityMatcher:
    """Resolves extracted terms against the vocabulary and known years."""

    def __init__(self, vocabulary: EntityVocabulary, known_years: Sequence[str] = ()):
        self.vocabulary = vocabulary
        self.known_years = frozenset(known_years)

    def resolve(self, term: str, entity_type: EntityType) -> Optional[ResolvedMatch]:
        """Best match for ``term`` within ``entity_type``, or ``None``."""
        if entity_type is EntityType.YEAR:
            return self.resolve_year(term)

        needle = normalize(term)
        if not needle:
            return None
        candidates = self.vocabulary.entries(entity_type)

        for mapping in candidates:
            if normalize(mapping.primary_name) == needle:
                return self._match(entity_type, mapping, term, EXACT_CONFIDENCE, MatchType.EXACT)

        for mapping in candidates:
            if any(normalize(alias) == needle for alias in mapping.aliases):
                return self._match(entity_type, mapping, term, ALIAS_CONFIDENCE, MatchType.ALIAS)

        for mapping in candidates:
            for name in (mapping.primary_name, *mapping.aliases):
                candidate = normalize(name)
                if candidate and (needle in candidate or candidate in needle):
                    return self._match(entity_type, mapping, term, FUZZY_CONFIDENCE, MatchType.FUZZY)

        return None

    def resolve_year(self, term: str) -> Optional[ResolvedMatch]:
        """Exact match when the term carries a year the statistics store knows."""
        found = _YEAR.search(term)
        if not found or found.group(1) not in self.known_years:
            return None
        year = found.group(1)
        return ResolvedMatch(
            entity_type=EntityType.YEAR,
            code=year,
            matched_term=term,
            primary_name=year,
            category="year",
            confidence=EXACT_CONFIDENCE,
            match_type=MatchType.EXACT,
        )

    def resolve_all(self, terms: Dict[EntityType, Sequence[str]]) -> List[ResolvedMatch]:
        """Resolve every term, keeping the best match per (type, code)."""
        best: Dict[Tuple[EntityType, str], ResolvedMatch] = {}
        for entity_type, type_terms in terms.items():
            for term in type_terms:
                match = self.resolve(term, entity_type)
                if match is None:
                    logger.info("Term did not resolve", entity_type=entity_type.value, term=term)
                    continue
                key = (entity_type, match.code)
                if key not in best or match.confidence > best[key].confidence:
                    best[key] = match
        return list(best.values())

    @staticmethod
    def _match(
        entity_type: EntityType,
        mapping: EntityMapping,
        term: str,
        confidence: float,
        match_type: MatchType,
    ) -> ResolvedMatch:
        return ResolvedMatch(
            entity_type=entity_type,
            code=mapping.code,
            matched_term=term,
            primary_name=mapping.primary_name,
            category=mapping.category,
            confidence=confidence,
            match_type=match_type,
        )
