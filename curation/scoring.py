"""Relevance and disambiguation scoring for image candidates."""

from __future__ import annotations

import re
from typing import FrozenSet, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from core import Candidate, EntityProfile, QueryEntities
from core.policy import PROFESSION_KEYWORDS
from curation.sanitize import url_words


_WORD_RE = re.compile(r"[0-9a-zÀ-ɏ']+", re.IGNORECASE)

ALL_ENTITIES_BOOST = 5.0
PARTIAL_ENTITY_WEIGHT = 3.0
PROFESSION_SUPPORT_BOOST = 1.0
PROFESSION_MISMATCH_PENALTY = -0.5
CONTEXT_KEYWORD_BOOST = 0.5
CONTEXT_KEYWORD_CAP = 2.0
EXCLUSION_PENALTY = -2.0
RESIDUAL_ONLY_SUPPORTED = 0.5
RESIDUAL_ONLY_UNSUPPORTED = -1.0
NO_MATCH_PENALTY = -2.0
SINGLE_ENTITY_WEIGHT = 2.0


def _words(text: str) -> List[str]:
    return [word.strip("'").lower() for word in _WORD_RE.findall(str(text or "")) if word.strip("'")]


def _contains(padded_text: str, phrase: str) -> bool:
    words = _words(phrase)
    if not words:
        return False
    return f" {' '.join(words)} " in padded_text


def resolution_boost(candidate: Candidate) -> float:
    megapixels = candidate.megapixels
    if megapixels >= 8.0:
        return 2.0
    if megapixels >= 4.0:
        return 1.0
    return 0.0


def metadata_text(candidate: Candidate) -> str:
    """Lower-cased word string over title, alt text, description and page URL."""
    parts = [
        candidate.title,
        candidate.alt_text,
        candidate.description,
        url_words(candidate.page_url),
    ]
    return " ".join(_words(" ".join(parts)))


def detect_professions(padded_text: str) -> Set[str]:
    found: Set[str] = set()
    for profession, keywords in PROFESSION_KEYWORDS.items():
        if any(_contains(padded_text, keyword) for keyword in keywords):
            found.add(profession)
    return found


def entity_present(entity: str, tokens: FrozenSet[str]) -> bool:
    words = _words(entity)
    return bool(words) and all(word in tokens for word in words)


def find_profile(entity: str, profiles: Mapping[str, EntityProfile]) -> Optional[EntityProfile]:
    key = " ".join(_words(entity))
    if key in profiles:
        return profiles[key]
    for profile in profiles.values():
        if any(" ".join(_words(alias)) == key for alias in profile.aliases):
            return profile
    return None


def _profession_adjustment(
    detected: Set[str],
    matched_profiles: Sequence[EntityProfile],
) -> float:
    expected = {profile.profession for profile in matched_profiles if profile.profession}
    supported = detected & expected if expected else detected
    return PROFESSION_SUPPORT_BOOST if supported else PROFESSION_MISMATCH_PENALTY


def _profile_adjustment(padded_text: str, matched_profiles: Sequence[EntityProfile]) -> float:
    adjustment = 0.0
    context_hits = 0
    for profile in matched_profiles:
        context_hits += sum(1 for keyword in profile.context_keywords if _contains(padded_text, keyword))
        if any(_contains(padded_text, term) for term in profile.exclusion_terms):
            adjustment += EXCLUSION_PENALTY
    adjustment += min(CONTEXT_KEYWORD_CAP, context_hits * CONTEXT_KEYWORD_BOOST)
    return adjustment


def _multi_entity_boost(
    padded_text: str,
    tokens: FrozenSet[str],
    entities: QueryEntities,
    profiles: Mapping[str, EntityProfile],
) -> float:
    matched = [entity for entity in entities.entities if entity_present(entity, tokens)]
    detected = detect_professions(padded_text)
    total = len(entities.entities)

    if len(matched) == total:
        return ALL_ENTITIES_BOOST + (PROFESSION_SUPPORT_BOOST if detected else 0.0)

    if matched:
        matched_profiles = [profile for profile in (find_profile(e, profiles) for e in matched) if profile]
        boost = PARTIAL_ENTITY_WEIGHT * len(matched) / float(total)
        boost += _profession_adjustment(detected, matched_profiles)
        boost += _profile_adjustment(padded_text, matched_profiles)
        return boost

    if any(term in tokens for term in entities.residual_terms):
        return RESIDUAL_ONLY_SUPPORTED if detected else RESIDUAL_ONLY_UNSUPPORTED
    return NO_MATCH_PENALTY


def _coverage_boost(padded_text: str, tokens: FrozenSet[str], entities: QueryEntities) -> float:
    wanted = len(entities.residual_terms) + len(entities.phrases)
    if wanted == 0:
        return 0.0
    hits = sum(1 for term in entities.residual_terms if term in tokens)
    hits += sum(1 for phrase in entities.phrases if _contains(padded_text, phrase))
    return SINGLE_ENTITY_WEIGHT * hits / float(wanted)


def score(
    candidate: Candidate,
    entities: QueryEntities,
    profiles: Optional[Mapping[str, EntityProfile]] = None,
) -> float:
    """
    Composite score: resolution boost plus co-occurrence boost.

    Multi-entity queries reward candidates whose metadata names every
    entity and use profession vocabulary and entity profiles to separate
    same-named people on partial matches. Single-entity queries use the
    fraction of residual terms and phrases found in the metadata.
    """
    text = metadata_text(candidate)
    padded = f" {text} "
    tokens = frozenset(text.split())

    value = resolution_boost(candidate)
    if entities.is_multi_entity:
        value += _multi_entity_boost(padded, tokens, entities, profiles or {})
    else:
        value += _coverage_boost(padded, tokens, entities)
    return round(value, 4)


def score_candidates(
    candidates: Iterable[Candidate],
    entities: QueryEntities,
    profiles: Optional[Mapping[str, EntityProfile]] = None,
) -> List[Candidate]:
    return [
        candidate.model_copy(update={"quality_score": score(candidate, entities, profiles)})
        for candidate in candidates
    ]


def sort_key(candidate: Candidate) -> Tuple[float, int, str, str]:
    return (-float(candidate.quality_score), -candidate.pixel_count, candidate.signature, candidate.image_url)


def rank_candidates(
    candidates: Iterable[Candidate],
    entities: QueryEntities,
    profiles: Optional[Mapping[str, EntityProfile]] = None,
) -> List[Candidate]:
    """Score and sort candidates by the composite key."""
    return sorted(score_candidates(candidates, entities, profiles), key=sort_key)
