"""Query decomposition into disambiguation entities, phrases, and residual terms."""

from __future__ import annotations

from abc import ABC, abstractmethod
import re
from typing import List, Optional, Sequence

from core import QueryEntities


_PHRASE_RE = re.compile(r'"([^"]+)"')
_CONNECTOR_SPLIT_RE = re.compile(
    r"\s*(?:,|\+|&|\b(?:and|vs\.?|versus|x|with|feat\.?|ft\.?|featuring)(?=\s|$))\s*",
    re.IGNORECASE,
)
_TOKEN_RE = re.compile(r"[0-9a-zÀ-ɏ']+", re.IGNORECASE)

CONNECTOR_WORDS = {"and", "vs", "versus", "x", "with", "feat", "ft", "featuring", "&", "+"}
PROFESSION_WORDS = {
    "singer", "actor", "actress", "player", "artist", "musician", "rapper", "songwriter",
    "producer", "concert", "tour", "movie", "film", "show", "album", "song", "model",
}
STOP_WORDS = {
    "a", "an", "the", "of", "in", "on", "at", "to", "for", "by", "from", "or", "is",
    "photo", "photos", "image", "images", "picture", "pictures", "pic", "pics",
}


def _tokens(text: str) -> List[str]:
    return [token.strip("'").lower() for token in _TOKEN_RE.findall(str(text or "")) if token.strip("'")]


def _dedupe(values: Sequence[str]) -> List[str]:
    seen = set()
    ordered: List[str] = []
    for value in values:
        key = str(value or "").strip().lower()
        if not key or key in seen:
            continue
        seen.add(key)
        ordered.append(key)
    return ordered


class EntityStrategy(ABC):
    """Splits a quote-free query into named subjects."""

    @abstractmethod
    def split(self, text: str) -> List[str]:
        ...


class ConnectorOnlyStrategy(EntityStrategy):
    """Split only on explicit connectors ("and", "&", "vs", ...)."""

    def split(self, text: str) -> List[str]:
        parts = [" ".join(_tokens(part)) for part in _CONNECTOR_SPLIT_RE.split(str(text or ""))]
        return _dedupe([part for part in parts if part])


class ConnectorPairingStrategy(ConnectorOnlyStrategy):
    """
    Connector split, falling back to token pairing for 3-6 token queries.

    Without a connector, profession words close the current entity and are
    dropped; otherwise tokens are grouped in twos (3 -> 2+1, 4 -> 2+2,
    5 -> 2+2+1, 6 -> 2+2+2). This guesses "first last" name pairs and will
    misparse single-subject queries such as three-word band names.
    """

    min_tokens = 3
    max_tokens = 6

    def split(self, text: str) -> List[str]:
        entities = super().split(text)
        if len(entities) != 1:
            return entities

        words = [word for word in _tokens(text) if word not in STOP_WORDS]
        if not (self.min_tokens <= len(words) <= self.max_tokens):
            return entities

        grouped: List[str] = []
        current: List[str] = []
        for word in words:
            if word in PROFESSION_WORDS:
                if current:
                    grouped.append(" ".join(current))
                    current = []
                continue
            current.append(word)
            if len(current) == 2:
                grouped.append(" ".join(current))
                current = []
        if current:
            grouped.append(" ".join(current))

        grouped = _dedupe(grouped)
        return grouped if len(grouped) > 1 else entities


class QueryAnalyzer:
    """Computes the QueryEntities view of a raw query."""

    def __init__(self, strategy: Optional[EntityStrategy] = None) -> None:
        self._strategy = strategy or ConnectorPairingStrategy()

    @property
    def strategy(self) -> EntityStrategy:
        return self._strategy

    def analyze(self, query: str) -> QueryEntities:
        raw = " ".join(str(query or "").split())
        phrases = _dedupe([" ".join(_tokens(match)) for match in _PHRASE_RE.findall(raw)])

        unquoted = raw.replace('"', " ")
        entities = self._strategy.split(unquoted)

        remainder = _PHRASE_RE.sub(" ", raw).replace('"', " ")
        residual = [
            token
            for token in _tokens(remainder)
            if token not in CONNECTOR_WORDS and token not in STOP_WORDS and len(token) > 1
        ]

        return QueryEntities(
            query=" ".join(_tokens(unquoted)),
            entities=tuple(entities),
            phrases=frozenset(phrases),
            residual_terms=frozenset(_dedupe(residual)),
        )


def analyze_query(query: str, *, heuristic_pairing: bool = True) -> QueryEntities:
    strategy: EntityStrategy = ConnectorPairingStrategy() if heuristic_pairing else ConnectorOnlyStrategy()
    return QueryAnalyzer(strategy).analyze(query)
