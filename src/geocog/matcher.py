"""Recherche floue par nom.

La comparaison se fait sur des noms normalisés (casse, accents et ponctuation
ignorés), avec trois paliers de score :
1. égalité des noms normalisés
2. le nom commence par la requête
3. similarité approchée RapidFuzz (ratio / token_set_ratio), au-dessus d'un
   seuil minimal

Les scores sont bornés dans [0, 1]. Les ex aequo sont départagés par code
croissant.
"""

from __future__ import annotations

import re
import unicodedata
from collections.abc import Collection
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, NamedTuple

from rapidfuzz import fuzz

from geocog.query_config import SearchThresholds
from geocog.store import EntityStore
from geocog.types.entities import EntityKind

_LIGATURES = str.maketrans({"œ": "oe", "æ": "ae", "Œ": "OE", "Æ": "AE"})
_SEPARATORS = re.compile(r"[^a-z0-9]+")


def normalize_name(value: str) -> str:
    """Normalise un nom pour la comparaison.

    Exemple : "Côte-d'Or" -> "cote d or".

    Args:
        value: Nom brut.

    Returns:
        Nom en minuscules, sans accents, mots séparés par une espace.
    """
    decomposed = unicodedata.normalize("NFKD", value.translate(_LIGATURES))
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    return _SEPARATORS.sub(" ", stripped.lower()).strip()


@dataclass(frozen=True)
class NameMatch:
    """Correspondance entre une requête et l'entité à une position du store."""

    position: int
    score: float


class ScoredEntity(NamedTuple):
    """Entité accompagnée de son score de pertinence (None hors recherche par nom)."""

    entity: Any
    score: float | None = None


class FuzzyNameMatcher:
    """Classe la pertinence des noms d'entités pour une requête textuelle."""

    def __init__(
        self,
        store: EntityStore,
        thresholds: SearchThresholds | None = None,
    ) -> None:
        """Précalcule les noms normalisés de toutes les entités.

        Args:
            store: Store immuable.
            thresholds: Paliers de score et seuil de similarité.
        """
        self.store = store
        self.thresholds = thresholds or SearchThresholds()
        self._names = MappingProxyType(
            {
                kind: tuple(normalize_name(entity.nom) for entity in store.entities(kind))
                for kind in EntityKind
            }
        )

    def score(self, query: str, name: str) -> float | None:
        """Calcule le score d'un nom normalisé pour une requête normalisée.

        Returns:
            Score dans [0, 1], ou None si le nom n'est pas retenu.
        """
        t = self.thresholds
        if name == query:
            return t.exact_score
        if name.startswith(query):
            return t.prefix_score

        cutoff = t.min_similarity * 100
        similarity = max(
            fuzz.ratio(query, name, score_cutoff=cutoff),
            fuzz.token_set_ratio(query, name, score_cutoff=cutoff),
        )
        if similarity <= 0 or similarity < cutoff:
            return None
        return round(t.fuzzy_weight * similarity / 100, 4)

    def search_positions(
        self,
        kind: EntityKind,
        text: str | None,
        candidates: Collection[int] | None = None,
        limit: int | None = None,
    ) -> list[NameMatch]:
        """Recherche les positions des entités dont le nom correspond.

        Args:
            kind: Type d'entité.
            text: Texte recherché.
            candidates: Positions pré-filtrées (toutes si None).
            limit: Nombre maximal de résultats.

        Returns:
            Correspondances triées par score décroissant puis code croissant.
        """
        query = normalize_name(text or "")
        if not query:
            return []

        names = self._names[kind]
        positions = range(len(names)) if candidates is None else candidates

        matches = []
        for position in positions:
            score = self.score(query, names[position])
            if score is not None:
                matches.append(NameMatch(position, score))

        matches.sort(key=lambda m: (-m.score, m.position))
        limit = limit or self.thresholds.default_limit
        return matches[:limit] if limit else matches

    def search(
        self,
        kind: EntityKind,
        text: str | None,
        candidates: Collection[int] | None = None,
        limit: int | None = None,
    ) -> list[ScoredEntity]:
        """Recherche les entités dont le nom correspond à un texte.

        Returns:
            Liste classée de couples (entité, score).
        """
        entities = self.store.entities(kind)
        return [
            ScoredEntity(entities[m.position], m.score)
            for m in self.search_positions(kind, text, candidates, limit)
        ]
