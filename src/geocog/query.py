"""Moteur de requêtes.

Chaque appel est indépendant : le moteur ne garde aucun état entre deux
requêtes. Les critères fournis sont combinés en ET : l'ensemble des candidats
est l'intersection des ensembles produits par chaque critère exact, puis la
recherche par nom (si demandée) classe les candidats restants.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, fields

from geocog.exceptions import NoCriteriaError, ValidationError
from geocog.index import ExactMatchIndex
from geocog.matcher import FuzzyNameMatcher, ScoredEntity
from geocog.types.entities import EntityKind

logger = logging.getLogger(__name__)

SUPPORTED_PREDICATES: dict[EntityKind, frozenset[str]] = {
    EntityKind.COMMUNE: frozenset(
        {"code", "nom", "code_postal", "code_departement", "code_region", "position"}
    ),
    EntityKind.DEPARTEMENT: frozenset({"code", "nom", "code_region"}),
    EntityKind.REGION: frozenset({"code", "nom"}),
}


@dataclass(frozen=True)
class Criteria:
    """Critères de filtrage d'une requête.

    Attributes:
        code: Code exact de l'entité.
        nom: Texte recherché dans le nom (recherche floue).
        code_postal: Code postal desservant la commune.
        code_departement: Code du département parent.
        code_region: Code de la région parente.
        lon: Longitude d'un point contenu dans la commune.
        lat: Latitude d'un point contenu dans la commune.
    """

    code: str | None = None
    nom: str | None = None
    code_postal: str | None = None
    code_departement: str | None = None
    code_region: str | None = None
    lon: float | None = None
    lat: float | None = None

    def predicates(self) -> list[str]:
        """Noms des critères renseignés (lon/lat comptent pour « position »)."""
        names = [
            f.name
            for f in fields(self)
            if f.name not in ("lon", "lat") and getattr(self, f.name) is not None
        ]
        if self.lon is not None or self.lat is not None:
            names.append("position")
        return names

    def is_empty(self) -> bool:
        return not self.predicates()


class QueryEngine:
    """Exécute des requêtes filtrées sur un type d'entité."""

    def __init__(self, index: ExactMatchIndex, matcher: FuzzyNameMatcher) -> None:
        self.index = index
        self.matcher = matcher

    def search(
        self,
        kind: EntityKind,
        criteria: Criteria,
        limit: int | None = None,
    ) -> list[ScoredEntity]:
        """Recherche les entités satisfaisant tous les critères.

        Args:
            kind: Type d'entité recherché.
            criteria: Critères de filtrage (au moins un).
            limit: Nombre maximal de résultats.

        Returns:
            Entités triées par code croissant, ou par score décroissant si un
            critère de nom est présent. Liste vide si rien ne correspond.

        Raises:
            NoCriteriaError: Si aucun critère n'est fourni.
            ValidationError: Si un critère ne s'applique pas à ce type.
        """
        predicates = criteria.predicates()
        if not predicates:
            raise NoCriteriaError()

        unsupported = sorted(set(predicates) - SUPPORTED_PREDICATES[kind])
        if unsupported:
            raise ValidationError(f"Critères non applicables à {kind}: {', '.join(unsupported)}")
        if (criteria.lon is None) != (criteria.lat is None):
            raise ValidationError("lat et lon doivent être fournis ensemble")

        logger.debug("Recherche %s: %s", kind, criteria)

        candidates: set[int] | None = None
        for positions in self._exact_candidates(kind, criteria):
            candidates = set(positions) if candidates is None else candidates.intersection(positions)
            if not candidates:
                break

        if criteria.nom is not None:
            return self.matcher.search(kind, criteria.nom, candidates, limit)

        ordered = sorted(candidates or ())
        if limit:
            ordered = ordered[:limit]
        entities = self.index.store.entities(kind)
        return [ScoredEntity(entities[p]) for p in ordered]

    def _exact_candidates(self, kind: EntityKind, criteria: Criteria) -> Iterator[tuple[int, ...]]:
        """Produit l'ensemble de positions de chaque critère exact."""
        if criteria.code is not None:
            yield self.index.code_positions(kind, criteria.code)
        if criteria.code_postal is not None:
            yield self.index.postal_positions(criteria.code_postal)
        if criteria.code_departement is not None:
            yield self.index.child_positions(EntityKind.DEPARTEMENT, criteria.code_departement, kind)
        if criteria.code_region is not None:
            yield self.index.child_positions(EntityKind.REGION, criteria.code_region, kind)
        if criteria.lon is not None and criteria.lat is not None:
            yield self.index.point_positions(criteria.lon, criteria.lat)

    def list_all(self, kind: EntityKind, limit: int | None = None) -> list[ScoredEntity]:
        """Retourne toutes les entités d'un type, triées par code."""
        entities = self.index.store.entities(kind)
        if limit:
            entities = entities[:limit]
        return [ScoredEntity(entity) for entity in entities]
