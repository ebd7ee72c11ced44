"""Stockage immuable des entités du référentiel géographique.

Le store est construit une seule fois à partir d'un snapshot cohérent puis
partagé en lecture par tous les composants. Les entités sont rangées dans des
tuples triés par code : une position dans le tuple identifie une entité, et
l'ordre des positions est l'ordre croissant des codes.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from geocog.exceptions import StoreBuildError
from geocog.types.entities import (
    ENTITY_MODELS,
    Commune,
    Departement,
    EntityBase,
    EntityKind,
    Region,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Snapshot:
    """Données brutes du référentiel, telles que lues depuis les fichiers source.

    Attributes:
        regions: Enregistrements des régions.
        departements: Enregistrements des départements.
        communes: Enregistrements des communes.
    """

    regions: Sequence[Mapping[str, Any]] = field(default_factory=tuple)
    departements: Sequence[Mapping[str, Any]] = field(default_factory=tuple)
    communes: Sequence[Mapping[str, Any]] = field(default_factory=tuple)

    def records(self, kind: EntityKind) -> Sequence[Mapping[str, Any]]:
        """Retourne les enregistrements bruts d'un type d'entité."""
        if kind == EntityKind.REGION:
            return self.regions
        if kind == EntityKind.DEPARTEMENT:
            return self.departements
        return self.communes


class EntityStore:
    """Collections immuables des communes, départements et régions."""

    def __init__(
        self,
        regions: tuple[Region, ...],
        departements: tuple[Departement, ...],
        communes: tuple[Commune, ...],
    ) -> None:
        self._entities: Mapping[EntityKind, tuple[Any, ...]] = MappingProxyType(
            {
                EntityKind.REGION: regions,
                EntityKind.DEPARTEMENT: departements,
                EntityKind.COMMUNE: communes,
            }
        )
        self._positions: Mapping[EntityKind, Mapping[str, int]] = MappingProxyType(
            {
                kind: MappingProxyType({entity.code: i for i, entity in enumerate(entities)})
                for kind, entities in self._entities.items()
            }
        )

    @classmethod
    def build(cls, snapshot: Snapshot) -> EntityStore:
        """Valide un snapshot et construit le store.

        Args:
            snapshot: Données brutes du référentiel.

        Returns:
            Store prêt à être interrogé.

        Raises:
            StoreBuildError: Si un enregistrement est invalide, si un code est
                dupliqué ou si une clé étrangère ne se résout pas.
        """
        regions = cls._validate_records(EntityKind.REGION, snapshot.regions)
        departements = cls._validate_records(EntityKind.DEPARTEMENT, snapshot.departements)
        communes = cls._validate_records(EntityKind.COMMUNE, snapshot.communes)

        region_codes = {r.code for r in regions}
        departement_codes = {d.code for d in departements}

        for departement in departements:
            if departement.code_region not in region_codes:
                raise StoreBuildError(
                    f"Département {departement.code}: région inconnue {departement.code_region}"
                )

        for commune in communes:
            if commune.code_region is not None and commune.code_region not in region_codes:
                raise StoreBuildError(f"Commune {commune.code}: région inconnue {commune.code_region}")
            if (
                commune.code_departement is not None
                and commune.code_departement not in departement_codes
            ):
                raise StoreBuildError(
                    f"Commune {commune.code}: département inconnu {commune.code_departement}"
                )

        store = cls(regions, departements, communes)  # type: ignore[arg-type]
        logger.info(
            "Store construit: %d régions, %d départements, %d communes",
            len(regions),
            len(departements),
            len(communes),
        )
        return store

    @staticmethod
    def _validate_records(
        kind: EntityKind,
        records: Sequence[Mapping[str, Any]],
    ) -> tuple[EntityBase, ...]:
        """Valide les enregistrements d'un type et les trie par code."""
        model = ENTITY_MODELS[kind]
        entities: list[EntityBase] = []
        seen: set[str] = set()

        for i, record in enumerate(records):
            try:
                entity = model.model_validate(record)
            except PydanticValidationError as e:
                raise StoreBuildError(f"Enregistrement {kind} invalide (#{i}): {e}") from e

            if entity.code in seen:
                raise StoreBuildError(f"Code {kind} dupliqué: {entity.code}")
            seen.add(entity.code)
            entities.append(entity)

        entities.sort(key=lambda e: e.code)
        logger.debug("%d entités %s validées", len(entities), kind)
        return tuple(entities)

    def entities(self, kind: EntityKind) -> tuple[Any, ...]:
        """Retourne toutes les entités d'un type, triées par code."""
        return self._entities[kind]

    def entity_at(self, kind: EntityKind, position: int) -> Any:
        """Retourne l'entité à une position donnée."""
        return self._entities[kind][position]

    def position_of(self, kind: EntityKind, code: str) -> int | None:
        """Retourne la position d'une entité à partir de son code."""
        return self._positions[kind].get(code)

    def count(self, kind: EntityKind) -> int:
        """Nombre d'entités d'un type."""
        return len(self._entities[kind])

    def counts(self) -> dict[EntityKind, int]:
        """Nombre d'entités par type."""
        return {kind: len(entities) for kind, entities in self._entities.items()}

    @property
    def regions(self) -> tuple[Region, ...]:
        return self._entities[EntityKind.REGION]

    @property
    def departements(self) -> tuple[Departement, ...]:
        return self._entities[EntityKind.DEPARTEMENT]

    @property
    def communes(self) -> tuple[Commune, ...]:
        return self._entities[EntityKind.COMMUNE]
