"""Projection des entités sur une liste de champs.

Chaque type d'entité a un schéma fixe : l'ensemble des champs autorisés et le
sous-ensemble retourné par défaut. Les champs « departement » et « region »
d'une commune (ou « region » d'un département) sont des résumés du parent
résolus via l'index au moment de la projection.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from shapely.geometry import mapping

from geocog.exceptions import UnknownFieldError
from geocog.index import ExactMatchIndex
from geocog.types.entities import EntityKind

SCORE_FIELD = "_score"
GEOMETRY_FIELDS = ("contour", "centre")


@dataclass(frozen=True)
class FieldSchema:
    """Champs autorisés et champs par défaut d'un type d'entité."""

    allowed: tuple[str, ...]
    default: tuple[str, ...]


FIELD_SCHEMAS: dict[EntityKind, FieldSchema] = {
    EntityKind.COMMUNE: FieldSchema(
        allowed=(
            "code",
            "nom",
            "codesPostaux",
            "population",
            "codeDepartement",
            "codeRegion",
            "departement",
            "region",
            "centre",
            "contour",
            "surface",
        ),
        default=("nom", "code", "codesPostaux", "codeDepartement", "codeRegion", "population"),
    ),
    EntityKind.DEPARTEMENT: FieldSchema(
        allowed=("code", "nom", "codeRegion", "region"),
        default=("nom", "code", "codeRegion"),
    ),
    EntityKind.REGION: FieldSchema(
        allowed=("code", "nom"),
        default=("nom", "code"),
    ),
}


def _geometry(value: Any) -> dict[str, Any] | None:
    return None if value is None else dict(mapping(value))


class FieldProjector:
    """Restreint les entités aux champs demandés."""

    def __init__(self, index: ExactMatchIndex) -> None:
        self.index = index
        self._accessors: dict[str, Callable[[Any], Any]] = {
            "code": lambda e: e.code,
            "nom": lambda e: e.nom,
            "codesPostaux": lambda e: list(e.codes_postaux),
            "population": lambda e: e.population,
            "codeDepartement": lambda e: e.code_departement,
            "codeRegion": lambda e: e.code_region,
            "departement": lambda e: self._summary(EntityKind.DEPARTEMENT, e.code_departement),
            "region": lambda e: self._summary(EntityKind.REGION, e.code_region),
            "centre": lambda e: _geometry(e.centre),
            "contour": lambda e: _geometry(e.contour),
            "surface": lambda e: e.surface,
        }

    @staticmethod
    def resolve_fields(
        kind: EntityKind,
        requested: str | Sequence[str] | None = None,
    ) -> tuple[str, ...]:
        """Valide une liste de champs.

        Args:
            kind: Type d'entité.
            requested: Liste séparée par des virgules, séquence de noms, ou
                None pour les champs par défaut.

        Returns:
            Champs dédoublonnés, dans l'ordre de la demande.

        Raises:
            UnknownFieldError: Si un champ n'appartient pas au schéma.
        """
        schema = FIELD_SCHEMAS[kind]
        if requested is None:
            return schema.default

        names = requested.split(",") if isinstance(requested, str) else list(requested)
        resolved = tuple(dict.fromkeys(name.strip() for name in names if name.strip()))
        if not resolved:
            return schema.default

        unknown = [name for name in resolved if name not in schema.allowed]
        if unknown:
            raise UnknownFieldError(kind, unknown)
        return resolved

    def project(
        self,
        entity: Any,
        fields: str | Sequence[str] | None = None,
        score: float | None = None,
    ) -> dict[str, Any]:
        """Projette une entité sur les champs demandés.

        Args:
            entity: Commune, département ou région.
            fields: Champs demandés (voir resolve_fields).
            score: Score de pertinence ajouté sous « _score » s'il est fourni.

        Returns:
            Dictionnaire contenant exactement les champs demandés (plus _score).
        """
        resolved = self.resolve_fields(entity.kind, fields)
        record = {name: self._accessors[name](entity) for name in resolved}
        if score is not None:
            record[SCORE_FIELD] = score
        return record

    def _summary(self, kind: EntityKind, code: str | None) -> dict[str, str] | None:
        """Résumé {code, nom} d'un parent, résolu via l'index."""
        if code is None:
            return None
        parent = self.index.by_code(kind, code)
        if parent is None:
            return None
        return {"code": parent.code, "nom": parent.nom}
