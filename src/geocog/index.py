"""Index de recherche exacte sur le store.

Tables construites une seule fois à côté du store :
- code -> position (fournie par le store)
- code parent -> positions des enfants (région -> départements,
  région -> communes, département -> communes)
- code postal -> positions des communes
- arbre spatial (STRtree) sur les contours des communes

Toutes les séquences de positions sont triées, donc dans l'ordre croissant
des codes.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable, Iterable
from types import MappingProxyType
from typing import Any

from shapely import STRtree
from shapely.geometry import Point

from geocog.exceptions import NotFoundError, ValidationError
from geocog.store import EntityStore
from geocog.types.entities import Commune, EntityKind

logger = logging.getLogger(__name__)

DEFAULT_CHILD_KIND: dict[EntityKind, EntityKind] = {
    EntityKind.REGION: EntityKind.DEPARTEMENT,
    EntityKind.DEPARTEMENT: EntityKind.COMMUNE,
}

# (parent, enfant) -> accesseur de la clé étrangère sur l'enfant
FOREIGN_KEYS: dict[tuple[EntityKind, EntityKind], Callable[[Any], str | None]] = {
    (EntityKind.REGION, EntityKind.DEPARTEMENT): lambda e: e.code_region,
    (EntityKind.REGION, EntityKind.COMMUNE): lambda e: e.code_region,
    (EntityKind.DEPARTEMENT, EntityKind.COMMUNE): lambda e: e.code_departement,
}


class ExactMatchIndex:
    """Recherche par code, par parent, par code postal et par position."""

    def __init__(self, store: EntityStore) -> None:
        """Construit les tables secondaires.

        Args:
            store: Store immuable à indexer.
        """
        self.store = store

        children: dict[tuple[EntityKind, EntityKind], Any] = {}
        for (parent_kind, child_kind), foreign_key in FOREIGN_KEYS.items():
            table: dict[str, list[int]] = defaultdict(list)
            for position, entity in enumerate(store.entities(child_kind)):
                parent_code = foreign_key(entity)
                if parent_code is not None:
                    table[parent_code].append(position)
            children[(parent_kind, child_kind)] = MappingProxyType(
                {code: tuple(positions) for code, positions in table.items()}
            )
        self._children = MappingProxyType(children)

        postal: dict[str, list[int]] = defaultdict(list)
        geometries = []
        geometry_positions: list[int] = []
        for position, commune in enumerate(store.communes):
            for code_postal in commune.codes_postaux:
                postal[code_postal].append(position)
            if commune.contour is not None:
                geometries.append(commune.contour)
                geometry_positions.append(position)
        self._postal = MappingProxyType({code: tuple(p) for code, p in postal.items()})

        self._tree = STRtree(geometries) if geometries else None
        self._tree_positions = tuple(geometry_positions)

        logger.debug(
            "Index construit: %d codes postaux, %d contours",
            len(self._postal),
            len(self._tree_positions),
        )

    # ------------------------------------------------------------------
    # Positions
    # ------------------------------------------------------------------

    def code_positions(self, kind: EntityKind, code: str) -> tuple[int, ...]:
        """Position de l'entité portant ce code (zéro ou une)."""
        position = self.store.position_of(kind, code)
        return () if position is None else (position,)

    def child_positions(
        self,
        parent_kind: EntityKind,
        parent_code: str,
        child_kind: EntityKind | None = None,
    ) -> tuple[int, ...]:
        """Positions des enfants d'un parent, sans vérifier que le parent existe.

        Raises:
            ValidationError: Si le couple parent/enfant n'est pas une relation
                du référentiel.
        """
        return self._child_table(parent_kind, child_kind).get(parent_code, ())

    def _child_table(
        self,
        parent_kind: EntityKind,
        child_kind: EntityKind | None,
    ) -> Any:
        child_kind = child_kind or DEFAULT_CHILD_KIND.get(parent_kind)
        table = self._children.get((parent_kind, child_kind))  # type: ignore[arg-type]
        if table is None:
            raise ValidationError(f"Pas de relation {parent_kind} -> {child_kind}")
        return table

    def postal_positions(self, code_postal: str) -> tuple[int, ...]:
        """Positions des communes desservies par un code postal."""
        return self._postal.get(code_postal, ())

    def point_positions(self, lon: float, lat: float) -> tuple[int, ...]:
        """Positions des communes dont le contour contient ou touche le point."""
        if self._tree is None:
            return ()
        hits = self._tree.query(Point(lon, lat), predicate="intersects")
        return tuple(sorted(self._tree_positions[i] for i in hits))

    # ------------------------------------------------------------------
    # Entités
    # ------------------------------------------------------------------

    def _entities(self, kind: EntityKind, positions: Iterable[int]) -> tuple[Any, ...]:
        entities = self.store.entities(kind)
        return tuple(entities[p] for p in positions)

    def by_code(self, kind: EntityKind, code: str) -> Any | None:
        """Retourne l'entité portant ce code, ou None."""
        position = self.store.position_of(kind, code)
        if position is None:
            return None
        return self.store.entity_at(kind, position)

    def children_of(
        self,
        parent_kind: EntityKind,
        parent_code: str,
        child_kind: EntityKind | None = None,
    ) -> tuple[Any, ...]:
        """Retourne les enfants d'un parent, triés par code.

        Args:
            parent_kind: Type du parent (région ou département).
            parent_code: Code du parent.
            child_kind: Type des enfants (par défaut le niveau immédiatement
                inférieur).

        Returns:
            Enfants dont la clé étrangère vaut parent_code (éventuellement aucun).

        Raises:
            NotFoundError: Si le parent n'existe pas.
        """
        table = self._child_table(parent_kind, child_kind)
        if self.store.position_of(parent_kind, parent_code) is None:
            raise NotFoundError(parent_kind, parent_code)
        child_kind = child_kind or DEFAULT_CHILD_KIND[parent_kind]
        return self._entities(child_kind, table.get(parent_code, ()))

    def by_postal_code(self, code_postal: str) -> tuple[Commune, ...]:
        """Retourne toutes les communes desservies par un code postal."""
        return self._entities(EntityKind.COMMUNE, self.postal_positions(code_postal))

    def containing(self, lon: float, lat: float) -> tuple[Commune, ...]:
        """Retourne les communes dont le contour contient le point (lon, lat)."""
        return self._entities(EntityKind.COMMUNE, self.point_positions(lon, lat))
