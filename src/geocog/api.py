"""Façade de consultation du référentiel.

Cette façade reçoit des paramètres sous la forme d'un client HTTP (noms
camelCase, valeurs éventuellement textuelles), les valide, puis enchaîne :
moteur de requêtes -> projection des champs -> format de sortie.

Correspondance avec un statut HTTP (assurée par la couche appelante) :
- ValidationError / NoCriteriaError -> 400
- NotFoundError -> 404
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Literal, NamedTuple, TypeVar

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic import ValidationError as PydanticValidationError

from geocog.config import Settings
from geocog.exceptions import NotFoundError, ValidationError
from geocog.formats import OutputFormat, convert, to_feature
from geocog.index import ExactMatchIndex
from geocog.loaders.snapshot import load_store
from geocog.matcher import FuzzyNameMatcher, ScoredEntity
from geocog.projection import GEOMETRY_FIELDS, FieldProjector
from geocog.query import Criteria, QueryEngine
from geocog.query_config import QueryConfig
from geocog.store import EntityStore
from geocog.types.entities import EntityKind

logger = logging.getLogger(__name__)

P = TypeVar("P", bound=BaseModel)


class OutputParams(BaseModel):
    """Paramètres de mise en forme de la réponse."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)

    fields: str | list[str] | None = Field(default=None, description="Champs à retourner")
    format: OutputFormat = Field(default=OutputFormat.JSON, description="Format de sortie")
    geometry: Literal["centre", "contour"] | None = Field(
        default=None,
        description="Géométrie utilisée en GeoJSON (contour puis centre par défaut)",
    )

    def projection_fields(self, kind: EntityKind) -> tuple[str, ...]:
        """Champs à projeter, géométries comprises en sortie GeoJSON.

        Raises:
            ValidationError: Si un champ est inconnu ou si le format n'est pas
                disponible pour ce type d'entité.
        """
        fields = FieldProjector.resolve_fields(kind, self.fields)
        if self.format != OutputFormat.GEOJSON:
            return fields

        if kind != EntityKind.COMMUNE:
            raise ValidationError(f"Format {self.format} non disponible pour {kind}")
        geometries = (self.geometry,) if self.geometry else GEOMETRY_FIELDS
        return fields + tuple(g for g in geometries if g not in fields)


class SearchParams(OutputParams):
    """Critères de recherche et paramètres de sortie."""

    code: str | None = None
    nom: str | None = None
    code_postal: str | None = Field(default=None, alias="codePostal", pattern=r"^\d{5}$")
    code_departement: str | None = Field(default=None, alias="codeDepartement")
    code_region: str | None = Field(default=None, alias="codeRegion")
    lat: float | None = Field(default=None, ge=-90, le=90)
    lon: float | None = Field(default=None, ge=-180, le=180)
    limit: int | None = Field(default=None, gt=0)

    @model_validator(mode="after")
    def check_position(self) -> SearchParams:
        """lat et lon vont ensemble."""
        if (self.lat is None) != (self.lon is None):
            raise ValueError("lat et lon doivent être fournis ensemble")
        return self

    def criteria(self) -> Criteria:
        return Criteria(
            code=self.code,
            nom=self.nom,
            code_postal=self.code_postal,
            code_departement=self.code_departement,
            code_region=self.code_region,
            lon=self.lon,
            lat=self.lat,
        )


def parse_params(model: type[P], params: Mapping[str, Any]) -> P:
    """Valide des paramètres d'appel.

    Raises:
        ValidationError: Si un paramètre est inconnu ou invalide.
    """
    try:
        return model.model_validate(dict(params))
    except PydanticValidationError as e:
        details = "; ".join(
            f"{'.'.join(str(loc) for loc in err['loc']) or 'params'}: {err['msg']}"
            for err in e.errors()
        )
        raise ValidationError(f"Paramètres invalides: {details}") from e


class _Runtime(NamedTuple):
    """Composants construits pour un même snapshot."""

    store: EntityStore
    index: ExactMatchIndex
    engine: QueryEngine
    projector: FieldProjector


class GeoApi:
    """Point d'entrée pour interroger communes, départements et régions."""

    def __init__(self, store: EntityStore, config: QueryConfig | None = None) -> None:
        """Initialise la façade.

        Args:
            store: Store immuable.
            config: Configuration du moteur.
        """
        self.config = config or QueryConfig()
        self._runtime = self._build_runtime(store)

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> GeoApi:
        """Charge le référentiel décrit par la configuration."""
        settings = settings or Settings()
        return cls(load_store(settings=settings), settings.query_config)

    def _build_runtime(self, store: EntityStore) -> _Runtime:
        index = ExactMatchIndex(store)
        matcher = FuzzyNameMatcher(store, self.config.search)
        return _Runtime(store, index, QueryEngine(index, matcher), FieldProjector(index))

    @property
    def store(self) -> EntityStore:
        return self._runtime.store

    def reload(self, store: EntityStore) -> None:
        """Remplace le référentiel.

        Les index du nouveau store sont construits avant la bascule ; un appel
        en cours continue sur les composants qu'il a déjà obtenus.
        """
        runtime = self._build_runtime(store)
        self._runtime = runtime
        logger.info("Référentiel remplacé: %s", {str(k): v for k, v in store.counts().items()})

    # ------------------------------------------------------------------
    # Communes
    # ------------------------------------------------------------------

    def communes(self, **params: Any) -> list[dict[str, Any]] | dict[str, Any]:
        """Recherche de communes (au moins un critère requis)."""
        return self._search(EntityKind.COMMUNE, params)

    def commune(self, code: str, **params: Any) -> dict[str, Any]:
        """Retourne une commune par son code."""
        return self._get(EntityKind.COMMUNE, code, params)

    # ------------------------------------------------------------------
    # Départements
    # ------------------------------------------------------------------

    def departements(self, **params: Any) -> list[dict[str, Any]] | dict[str, Any]:
        """Recherche de départements (tous sans critère)."""
        return self._search(EntityKind.DEPARTEMENT, params, allow_unfiltered=True)

    def departement(self, code: str, **params: Any) -> dict[str, Any]:
        """Retourne un département par son code."""
        return self._get(EntityKind.DEPARTEMENT, code, params)

    def departement_communes(
        self,
        code: str,
        **params: Any,
    ) -> list[dict[str, Any]] | dict[str, Any]:
        """Liste les communes d'un département."""
        return self._children(EntityKind.DEPARTEMENT, code, EntityKind.COMMUNE, params)

    # ------------------------------------------------------------------
    # Régions
    # ------------------------------------------------------------------

    def regions(self, **params: Any) -> list[dict[str, Any]] | dict[str, Any]:
        """Recherche de régions (toutes sans critère)."""
        return self._search(EntityKind.REGION, params, allow_unfiltered=True)

    def region(self, code: str, **params: Any) -> dict[str, Any]:
        """Retourne une région par son code."""
        return self._get(EntityKind.REGION, code, params)

    def region_departements(
        self,
        code: str,
        **params: Any,
    ) -> list[dict[str, Any]] | dict[str, Any]:
        """Liste les départements d'une région."""
        return self._children(EntityKind.REGION, code, EntityKind.DEPARTEMENT, params)

    # ------------------------------------------------------------------
    # Implémentation
    # ------------------------------------------------------------------

    def _search(
        self,
        kind: EntityKind,
        params: Mapping[str, Any],
        allow_unfiltered: bool = False,
    ) -> list[dict[str, Any]] | dict[str, Any]:
        runtime = self._runtime
        query = parse_params(SearchParams, params)
        fields = query.projection_fields(kind)
        criteria = query.criteria()

        if allow_unfiltered and criteria.is_empty():
            results = runtime.engine.list_all(kind, query.limit)
        else:
            results = runtime.engine.search(kind, criteria, query.limit)

        logger.debug("%s: %d résultats", kind, len(results))
        return self._render(runtime, results, fields, query)

    def _get(self, kind: EntityKind, code: str, params: Mapping[str, Any]) -> dict[str, Any]:
        runtime = self._runtime
        output = parse_params(OutputParams, params)
        fields = output.projection_fields(kind)

        entity = runtime.index.by_code(kind, code)
        if entity is None:
            raise NotFoundError(kind, code)

        record = runtime.projector.project(entity, fields)
        if output.format == OutputFormat.GEOJSON:
            return to_feature(record, output.geometry)
        return record

    def _children(
        self,
        parent_kind: EntityKind,
        code: str,
        child_kind: EntityKind,
        params: Mapping[str, Any],
    ) -> list[dict[str, Any]] | dict[str, Any]:
        runtime = self._runtime
        output = parse_params(OutputParams, params)
        fields = output.projection_fields(child_kind)

        children = runtime.index.children_of(parent_kind, code, child_kind)
        results = [ScoredEntity(child) for child in children]
        return self._render(runtime, results, fields, output)

    @staticmethod
    def _render(
        runtime: _Runtime,
        results: list[ScoredEntity],
        fields: tuple[str, ...],
        output: OutputParams,
    ) -> list[dict[str, Any]] | dict[str, Any]:
        records = [runtime.projector.project(r.entity, fields, r.score) for r in results]
        return convert(records, output.format, output.geometry)
