"""Modèles de données pour les divisions administratives françaises."""

from enum import StrEnum
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from shapely.geometry import MultiPolygon, Point, Polygon, shape
from shapely.geometry.base import BaseGeometry


class EntityKind(StrEnum):
    """Niveaux administratifs couverts par le référentiel."""

    COMMUNE = "commune"
    DEPARTEMENT = "departement"
    REGION = "region"


def parse_geometry(value: Any) -> Any:
    """Convertit une géométrie GeoJSON (dict) en géométrie Shapely.

    Les géométries Shapely et None sont retournées telles quelles, le reste est
    laissé à la validation du modèle.
    """
    if isinstance(value, dict):
        return shape(value)
    return value


class EntityBase(BaseModel):
    """Modèle de base pour une division administrative.

    Les modèles sont gelés : une entité chargée n'est jamais modifiée.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True, populate_by_name=True)

    kind: ClassVar[EntityKind]

    code: str = Field(..., min_length=1, description="Code officiel géographique")
    nom: str = Field(..., min_length=1, description="Nom de l'entité")


class Region(EntityBase):
    """Région française."""

    kind: ClassVar[EntityKind] = EntityKind.REGION


class Departement(EntityBase):
    """Département français."""

    kind: ClassVar[EntityKind] = EntityKind.DEPARTEMENT

    code_region: str = Field(..., alias="codeRegion", description="Code de la région")


class Commune(EntityBase):
    """Commune française."""

    kind: ClassVar[EntityKind] = EntityKind.COMMUNE

    codes_postaux: tuple[str, ...] = Field(
        ..., alias="codesPostaux", min_length=1, description="Codes postaux"
    )
    population: int | None = Field(default=None, ge=0, description="Population municipale")
    code_departement: str | None = Field(
        default=None,
        alias="codeDepartement",
        description="Code du département (absent pour certaines collectivités)",
    )
    code_region: str | None = Field(default=None, alias="codeRegion", description="Code de la région")
    centre: Point | None = Field(default=None, description="Centre de la commune (lon/lat)")
    contour: Polygon | MultiPolygon | None = Field(default=None, description="Contour de la commune")
    surface: float | None = Field(default=None, gt=0, description="Superficie en km²")

    @field_validator("centre", "contour", mode="before")
    @classmethod
    def ensure_geometry(cls, v: Any) -> Any:
        """Accepte les géométries au format GeoJSON."""
        return parse_geometry(v)

    @field_validator("contour")
    @classmethod
    def drop_empty_contour(cls, v: BaseGeometry | None) -> BaseGeometry | None:
        """Un contour vide équivaut à un contour absent."""
        if v is not None and v.is_empty:
            return None
        return v

    @model_validator(mode="after")
    def check_region_with_departement(self) -> "Commune":
        """Une commune rattachée à un département l'est aussi à une région."""
        if self.code_departement is not None and self.code_region is None:
            raise ValueError(f"codeRegion manquant pour la commune {self.code}")
        return self


Entity = Commune | Departement | Region

ENTITY_MODELS: dict[EntityKind, type[EntityBase]] = {
    EntityKind.COMMUNE: Commune,
    EntityKind.DEPARTEMENT: Departement,
    EntityKind.REGION: Region,
}
