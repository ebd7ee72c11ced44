"""Conversion des résultats projetés vers le format de sortie."""

from __future__ import annotations

from collections.abc import Sequence
from enum import StrEnum
from typing import Any

from geocog.projection import GEOMETRY_FIELDS

FEATURE_COLLECTION = "FeatureCollection"
FEATURE = "Feature"


class OutputFormat(StrEnum):
    """Formats de sortie."""

    JSON = "json"  # Liste d'enregistrements
    GEOJSON = "geojson"  # FeatureCollection GeoJSON


def to_feature(record: dict[str, Any], geometry: str | None = None) -> dict[str, Any]:
    """Convertit un enregistrement en Feature GeoJSON.

    Args:
        record: Enregistrement projeté.
        geometry: Champ géométrique à utiliser (« contour » ou « centre »). Si
            None, le contour s'il est présent, sinon le centre.

    Returns:
        Feature dont les propriétés excluent les champs géométriques.
    """
    names = (geometry,) if geometry else GEOMETRY_FIELDS
    shape = next((record[n] for n in names if record.get(n) is not None), None)

    properties = {k: v for k, v in record.items() if k not in GEOMETRY_FIELDS}
    return {"type": FEATURE, "geometry": shape, "properties": properties}


def to_feature_collection(
    records: Sequence[dict[str, Any]],
    geometry: str | None = None,
) -> dict[str, Any]:
    """Enveloppe des enregistrements dans une FeatureCollection."""
    return {
        "type": FEATURE_COLLECTION,
        "features": [to_feature(record, geometry) for record in records],
    }


def convert(
    records: Sequence[dict[str, Any]],
    output_format: OutputFormat | str = OutputFormat.JSON,
    geometry: str | None = None,
) -> list[dict[str, Any]] | dict[str, Any]:
    """Met en forme un ensemble de résultats.

    Args:
        records: Enregistrements déjà projetés.
        output_format: json (liste telle quelle) ou geojson.
        geometry: Champ géométrique imposé en GeoJSON (voir to_feature).

    Returns:
        Liste d'enregistrements ou FeatureCollection.
    """
    if OutputFormat(output_format) == OutputFormat.GEOJSON:
        return to_feature_collection(records, geometry)
    return list(records)
