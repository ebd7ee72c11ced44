"""Lecture du référentiel depuis les fichiers du répertoire de données.

Fichiers attendus :
- regions.json, departements.json, communes.json : listes d'enregistrements
  (clés camelCase, géométries GeoJSON en WGS84)
- communes-contours.geojson (optionnel) : contours des communes, associés par
  la colonne « code »
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

import geopandas as gpd

from geocog.config import Settings
from geocog.exceptions import LoaderError
from geocog.store import EntityStore, Snapshot

if TYPE_CHECKING:
    from shapely.geometry.base import BaseGeometry

logger = logging.getLogger(__name__)

REGIONS_FILE = "regions.json"
DEPARTEMENTS_FILE = "departements.json"
COMMUNES_FILE = "communes.json"
CONTOURS_FILE = "communes-contours.geojson"
TARGET_EPSG = 4326


class SnapshotLoader:
    """Construit un Snapshot à partir d'un répertoire de données."""

    def __init__(
        self,
        data_dir: Path | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialise le loader.

        Args:
            data_dir: Répertoire des fichiers (celui de la configuration par défaut).
            settings: Configuration du module.
        """
        self.settings = settings or Settings()
        self.data_dir = data_dir or self.settings.data_dir

    def load(self) -> Snapshot:
        """Lit tous les fichiers du référentiel.

        Returns:
            Snapshot des régions, départements et communes.

        Raises:
            LoaderError: Si un fichier est absent ou illisible.
        """
        if not self.data_dir.is_dir():
            raise LoaderError(f"Répertoire de données introuvable: {self.data_dir}")

        logger.info("Chargement du référentiel depuis: %s", self.data_dir)

        regions = self.read_records(REGIONS_FILE)
        departements = self.read_records(DEPARTEMENTS_FILE)
        communes = self.read_records(COMMUNES_FILE)

        contours_path = self.data_dir / CONTOURS_FILE
        if contours_path.exists():
            communes = self.merge_contours(communes, self.read_contours(contours_path))

        return Snapshot(regions=regions, departements=departements, communes=communes)

    def read_records(self, filename: str) -> list[dict[str, Any]]:
        """Lit une liste d'enregistrements JSON.

        Args:
            filename: Nom du fichier dans le répertoire de données.

        Returns:
            Enregistrements lus.
        """
        path = self.data_dir / filename
        logger.debug("Lecture de: %s", path)

        try:
            with path.open(encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError as e:
            raise LoaderError(f"Fichier introuvable: {path}") from e
        except (OSError, json.JSONDecodeError) as e:
            raise LoaderError(f"Fichier illisible: {path} ({e})") from e

        if not isinstance(data, list):
            raise LoaderError(f"Liste d'enregistrements attendue dans: {path}")

        logger.info("%s: %d enregistrements", filename, len(data))
        return data

    def read_contours(self, path: Path) -> dict[str, BaseGeometry]:
        """Lit un fichier de contours et l'indexe par code commune.

        Les géométries sont reprojetées en WGS84 si nécessaire.

        Args:
            path: Fichier GeoJSON (ou tout format lisible par GeoPandas).

        Returns:
            Contour par code commune.
        """
        logger.debug("Lecture des contours: %s", path)
        try:
            gdf = gpd.read_file(path)
        except Exception as e:
            raise LoaderError(f"Contours illisibles: {path} ({e})") from e

        if "code" not in gdf.columns:
            raise LoaderError(f"Colonne 'code' absente des contours: {path}")

        current_epsg = gdf.crs.to_epsg() if gdf.crs else None
        if current_epsg is not None and current_epsg != TARGET_EPSG:
            logger.debug("Reprojection de EPSG:%s vers EPSG:%s", current_epsg, TARGET_EPSG)
            gdf = gdf.to_crs(epsg=TARGET_EPSG)

        contours = {
            str(code): geom
            for code, geom in zip(gdf["code"], gdf.geometry, strict=True)
            if geom is not None and not geom.is_empty
        }
        logger.info("Contours lus: %d communes", len(contours))
        return contours

    @staticmethod
    def merge_contours(
        communes: list[dict[str, Any]],
        contours: dict[str, BaseGeometry],
    ) -> list[dict[str, Any]]:
        """Associe les contours aux communes qui n'en ont pas."""
        merged = []
        for record in communes:
            code = record.get("code")
            if record.get("contour") is None and code in contours:
                record = {**record, "contour": contours[code]}
            merged.append(record)
        return merged


def load_store(
    data_dir: Path | None = None,
    settings: Settings | None = None,
) -> EntityStore:
    """Charge le référentiel et construit le store.

    Raises:
        StoreBuildError: Si les fichiers sont absents ou incohérents.
    """
    snapshot = SnapshotLoader(data_dir, settings).load()
    return EntityStore.build(snapshot)
