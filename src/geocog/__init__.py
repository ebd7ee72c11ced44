"""
pyGeoCog - Moteur de requêtes en mémoire sur le Code Officiel Géographique.

Ce module permet d'interroger les communes, départements et régions
françaises : recherche par code, par code postal, par rattachement
administratif, par nom (recherche floue) ou par position, avec projection des
champs et sortie JSON ou GeoJSON.
"""

from geocog.api import GeoApi
from geocog.config import Settings
from geocog.exceptions import (
    GeoCogError,
    NoCriteriaError,
    NotFoundError,
    StoreBuildError,
    ValidationError,
)
from geocog.formats import OutputFormat
from geocog.loaders import SnapshotLoader, load_store
from geocog.store import EntityStore, Snapshot
from geocog.types import Commune, Departement, EntityKind, Region

__version__ = "0.1.0"
__all__ = [
    # Modèles
    "Commune",
    "Departement",
    "EntityKind",
    # Store
    "EntityStore",
    # Façade
    "GeoApi",
    # Erreurs
    "GeoCogError",
    "NoCriteriaError",
    "NotFoundError",
    "OutputFormat",
    "Region",
    # Configuration
    "Settings",
    "Snapshot",
    "SnapshotLoader",
    "StoreBuildError",
    "ValidationError",
    # Version
    "__version__",
    "load_store",
]
