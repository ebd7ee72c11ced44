"""Loaders du référentiel géographique.

- SnapshotLoader: lit les fichiers JSON / GeoJSON du répertoire de données
- load_store: lecture + construction du store immuable
"""

from geocog.loaders.snapshot import SnapshotLoader, load_store

__all__ = [
    "SnapshotLoader",
    "load_store",
]
