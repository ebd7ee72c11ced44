"""Configuration des fixtures pytest pour pyGeoCog.

Ce module fournit les fixtures communes pour tous les tests :
- Store construit à partir des données fournies avec le paquet
- Snapshot synthétique réduit (cas limites : parent sans enfant, commune
  sans département, code postal partagé)
- Composants du moteur (index, recherche floue, moteur, projection, façade)
"""

from __future__ import annotations

from typing import Any

import pytest

from geocog.api import GeoApi
from geocog.config import DEFAULT_DATA_DIR
from geocog.index import ExactMatchIndex
from geocog.loaders import load_store
from geocog.matcher import FuzzyNameMatcher
from geocog.projection import FieldProjector
from geocog.query import QueryEngine
from geocog.store import EntityStore, Snapshot

# =============================================================================
# Données synthétiques
# =============================================================================


def square(x: float, y: float, size: float = 1.0) -> dict[str, Any]:
    """Polygone GeoJSON carré de coin inférieur gauche (x, y)."""
    return {
        "type": "Polygon",
        "coordinates": [
            [[x, y], [x + size, y], [x + size, y + size], [x, y + size], [x, y]],
        ],
    }


def point(x: float, y: float) -> dict[str, Any]:
    """Point GeoJSON."""
    return {"type": "Point", "coordinates": [x, y]}


@pytest.fixture
def sample_records() -> dict[str, list[dict[str, Any]]]:
    """Enregistrements bruts d'un petit référentiel cohérent."""
    return {
        "regions": [
            {"code": "28", "nom": "Normandie"},
            {"code": "11", "nom": "Île-de-France"},
        ],
        "departements": [
            {"code": "75", "nom": "Paris", "codeRegion": "11"},
            {"code": "91", "nom": "Essonne", "codeRegion": "11"},
            {"code": "27", "nom": "Eure", "codeRegion": "28"},
            {"code": "14", "nom": "Calvados", "codeRegion": "28"},
        ],
        "communes": [
            {
                "code": "27229",
                "nom": "Évreux",
                "codesPostaux": ["27000"],
                "population": 46707,
                "codeDepartement": "27",
                "codeRegion": "28",
                "centre": point(0.5, 0.5),
                "contour": square(0, 0),
                "surface": 26.45,
            },
            {
                "code": "14118",
                "nom": "Caen",
                "codesPostaux": ["14000"],
                "population": 106230,
                "codeDepartement": "14",
                "codeRegion": "28",
                "centre": point(1.5, 0.5),
                "contour": square(1, 0),
                "surface": 25.7,
            },
            {
                "code": "75056",
                "nom": "Paris",
                "codesPostaux": ["75001", "75002"],
                "population": 2145906,
                "codeDepartement": "75",
                "codeRegion": "11",
                "centre": point(10.5, 10.5),
            },
            {
                "code": "27375",
                "nom": "Le Vieil-Évreux",
                "codesPostaux": ["27930"],
                "population": 700,
                "codeDepartement": "27",
                "codeRegion": "28",
                "centre": point(0.8, 0.2),
            },
            {
                "code": "27056",
                "nom": "Gauville-la-Campagne",
                "codesPostaux": ["27930"],
                "population": 500,
                "codeDepartement": "27",
                "codeRegion": "28",
            },
            {
                "code": "97701",
                "nom": "Saint-Barthélemy",
                "codesPostaux": ["97133"],
            },
        ],
    }


@pytest.fixture
def sample_snapshot(sample_records: dict[str, list[dict[str, Any]]]) -> Snapshot:
    """Snapshot synthétique (2 régions, 4 départements, 6 communes)."""
    return Snapshot(**sample_records)


@pytest.fixture
def sample_store(sample_snapshot: Snapshot) -> EntityStore:
    """Store construit à partir du snapshot synthétique."""
    return EntityStore.build(sample_snapshot)


@pytest.fixture
def sample_index(sample_store: EntityStore) -> ExactMatchIndex:
    """Index du store synthétique."""
    return ExactMatchIndex(sample_store)


# =============================================================================
# Référentiel fourni avec le paquet
# =============================================================================


@pytest.fixture(scope="session")
def store() -> EntityStore:
    """Store construit une seule fois à partir des données du paquet."""
    return load_store(DEFAULT_DATA_DIR)


@pytest.fixture(scope="session")
def index(store: EntityStore) -> ExactMatchIndex:
    """Index du référentiel complet."""
    return ExactMatchIndex(store)


@pytest.fixture(scope="session")
def matcher(store: EntityStore) -> FuzzyNameMatcher:
    """Recherche floue sur le référentiel complet."""
    return FuzzyNameMatcher(store)


@pytest.fixture(scope="session")
def engine(index: ExactMatchIndex, matcher: FuzzyNameMatcher) -> QueryEngine:
    """Moteur de requêtes."""
    return QueryEngine(index, matcher)


@pytest.fixture(scope="session")
def projector(index: ExactMatchIndex) -> FieldProjector:
    """Projection des champs."""
    return FieldProjector(index)


@pytest.fixture
def api(store: EntityStore) -> GeoApi:
    """Façade sur le référentiel complet (nouvelle instance par test)."""
    return GeoApi(store)
