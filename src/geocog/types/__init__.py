"""Types et modèles de données pour pyGeoCog."""

from geocog.types.entities import (
    ENTITY_MODELS,
    Commune,
    Departement,
    Entity,
    EntityBase,
    EntityKind,
    Region,
)

__all__ = [
    "ENTITY_MODELS",
    "Commune",
    "Departement",
    "Entity",
    "EntityBase",
    "EntityKind",
    "Region",
]
