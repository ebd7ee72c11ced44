"""Configuration du moteur de requêtes via fichier YAML."""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, model_validator

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILENAME = "geocog.yml"


class SearchThresholds(BaseModel):
    """Seuils et scores de la recherche floue par nom.

    Score final :
    - égalité après normalisation : exact_score
    - le nom commence par la requête : prefix_score
    - sinon fuzzy_weight * similarité, si similarité >= min_similarity
    """

    min_similarity: float = Field(
        default=0.75,
        ge=0.0,
        le=1.0,
        description="Similarité minimale (0-1) pour retenir une correspondance approchée",
    )
    exact_score: float = Field(default=1.0, gt=0.0, le=1.0, description="Score d'égalité")
    prefix_score: float = Field(default=0.9, gt=0.0, le=1.0, description="Score de préfixe")
    fuzzy_weight: float = Field(
        default=0.8,
        gt=0.0,
        le=1.0,
        description="Pondération de la similarité approchée",
    )
    default_limit: int | None = Field(
        default=None,
        gt=0,
        description="Nombre maximal de résultats d'une recherche par nom",
    )

    @model_validator(mode="after")
    def check_order(self) -> SearchThresholds:
        """Les paliers de score doivent rester ordonnés."""
        if not self.exact_score >= self.prefix_score >= self.fuzzy_weight:
            raise ValueError("exact_score >= prefix_score >= fuzzy_weight attendu")
        return self


class OutputConfig(BaseModel):
    """Options de sortie JSON."""

    indent: int | None = Field(default=2, ge=0, description="Indentation JSON (None: compact)")


class QueryConfig(BaseModel):
    """Configuration complète du moteur."""

    search: SearchThresholds = Field(default_factory=SearchThresholds)
    output: OutputConfig = Field(default_factory=OutputConfig)


def get_default_config() -> QueryConfig:
    """Return the default configuration."""
    return QueryConfig()


def get_default_yaml() -> str:
    """Return the default YAML content."""
    return """# Configuration pyGeoCog
# Moteur de requêtes sur le Code Officiel Géographique

# Recherche floue par nom
search:
  # Similarité minimale (0-1) pour une correspondance approchée
  min_similarity: 0.75
  # Score d'une égalité après normalisation (casse et accents ignorés)
  exact_score: 1.0
  # Score quand le nom commence par la requête
  prefix_score: 0.9
  # Pondération appliquée à la similarité approchée
  fuzzy_weight: 0.8
  # Nombre maximal de résultats (null: pas de limite)
  default_limit: null

# Sortie JSON
output:
  indent: 2
"""


def load_config(config_path: Path | None = None) -> QueryConfig:
    """Load the configuration from a YAML file.

    A missing file yields the default configuration.

    Args:
        config_path: Path to the configuration file.
                    If None, uses the current directory.

    Returns:
        Loaded configuration.
    """
    if config_path is None:
        config_path = Path.cwd() / DEFAULT_CONFIG_FILENAME

    if not config_path.exists():
        logger.debug("Fichier de configuration inexistant, valeurs par défaut: %s", config_path)
        return get_default_config()

    logger.debug("Chargement de la configuration: %s", config_path)

    with config_path.open(encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if data is None:
        return get_default_config()

    return QueryConfig.model_validate(data)


def create_default_config(config_path: Path) -> None:
    """Create the default configuration file.

    Args:
        config_path: Path where the file will be created.
    """
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with config_path.open("w", encoding="utf-8") as f:
        f.write(get_default_yaml())

    logger.info("Configuration créée: %s", config_path)


def save_config(config: QueryConfig, config_path: Path) -> None:
    """Save a configuration to a YAML file.

    Args:
        config: Configuration to save.
        config_path: Destination path.
    """
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with config_path.open("w", encoding="utf-8") as f:
        f.write("# Configuration pyGeoCog\n\n")
        yaml.safe_dump(
            config.model_dump(mode="json"),
            f,
            allow_unicode=True,
            sort_keys=False,
        )

    logger.info("Configuration sauvegardée: %s", config_path)
