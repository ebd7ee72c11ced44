"""Configuration du module pyGeoCog."""

import logging
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from geocog.query_config import (
    DEFAULT_CONFIG_FILENAME,
    QueryConfig,
    load_config,
)

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = Path(__file__).parent / "data"


class Settings(BaseSettings):
    """Configuration globale du module.

    Les paramètres peuvent être définis via des variables d'environnement
    préfixées par GEOCOG_.
    """

    model_config = SettingsConfigDict(
        env_prefix="GEOCOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    data_dir: Path = Field(
        default=DEFAULT_DATA_DIR,
        description="Répertoire contenant les fichiers du référentiel",
    )

    config_file: Path = Field(
        default=Path.cwd() / DEFAULT_CONFIG_FILENAME,
        description="Chemin vers le fichier de configuration YAML",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Niveau de journalisation (la CLI écrit ses journaux sur stderr)",
    )

    _query_config: QueryConfig | None = None

    @field_validator("data_dir", "config_file", mode="before")
    @classmethod
    def ensure_path(cls, v: str | Path) -> Path:
        """Convertit la valeur en Path si nécessaire."""
        return Path(v) if isinstance(v, str) else v

    @property
    def query_config(self) -> QueryConfig:
        """Charge et retourne la configuration du moteur.

        La configuration est mise en cache après le premier chargement.
        """
        if self._query_config is None:
            self._query_config = load_config(self.config_file)
        return self._query_config

    def reload_query_config(self) -> QueryConfig:
        """Force le rechargement de la configuration du moteur."""
        self._query_config = load_config(self.config_file)
        return self._query_config
