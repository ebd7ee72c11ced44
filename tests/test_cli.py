"""Tests pour le module CLI principal.

Ce module teste les commandes CLI avec le CliRunner de Typer.
"""

import json
import logging
from pathlib import Path
from typing import Any

import pytest
from typer.testing import CliRunner

from geocog import __version__
from geocog.cli import (
    EXIT_NOT_FOUND,
    EXIT_STORE_ERROR,
    EXIT_VALIDATION_ERROR,
    app,
    setup_logging,
)


@pytest.fixture
def runner() -> CliRunner:
    """Fixture pour le CliRunner."""
    return CliRunner()


def invoke_json(runner: CliRunner, args: list[str]) -> Any:
    """Exécute une commande et décode sa sortie JSON."""
    result = runner.invoke(app, args)
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout)


class TestSetupLogging:
    """Tests pour la configuration du logging."""

    @staticmethod
    def configured_level(verbose: bool) -> int:
        """Niveau du logger racine après setup_logging, sans handler préalable."""
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        root.handlers.clear()
        try:
            setup_logging(verbose=verbose)
            return root.level
        finally:
            root.handlers[:] = handlers
            root.setLevel(level)

    def test_setup_logging_default(self) -> None:
        """Teste la configuration par défaut."""
        assert self.configured_level(verbose=False) == logging.WARNING

    def test_setup_logging_verbose(self) -> None:
        """Teste la configuration en mode verbeux."""
        assert self.configured_level(verbose=True) == logging.DEBUG

    def test_level_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Teste que GEOCOG_LOG_LEVEL fixe le niveau hors mode verbeux."""
        monkeypatch.setenv("GEOCOG_LOG_LEVEL", "INFO")
        assert self.configured_level(verbose=False) == logging.INFO

    def test_verbose_overrides_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GEOCOG_LOG_LEVEL", "ERROR")
        assert self.configured_level(verbose=True) == logging.DEBUG

    def test_command_uses_environment_level(
        self,
        runner: CliRunner,
        monkeypatch: pytest.MonkeyPatch,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        """Teste qu'une commande journalise au niveau de GEOCOG_LOG_LEVEL."""
        monkeypatch.setenv("GEOCOG_LOG_LEVEL", "DEBUG")
        root = logging.getLogger()
        level = root.level
        try:
            result = runner.invoke(app, ["regions", "--code", "28"])

            assert result.exit_code == 0
            assert root.level == logging.DEBUG
            assert any("Store construit" in r.getMessage() for r in caplog.records)
        finally:
            root.setLevel(level)


class TestMainCallback:
    """Tests pour les options globales."""

    def test_version_option(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.stdout

    def test_help(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["--help"])

        assert result.exit_code == 0
        assert "communes" in result.stdout
        assert "region-departements" in result.stdout


class TestCommunesCommands:
    """Tests pour les commandes des communes."""

    def test_by_postal_code(self, runner: CliRunner) -> None:
        results = invoke_json(runner, ["communes", "--code-postal", "28100"])

        assert len(results) == 1
        assert results[0]["nom"] == "Dreux"

    def test_no_criteria(self, runner: CliRunner) -> None:
        """Teste qu'une recherche sans critère sort en erreur de validation."""
        result = runner.invoke(app, ["communes"])
        assert result.exit_code == EXIT_VALIDATION_ERROR

    def test_invalid_postal_code(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["communes", "--code-postal", "2810"])
        assert result.exit_code == EXIT_VALIDATION_ERROR

    def test_by_position(self, runner: CliRunner) -> None:
        results = invoke_json(
            runner, ["communes", "--lat", "48.842", "--lon", "2.419", "--fields", "code"]
        )
        assert results == [{"code": "94067"}]

    def test_geojson(self, runner: CliRunner) -> None:
        collection = invoke_json(runner, ["communes", "--code-departement", "55", "--format", "geojson"])

        assert collection["type"] == "FeatureCollection"
        assert len(collection["features"]) == 2

    def test_commune(self, runner: CliRunner) -> None:
        commune = invoke_json(runner, ["commune", "55001", "--fields", "nom,codesPostaux"])
        assert commune == {"nom": "Abainville", "codesPostaux": ["55130"]}

    def test_commune_not_found(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["commune", "00000"])
        assert result.exit_code == EXIT_NOT_FOUND

    def test_accents_not_escaped(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["commune", "54099", "--fields", "nom"])

        assert result.exit_code == 0
        assert "Bréménil" in result.stdout


class TestDepartementsCommands:
    """Tests pour les commandes des départements."""

    def test_all(self, runner: CliRunner) -> None:
        assert len(invoke_json(runner, ["departements"])) == 101

    def test_by_region(self, runner: CliRunner) -> None:
        results = invoke_json(runner, ["departements", "--code-region", "11", "--limit", "1"])
        assert results == [{"nom": "Paris", "code": "75", "codeRegion": "11"}]

    def test_departement(self, runner: CliRunner) -> None:
        departement = invoke_json(runner, ["departement", "27"])
        assert departement == {"nom": "Eure", "code": "27", "codeRegion": "28"}

    def test_communes(self, runner: CliRunner) -> None:
        results = invoke_json(runner, ["departement-communes", "94", "--fields", "code"])
        assert results == [{"code": "94067"}, {"code": "94080"}]


class TestRegionsCommands:
    """Tests pour les commandes des régions."""

    def test_all(self, runner: CliRunner) -> None:
        assert len(invoke_json(runner, ["regions"])) == 18

    def test_by_name(self, runner: CliRunner) -> None:
        results = invoke_json(runner, ["regions", "--nom", "normandie"])
        assert results == [{"nom": "Normandie", "code": "28", "_score": 1.0}]

    def test_region(self, runner: CliRunner) -> None:
        assert invoke_json(runner, ["region", "28"]) == {"nom": "Normandie", "code": "28"}

    def test_region_departements(self, runner: CliRunner) -> None:
        assert len(invoke_json(runner, ["region-departements", "84"])) == 12

    def test_unknown_region(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["region-departements", "666"])
        assert result.exit_code == EXIT_NOT_FOUND


class TestUtilityCommands:
    """Tests pour les commandes utilitaires."""

    def test_info(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["info"])

        assert result.exit_code == 0
        assert "Départements" in result.stdout
        assert "101" in result.stdout

    def test_invalid_data_dir(self, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(app, ["regions", "--data-dir", str(tmp_path / "absent")])
        assert result.exit_code == EXIT_STORE_ERROR

    def test_info_invalid_data_dir(self, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(app, ["info", "--data-dir", str(tmp_path)])
        assert result.exit_code == EXIT_STORE_ERROR

    def test_init_config(self, runner: CliRunner, tmp_path: Path) -> None:
        config_file = tmp_path / "geocog.yml"
        result = runner.invoke(app, ["init-config", "--config", str(config_file)])

        assert result.exit_code == 0
        assert config_file.exists()

    def test_init_config_existing(self, runner: CliRunner, tmp_path: Path) -> None:
        """Teste qu'un fichier existant n'est pas écrasé sans --force."""
        config_file = tmp_path / "geocog.yml"
        config_file.write_text("output:\n  indent: 4\n", encoding="utf-8")

        result = runner.invoke(app, ["init-config", "--config", str(config_file)])
        assert result.exit_code == 1
        assert "indent: 4" in config_file.read_text(encoding="utf-8")

        result = runner.invoke(app, ["init-config", "--config", str(config_file), "--force"])
        assert result.exit_code == 0
        assert "min_similarity" in config_file.read_text(encoding="utf-8")
