"""Interface en ligne de commande pour pyGeoCog."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from geocog import __version__
from geocog.api import GeoApi
from geocog.config import Settings
from geocog.exceptions import NotFoundError, StoreBuildError, ValidationError
from geocog.query_config import DEFAULT_CONFIG_FILENAME, create_default_config
from geocog.types.entities import EntityKind

app = typer.Typer(
    name="geocog",
    help="Consultation des communes, départements et régions françaises.",
    add_completion=False,
)

console = Console()
err_console = Console(stderr=True)

EXIT_STORE_ERROR = 1
EXIT_VALIDATION_ERROR = 2
EXIT_NOT_FOUND = 3

DataDirOption = Annotated[
    Path | None,
    typer.Option("--data-dir", "-d", help="Répertoire des fichiers du référentiel."),
]
FieldsOption = Annotated[
    str | None,
    typer.Option("--fields", "-f", help="Champs à retourner, séparés par des virgules."),
]
FormatOption = Annotated[
    str | None,
    typer.Option("--format", help="Format de sortie: json ou geojson."),
]
GeometryOption = Annotated[
    str | None,
    typer.Option("--geometry", help="Géométrie GeoJSON: centre ou contour."),
]
LimitOption = Annotated[
    int | None,
    typer.Option("--limit", "-l", help="Nombre maximal de résultats."),
]
VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", "-V", help="Mode verbeux."),
]


def setup_logging(verbose: bool = False) -> None:
    """Configure le logging (sur la sortie d'erreur, stdout reste du JSON).

    Le niveau vient de GEOCOG_LOG_LEVEL, sauf en mode verbeux (DEBUG).
    """
    level = "DEBUG" if verbose else Settings().log_level
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, rich_tracebacks=True)],
    )
    # basicConfig ne touche pas un logger racine déjà configuré
    logging.getLogger().setLevel(level)


def version_callback(value: bool) -> None:
    """Affiche la version et quitte."""
    if value:
        console.print(f"[bold]geocog[/bold] version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    _version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-v",
            callback=version_callback,
            is_eager=True,
            help="Affiche la version.",
        ),
    ] = None,
) -> None:
    """pyGeoCog - Référentiel géographique français en mémoire."""


def _params(**kwargs: Any) -> dict[str, Any]:
    """Paramètres renseignés uniquement."""
    return {k: v for k, v in kwargs.items() if v is not None}


def _load_api(data_dir: Path | None) -> GeoApi:
    settings = Settings(data_dir=data_dir) if data_dir else Settings()
    return GeoApi.from_settings(settings)


def _run(
    action: Callable[[GeoApi], Any],
    data_dir: Path | None,
    verbose: bool,
) -> None:
    """Charge le référentiel, exécute la requête et écrit le résultat JSON."""
    setup_logging(verbose)

    try:
        api = _load_api(data_dir)
    except StoreBuildError as e:
        err_console.print(f"[red]Référentiel invalide: {e}[/red]")
        raise typer.Exit(EXIT_STORE_ERROR) from e

    try:
        payload = action(api)
    except NotFoundError as e:
        err_console.print(f"[red]{e}[/red]")
        raise typer.Exit(EXIT_NOT_FOUND) from e
    except ValidationError as e:
        err_console.print(f"[red]{e}[/red]")
        raise typer.Exit(EXIT_VALIDATION_ERROR) from e

    typer.echo(json.dumps(payload, ensure_ascii=False, indent=api.config.output.indent))


@app.command(rich_help_panel="Communes")
def communes(
    code: Annotated[str | None, typer.Option("--code", help="Code de la commune.")] = None,
    nom: Annotated[str | None, typer.Option("--nom", "-n", help="Nom recherché.")] = None,
    code_postal: Annotated[
        str | None, typer.Option("--code-postal", "-p", help="Code postal.")
    ] = None,
    code_departement: Annotated[
        str | None, typer.Option("--code-departement", help="Code du département.")
    ] = None,
    code_region: Annotated[
        str | None, typer.Option("--code-region", help="Code de la région.")
    ] = None,
    lat: Annotated[float | None, typer.Option("--lat", help="Latitude d'un point.")] = None,
    lon: Annotated[float | None, typer.Option("--lon", help="Longitude d'un point.")] = None,
    fields: FieldsOption = None,
    output_format: FormatOption = None,
    geometry: GeometryOption = None,
    limit: LimitOption = None,
    data_dir: DataDirOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Recherche des communes (au moins un critère)."""
    params = _params(
        code=code,
        nom=nom,
        codePostal=code_postal,
        codeDepartement=code_departement,
        codeRegion=code_region,
        lat=lat,
        lon=lon,
        fields=fields,
        format=output_format,
        geometry=geometry,
        limit=limit,
    )
    _run(lambda api: api.communes(**params), data_dir, verbose)


@app.command(rich_help_panel="Communes")
def commune(
    code: Annotated[str, typer.Argument(help="Code de la commune.")],
    fields: FieldsOption = None,
    output_format: FormatOption = None,
    geometry: GeometryOption = None,
    data_dir: DataDirOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Affiche une commune."""
    params = _params(fields=fields, format=output_format, geometry=geometry)
    _run(lambda api: api.commune(code, **params), data_dir, verbose)


@app.command(rich_help_panel="Départements")
def departements(
    code: Annotated[str | None, typer.Option("--code", help="Code du département.")] = None,
    nom: Annotated[str | None, typer.Option("--nom", "-n", help="Nom recherché.")] = None,
    code_region: Annotated[
        str | None, typer.Option("--code-region", help="Code de la région.")
    ] = None,
    fields: FieldsOption = None,
    limit: LimitOption = None,
    data_dir: DataDirOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Recherche des départements (tous sans critère)."""
    params = _params(code=code, nom=nom, codeRegion=code_region, fields=fields, limit=limit)
    _run(lambda api: api.departements(**params), data_dir, verbose)


@app.command(rich_help_panel="Départements")
def departement(
    code: Annotated[str, typer.Argument(help="Code du département.")],
    fields: FieldsOption = None,
    data_dir: DataDirOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Affiche un département."""
    params = _params(fields=fields)
    _run(lambda api: api.departement(code, **params), data_dir, verbose)


@app.command(name="departement-communes", rich_help_panel="Départements")
def departement_communes(
    code: Annotated[str, typer.Argument(help="Code du département.")],
    fields: FieldsOption = None,
    output_format: FormatOption = None,
    geometry: GeometryOption = None,
    data_dir: DataDirOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Liste les communes d'un département."""
    params = _params(fields=fields, format=output_format, geometry=geometry)
    _run(lambda api: api.departement_communes(code, **params), data_dir, verbose)


@app.command(rich_help_panel="Régions")
def regions(
    code: Annotated[str | None, typer.Option("--code", help="Code de la région.")] = None,
    nom: Annotated[str | None, typer.Option("--nom", "-n", help="Nom recherché.")] = None,
    fields: FieldsOption = None,
    limit: LimitOption = None,
    data_dir: DataDirOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Recherche des régions (toutes sans critère)."""
    params = _params(code=code, nom=nom, fields=fields, limit=limit)
    _run(lambda api: api.regions(**params), data_dir, verbose)


@app.command(rich_help_panel="Régions")
def region(
    code: Annotated[str, typer.Argument(help="Code de la région.")],
    fields: FieldsOption = None,
    data_dir: DataDirOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Affiche une région."""
    params = _params(fields=fields)
    _run(lambda api: api.region(code, **params), data_dir, verbose)


@app.command(name="region-departements", rich_help_panel="Régions")
def region_departements(
    code: Annotated[str, typer.Argument(help="Code de la région.")],
    fields: FieldsOption = None,
    data_dir: DataDirOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Liste les départements d'une région."""
    params = _params(fields=fields)
    _run(lambda api: api.region_departements(code, **params), data_dir, verbose)


@app.command(rich_help_panel="Utilitaires")
def info(
    data_dir: DataDirOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Affiche le contenu du référentiel chargé."""
    setup_logging(verbose)

    try:
        api = _load_api(data_dir)
    except StoreBuildError as e:
        err_console.print(f"[red]Référentiel invalide: {e}[/red]")
        raise typer.Exit(EXIT_STORE_ERROR) from e

    table = Table(title="Référentiel géographique")
    table.add_column("Niveau", style="cyan")
    table.add_column("Entités", justify="right", style="green")

    labels = {
        EntityKind.REGION: "Régions",
        EntityKind.DEPARTEMENT: "Départements",
        EntityKind.COMMUNE: "Communes",
    }
    counts = api.store.counts()
    for kind, label in labels.items():
        table.add_row(label, str(counts[kind]))

    with_contour = sum(1 for c in api.store.communes if c.contour is not None)
    table.add_row("Communes avec contour", str(with_contour))

    console.print(table)


@app.command(name="init-config", rich_help_panel="Utilitaires")
def init_config(
    config_file: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Chemin du fichier de configuration."),
    ] = None,
    force: Annotated[
        bool,
        typer.Option("--force", help="Écrase un fichier existant."),
    ] = False,
) -> None:
    """Crée le fichier de configuration avec les valeurs par défaut."""
    config_path = config_file or Path.cwd() / DEFAULT_CONFIG_FILENAME

    if config_path.exists() and not force:
        console.print(f"[yellow]Fichier déjà présent: {config_path}[/yellow]")
        raise typer.Exit(1)

    create_default_config(config_path)
    console.print(f"[green]✓ Configuration créée: {config_path}[/green]")


if __name__ == "__main__":
    app()
