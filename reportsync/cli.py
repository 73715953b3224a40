"""
cli.py — Punto de entrada de línea de comandos de reportsync.

Comandos disponibles:
    python -m reportsync upload                   → Publica los reportes
    python -m reportsync upload --work-dir PATH   → Usa otro directorio
    python -m reportsync config --show            → Muestra configuración
    python -m reportsync config --validate        → Valida configuración

`upload` siempre termina con exit code 0: los fallos de publicación
solo se reportan en los logs para no romper el pipeline de tests.

Uso desde código (testing):
    from click.testing import CliRunner
    from reportsync.cli import main
    CliRunner().invoke(main, ["upload"])
"""

from __future__ import annotations

import sys

import click
from rich.table import Table

from reportsync import __version__
from reportsync.config import AppConfig, load_config
from reportsync.publishing.credentials import REDACTED
from reportsync.publishing.report_uploader import DEFAULT_MAX_UPLOAD_LIMIT_MB, ReportUploader
from reportsync.utils.logger import get_logger, console as rich_console

logger = get_logger("reportsync.cli")


@click.group()
@click.version_option(version=__version__, prog_name="reportsync")
def main():
    """Publica reportes de test en un repositorio Git remoto."""
    pass


@main.command()
@click.option(
    "--work-dir", "-d",
    default=None,
    type=click.Path(file_okay=False),
    help="Directorio de reportes (default: reports.work_dir de config.yaml)",
)
def upload(work_dir: str | None):
    """Sube los reportes del directorio de trabajo al repo remoto."""
    cfg = load_config()
    uploader = ReportUploader(cfg.reports, cfg.commit, work_dir=work_dir)
    uploader.upload_report()


@main.command()
@click.option("--show", is_flag=True, help="Muestra la configuración actual")
@click.option("--validate", is_flag=True, help="Valida la configuración")
def config(show: bool, validate: bool):
    """Gestiona la configuración de reportsync."""
    cfg = load_config()

    if show:
        _show_config(cfg)

    if validate and not _validate_config(cfg):
        sys.exit(1)


# ============================================================
# Funciones auxiliares (privadas)
# ============================================================

def _show_config(cfg: AppConfig) -> None:
    """Muestra la configuración efectiva con el token oculto."""
    reports = cfg.reports
    limite = reports.max_upload_limit_mb
    if limite is None:
        limite_txt = f"{DEFAULT_MAX_UPLOAD_LIMIT_MB} MB (default)"
    else:
        limite_txt = f"{limite} MB"

    tabla = Table(title="Configuración de reportsync")
    tabla.add_column("Parámetro", style="cyan")
    tabla.add_column("Valor", style="green")

    tabla.add_row("Repo de reportes", reports.repo_url or "(no configurado)")
    tabla.add_row("Usuario", reports.username or "(no configurado)")
    tabla.add_row("Token", REDACTED if reports.token else "(no configurado)")
    tabla.add_row("Límite de subida", limite_txt)
    tabla.add_row("Directorio", reports.work_dir)
    tabla.add_row("Autor", f"{cfg.commit.author_name} <{cfg.commit.author_email}>")
    tabla.add_row("Mensaje", cfg.commit.message)

    rich_console.print(tabla)


def _validate_config(cfg: AppConfig) -> bool:
    """Valida la configuración y muestra resultado."""
    problemas = []

    if not cfg.reports.repo_url:
        problemas.append("REPORTS_REPO no configurado")
    if not cfg.reports.username:
        problemas.append("REPORTS_REPO_USERNAME no configurado")
    if not cfg.reports.token:
        problemas.append("REPORTS_REPO_TOKEN no configurado")

    if problemas:
        for p in problemas:
            logger.error(p)
        return False

    logger.success("Configuración válida")
    return True


if __name__ == "__main__":
    main()
