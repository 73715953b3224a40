"""
config.py — Carga y gestiona la configuración de reportsync.

Se encarga de:
1. Cargar config.yaml (configuración general)
2. Cargar .env (secretos: token del repositorio de reportes)
3. Resolver variables de entorno en los valores de config
4. Aplicar overrides desde variables de entorno (REPORTS_REPO, etc.)

Ningún valor es obligatorio a nivel de tipos: si falta la URL, el
usuario o el token, el uploader simplemente se salta la publicación.

Uso:
    from reportsync.config import load_config
    config = load_config()
    print(config.reports.repo_url)  # "https://example.test/reports.git"
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from reportsync.utils.logger import get_logger

logger = get_logger("reportsync.config")


# ============================================================
# Dataclasses de configuración
# ============================================================

@dataclass
class ReportsRepoConfig:
    """Repositorio remoto donde se acumulan los reportes."""
    repo_url: str = ""
    username: str = ""
    token: str = ""
    # None = no configurado; el uploader aplica el default de 2 MB
    max_upload_limit_mb: int | None = None
    work_dir: str = "target/reports-upload"


@dataclass
class CommitConfig:
    """Identidad y mensaje de los commits generados."""
    author_name: str = "test"
    author_email: str = "test@test.com"
    message: str = "Updated files"


@dataclass
class AppConfig:
    """Configuración completa de la aplicación."""
    reports: ReportsRepoConfig = field(default_factory=ReportsRepoConfig)
    commit: CommitConfig = field(default_factory=CommitConfig)


# Variables de entorno → campo de ReportsRepoConfig
ENV_OVERRIDES: dict[str, str] = {
    "REPORTS_REPO": "repo_url",
    "REPORTS_REPO_USERNAME": "username",
    "REPORTS_REPO_TOKEN": "token",
    "REPORTS_DIR": "work_dir",
}

ENV_MAX_UPLOAD_LIMIT = "REPORTS_REPO_MAX_UPLOAD_LIMIT_MB"


# ============================================================
# Funciones de carga
# ============================================================

def _resolve_env_vars(value: str) -> str:
    """
    Resuelve variables de entorno en un string.

    Ejemplo:
        "${REPORTS_TOKEN}"        → "ghp_xxx"
        "${HOME}/reports-upload"  → "/home/ci/reports-upload"
    """
    patron = re.compile(r"\$\{(\w+)\}")

    def reemplazar(match: re.Match) -> str:
        nombre_var = match.group(1)
        return os.environ.get(nombre_var, match.group(0))

    return patron.sub(reemplazar, value)


def _resolve_env_recursive(data: Any) -> Any:
    """Resuelve ${VARIABLE} recursivamente en dicts y listas del YAML."""
    if isinstance(data, str):
        return _resolve_env_vars(data)
    elif isinstance(data, dict):
        return {k: _resolve_env_recursive(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [_resolve_env_recursive(item) for item in data]
    return data


def _dict_to_dataclass(data: dict, cls: type) -> Any:
    """Convierte un diccionario a una dataclass, ignorando keys desconocidas."""
    campos_validos = {f.name for f in cls.__dataclass_fields__.values()}
    datos_filtrados = {k: v for k, v in data.items() if k in campos_validos}
    return cls(**datos_filtrados)


def _find_config_dir() -> Path:
    """
    Encuentra el directorio raíz del proyecto (donde está config.yaml).

    Busca hacia arriba desde el directorio actual. Si no lo encuentra,
    usa el directorio actual.
    """
    current = Path.cwd()
    for parent in [current] + list(current.parents):
        if (parent / "config.yaml").exists():
            return parent
    return current


def _parse_upload_limit(raw: Any) -> int | None:
    """
    Convierte el límite de subida a entero.

    Valores vacíos o no numéricos se tratan como "no configurado"
    para que el uploader aplique su default.
    """
    if raw is None or raw == "":
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        logger.warning(f"max_upload_limit_mb inválido ({raw!r}), se ignora")
        return None


def _apply_env_overrides(reports: ReportsRepoConfig) -> None:
    """Sobrescribe los valores del YAML con las variables de entorno presentes."""
    for env_name, attr in ENV_OVERRIDES.items():
        valor = os.environ.get(env_name)
        if valor:
            setattr(reports, attr, valor)

    limite = os.environ.get(ENV_MAX_UPLOAD_LIMIT)
    if limite:
        reports.max_upload_limit_mb = _parse_upload_limit(limite)


def load_config(config_path: Path | None = None) -> AppConfig:
    """
    Carga la configuración completa de reportsync.

    Pasos:
    1. Carga .env para tener las variables de entorno disponibles
    2. Lee config.yaml (si existe)
    3. Resuelve ${VARIABLES} en los valores del YAML
    4. Convierte cada sección a su dataclass correspondiente
    5. Aplica los overrides de variables de entorno

    Args:
        config_path: Ruta al config.yaml. Si es None, busca automáticamente.

    Returns:
        AppConfig lista para usar.
    """
    proyecto_dir = _find_config_dir()
    env_path = proyecto_dir / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    if config_path is None:
        config_path = proyecto_dir / "config.yaml"

    raw_config: dict = {}
    if config_path.exists():
        with open(config_path, "r", encoding="utf-8") as f:
            raw_config = yaml.safe_load(f) or {}
    else:
        logger.debug(f"No existe {config_path}, usando valores por defecto")

    config_resuelto = _resolve_env_recursive(raw_config)

    reports = _dict_to_dataclass(config_resuelto.get("reports") or {}, ReportsRepoConfig)
    reports.max_upload_limit_mb = _parse_upload_limit(reports.max_upload_limit_mb)
    app_config = AppConfig(
        reports=reports,
        commit=_dict_to_dataclass(config_resuelto.get("commit") or {}, CommitConfig),
    )

    _apply_env_overrides(app_config.reports)

    return app_config
