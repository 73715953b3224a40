"""
credentials.py — Presenta usuario + token al transporte HTTP de Git.

Las credenciales llegan ya resueltas como strings. En vez de meterlas
en la URL del remoto (quedarían guardadas en .git/config), se inyectan
solo en el entorno del proceso git:

    GIT_TERMINAL_PROMPT=0          → falla rápido en vez de pedir password
    GIT_CONFIG_COUNT=N+1           → N = entradas GIT_CONFIG_* previas
    GIT_CONFIG_KEY_N=http.extraHeader
    GIT_CONFIG_VALUE_N=Authorization: Basic base64(usuario:token)

Uso:
    from reportsync.publishing.credentials import build_git_env
    env = build_git_env("bot", "abc123")
    git.Repo.clone_from(url, path, env=env)
"""

from __future__ import annotations

import base64
import os
from typing import Iterable, Mapping

REDACTED = "***"


def basic_auth_header(username: str, token: str) -> str:
    """Header HTTP Basic para usuario y token."""
    pair = f"{username}:{token}".encode("utf-8")
    return "Authorization: Basic " + base64.b64encode(pair).decode("ascii")


def build_git_env(
    username: str,
    token: str,
    base_env: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """
    Variables de entorno que autentican clone/push contra el remoto.

    Las entradas GIT_CONFIG_* que ya traiga el entorno (proxy, SSL, etc.)
    se conservan: el header se agrega en el siguiente índice libre.

    Args:
        username: Usuario del repositorio de reportes.
        token: Token de acceso (o password).
        base_env: Entorno de partida. Default: os.environ.

    Returns:
        Dict listo para pasarse como env= a GitPython.
    """
    if base_env is None:
        base_env = os.environ
    try:
        index = max(int(base_env.get("GIT_CONFIG_COUNT", "0")), 0)
    except ValueError:
        index = 0

    return {
        "GIT_TERMINAL_PROMPT": "0",
        "GIT_CONFIG_COUNT": str(index + 1),
        f"GIT_CONFIG_KEY_{index}": "http.extraHeader",
        f"GIT_CONFIG_VALUE_{index}": basic_auth_header(username, token),
    }


def redact(text: str, secrets: Iterable[str | None]) -> str:
    """Reemplaza cada secreto presente en el texto por ***."""
    for secret in secrets:
        if secret:
            text = text.replace(secret, REDACTED)
    return text
