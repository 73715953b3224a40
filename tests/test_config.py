"""
test_config.py — Tests para el módulo de configuración.

Verificamos que:
1. La configuración se carga correctamente desde config.yaml
2. Las variables de entorno se resuelven y sobrescriben el YAML
3. Los valores por defecto funcionan cuando no hay archivo
4. El límite de subida queda en None si no se configura
"""

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from reportsync.config import (
    AppConfig,
    CommitConfig,
    ReportsRepoConfig,
    load_config,
    _parse_upload_limit,
    _resolve_env_vars,
    _resolve_env_recursive,
)

# Variables que load_config lee del entorno; se limpian en cada test
_REPORT_ENV = {
    "REPORTS_REPO": "",
    "REPORTS_REPO_USERNAME": "",
    "REPORTS_REPO_TOKEN": "",
    "REPORTS_REPO_MAX_UPLOAD_LIMIT_MB": "",
    "REPORTS_DIR": "",
}


@pytest.fixture
def config_dir(tmp_path):
    """Directorio de proyecto aislado para load_config."""
    with patch("reportsync.config._find_config_dir", return_value=tmp_path), \
            patch.dict("os.environ", _REPORT_ENV):
        yield tmp_path


class TestResolveEnvVars:
    """Tests para la resolución de variables de entorno."""

    def test_resuelve_variable_existente(self):
        """Debe reemplazar ${VAR} con el valor de la variable de entorno."""
        with patch.dict("os.environ", {"MI_VAR": "hola"}):
            assert _resolve_env_vars("${MI_VAR}/path") == "hola/path"

    def test_mantiene_variable_inexistente(self):
        """Si la variable no existe, debe mantener el placeholder."""
        assert _resolve_env_vars("${NO_EXISTE_XYZ}") == "${NO_EXISTE_XYZ}"

    def test_resuelve_en_dict_anidado(self):
        with patch.dict("os.environ", {"TOKEN_VAR": "secreto"}):
            datos = {"reports": {"token": "${TOKEN_VAR}"}, "lista": ["${TOKEN_VAR}", 3]}
            resultado = _resolve_env_recursive(datos)
            assert resultado["reports"]["token"] == "secreto"
            assert resultado["lista"] == ["secreto", 3]


class TestDefaults:
    """Valores por defecto de las dataclasses."""

    def test_commit_config(self):
        config = CommitConfig()
        assert config.author_name == "test"
        assert config.author_email == "test@test.com"
        assert config.message == "Updated files"

    def test_reports_config_sin_credenciales(self):
        config = ReportsRepoConfig()
        assert config.repo_url == ""
        assert config.token == ""
        assert config.max_upload_limit_mb is None


class TestParseUploadLimit:
    @pytest.mark.parametrize("raw, esperado", [
        (None, None),
        ("", None),
        ("5", 5),
        (7, 7),
        ("muchos", None),
    ])
    def test_conversion(self, raw, esperado):
        assert _parse_upload_limit(raw) == esperado


class TestLoadConfig:
    """Tests para la función load_config."""

    def test_carga_sin_archivo(self, config_dir):
        """Si no hay config.yaml, debe usar valores por defecto."""
        config = load_config()
        assert isinstance(config, AppConfig)
        assert config.reports.repo_url == ""
        assert config.commit.message == "Updated files"

    def test_carga_yaml(self, config_dir):
        (config_dir / "config.yaml").write_text(
            "reports:\n"
            "  repo_url: https://example.test/reports.git\n"
            "  username: bot\n"
            "  max_upload_limit_mb: 4\n"
            "  campo_desconocido: 1\n"
            "commit:\n"
            "  message: Nightly reports\n",
            encoding="utf-8",
        )
        config = load_config()
        assert config.reports.repo_url == "https://example.test/reports.git"
        assert config.reports.username == "bot"
        assert config.reports.max_upload_limit_mb == 4
        assert config.commit.message == "Nightly reports"
        assert config.commit.author_name == "test"

    def test_env_sobrescribe_yaml(self, config_dir):
        (config_dir / "config.yaml").write_text(
            "reports:\n  repo_url: https://example.test/old.git\n",
            encoding="utf-8",
        )
        with patch.dict("os.environ", {
            "REPORTS_REPO": "https://example.test/reports.git",
            "REPORTS_REPO_TOKEN": "abc123",
            "REPORTS_REPO_MAX_UPLOAD_LIMIT_MB": "8",
            "REPORTS_DIR": "out/reports",
        }):
            config = load_config()
        assert config.reports.repo_url == "https://example.test/reports.git"
        assert config.reports.token == "abc123"
        assert config.reports.max_upload_limit_mb == 8
        assert config.reports.work_dir == "out/reports"

    def test_lee_dotenv(self, config_dir):
        (config_dir / ".env").write_text("REPORTS_REPO_USERNAME=desde-dotenv\n")
        # load_dotenv no pisa variables ya definidas, aunque estén vacías
        os.environ.pop("REPORTS_REPO_USERNAME")
        config = load_config()
        assert config.reports.username == "desde-dotenv"

    def test_ruta_explicita(self, config_dir):
        ruta = config_dir / "otro.yaml"
        ruta.write_text("reports:\n  work_dir: custom/dir\n", encoding="utf-8")
        config = load_config(Path(ruta))
        assert config.reports.work_dir == "custom/dir"
