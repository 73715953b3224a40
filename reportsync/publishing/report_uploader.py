"""
report_uploader.py — Publica los reportes de test en un repo Git remoto.

Se ejecuta una vez por ciclo de tests, cuando el generador de reportes
ya terminó de escribir en el directorio de trabajo. Usa GitPython para
llevar ese directorio a un estado publicable sin importar si es la
primera corrida o la N-ésima:

    1. Verificar que hay URL, usuario y token (si no, se omite)
    2. Abrir el repo local, o clonarlo si todavía no existe
    3. Asegurar que existe el remoto "origin"
    4. git add --all + un commit
    5. git push del branch activo a origin

Cualquier error en los pasos 2-5 se registra como warning y se traga:
quien llama nunca recibe una excepción. Un commit cuyo push falló se
queda en local y se sube junto con el de la siguiente corrida.

No hay locking: quien llama debe garantizar que no corran dos
uploads a la vez sobre el mismo directorio.

Uso:
    from reportsync.publishing.report_uploader import ReportUploader
    uploader = ReportUploader(config.reports, config.commit)
    uploader.upload_report()
"""

from __future__ import annotations

import os
import shutil
import tempfile
from enum import Enum
from pathlib import Path

import git as gitpython

from reportsync.config import CommitConfig, ReportsRepoConfig
from reportsync.publishing.credentials import basic_auth_header, build_git_env, redact
from reportsync.utils.logger import get_logger

logger = get_logger("reportsync.uploader")

REMOTE_NAME = "origin"
GIT_DIR_NAME = ".git"
DEFAULT_MAX_UPLOAD_LIMIT_MB = 2

_PUSH_FAILURE_FLAGS = (
    gitpython.PushInfo.ERROR
    | gitpython.PushInfo.REJECTED
    | gitpython.PushInfo.REMOTE_REJECTED
    | gitpython.PushInfo.REMOTE_FAILURE
)


class UploadState(Enum):
    """Estados por los que pasa una corrida de upload_report()."""
    START = "start"
    SKIPPED = "skipped"
    GATE_CHECKED = "gate_checked"
    REPO_RESOLVED = "repo_resolved"
    REMOTE_BOUND = "remote_bound"
    COMMITTED = "committed"
    PUSHED = "pushed"
    FAILED = "failed"


def _copy_if_absent(src: str, dst: str) -> str:
    """copy_function para copytree que nunca pisa archivos existentes."""
    if os.path.lexists(dst):
        return dst
    return shutil.copy2(src, dst)


def working_tree_size_bytes(work_dir: Path) -> int:
    """
    Suma el tamaño de los archivos del working tree, sin contar .git.

    Archivos ilegibles o borrados durante el recorrido no cuentan.
    """
    total = 0
    for root, dirs, files in os.walk(work_dir):
        if GIT_DIR_NAME in dirs:
            dirs.remove(GIT_DIR_NAME)
        for name in files:
            path = os.path.join(root, name)
            if os.path.islink(path):
                continue
            try:
                total += os.path.getsize(path)
            except OSError as e:
                logger.debug(f"No se pudo medir {path}: {e}")
    return total


class ReportUploader:
    """
    Sincroniza el directorio de reportes con el repositorio remoto.

    No guarda estado entre llamadas: cada upload_report() vuelve a
    inspeccionar la configuración y el disco.

    Args:
        reports: Configuración del repo de reportes (URL, credenciales, límite)
        commit: Identidad y mensaje de los commits. Default: test <test@test.com>
        work_dir: Directorio de reportes / working copy. Default: reports.work_dir
    """

    def __init__(
        self,
        reports: ReportsRepoConfig,
        commit: CommitConfig | None = None,
        work_dir: str | Path | None = None,
    ):
        self._reports = reports
        self._commit = commit or CommitConfig()
        self._work_dir = Path(work_dir if work_dir is not None else reports.work_dir)

    @property
    def work_dir(self) -> Path:
        return self._work_dir

    # ================================================================
    # Entry point
    # ================================================================

    def upload_report(self) -> None:
        """
        Ejecuta el protocolo completo de publicación.

        Nunca lanza excepciones: el resultado solo se comunica por logs.
        """
        if not self.is_configured():
            logger.info(
                "Falta la URL, el usuario o el token del repo de reportes. "
                "Se omite la subida de reportes."
            )
            logger.debug(f"Estado final: {UploadState.SKIPPED.value}")
            return

        state = UploadState.GATE_CHECKED
        limit_mb = self._upload_limit_mb()
        self._ensure_work_dir()

        try:
            logger.step(1, 4, f"Preparando repositorio local en {self._work_dir}")
            with self._open_or_clone() as repo:
                state = UploadState.REPO_RESOLVED

                logger.step(2, 4, "Verificando remoto")
                self._ensure_remote(repo)
                state = UploadState.REMOTE_BOUND

                logger.step(3, 4, "Creando commit con los reportes")
                commit = self._commit_snapshot(repo)
                state = UploadState.COMMITTED
                self._check_upload_size(limit_mb)

                logger.step(4, 4, f"Subiendo a {REMOTE_NAME}")
                self._push(repo)
                state = UploadState.PUSHED

            logger.success(f"Reportes publicados ({commit.hexsha[:7]})")
        except Exception as e:
            logger.warning(f"Report upload failed: {self._redact(str(e))}")
            logger.debug(f"Falló después del estado {state.value}")
            state = UploadState.FAILED

        logger.debug(f"Estado final: {state.value}")

    # ================================================================
    # Precondiciones
    # ================================================================

    def is_configured(self) -> bool:
        """True si URL, usuario y token están presentes y no vacíos."""
        return bool(
            self._reports.repo_url
            and self._reports.username
            and self._reports.token
        )

    def _upload_limit_mb(self) -> int:
        limit = self._reports.max_upload_limit_mb
        if limit is None:
            logger.debug(
                f"max_upload_limit_mb no configurado, usando {DEFAULT_MAX_UPLOAD_LIMIT_MB} MB"
            )
            return DEFAULT_MAX_UPLOAD_LIMIT_MB
        return limit

    def _ensure_work_dir(self) -> None:
        """
        Crea el directorio de reportes (padre de .git) si no existe.

        Si falla solo se registra: el open/clone posterior fallará
        por su cuenta y lo atrapará el handler de upload_report().
        Rutas inválidas (ValueError) se tratan igual que errores de I/O.
        """
        try:
            if self._work_dir.exists():
                return
            self._work_dir.mkdir(parents=True, exist_ok=True)
            logger.debug(f"Directorio creado: {self._work_dir.resolve()}")
        except (OSError, ValueError) as e:
            logger.warning(f"No se pudo crear el directorio {self._work_dir}: {e}")

    # ================================================================
    # Pasos Git
    # ================================================================

    def _git_env(self) -> dict[str, str]:
        return build_git_env(self._reports.username, self._reports.token)

    def _open_or_clone(self) -> gitpython.Repo:
        """
        Abre el working copy existente o lo crea clonando el remoto.

        - Con .git presente: se abre tal cual lo dejó la corrida anterior.
        - Directorio vacío: clone directo (el clone ya deja "origin").
        - Directorio con reportes pero sin .git: se clona a un directorio
          temporal y se copia encima sin pisar los reportes locales.

        Raises:
            git.GitCommandError: Si el clone falla (red, auth, URL).
            git.InvalidGitRepositoryError: Si .git existe pero está roto.
        """
        if (self._work_dir / GIT_DIR_NAME).exists():
            logger.debug("Repositorio Git existente encontrado")
            return gitpython.Repo(self._work_dir)

        if self._work_dir.is_dir() and any(self._work_dir.iterdir()):
            return self._seed_clone()

        logger.info(f"Clonando {self._reports.repo_url}")
        return gitpython.Repo.clone_from(
            self._reports.repo_url,
            self._work_dir,
            env=self._git_env(),
        )

    def _seed_clone(self) -> gitpython.Repo:
        """Clona en un temporal y lo combina con los reportes ya escritos."""
        logger.info(
            f"Clonando {self._reports.repo_url} sobre reportes existentes"
        )
        tmp_dir = Path(tempfile.mkdtemp(
            prefix=".reportsync-clone-", dir=self._work_dir.resolve().parent
        ))
        try:
            clone = gitpython.Repo.clone_from(
                self._reports.repo_url, tmp_dir, env=self._git_env()
            )
            clone.close()
            shutil.copytree(
                tmp_dir,
                self._work_dir,
                symlinks=True,
                dirs_exist_ok=True,
                copy_function=_copy_if_absent,
            )
        finally:
            shutil.rmtree(tmp_dir, ignore_errors=True)
        return gitpython.Repo(self._work_dir)

    def _ensure_remote(self, repo: gitpython.Repo) -> None:
        """
        Agrega el remoto "origin" si el repo no tiene ninguno.

        Si ya hay remotos no se toca nada, aunque la URL sea otra:
        un remoto re-apuntado a mano se respeta.
        """
        if repo.remotes:
            logger.debug("El remoto ya existe")
            return
        logger.debug(f"Agregando remoto {REMOTE_NAME}: {self._reports.repo_url}")
        repo.create_remote(REMOTE_NAME, self._reports.repo_url)

    def _commit_snapshot(self, repo: gitpython.Repo) -> gitpython.Commit:
        """
        git add --all + un commit con la identidad configurada.

        Incluye altas, cambios y borrados. No hay caso especial para
        "sin cambios": el commit se crea igual.

        Returns:
            El commit creado.
        """
        repo.git.add(all=True)
        logger.debug("Todos los archivos agregados al índice")

        actor = gitpython.Actor(self._commit.author_name, self._commit.author_email)
        commit = repo.index.commit(
            self._commit.message,
            author=actor,
            committer=actor,
        )
        logger.debug(f"Commit creado: {commit.hexsha[:7]} — {self._commit.message}")
        return commit

    def _push(self, repo: gitpython.Repo) -> None:
        """
        Sube el branch activo a origin. Un solo intento, sin reintentos.

        Raises:
            git.GitCommandError: Si git push falla.
            RuntimeError: Si el remoto rechaza alguna referencia.
        """
        branch = repo.active_branch.name
        refspec = f"{branch}:{branch}"
        with repo.git.custom_environment(**self._git_env()):
            results = repo.remote(REMOTE_NAME).push(refspec=refspec)
        results.raise_if_error()

        for info in results:
            if info.flags & _PUSH_FAILURE_FLAGS:
                raise RuntimeError(
                    f"Push rechazado para {info.remote_ref_string}: {info.summary.strip()}"
                )
        logger.debug(f"Push exitoso a {REMOTE_NAME}/{branch}")

    # ================================================================
    # Límite de subida
    # ================================================================

    def _check_upload_size(self, limit_mb: int) -> None:
        """
        Compara el tamaño del working tree con el límite configurado.

        Es solo informativo: si se pasa del límite se avisa pero el
        push continúa, también si no se puede medir.
        """
        try:
            size_bytes = working_tree_size_bytes(self._work_dir)
        except OSError as e:
            logger.debug(f"No se pudo medir el tamaño de los reportes: {e}")
            return
        size_mb = size_bytes / (1024 * 1024)
        if size_mb > limit_mb:
            logger.warning(
                f"Los reportes ocupan {size_mb:.2f} MB, "
                f"más que el límite configurado de {limit_mb} MB"
            )

    def _redact(self, text: str) -> str:
        secrets = [self._reports.token]
        if self._reports.username and self._reports.token:
            secrets.append(
                basic_auth_header(self._reports.username, self._reports.token)
            )
        return redact(text, secrets)
