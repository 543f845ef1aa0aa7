import fcntl
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from alembic.config import Config

from alembic import command
from duellog.utils.logging import logger

BACKEND_DIR = Path(__file__).resolve().parents[2]
ALEMBIC_INI_PATH = BACKEND_DIR / "alembic.ini"
MIGRATION_LOCK_PATH = Path(tempfile.gettempdir()) / "duellog-alembic.lock"


@contextmanager
def migration_lock(lock_path: Path = MIGRATION_LOCK_PATH) -> Iterator[None]:
    """
    Hold an exclusive file lock so that several workers starting at once do not
    upgrade the schema concurrently.
    """
    with lock_path.open("w", encoding="utf-8") as lock_file:
        fcntl.flock(lock_file, fcntl.LOCK_EX)
        try:
            yield
        finally:
            fcntl.flock(lock_file, fcntl.LOCK_UN)


def get_alembic_config(ini_path: Path = ALEMBIC_INI_PATH) -> Config:
    alembic_config = Config(str(ini_path))
    script_location = alembic_config.get_main_option("script_location") or "alembic"
    alembic_config.set_main_option("script_location", str(ini_path.parent / script_location))
    return alembic_config


def run_migrations_to_head(lock_path: Path = MIGRATION_LOCK_PATH) -> None:
    alembic_config = get_alembic_config()
    with migration_lock(lock_path):
        logger.info(
            f"Upgrading database schema to head using {alembic_config.get_main_option('script_location')}"
        )
        command.upgrade(alembic_config, "head")
        logger.info("Database schema is up to date")
