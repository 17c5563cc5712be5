"""
.env loading.

Storage picks its backend when `apps.api.storage` is first imported, so the
settings in `.env` have to be in the environment before that import. Each test
imports the app in a fresh interpreter so the already-imported modules of this
test session do not hide the ordering.
"""

from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[3]

_STORAGE_VARS = ("STORAGE_BACKEND", "DATABASE_URL", "AUTO_CREATE_SCHEMA", "ENV_FILE")


def _import_app(env_file: Path) -> str:
    env = {k: v for k, v in os.environ.items() if k not in _STORAGE_VARS}
    env["ENV_FILE"] = str(env_file)
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(REPO_ROOT), env.get("PYTHONPATH")]))

    result = subprocess.run(
        [
            sys.executable,
            "-c",
            "import apps.api.main as m; print(type(m.storage.BACKEND).__name__)",
        ],
        cwd=REPO_ROOT,
        env=env,
        capture_output=True,
        text=True,
        timeout=60,
    )
    assert result.returncode == 0, result.stderr
    return result.stdout.strip().splitlines()[-1]


def test_storage_settings_from_env_file_select_the_sql_backend(tmp_path) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text(
        "STORAGE_BACKEND=sql\n"
        f"DATABASE_URL=sqlite:///{tmp_path / 'evalboard.sqlite'}\n"
        "AUTO_CREATE_SCHEMA=1\n"
    )

    assert _import_app(env_file) == "SqlStorageBackend"
    assert (tmp_path / "evalboard.sqlite").exists()


def test_missing_env_file_keeps_the_in_memory_backend(tmp_path) -> None:
    assert _import_app(tmp_path / "absent.env") == "InMemoryStorageBackend"
