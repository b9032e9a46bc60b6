"""Local snapshot of the MDN content repository."""

from __future__ import annotations

import logging
from pathlib import Path
import subprocess

from .constants import CLONE_TIMEOUT_SECONDS, MDN_REPO_URL
from .exceptions import SnapshotError

LOGGER = logging.getLogger(__name__)


def ensure_mdn_content(
    content_dir: Path,
    repo_url: str = MDN_REPO_URL,
    timeout: float = CLONE_TIMEOUT_SECONDS,
) -> Path:
    """Clone the MDN content repo unless ``content_dir`` already exists.

    An existing directory is reused as-is; no freshness check is made.
    """
    if content_dir.exists():
        LOGGER.info("Using cached MDN content at %s", content_dir)
        return content_dir

    LOGGER.info("Cloning %s into %s", repo_url, content_dir)
    try:
        subprocess.run(
            ["git", "clone", "--depth", "1", repo_url, str(content_dir)],
            check=True,
            timeout=timeout,
        )
    except FileNotFoundError as exc:
        raise SnapshotError(repo_url, cause="git executable not found") from exc
    except subprocess.TimeoutExpired as exc:
        raise SnapshotError(repo_url, cause=f"timed out after {timeout:.0f}s") from exc
    except subprocess.CalledProcessError as exc:
        raise SnapshotError(repo_url, cause=f"git exited with {exc.returncode}") from exc

    LOGGER.info("Cloned MDN content")
    return content_dir
