"""Run-scoped local working directory management."""

import os
import shutil

from voicecast.errors import CleanupError


def work_dir_for(base_dir: str, run_id: str) -> str:
    return os.path.join(base_dir, run_id)


def init_work_dir(base_dir: str, run_id: str) -> str:
    """Create <base_dir>/<run_id>/ if absent and return its path."""
    work_dir = work_dir_for(base_dir, run_id)
    os.makedirs(work_dir, exist_ok=True)
    return work_dir


def segment_path(work_dir: str, position: int, extension: str) -> str:
    """Local file for the segment at this position in the ordered sequence."""
    return os.path.join(work_dir, f"{position}.{extension}")


def list_work_files(work_dir: str) -> list[str]:
    if not os.path.isdir(work_dir):
        return []
    return sorted(os.listdir(work_dir))


def remove_work_dir(work_dir: str) -> bool:
    """Delete the run's working directory. Returns False if it never existed."""
    if not os.path.exists(work_dir):
        return False
    try:
        shutil.rmtree(work_dir)
    except OSError as exc:
        raise CleanupError(f"Could not remove work dir {work_dir}: {exc}") from exc
    return True
