"""Scoped scratch workspace with guaranteed removal."""

from __future__ import annotations

import logging
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

from bsbm_common.errors import CleanupError, WorkspaceError


logger = logging.getLogger(__name__)


class Workspace:
    """A scratch directory plus every path registered for removal."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self._tracked: List[Path] = []
        self._released = False

    @property
    def tracked(self) -> List[Path]:
        return list(self._tracked)

    def track(self, path: Path) -> Path:
        """Register ``path`` for removal when the workspace is released."""
        resolved = Path(path).absolute()
        if resolved not in self._tracked:
            self._tracked.append(resolved)
        return resolved

    def path(self, name: str) -> Path:
        """Return a tracked path below the workspace root."""
        return self.track(self.root / name)

    def release(self) -> List[CleanupError]:
        """
        Remove tracked paths deepest-first, then the root.

        Best effort: failures are logged and returned, never raised.
        """
        if self._released:
            return []
        self._released = True
        errors: List[CleanupError] = []
        candidates = sorted(self._tracked, key=lambda p: len(p.parts), reverse=True)
        candidates.append(self.root.absolute())
        for path in candidates:
            error = _remove_path(path)
            if error is not None:
                logger.error("%s", error)
                errors.append(error)
        self._tracked.clear()
        return errors


def _remove_path(path: Path) -> Optional[CleanupError]:
    try:
        if path.is_symlink() or path.is_file():
            path.unlink()
        elif path.is_dir():
            shutil.rmtree(path)
    except FileNotFoundError:
        return None
    except OSError as exc:
        return CleanupError(f"Failed to remove {path}: {exc}", context={"path": path}, cause=exc)
    return None


class ScopedWorkspace:
    """Factory for workspaces that disappear on scope exit."""

    @staticmethod
    def create(base_path: Optional[Path] = None, prefix: str = "bsbm-") -> Workspace:
        try:
            if base_path is not None:
                base_path.mkdir(parents=True, exist_ok=True)
            root = Path(tempfile.mkdtemp(prefix=prefix, dir=str(base_path) if base_path else None))
        except OSError as exc:
            raise WorkspaceError(
                f"Cannot create workspace under {base_path or tempfile.gettempdir()}: {exc.strerror or exc}",
                context={"base_path": base_path, "errno": exc.errno},
                cause=exc,
            ) from exc
        logger.debug("Created workspace %s", root)
        return Workspace(root)

    @staticmethod
    @contextmanager
    def acquire(base_path: Optional[Path] = None, prefix: str = "bsbm-") -> Iterator[Workspace]:
        workspace = ScopedWorkspace.create(base_path, prefix)
        try:
            yield workspace
        finally:
            workspace.release()
