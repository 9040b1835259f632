"""Resolved workload descriptors handed to the scheduler."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple


@dataclass(frozen=True)
class Workload:
    """A fully resolved test driver invocation against a live store."""

    name: str
    query_file: Path
    query_endpoint: str
    output_path: Path
    update_endpoint: Optional[str] = None
    update_dataset: Optional[Path] = None
    depends_on: Tuple[str, ...] = ()

    @property
    def is_update(self) -> bool:
        return self.update_endpoint is not None
