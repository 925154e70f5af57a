from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional

EXTENSION_SOURCE_TYPES = {
    ".csv": "CSV",
    ".json": "JSON",
    ".xlsx": "Excel",
    ".xls": "Excel",
}


@dataclass
class LegacyFile:
    name: str
    path: Path
    source_type: str
    size: int
    modified: datetime


def classify(path: Path) -> Optional[str]:
    return EXTENSION_SOURCE_TYPES.get(path.suffix.lower())


def scan_legacy_files(directory: Path) -> List[LegacyFile]:
    """List importable files in ``directory``, creating it when missing."""
    directory = Path(directory)
    if not directory.exists():
        directory.mkdir(parents=True, exist_ok=True)
        return []
    files: List[LegacyFile] = []
    for path in sorted(directory.iterdir()):
        if not path.is_file():
            continue
        source_type = classify(path)
        if source_type is None:
            continue
        stats = path.stat()
        files.append(
            LegacyFile(
                name=path.name,
                path=path,
                source_type=source_type,
                size=stats.st_size,
                modified=datetime.fromtimestamp(stats.st_mtime),
            )
        )
    return files


__all__ = ["LegacyFile", "scan_legacy_files", "classify", "EXTENSION_SOURCE_TYPES"]
