"""Keyed storage of recorded patterns, one JSON file per pattern."""

from __future__ import annotations

import json
import logging
import re
import threading
from pathlib import Path
from typing import Dict, List, Optional

from models import Pattern


logger = logging.getLogger(__name__)

PATTERN_SUFFIX = ".json"
DEFAULT_PATTERNS_DIR = Path.home() / ".multiclicker" / "patterns"


def sanitize_file_name(name: str) -> str:
    """Keep alphanumerics, dots and hyphens; replace everything else with '_'."""
    return re.sub(r"[^a-zA-Z0-9.\-]", "_", name)


class PatternStore:
    """
    In-memory name -> Pattern map backed by a directory of JSON files.

    Names keep insertion order, so list_names() reflects load/record order.
    """

    def __init__(self, storage_dir: Optional[Path] = None) -> None:
        self._storage_dir = Path(storage_dir) if storage_dir else DEFAULT_PATTERNS_DIR
        self._patterns: Dict[str, Pattern] = {}
        self._lock = threading.Lock()

    @property
    def storage_dir(self) -> Path:
        return self._storage_dir

    def load_all(self) -> List[str]:
        """Load every pattern file in the storage directory. Returns loaded names."""
        loaded: Dict[str, Pattern] = {}
        if self._storage_dir.is_dir():
            for path in sorted(self._storage_dir.glob(f"*{PATTERN_SUFFIX}")):
                try:
                    raw = json.loads(path.read_text(encoding="utf-8"))
                    if not isinstance(raw, dict):
                        raise ValueError("Pattern file has invalid structure")
                    pattern = Pattern.from_dict(raw)
                except Exception as exc:
                    logger.warning("Skipping unreadable pattern file %s: %s", path.name, exc)
                    continue
                loaded[pattern.name] = pattern
                logger.debug("Loaded pattern: %s", pattern.name)

        with self._lock:
            self._patterns = loaded
        logger.info("Loaded %d patterns from %s", len(loaded), self._storage_dir)
        return list(loaded)

    def get(self, name: str) -> Optional[Pattern]:
        with self._lock:
            return self._patterns.get(name)

    def put(self, pattern: Pattern) -> bool:
        """
        Store the pattern in memory and persist it.

        A name whose file name collides with another stored pattern (e.g. "a b"
        and "a_b") is refused so neither file is overwritten.

        Returns:
            bool: False if the name is refused or the write failed
        """
        if not pattern.name or not pattern.name.strip():
            logger.warning("Cannot save unnamed pattern")
            return False

        path = self._path_for(pattern.name)
        with self._lock:
            clash = next(
                (other for other in self._patterns
                 if other != pattern.name and self._path_for(other) == path),
                None,
            )
            if clash is not None:
                logger.warning("Cannot save pattern %s: file %s already holds pattern %s", pattern.name, path.name, clash)
                return False
            self._patterns[pattern.name] = pattern

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = path.with_suffix(".tmp")
            payload = json.dumps(pattern.to_dict(), indent=2, ensure_ascii=False)
            tmp_path.write_text(payload, encoding="utf-8")
            tmp_path.replace(path)
        except OSError as exc:
            logger.error("Failed to save pattern %s: %s", pattern.name, exc)
            return False

        logger.info("Saved pattern: %s", pattern.name)
        return True

    def delete(self, name: str) -> bool:
        """Remove a pattern from memory and disk. Unknown names return False."""
        with self._lock:
            if name not in self._patterns:
                return False
            del self._patterns[name]

        path = self._path_for(name)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            logger.error("Failed to delete pattern file %s: %s", path, exc)
        logger.info("Deleted pattern: %s", name)
        return True

    def list_names(self) -> List[str]:
        with self._lock:
            return list(self._patterns)

    def _path_for(self, name: str) -> Path:
        return self._storage_dir / f"{sanitize_file_name(name)}{PATTERN_SUFFIX}"
