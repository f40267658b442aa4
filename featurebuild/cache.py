from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Protocol

from .errors import CacheError
from .utils import ensure_directory

logger = logging.getLogger(__name__)

DEFAULT_CACHE_DIR = ".builder-cache"
RECORD_NAME = "hash"


class CacheStore(Protocol):
    """Persists the last accepted fingerprint for each feature."""

    def read(self, feature: str) -> Optional[str]:
        """Return the stored fingerprint, or ``None`` when the feature was never built."""

    def write(self, feature: str, fingerprint: str) -> None:
        ...


@dataclass
class FileCacheStore:
    """One plain-text record per feature at ``<root>/<feature>/hash``."""

    root: Path = Path(DEFAULT_CACHE_DIR)

    def __post_init__(self) -> None:
        self.root = Path(self.root)

    def path_for(self, feature: str) -> Path:
        return self.root / feature / RECORD_NAME

    def read(self, feature: str) -> Optional[str]:
        path = self.path_for(feature)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            reason = getattr(exc, "strerror", None) or exc
            raise CacheError(f"Cannot read cache record {path}: {reason}") from exc

    def write(self, feature: str, fingerprint: str) -> None:
        path = self.path_for(feature)
        try:
            ensure_directory(path.parent)
            path.write_text(fingerprint, encoding="utf-8")
        except OSError as exc:
            raise CacheError(f"Cannot write cache record {path}: {exc.strerror or exc}") from exc
        logger.debug(f"Cached fingerprint for {feature} at {path}")

    def invalidate(self, feature: str) -> bool:
        """Remove the record for ``feature``; return whether one existed."""

        path = self.path_for(feature)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise CacheError(f"Cannot remove cache record {path}: {exc.strerror or exc}") from exc
        return True

    def entries(self) -> Dict[str, str]:
        records: Dict[str, str] = {}
        if not self.root.is_dir():
            return records
        for record in sorted(self.root.glob(f"*/{RECORD_NAME}")):
            fingerprint = self.read(record.parent.name)
            if fingerprint is not None:
                records[record.parent.name] = fingerprint
        return records


@dataclass
class MemoryCacheStore:
    """In-process cache for callers that inject their own storage."""

    records: Dict[str, str] = field(default_factory=dict)

    def read(self, feature: str) -> Optional[str]:
        return self.records.get(feature)

    def write(self, feature: str, fingerprint: str) -> None:
        self.records[feature] = fingerprint

    def invalidate(self, feature: str) -> bool:
        return self.records.pop(feature, None) is not None

    def entries(self) -> Dict[str, str]:
        return dict(sorted(self.records.items()))
