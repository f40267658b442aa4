"""Deterministic content fingerprints for features."""

from __future__ import annotations

import hashlib
import logging
import os
from pathlib import Path
from typing import List, Mapping

from .errors import HashError
from .models import Feature

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 8192


def hash_string(value: str) -> str:
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def hash_file(path: str | Path) -> str:
    """Compute the SHA256 hash of the provided file."""

    digest = hashlib.sha256()
    try:
        with open(path, "rb") as file_handle:
            for chunk in iter(lambda: file_handle.read(_CHUNK_SIZE), b""):
                digest.update(chunk)
    except OSError as exc:
        raise HashError(str(path), exc.strerror or str(exc)) from exc
    return digest.hexdigest()


def _raise_walk_error(exc: OSError) -> None:
    raise HashError(str(exc.filename), exc.strerror or str(exc)) from exc


def list_files(path: str | Path) -> List[str]:
    """Return every regular file under ``path``, sorted by full path.

    A path naming a single file yields just that file.
    """
    root = str(path)
    if os.path.isfile(root):
        return [root]
    if not os.path.isdir(root):
        raise HashError(root, "no such file or directory")

    files: List[str] = []
    for dirpath, _dirnames, filenames in os.walk(root, onerror=_raise_walk_error):
        for filename in filenames:
            full_path = os.path.join(dirpath, filename)
            if os.path.isfile(full_path):
                files.append(full_path)
    files.sort()
    return files


def hash_dir(path: str | Path) -> str:
    """Hash the content of every file under ``path``.

    Each file is hashed on its own and the per-file digests are folded in
    sorted-path order. Timestamps, permissions and empty directories do not
    affect the result.
    """
    digest = hashlib.sha256()
    files = list_files(path)
    for file_path in files:
        digest.update(hash_file(file_path).encode("ascii"))
    logger.debug(f"Hashed {len(files)} file(s) under {path}")
    return digest.hexdigest()


def compute_fingerprint(feature: Feature, dependency_fingerprints: Mapping[str, str]) -> str:
    """Fold a feature's command, input content and dependency fingerprints into one digest.

    Inputs are folded in declared order; dependency fingerprints are folded
    sorted by dependency name so registry iteration order does not matter.
    """
    parts = [hash_string(feature.command)]
    for input_path in feature.inputs:
        parts.append(hash_dir(input_path))
    for name in sorted(dependency_fingerprints):
        parts.append(name + dependency_fingerprints[name])
    return hash_string("|".join(parts))
