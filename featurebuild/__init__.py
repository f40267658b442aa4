"""Incremental, fingerprint-driven build orchestration for registry features."""

from .cache import FileCacheStore, MemoryCacheStore
from .graph import DependencyGraph
from .models import Action, BuildReport, Decision, Feature
from .orchestrator import BuildContext, BuildOrchestrator
from .registry import FeatureRegistry

__all__ = [
    "Action",
    "BuildContext",
    "BuildOrchestrator",
    "BuildReport",
    "Decision",
    "DependencyGraph",
    "Feature",
    "FeatureRegistry",
    "FileCacheStore",
    "MemoryCacheStore",
]
