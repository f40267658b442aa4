from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Optional

from .actions import BuildAction, DockerBuildAction
from .cache import DEFAULT_CACHE_DIR, CacheStore, FileCacheStore
from .errors import CacheError
from .fingerprint import compute_fingerprint
from .graph import DependencyGraph
from .models import Action, BuildReport, Decision
from .registry import FeatureRegistry

logger = logging.getLogger(__name__)

DecisionCallback = Callable[[Decision], None]

DEFAULT_CONFIG_PATH = "builder.yaml"


@dataclass
class BuildContext:
    """Locations and collaborators for one invocation of the builder."""

    config_path: Path = Path(DEFAULT_CONFIG_PATH)
    cache_dir: Path = Path(DEFAULT_CACHE_DIR)
    action: BuildAction = field(default_factory=DockerBuildAction)

    def __post_init__(self) -> None:
        self.config_path = Path(self.config_path)
        self.cache_dir = Path(self.cache_dir)

    def load_registry(self) -> FeatureRegistry:
        return FeatureRegistry.from_file(self.config_path)

    def cache_store(self) -> FileCacheStore:
        return FileCacheStore(self.cache_dir)

    def orchestrator(self, *, force: bool = False, dry_run: bool = False) -> "BuildOrchestrator":
        return BuildOrchestrator(
            self.load_registry(),
            self.cache_store(),
            self.action,
            force=force,
            dry_run=dry_run,
        )


class BuildOrchestrator:
    """Decides, feature by feature, whether a target's closure must be rebuilt."""

    def __init__(
        self,
        registry: FeatureRegistry,
        cache: CacheStore,
        action: BuildAction,
        *,
        force: bool = False,
        dry_run: bool = False,
    ) -> None:
        self.registry = registry
        self.cache = cache
        self.action = action
        self.force = force
        self.dry_run = dry_run
        self.graph = DependencyGraph(registry)

    def run(self, target: str, on_decision: Optional[DecisionCallback] = None) -> BuildReport:
        """Process every feature in ``target``'s build order.

        Fingerprints computed during this run, not cached ones, are fed to
        dependents, so a rebuilt dependency forces each transitive dependent
        to rebuild. Any error aborts the run; a feature whose build fails
        keeps its previous cache record.

        ``on_decision`` is called with each decision as soon as it is made,
        before the feature is built, so callers see progress even when a
        later feature aborts the run.
        """
        order = self.graph.resolve(target)
        logger.info(f"Build order: {order}")
        report = BuildReport(target=target, order=order, dry_run=self.dry_run)

        fingerprints: Dict[str, str] = {}
        for name in order:
            feature = self.registry.get(name)
            dependency_fingerprints = {dep: fingerprints[dep] for dep in feature.depends_on}
            fingerprint = compute_fingerprint(feature, dependency_fingerprints)
            previous = self._read_cached(name)

            if previous is not None and previous == fingerprint and not self.force:
                logger.info(f"SKIP {name}")
                self._decide(report, Decision(name, Action.SKIP, fingerprint, previous), on_decision)
                fingerprints[name] = fingerprint
                continue

            logger.info(f"BUILD {name}")
            self._decide(report, Decision(name, Action.BUILD, fingerprint, previous), on_decision)
            if self.dry_run:
                logger.info(f"[DRY RUN] Would build {name} ({fingerprint[:8]})")
            else:
                self.action(feature, fingerprint)
                self.cache.write(name, fingerprint)
            fingerprints[name] = fingerprint

        logger.info(
            f"Finished {target}: {len(report.built)} built, {len(report.skipped)} skipped"
        )
        return report

    def plan(self, target: str, on_decision: Optional[DecisionCallback] = None) -> BuildReport:
        """Return the decisions ``run`` would make without building anything."""

        dry_run = self.dry_run
        self.dry_run = True
        try:
            return self.run(target, on_decision)
        finally:
            self.dry_run = dry_run

    def _read_cached(self, name: str) -> Optional[str]:
        try:
            return self.cache.read(name)
        except CacheError as exc:
            logger.warning(f"Treating unreadable cache record as a miss: {exc}")
            return None

    @staticmethod
    def _decide(
        report: BuildReport, decision: Decision, on_decision: Optional[DecisionCallback]
    ) -> None:
        report.decisions.append(decision)
        if on_decision is not None:
            on_decision(decision)
