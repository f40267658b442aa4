"""Dependency resolution over the feature registry."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Dict, List, Optional

from .errors import CycleError, UnknownDependencyError
from .registry import FeatureRegistry

logger = logging.getLogger(__name__)


class VisitState(Enum):
    UNVISITED = auto()
    IN_PROGRESS = auto()
    DONE = auto()


@dataclass
class ResolutionContext:
    """Traversal state for a single call to :meth:`DependencyGraph.resolve`."""

    states: Dict[str, VisitState] = field(default_factory=dict)
    order: List[str] = field(default_factory=list)

    def state(self, name: str) -> VisitState:
        return self.states.get(name, VisitState.UNVISITED)


class DependencyGraph:
    """Resolves a target feature into a build order over its dependency closure."""

    def __init__(self, registry: FeatureRegistry) -> None:
        self.registry = registry

    def resolve(self, target: str) -> List[str]:
        """Return the build order for ``target``, dependencies first.

        Only features reachable from ``target`` through ``depends_on`` are
        included, each exactly once.

        Raises:
            UnknownDependencyError: ``target`` or a reachable dependency is not registered.
            CycleError: a cycle is reachable from ``target``.
        """
        if target not in self.registry:
            raise UnknownDependencyError(target)
        context = ResolutionContext()
        self._visit(target, None, context)
        logger.debug(f"Resolved build order for {target}: {context.order}")
        return context.order

    def _visit(self, name: str, parent: Optional[str], context: ResolutionContext) -> None:
        state = context.state(name)
        if state is VisitState.IN_PROGRESS:
            raise CycleError(name)
        if state is VisitState.DONE:
            return
        if name not in self.registry:
            raise UnknownDependencyError(name, referenced_by=parent)

        context.states[name] = VisitState.IN_PROGRESS
        for dep in self.registry.get(name).depends_on:
            self._visit(dep, name, context)
        context.states[name] = VisitState.DONE
        context.order.append(name)

    def dependents(self, name: str) -> List[str]:
        """Return the features that list ``name`` as a direct dependency, sorted."""

        return sorted(
            feature.name
            for feature in self.registry.iter_features()
            if name in feature.depends_on
        )


def resolve_build_order(target: str, registry: FeatureRegistry) -> List[str]:
    return DependencyGraph(registry).resolve(target)
