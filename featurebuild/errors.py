from __future__ import annotations

from typing import Optional


class FeatureBuildError(RuntimeError):
    """Base class for every error that aborts an orchestration run."""

    code = "FEATUREBUILD_ERROR"


class ConfigError(FeatureBuildError):
    """Raised when the feature registry document cannot be read or parsed."""

    code = "CONFIG_ERROR"


class UnknownDependencyError(FeatureBuildError):
    """Raised when a feature name is referenced but not defined in the registry."""

    code = "UNKNOWN_DEPENDENCY"

    def __init__(self, name: str, referenced_by: Optional[str] = None) -> None:
        self.name = name
        self.referenced_by = referenced_by
        if referenced_by is None:
            message = f"Unknown feature: {name}"
        else:
            message = f"Unknown dependency: {name} (required by {referenced_by})"
        super().__init__(message)


class CycleError(FeatureBuildError):
    """Raised when the dependency graph reachable from a target contains a cycle."""

    code = "DEPENDENCY_CYCLE"

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Cycle detected at feature: {name}")


class HashError(FeatureBuildError):
    """Raised when an input path or file cannot be read while fingerprinting."""

    code = "HASH_ERROR"

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot hash {path}: {reason}")


class CacheError(FeatureBuildError):
    """Raised when a cache record cannot be read or written."""

    code = "CACHE_ERROR"


class BuildExecutionError(FeatureBuildError):
    """Raised when the external build action reports failure."""

    code = "BUILD_FAILED"

    def __init__(self, feature: str, reason: str) -> None:
        self.feature = feature
        self.reason = reason
        super().__init__(f"Build failed for {feature}: {reason}")
