from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, Mapping

import yaml

from .errors import ConfigError, UnknownDependencyError
from .models import Feature


@dataclass
class FeatureRegistry:
    """Feature definitions keyed by name, loaded once per run."""

    features: Dict[str, Feature] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> "FeatureRegistry":
        if not isinstance(data, Mapping) or not isinstance(data.get("features"), Mapping):
            raise ConfigError("Registry must contain a top-level 'features' mapping")
        features = {
            str(name): Feature.from_dict(str(name), entry)
            for name, entry in data["features"].items()
        }
        return cls(features=features)

    @classmethod
    def from_text(cls, raw_text: str) -> "FeatureRegistry":
        try:
            raw_data = json.loads(raw_text)
        except json.JSONDecodeError:
            try:
                raw_data = yaml.safe_load(raw_text)
            except yaml.YAMLError as exc:
                raise ConfigError(f"Cannot parse registry: {exc}") from exc
        return cls.from_dict(raw_data)

    @classmethod
    def from_file(cls, path: str | Path) -> "FeatureRegistry":
        path = Path(path)
        try:
            raw_text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            reason = getattr(exc, "strerror", None) or exc
            raise ConfigError(f"Cannot read registry {path}: {reason}") from exc
        return cls.from_text(raw_text)

    def get(self, name: str) -> Feature:
        try:
            return self.features[name]
        except KeyError as exc:
            raise UnknownDependencyError(name) from exc

    def validate(self) -> None:
        """Check that every declared dependency names a registered feature."""

        for feature in self.features.values():
            for dep in feature.depends_on:
                if dep not in self.features:
                    raise UnknownDependencyError(dep, referenced_by=feature.name)

    def iter_features(self) -> Iterable[Feature]:
        return self.features.values()

    def __iter__(self) -> Iterator[str]:
        return iter(self.features)

    def __len__(self) -> int:
        return len(self.features)

    def __contains__(self, name: object) -> bool:
        return name in self.features
