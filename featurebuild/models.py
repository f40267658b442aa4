from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from .errors import ConfigError


def _string_list(name: str, key: str, value: Any) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigError(f"Feature {name}: '{key}' must be a list of strings")
    return list(value)


@dataclass(frozen=True)
class Feature:
    """A named buildable unit declared in the feature registry."""

    name: str
    inputs: List[str] = field(default_factory=list)
    command: str = ""
    depends_on: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, name: str, data: Optional[Mapping[str, Any]]) -> "Feature":
        data = data or {}
        if not isinstance(data, Mapping):
            raise ConfigError(f"Feature {name} must be a mapping")
        command = data.get("command", "")
        if not isinstance(command, str):
            raise ConfigError(f"Feature {name}: 'command' must be a string")
        depends_on = data.get("depends_on", data.get("dependsOn"))
        return cls(
            name=name,
            inputs=_string_list(name, "inputs", data.get("inputs")),
            command=command,
            depends_on=_string_list(name, "depends_on", depends_on),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "inputs": list(self.inputs),
            "command": self.command,
            "depends_on": list(self.depends_on),
        }


class Action(Enum):
    SKIP = "SKIP"
    BUILD = "BUILD"


@dataclass
class Decision:
    """Outcome of comparing a feature's fresh fingerprint with its cache record."""

    feature: str
    action: Action
    fingerprint: str
    previous: Optional[str] = None

    def __str__(self) -> str:
        return f"{self.action.value} {self.feature}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "feature": self.feature,
            "action": self.action.value,
            "fingerprint": self.fingerprint,
            "previous": self.previous,
        }


@dataclass
class BuildReport:
    """Summary of one orchestration run for a single target."""

    target: str
    order: List[str]
    decisions: List[Decision] = field(default_factory=list)
    dry_run: bool = False

    @property
    def built(self) -> List[str]:
        return [d.feature for d in self.decisions if d.action is Action.BUILD]

    @property
    def skipped(self) -> List[str]:
        return [d.feature for d in self.decisions if d.action is Action.SKIP]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target": self.target,
            "order": list(self.order),
            "dry_run": self.dry_run,
            "decisions": [decision.to_dict() for decision in self.decisions],
        }
