from __future__ import annotations

import logging
import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Sequence

from .errors import BuildExecutionError
from .models import Feature
from .utils import CommandError, run_command

logger = logging.getLogger(__name__)

SHORT_FINGERPRINT_LENGTH = 8


class BuildAction(Protocol):
    """Performs the actual build of a feature; raises BuildExecutionError on failure."""

    def __call__(self, feature: Feature, fingerprint: str) -> None:
        ...


def image_tag(feature: Feature, fingerprint: str) -> str:
    return f"{feature.name}:{fingerprint[:SHORT_FINGERPRINT_LENGTH]}"


def _execute(
    feature: Feature,
    command: Sequence[str],
    *,
    cwd: str | Path | None = None,
    env: Optional[Dict[str, str]] = None,
    capture: bool = False,
) -> None:
    logger.debug(f"Command: {' '.join(command)}")
    try:
        run_command(command, cwd=cwd, env=env, capture=capture)
    except CommandError as exc:
        raise BuildExecutionError(feature.name, f"exit code {exc.returncode}") from exc
    except OSError as exc:
        raise BuildExecutionError(feature.name, exc.strerror or str(exc)) from exc


@dataclass
class DockerBuildAction:
    """Builds a container image from the feature's first input path."""

    docker: str = "docker"
    capture: bool = False

    def command_for(self, feature: Feature, fingerprint: str) -> List[str]:
        if not feature.inputs:
            raise BuildExecutionError(feature.name, "no inputs to use as build context")
        return [self.docker, "build", "-t", image_tag(feature, fingerprint), feature.inputs[0]]

    def __call__(self, feature: Feature, fingerprint: str) -> None:
        command = self.command_for(feature, fingerprint)
        logger.info(f"Building image {image_tag(feature, fingerprint)}")
        _execute(feature, command, capture=self.capture)


@dataclass
class CommandBuildAction:
    """Runs the feature's own ``command`` with its identity exported in the environment."""

    cwd: Optional[Path] = None
    capture: bool = False

    def environment(self, feature: Feature, fingerprint: str) -> Dict[str, str]:
        return {
            "FEATURE_NAME": feature.name,
            "FEATURE_FINGERPRINT": fingerprint,
            "FEATURE_TAG": image_tag(feature, fingerprint),
        }

    def __call__(self, feature: Feature, fingerprint: str) -> None:
        try:
            command = shlex.split(feature.command)
        except ValueError as exc:
            raise BuildExecutionError(feature.name, f"invalid command: {exc}") from exc
        if not command:
            raise BuildExecutionError(feature.name, "empty command")
        _execute(
            feature,
            command,
            cwd=self.cwd,
            env=self.environment(feature, fingerprint),
            capture=self.capture,
        )


ACTIONS = {
    "docker": DockerBuildAction,
    "command": CommandBuildAction,
}
