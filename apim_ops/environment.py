"""Sources for the deployment environment values."""

from __future__ import annotations

import logging
import os
import subprocess
from typing import Mapping, Protocol

from ._utils import parse_env_lines, run_logged
from .errors import EnvironmentLoadFailure

logger = logging.getLogger(__name__)


class EnvironmentProvider(Protocol):
    def load(self) -> dict[str, str]: ...


class MappingEnvironmentProvider:
    def __init__(self, values: Mapping[str, str]) -> None:
        self._values = dict(values)

    def load(self) -> dict[str, str]:
        return dict(self._values)


class ProcessEnvironmentProvider:
    def load(self) -> dict[str, str]:
        return dict(os.environ)


class AzdEnvironmentProvider:
    """Read values from `azd env get-values`, layered over the process env."""

    def __init__(self, environment_name: str = "", *, inherit_process_env: bool = True):
        self.environment_name = environment_name.strip()
        self.inherit_process_env = inherit_process_env

    def command(self) -> list[str]:
        cmd = ["azd", "env", "get-values"]
        if self.environment_name:
            cmd += ["-e", self.environment_name]
        return cmd

    def load(self) -> dict[str, str]:
        logger.info("Retrieving values from azd environment...")
        try:
            output = run_logged(
                self.command(), capture_output=True, echo="on_error"
            ).stdout
        except (subprocess.CalledProcessError, OSError) as exc:
            raise EnvironmentLoadFailure(
                "Failed to retrieve values from azd environment"
            ) from exc

        values: dict[str, str] = dict(os.environ) if self.inherit_process_env else {}
        azd_values = parse_env_lines(output)
        logger.debug("Loaded %d values from azd environment", len(azd_values))
        values.update(azd_values)
        return values
