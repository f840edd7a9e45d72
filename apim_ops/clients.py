from __future__ import annotations

import json
import logging
import subprocess
from typing import Protocol

from ._utils import run_logged

logger = logging.getLogger(__name__)


class ApimClient(Protocol):
    def create_named_value(
        self,
        resource_group: str,
        service_name: str,
        named_value_id: str,
        display_name: str,
        value: str,
        secret: bool,
    ) -> None: ...

    def named_value_exists(
        self, resource_group: str, service_name: str, named_value_id: str
    ) -> bool: ...


class FunctionAppClient(Protocol):
    def list_system_keys(
        self, resource_group: str, function_app_name: str
    ) -> dict[str, str]: ...


def _is_not_found(exc: subprocess.CalledProcessError) -> bool:
    msg = (exc.stderr or "") + (exc.stdout or "")
    lowered = msg.lower()
    return "notfound" in lowered or "was not found" in lowered


class AzCliApimClient:
    """Named-value operations through `az apim nv`."""

    def create_named_value(
        self,
        resource_group: str,
        service_name: str,
        named_value_id: str,
        display_name: str,
        value: str,
        secret: bool,
    ) -> None:
        run_logged(
            [
                "az",
                "apim",
                "nv",
                "create",
                "--resource-group",
                resource_group,
                "--service-name",
                service_name,
                "--named-value-id",
                named_value_id,
                "--display-name",
                display_name,
                "--value",
                value,
                "--secret",
                "true" if secret else "false",
                "--only-show-errors",
                "-o",
                "none",
            ],
            capture_output=True,
            echo="on_error",
        )

    def named_value_exists(
        self, resource_group: str, service_name: str, named_value_id: str
    ) -> bool:
        try:
            run_logged(
                [
                    "az",
                    "apim",
                    "nv",
                    "show",
                    "--resource-group",
                    resource_group,
                    "--service-name",
                    service_name,
                    "--named-value-id",
                    named_value_id,
                    "--query",
                    "id",
                    "-o",
                    "tsv",
                ],
                capture_output=True,
                echo="never",
            )
        except subprocess.CalledProcessError as exc:
            if _is_not_found(exc):
                return False
            raise
        return True


class AzCliFunctionAppClient:
    def list_system_keys(
        self, resource_group: str, function_app_name: str
    ) -> dict[str, str]:
        output = run_logged(
            [
                "az",
                "functionapp",
                "keys",
                "list",
                "--resource-group",
                resource_group,
                "--name",
                function_app_name,
                "--query",
                "systemKeys",
                "-o",
                "json",
            ],
            capture_output=True,
            echo="never",
        ).stdout
        parsed = json.loads(output) if output.strip() else None
        if not parsed:
            return {}
        return {str(key): str(value) for key, value in parsed.items() if value is not None}
