"""Post-deployment provisioning of APIM secret named values.

The run is strictly sequential: load and validate the deployment context,
generate the encryption key and IV, publish both, look up the Function App
``mcp_extension`` system key and publish it. Each external call is made once.
Publish failures abort the run; a failed system-key lookup only warns.
"""

from __future__ import annotations

import logging
import subprocess

from .clients import ApimClient, FunctionAppClient
from .environment import EnvironmentProvider
from .errors import (
    ProvisionError,
    PublishFailure,
    RetrievalFailure,
)
from .models import (
    ENCRYPTION_IV_BYTES,
    ENCRYPTION_IV_ID,
    ENCRYPTION_KEY_BYTES,
    ENCRYPTION_KEY_ID,
    MCP_EXTENSION_KEY_ID,
    MCP_EXTENSION_SYSTEM_KEY,
    ConflictPolicy,
    DeploymentContext,
    NamedValue,
    ProvisionResult,
)
from .random_source import RandomSource, generate_base64

logger = logging.getLogger(__name__)


class Provisioner:
    def __init__(
        self,
        environment_provider: EnvironmentProvider,
        random_source: RandomSource,
        apim_client: ApimClient,
        functionapp_client: FunctionAppClient,
        *,
        if_exists: ConflictPolicy = ConflictPolicy.OVERWRITE,
    ) -> None:
        self.environment_provider = environment_provider
        self.random_source = random_source
        self.apim_client = apim_client
        self.functionapp_client = functionapp_client
        self.if_exists = ConflictPolicy(if_exists)

    def run(self) -> int:
        """Provision everything and return the process exit status."""
        try:
            self.provision()
        except ProvisionError as exc:
            logger.error("Error: %s", exc)
            return 1
        return 0

    def provision(self) -> ProvisionResult:
        ctx = self.load_context()
        result = ProvisionResult()
        logger.info(
            "Generating secure named values for APIM: %s in resource group: %s, post deployment",
            ctx.apim_name,
            ctx.resource_group,
        )

        logger.info("Generating 256-bit encryption key...")
        key = generate_base64(self.random_source, ENCRYPTION_KEY_BYTES)
        logger.info("Generated 256-bit encryption key")

        logger.info("Generating 128-bit initialization vector...")
        iv = generate_base64(self.random_source, ENCRYPTION_IV_BYTES)
        logger.info("Generated 128-bit initialization vector")

        self.publish(ctx, _secret(ENCRYPTION_KEY_ID, key), result)
        self.publish(ctx, _secret(ENCRYPTION_IV_ID, iv), result)

        try:
            system_key = self.fetch_system_key(ctx)
        except RetrievalFailure as exc:
            logger.warning("Warning: %s", exc)
            result.warnings.append(str(exc))
            system_key = ""

        # mcp-extension-key always tracks the current Function App key
        self.publish(
            ctx, _secret(MCP_EXTENSION_KEY_ID, system_key), result, guarded=False
        )

        logger.info("Successfully configured named values in APIM")
        return result

    def load_context(self) -> DeploymentContext:
        values = self.environment_provider.load()
        return DeploymentContext.from_mapping(values)

    def fetch_system_key(self, ctx: DeploymentContext) -> str:
        logger.info("Retrieving %s system key from Function App...", MCP_EXTENSION_SYSTEM_KEY)
        try:
            keys = self.functionapp_client.list_system_keys(
                ctx.resource_group, ctx.function_name
            )
        except Exception as exc:  # noqa: BLE001
            logger.debug("System key lookup for %s failed: %s", ctx.function_name, exc)
            raise RetrievalFailure(
                f"Failed to retrieve {MCP_EXTENSION_SYSTEM_KEY} system key"
            ) from exc

        value = keys.get(MCP_EXTENSION_SYSTEM_KEY) or ""
        if not value:
            raise RetrievalFailure(
                f"Failed to retrieve {MCP_EXTENSION_SYSTEM_KEY} system key"
            )
        logger.info("Successfully retrieved %s system key", MCP_EXTENSION_SYSTEM_KEY)
        return value

    def publish(
        self,
        ctx: DeploymentContext,
        named_value: NamedValue,
        result: ProvisionResult,
        *,
        guarded: bool = True,
    ) -> None:
        nv_id = named_value.named_value_id
        logger.info("Setting %s named value...", nv_id)

        if guarded and self.if_exists is not ConflictPolicy.OVERWRITE:
            try:
                exists = self.apim_client.named_value_exists(
                    ctx.resource_group, ctx.apim_name, nv_id
                )
            except (subprocess.CalledProcessError, OSError) as exc:
                raise PublishFailure(nv_id, "existence check failed") from exc
            if exists and self.if_exists is ConflictPolicy.SKIP:
                logger.info("%s named value already exists; leaving it unchanged", nv_id)
                result.skipped.append(nv_id)
                return
            if exists:
                raise PublishFailure(nv_id, "named value already exists")

        try:
            self.apim_client.create_named_value(
                ctx.resource_group,
                ctx.apim_name,
                nv_id,
                named_value.display_name,
                named_value.value.get_secret_value(),
                named_value.secret,
            )
        except subprocess.CalledProcessError as exc:
            # exc.cmd carries the secret value; report the status only
            raise PublishFailure(nv_id, f"exit status {exc.returncode}") from None
        except OSError as exc:
            raise PublishFailure(nv_id, exc.strerror or type(exc).__name__) from None

        logger.info("Successfully created %s named value", nv_id)
        result.published.append(nv_id)


def _secret(named_value_id: str, value: str) -> NamedValue:
    return NamedValue(
        named_value_id=named_value_id,
        display_name=named_value_id,
        value=value,
        secret=True,
    )
