from __future__ import annotations

import argparse
import logging
import sys

from pydantic import ValidationError

from ._utils import ensure
from .clients import AzCliApimClient, AzCliFunctionAppClient
from .environment import (
    AzdEnvironmentProvider,
    EnvironmentProvider,
    ProcessEnvironmentProvider,
)
from .models import ConflictPolicy
from .provisioner import Provisioner
from .random_source import OpensslRandomSource, RandomSource, SystemRandomSource
from .settings import Settings

logger = logging.getLogger(__name__)

PACKAGE_LOGGER = "apim_ops"


class _BelowLevel(logging.Filter):
    def __init__(self, level: int) -> None:
        super().__init__()
        self.level = level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < self.level


def configure_logging(verbose: bool = False) -> None:
    """Send progress lines to stdout and warnings/errors to stderr."""
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(package_logger.handlers):
        if getattr(handler, "_apim_ops", False):
            package_logger.removeHandler(handler)

    formatter = logging.Formatter("%(message)s")

    out = logging.StreamHandler(sys.stdout)
    out.setLevel(logging.DEBUG)
    out.addFilter(_BelowLevel(logging.WARNING))
    err = logging.StreamHandler(sys.stderr)
    err.setLevel(logging.WARNING)
    for handler in (out, err):
        handler.setFormatter(formatter)
        handler._apim_ops = True  # type: ignore[attr-defined]
        package_logger.addHandler(handler)

    package_logger.setLevel(logging.DEBUG if verbose else logging.INFO)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="set-apim-named-values",
        description=(
            "Generate an AES-256 key and IV and store them, together with the "
            "Function App mcp_extension system key, as secret APIM named values."
        ),
    )
    parser.add_argument(
        "--environment",
        "-e",
        default=None,
        help="azd environment name; defaults to the azd default environment",
    )
    parser.add_argument(
        "--no-azd",
        dest="use_azd",
        action="store_false",
        default=None,
        help="Read AZURE_* values from the process environment instead of azd",
    )
    parser.add_argument(
        "--if-exists",
        choices=[policy.value for policy in ConflictPolicy],
        default=None,
        help="What to do when a named value already exists (default: overwrite)",
    )
    parser.add_argument(
        "--random-source",
        choices=["system", "openssl"],
        default=None,
    )
    parser.add_argument("--verbose", "-v", action="store_true", default=None)
    return parser


def resolve_settings(args: argparse.Namespace) -> Settings:
    overrides = {
        key: value
        for key, value in {
            "azd_environment": args.environment,
            "use_azd": args.use_azd,
            "if_exists": args.if_exists,
            "random_source": args.random_source,
            "verbose": args.verbose,
        }.items()
        if value is not None
    }
    return Settings(**overrides)


def required_commands(settings: Settings) -> list[str]:
    commands = ["az"]
    if settings.use_azd:
        commands.append("azd")
    if settings.random_source == "openssl":
        commands.append("openssl")
    return commands


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = resolve_settings(args)
    except ValidationError as exc:
        for error in exc.errors():
            name = ".".join(str(part) for part in error["loc"])
            sys.stderr.write(f"Error: invalid setting {name}: {error['msg']}\n")
        return 1
    configure_logging(settings.verbose)

    ensure(required_commands(settings))

    provider: EnvironmentProvider = (
        AzdEnvironmentProvider(settings.azd_environment)
        if settings.use_azd
        else ProcessEnvironmentProvider()
    )
    random_source: RandomSource = (
        OpensslRandomSource()
        if settings.random_source == "openssl"
        else SystemRandomSource()
    )

    provisioner = Provisioner(
        provider,
        random_source,
        AzCliApimClient(),
        AzCliFunctionAppClient(),
        if_exists=settings.if_exists,
    )
    return provisioner.run()


if __name__ == "__main__":
    raise SystemExit(main())
