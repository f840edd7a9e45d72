from __future__ import annotations

import logging
import shlex
import shutil
import subprocess
import sys
from typing import Iterable, Literal

logger = logging.getLogger(__name__)


def run_logged(
    cmd: Iterable[str],
    *,
    capture_output: bool = False,
    text: bool = True,
    check: bool = True,
    echo: Literal["always", "on_error", "never"] = "always",
    **kwargs: object,
) -> subprocess.CompletedProcess[str]:
    """
    Run a subprocess, mirroring stdout/stderr to the caller even on failure.
    Returns the CompletedProcess; raises CalledProcessError when check=True.
    """
    args = list(cmd)
    logger.debug("Running %s", args[:3])
    result = subprocess.run(
        args,
        capture_output=capture_output,
        text=text,
        **kwargs,  # type: ignore[arg-type]
    )
    if capture_output and (
        echo == "always" or (echo == "on_error" and result.returncode != 0)
    ):
        if result.stdout:
            sys.stdout.write(result.stdout)
        if result.stderr:
            sys.stderr.write(result.stderr)
    if check and result.returncode != 0:
        raise subprocess.CalledProcessError(
            result.returncode, result.args, output=result.stdout, stderr=result.stderr
        )
    return result


def ensure(commands: Iterable[str]) -> None:
    for name in commands:
        if shutil.which(name) is None:
            sys.stderr.write(f"missing dependency: {name}\n")
            sys.exit(1)


def parse_env_lines(raw: str) -> dict[str, str]:
    """Parse KEY=value lines as emitted by `azd env get-values`.

    Values follow shell quoting rules, so `KEY="a b"` yields `a b` and
    `KEY=""` yields an empty string. Later keys win.
    """
    pairs: dict[str, str] = {}
    for raw_line in raw.splitlines():
        line = raw_line.strip()
        if line == "" or line.startswith("#") or "=" not in line:
            continue
        if line.startswith("export "):
            line = line[len("export ") :].lstrip()
        key, value = line.split("=", 1)
        key = key.strip()
        if not key:
            continue
        try:
            value = " ".join(shlex.split(value, comments=True))
        except ValueError:
            # unbalanced quotes; keep the raw text
            pass
        pairs[key] = value
    return pairs
