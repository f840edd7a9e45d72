from __future__ import annotations

import base64
import binascii
import logging
import secrets
import subprocess
from typing import Protocol

from ._utils import run_logged
from .errors import GenerationFailure

logger = logging.getLogger(__name__)


class RandomSource(Protocol):
    def token_bytes(self, length: int) -> bytes: ...


class SystemRandomSource:
    def token_bytes(self, length: int) -> bytes:
        return secrets.token_bytes(length)


class OpensslRandomSource:
    """Random bytes from `openssl rand`."""

    def token_bytes(self, length: int) -> bytes:
        try:
            output = run_logged(
                ["openssl", "rand", "-base64", str(length)],
                capture_output=True,
                echo="never",
            ).stdout
        except (subprocess.CalledProcessError, OSError) as exc:
            raise GenerationFailure(f"openssl rand failed for {length} bytes") from exc
        try:
            # openssl wraps base64 output at 64 columns
            data = base64.b64decode("".join(output.split()), validate=True)
        except (binascii.Error, ValueError) as exc:
            raise GenerationFailure("openssl rand returned invalid base64") from exc
        if len(data) != length:
            raise GenerationFailure(
                f"openssl rand returned {len(data)} bytes, expected {length}"
            )
        return data


def generate_base64(source: RandomSource, length: int) -> str:
    """Draw `length` random bytes from `source` and return them base64-encoded."""
    try:
        data = source.token_bytes(length)
    except GenerationFailure:
        raise
    except Exception as exc:
        raise GenerationFailure(f"random source failed for {length} bytes") from exc
    if len(data) != length:
        raise GenerationFailure(
            f"random source returned {len(data)} bytes, expected {length}"
        )
    return base64.b64encode(data).decode("ascii")
