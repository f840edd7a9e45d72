"""Error taxonomy for named-value provisioning.

Every error carries a ``recoverable`` flag. Only ``RetrievalFailure`` is
recoverable: the provisioner downgrades it to a warning and keeps going.
Everything else aborts the run with exit status 1.
"""

from __future__ import annotations


class ProvisionError(Exception):
    """Base class for provisioning failures."""

    recoverable: bool = False


class MissingConfiguration(ProvisionError):
    """Raised when a required deployment value is absent or empty."""

    def __init__(self, variable: str) -> None:
        super().__init__(f"{variable} in azd environment must be set")
        self.variable = variable


class EnvironmentLoadFailure(ProvisionError):
    """Raised when the deployment environment cannot be read."""


class GenerationFailure(ProvisionError):
    """Raised when the random-byte source fails."""


class PublishFailure(ProvisionError):
    """Raised when a named value cannot be written to APIM."""

    def __init__(self, named_value_id: str, reason: str = "") -> None:
        message = f"Failed to create {named_value_id} named value"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.named_value_id = named_value_id


class RetrievalFailure(ProvisionError):
    """Raised when the Function App system key cannot be read."""

    recoverable = True
