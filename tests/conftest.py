"""Shared fakes for the provisioner seams."""

from __future__ import annotations

import subprocess
from dataclasses import dataclass, field

import pytest

from apim_ops.random_source import SystemRandomSource

BASE_ENV = {
    "AZURE_APIM_NAME": "myapim",
    "AZURE_RESOURCE_GROUP": "myrg",
    "AZURE_FUNCTION_NAME": "myfunc",
}


@dataclass
class FakeApimClient:
    fail_on: set[str] = field(default_factory=set)
    existing: set[str] = field(default_factory=set)
    created: dict[str, dict] = field(default_factory=dict)
    calls: list[str] = field(default_factory=list)

    def create_named_value(
        self, resource_group, service_name, named_value_id, display_name, value, secret
    ):
        self.calls.append(f"create:{named_value_id}")
        if named_value_id in self.fail_on:
            raise subprocess.CalledProcessError(
                1, ["az", "apim", "nv", "create", "--value", value], stderr="boom"
            )
        self.created[named_value_id] = {
            "resource_group": resource_group,
            "service_name": service_name,
            "display_name": display_name,
            "value": value,
            "secret": secret,
        }

    def named_value_exists(self, resource_group, service_name, named_value_id):
        self.calls.append(f"show:{named_value_id}")
        return named_value_id in self.existing


@dataclass
class FakeFunctionAppClient:
    keys: dict[str, str] = field(default_factory=lambda: {"mcp_extension": "abc123"})
    error: Exception | None = None
    calls: int = 0

    def list_system_keys(self, resource_group, function_app_name):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return dict(self.keys)


class CountingRandomSource:
    def __init__(self) -> None:
        self.calls: list[int] = []
        self._inner = SystemRandomSource()

    def token_bytes(self, length: int) -> bytes:
        self.calls.append(length)
        return self._inner.token_bytes(length)


@pytest.fixture
def apim() -> FakeApimClient:
    return FakeApimClient()


@pytest.fixture
def functionapp() -> FakeFunctionAppClient:
    return FakeFunctionAppClient()


@pytest.fixture
def random_source() -> CountingRandomSource:
    return CountingRandomSource()


@pytest.fixture
def base_env() -> dict[str, str]:
    return dict(BASE_ENV)


@pytest.fixture
def apim_factory():
    return FakeApimClient
