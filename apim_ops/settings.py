from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import ConflictPolicy


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="APIM_OPS_", case_sensitive=False)

    use_azd: bool = True
    azd_environment: str = ""
    if_exists: ConflictPolicy = ConflictPolicy.OVERWRITE
    random_source: Literal["system", "openssl"] = "system"
    verbose: bool = False
