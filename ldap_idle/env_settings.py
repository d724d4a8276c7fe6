from functools import lru_cache

from pydantic_settings import BaseSettings
from pydantic import Field


class EnvSettings(BaseSettings):
    # Defaults for environments that do not carry the idle control keys
    idle_timeout_ms: int = Field(600000, alias="LDAP_IDLE_TIMEOUT", ge=0)  # 10 minutes
    idle_refresh: bool = Field(False, alias="LDAP_IDLE_REFRESH")

    log_level: str = Field("INFO", alias="LDAP_LOG_LEVEL")
    log_dir: str = Field("", alias="LDAP_LOG_DIR")
    log_retention_days: int = Field(30, alias="LDAP_LOG_RETENTION_DAYS")

    class Config:
        populate_by_name = True


@lru_cache(maxsize=1)
def get_env() -> EnvSettings:
    return EnvSettings()
