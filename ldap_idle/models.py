from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .environment import INITIAL_FACTORY, UNDERLYING_FACTORY
from .utils import build_server_host, looks_like_dn

LDAPS_PORT = 636
LDAP_PORT = 389


class ConnectionParams(BaseModel):
    """Parameters accepted by the connection factory.

    Unknown keys are rejected: the idle control keys must be stripped
    before the mapping gets here.
    """

    factory: str = Field(default=UNDERLYING_FACTORY, alias=INITIAL_FACTORY)

    host: str = Field(max_length=255)
    domain: str = Field(default="", max_length=255)
    port: int | None = Field(default=None, ge=1, le=65535)
    use_ssl: bool = Field(default=True)
    starttls: bool = Field(default=False)

    bind_username: str = Field(default="", max_length=512)
    bind_password: str = Field(default="", repr=False)

    tls_validate: bool = Field(default=False)
    ca_pem: str = Field(default="", repr=False)

    connect_timeout: float | None = Field(default=None, gt=0)
    receive_timeout: float | None = Field(default=None, gt=0)

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    @field_validator("host", "domain", "bind_username")
    @classmethod
    def _strip(cls, v: str) -> str:
        return (v or "").strip()

    @field_validator("host")
    @classmethod
    def _require_host(cls, v: str) -> str:
        if not v:
            raise ValueError("LDAP host must not be empty.")
        return v

    @field_validator("factory")
    @classmethod
    def _underlying_factory_only(cls, v: str) -> str:
        if v != UNDERLYING_FACTORY:
            raise ValueError(f"Unsupported connection factory {v!r}, expected {UNDERLYING_FACTORY!r}.")
        return v

    @model_validator(mode="after")
    def _transport(self):
        if self.use_ssl and self.starttls:
            raise ValueError("use_ssl and starttls are mutually exclusive.")
        if self.port is None:
            self.port = LDAPS_PORT if self.use_ssl else LDAP_PORT
        return self

    @property
    def server_host(self) -> str:
        return build_server_host(self.host, self.domain)

    @property
    def bind_principal(self) -> str:
        u = self.bind_username
        d = self.domain.strip(".")
        if not u:
            return ""
        if "@" in u or looks_like_dn(u):
            return u
        return f"{u}@{d}" if d else u
