from __future__ import annotations

import hashlib
import logging
import os
import ssl
import tempfile
from typing import Any, Mapping

from ldap3 import NONE, Connection, Server, Tls
from ldap3.core.exceptions import LDAPException

from .errors import ConnectionEstablishmentError
from .models import ConnectionParams

log = logging.getLogger(__name__)


def _normalize_pem(pem: str) -> str:
    """Normalize PEM text (strip outer whitespace and normalize line endings)."""
    data = (pem or "").strip()
    # Normalize Windows newlines to \n to avoid hash mismatches.
    data = data.replace("\r\n", "\n").replace("\r", "\n")
    return data


def _ensure_ca_file(pem: str) -> str:
    """Materialize CA PEM into a stable file path.

    ldap3.Tls accepts ca_certs_file across versions. The file name carries a
    content hash, so every reconnect (and every process) reuses the same file.
    """
    data = _normalize_pem(pem)
    if not data:
        return ""

    if "-----BEGIN CERTIFICATE-----" not in data or "-----END CERTIFICATE-----" not in data:
        raise ValueError("CA PEM does not look like a certificate (BEGIN/END CERTIFICATE block expected)")

    h = hashlib.sha256(data.encode("utf-8")).hexdigest()[:16]
    path = os.path.join(tempfile.gettempdir(), f"ldap_idle_ca_{h}.pem")

    try:
        if os.path.exists(path):
            with open(path, "r", encoding="utf-8") as f:
                if f.read().strip() == data:
                    return path

        with open(path, "w", encoding="utf-8") as f:
            f.write(data)
            f.write("\n")
        os.chmod(path, 0o600)
    except OSError:
        # Read-only temp dir: fall back to the system trust store.
        log.warning("Could not write CA file %s, using system trust store", path, exc_info=True)
        return ""

    return path


def build_server(p: ConnectionParams) -> Server:
    tls_kwargs: dict[str, Any] = {
        "validate": ssl.CERT_REQUIRED if p.tls_validate else ssl.CERT_NONE,
    }
    # Custom CA only matters when verification is enabled.
    ca_pem = _normalize_pem(p.ca_pem)
    if p.tls_validate and ca_pem:
        ca_file = _ensure_ca_file(ca_pem)
        if ca_file:
            tls_kwargs["ca_certs_file"] = ca_file

    server_kwargs: dict[str, Any] = {
        "host": p.server_host,
        "port": p.port,
        "use_ssl": p.use_ssl,
        "get_info": NONE,
        "tls": Tls(**tls_kwargs),
    }
    if p.connect_timeout:
        server_kwargs["connect_timeout"] = float(p.connect_timeout)
    return Server(**server_kwargs)


def _discard(conn: Connection) -> None:
    try:
        conn.unbind()
    except LDAPException:
        log.debug("unbind of half-open connection failed", exc_info=True)


def open_connection(params: Mapping[str, Any] | ConnectionParams) -> Connection:
    """Open, optionally StartTLS, and bind a new ldap3 connection.

    Raises ConnectionEstablishmentError when any of these steps fails, and
    pydantic.ValidationError when the parameters are invalid (including
    unknown keys such as the idle control keys).
    """
    if isinstance(params, ConnectionParams):
        p = params
    else:
        p = ConnectionParams.model_validate(dict(params))

    server = build_server(p)
    principal = p.bind_principal

    conn_kwargs: dict[str, Any] = {
        "user": principal or None,
        "password": p.bind_password or None,
        "auto_bind": False,
    }
    if p.receive_timeout:
        conn_kwargs["receive_timeout"] = float(p.receive_timeout)
    conn = Connection(server, **conn_kwargs)

    try:
        conn.open()
        if p.starttls:
            conn.start_tls()
        ok = bool(conn.bind())
    except LDAPException as e:
        _discard(conn)
        raise ConnectionEstablishmentError(
            f"LDAP connection to {p.server_host}:{p.port} failed: {e}"
        ) from e

    if not ok:
        res = dict(conn.result or {})
        _discard(conn)
        reason = res.get("description") or res.get("message") or "unknown error"
        raise ConnectionEstablishmentError(
            f"LDAP bind as {principal or 'anonymous'} to {p.server_host}:{p.port} failed: {reason}",
            result=res,
        )

    log.info("LDAP connection established: %s:%s as %s", p.server_host, p.port, principal or "anonymous")
    return conn
