"""Environment profiles: base address, trust root and mutual TLS identity.

The sandbox trust root and test identity are bundled under ``certs/``. The
test identity is the publicly documented BankID RP test certificate and is
only reachable through :class:`Sandbox`; :class:`Production` always requires
a caller-supplied :class:`ClientIdentity`.
"""

from __future__ import annotations

import logging
import os
import secrets
import ssl
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Literal, Optional, Union

import httpx
from cryptography.hazmat.primitives.serialization import (
    BestAvailableEncryption,
    Encoding,
    PrivateFormat,
    pkcs12,
)
from pydantic import BaseModel, ConfigDict, Field, model_validator

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

CERT_DIR = Path(__file__).parent / "certs"

SANDBOX_CA_FILE = "test_ca.pem"
PRODUCTION_CA_FILE = "prod_ca.pem"
SANDBOX_PKCS12_FILE = "FPTestcert4_20230629.p12"
SANDBOX_PKCS12_PASSWORD = "qwerty123"

SANDBOX_BASE_URL = "https://appapi2.test.bankid.com/rp/v5.1/"
PRODUCTION_BASE_URL = "https://appapi2.bankid.com/rp/v5.1/"

OPERATIONS = ("auth", "sign", "collect", "cancel")


class ClientIdentity(BaseModel):
    """Certificate and private key presented to the service.

    Either a PKCS#12 bundle (``pkcs12_path`` + ``password``) or a PEM pair
    (``cert_path`` + ``key_path``, optionally ``key_password``).
    """

    model_config = ConfigDict(frozen=True)

    pkcs12_path: Optional[Path] = None
    password: Optional[str] = Field(default=None, repr=False)
    cert_path: Optional[Path] = None
    key_path: Optional[Path] = None
    key_password: Optional[str] = Field(default=None, repr=False)

    @model_validator(mode="after")
    def _check_single_form(self) -> "ClientIdentity":
        has_pkcs12 = self.pkcs12_path is not None
        has_pem = self.cert_path is not None or self.key_path is not None
        if has_pkcs12 == has_pem:
            raise ValueError("give either pkcs12_path or cert_path and key_path")
        if has_pem and (self.cert_path is None or self.key_path is None):
            raise ValueError("cert_path and key_path must be given together")
        return self

    @classmethod
    def from_pkcs12(cls, path: Union[str, Path], password: Optional[str] = None):
        return cls(pkcs12_path=Path(path), password=password)

    @classmethod
    def from_pem(
        cls,
        cert_path: Union[str, Path],
        key_path: Union[str, Path],
        key_password: Optional[str] = None,
    ):
        return cls(
            cert_path=Path(cert_path), key_path=Path(key_path), key_password=key_password
        )

    def load_into(self, context: ssl.SSLContext) -> None:
        """Install this identity as the client certificate of ``context``."""
        if self.pkcs12_path is not None:
            _load_pkcs12(context, self.pkcs12_path, self.password)
        else:
            context.load_cert_chain(
                certfile=str(self.cert_path),
                keyfile=str(self.key_path),
                password=self.key_password,
            )


def _load_pkcs12(
    context: ssl.SSLContext, path: Path, password: Optional[str]
) -> None:
    key, cert, extra_certs = pkcs12.load_key_and_certificates(
        Path(path).read_bytes(), password.encode("utf-8") if password else None
    )
    if key is None or cert is None:
        raise ConfigurationError(f"{path} does not hold a private key and certificate")

    pem = cert.public_bytes(Encoding.PEM)
    pem += b"".join(extra.public_bytes(Encoding.PEM) for extra in extra_certs)
    # ssl only loads key material from files, so the key is written encrypted
    key_password = secrets.token_bytes(32)
    pem += key.private_bytes(
        Encoding.PEM, PrivateFormat.PKCS8, BestAvailableEncryption(key_password)
    )

    fd, name = tempfile.mkstemp(suffix=".pem")
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(pem)
        context.load_cert_chain(certfile=name, password=key_password)
    finally:
        os.unlink(name)


class Sandbox(BaseModel):
    """BankID test environment with the bundled test identity."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["sandbox"] = "sandbox"
    base_url: Optional[str] = None


class Production(BaseModel):
    """BankID production environment; the identity is always supplied."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["production"] = "production"
    identity: ClientIdentity
    base_url: Optional[str] = None


EnvironmentProfile = Union[Sandbox, Production]


@dataclass(frozen=True)
class ResolvedProfile:
    """Everything needed to open a mutual TLS channel to one environment."""

    name: str
    base_url: httpx.URL
    trust_root: Path
    identity: ClientIdentity

    def endpoints(self) -> Dict[str, httpx.URL]:
        return endpoint_urls(self.base_url)


def sandbox_identity() -> ClientIdentity:
    return ClientIdentity.from_pkcs12(
        CERT_DIR / SANDBOX_PKCS12_FILE, SANDBOX_PKCS12_PASSWORD
    )


def validate_base_url(raw: str) -> httpx.URL:
    """Return ``raw`` as an absolute https URL ending in ``/``.

    Raises:
        ConfigurationError: If the URL is malformed or not https.
    """
    try:
        url = httpx.URL(raw)
    except (httpx.InvalidURL, TypeError) as exc:
        raise ConfigurationError(f"Malformed base URL {raw!r}: {exc}") from exc

    if url.scheme != "https":
        raise ConfigurationError(f"Base URL must use https, got {raw!r}")
    if not url.host:
        raise ConfigurationError(f"Base URL has no host: {raw!r}")
    if url.query or url.fragment:
        raise ConfigurationError(f"Base URL must not carry a query or fragment: {raw!r}")
    if not url.path.endswith("/"):
        url = url.copy_with(path=url.path + "/")
    return url


def endpoint_urls(base_url: httpx.URL) -> Dict[str, httpx.URL]:
    """Join every operation path onto ``base_url``."""
    urls = {}
    for operation in OPERATIONS:
        url = base_url.join(operation)
        if url.path != base_url.path + operation:
            raise ConfigurationError(f"Cannot join {operation!r} onto {base_url}")
        urls[operation] = url
    return urls


def resolve(profile: EnvironmentProfile) -> ResolvedProfile:
    """Select base address, trust root and identity for ``profile``."""
    if isinstance(profile, Sandbox):
        resolved = ResolvedProfile(
            name="sandbox",
            base_url=validate_base_url(profile.base_url or SANDBOX_BASE_URL),
            trust_root=CERT_DIR / SANDBOX_CA_FILE,
            identity=sandbox_identity(),
        )
    elif isinstance(profile, Production):
        resolved = ResolvedProfile(
            name="production",
            base_url=validate_base_url(profile.base_url or PRODUCTION_BASE_URL),
            trust_root=CERT_DIR / PRODUCTION_CA_FILE,
            identity=profile.identity,
        )
    else:
        raise ConfigurationError(f"Unsupported environment profile: {profile!r}")

    logger.debug(f"Resolved {resolved.name} profile with base URL {resolved.base_url}")
    return resolved


def build_ssl_context(resolved: ResolvedProfile) -> ssl.SSLContext:
    """Create the mutual TLS context for ``resolved``.

    Only the environment's own trust root is trusted; system CAs are not
    loaded.
    """
    if not resolved.trust_root.is_file():
        raise ConfigurationError(
            f"Trust root for {resolved.name} not found at {resolved.trust_root}"
        )
    try:
        context = ssl.create_default_context(cafile=str(resolved.trust_root))
        resolved.identity.load_into(context)
    except ConfigurationError:
        raise
    except (OSError, ValueError) as exc:
        raise ConfigurationError(
            f"Could not load TLS material for {resolved.name}: {exc}"
        ) from exc
    return context


__all__ = [
    "ClientIdentity",
    "EnvironmentProfile",
    "Production",
    "ResolvedProfile",
    "Sandbox",
    "build_ssl_context",
    "endpoint_urls",
    "resolve",
    "validate_base_url",
]
