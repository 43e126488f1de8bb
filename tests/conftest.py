"""Shared fixtures: throwaway TLS material and mocked BankID endpoints."""

import datetime
import json
from types import SimpleNamespace

import httpx
import pytest
import pytest_asyncio
from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.serialization import (
    BestAvailableEncryption,
    Encoding,
    NoEncryption,
    PrivateFormat,
    pkcs12,
)
from cryptography.x509.oid import NameOID

from bankid_client import BankIDClient, Sandbox, environment

ORDER_REF = "131daac9-16c6-4618-beb0-365768f37288"

ORDER_BODY = {
    "orderRef": ORDER_REF,
    "autoStartToken": "7c40b5c9-fa74-49cf-b98c-bfe651f9a7c6",
    "qrStartToken": "67df3917-fa0d-44e5-b327-edcc928297f8",
    "qrStartSecret": "d28db9a7-4cde-429e-a983-359be676944c",
}

COMPLETION_DATA = {
    "user": {
        "personalNumber": "198710101234",
        "name": "Karl Karlsson",
        "givenName": "Karl",
        "surname": "Karlsson",
    },
    "device": {"ipAddress": "192.168.0.1"},
    "cert": {"notBefore": "1502983274000", "notAfter": "1563549674000"},
    "signature": "PD94bWwgdmVyc2lvbj0iMS4wIj8+",
    "ocspResponse": "MIIHfgoBAKCCB3cwggdzBgkrBgEF",
}


def _name(common_name):
    return x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])


def _certificate(subject, issuer, public_key, signing_key, ca):
    now = datetime.datetime.now(datetime.timezone.utc)
    return (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(issuer)
        .public_key(public_key)
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=30))
        .add_extension(x509.BasicConstraints(ca=ca, path_length=None), critical=True)
        .sign(signing_key, hashes.SHA256())
    )


@pytest.fixture
def cert_dir(tmp_path, monkeypatch):
    """Point the bundled certificate directory at freshly generated material."""
    ca_key = ec.generate_private_key(ec.SECP256R1())
    ca_cert = _certificate(
        _name("Test CA"), _name("Test CA"), ca_key.public_key(), ca_key, ca=True
    )
    client_key = ec.generate_private_key(ec.SECP256R1())
    client_cert = _certificate(
        _name("RP client"), _name("Test CA"), client_key.public_key(), ca_key, ca=False
    )

    ca_pem = ca_cert.public_bytes(Encoding.PEM)
    (tmp_path / environment.SANDBOX_CA_FILE).write_bytes(ca_pem)
    (tmp_path / environment.PRODUCTION_CA_FILE).write_bytes(ca_pem)
    (tmp_path / environment.SANDBOX_PKCS12_FILE).write_bytes(
        pkcs12.serialize_key_and_certificates(
            b"sandbox",
            client_key,
            client_cert,
            None,
            BestAvailableEncryption(environment.SANDBOX_PKCS12_PASSWORD.encode()),
        )
    )
    cert_path = tmp_path / "client.pem"
    key_path = tmp_path / "client.key"
    cert_path.write_bytes(client_cert.public_bytes(Encoding.PEM))
    key_path.write_bytes(
        client_key.private_bytes(Encoding.PEM, PrivateFormat.PKCS8, NoEncryption())
    )

    monkeypatch.setattr(environment, "CERT_DIR", tmp_path)
    return SimpleNamespace(path=tmp_path, cert_path=cert_path, key_path=key_path)


class FakeBankID:
    """Records requests and replays queued responses per operation."""

    def __init__(self):
        self.requests = []
        self.responses = {}

    def reply(self, operation, status_code=200, body=None, content=None):
        if content is None:
            content = json.dumps(body if body is not None else {}).encode()
        self.responses.setdefault(operation, []).append((status_code, content))

    def fail(self, operation, exc_type):
        self.responses.setdefault(operation, []).append(exc_type)

    def handler(self, request: httpx.Request) -> httpx.Response:
        operation = request.url.path.rsplit("/", 1)[-1]
        self.requests.append((operation, json.loads(request.content)))
        queued = self.responses[operation]
        response = queued.pop(0) if len(queued) > 1 else queued[0]
        if isinstance(response, type):
            raise response("simulated failure", request=request)
        status_code, content = response
        return httpx.Response(
            status_code, content=content, headers={"Content-Type": "application/json"}
        )

    def last_body(self, operation):
        return [body for op, body in self.requests if op == operation][-1]


@pytest.fixture
def bankid():
    return FakeBankID()


@pytest_asyncio.fixture
async def client(cert_dir, bankid):
    async with BankIDClient(
        Sandbox(), transport=httpx.MockTransport(bankid.handler)
    ) as bankid_client:
        yield bankid_client


@pytest.fixture
def order_body():
    return dict(ORDER_BODY)


@pytest.fixture
def completion_data():
    return json.loads(json.dumps(COMPLETION_DATA))
