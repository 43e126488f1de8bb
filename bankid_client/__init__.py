"""bankid-client: async client for the BankID Relying Party API."""

from .client import BankIDClient
from .config import BankIDConfig, get_client, load_config
from .environment import ClientIdentity, EnvironmentProfile, Production, Sandbox
from .errors import (
    BankIDError,
    ConfigurationError,
    InvalidPersonalNumber,
    InvalidRequest,
    ServerError,
    TransportFailure,
    UnexpectedResponse,
)
from .models import (
    CollectOutcome,
    Complete,
    CompletionData,
    ErrorCode,
    Failed,
    HintCode,
    Order,
    Pending,
    Requirement,
)
from .personal_number import PersonalNumber

__version__ = "0.1.0"
__all__ = [
    "BankIDClient",
    "BankIDConfig",
    "BankIDError",
    "ClientIdentity",
    "CollectOutcome",
    "Complete",
    "CompletionData",
    "ConfigurationError",
    "EnvironmentProfile",
    "ErrorCode",
    "Failed",
    "HintCode",
    "InvalidPersonalNumber",
    "InvalidRequest",
    "Order",
    "Pending",
    "PersonalNumber",
    "Production",
    "Requirement",
    "Sandbox",
    "ServerError",
    "TransportFailure",
    "UnexpectedResponse",
    "get_client",
    "load_config",
]
