"""Wire models for the BankID RP API.

Attribute names are snake_case; the JSON exchanged with the service is
camelCase. Optional request fields left as ``None`` are omitted from the
body entirely.
"""

from __future__ import annotations

import base64
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    IPvAnyAddress,
    TypeAdapter,
    field_serializer,
    field_validator,
)
from pydantic.alias_generators import to_camel

from .personal_number import PersonalNumber


class WireModel(BaseModel):
    """Base for every model exchanged with the service."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> Dict[str, Any]:
        """Return the JSON-ready body with camelCase keys and no null fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class HintCode(str, Enum):
    """Sub-status explaining why an order is pending or failed."""

    OUTSTANDING_TRANSACTION = "outstandingTransaction"
    NO_CLIENT = "noClient"
    STARTED = "started"
    USER_SIGN = "userSign"
    EXPIRED_TRANSACTION = "expiredTransaction"
    CERTIFICATE_ERR = "certificateErr"
    USER_CANCEL = "userCancel"
    # the service spells this one with a double "l"
    CANCELED = "cancelled"
    START_FAILED = "startFailed"


class ErrorCode(str, Enum):
    """Error codes carried in non-2xx response bodies."""

    ALREADY_IN_PROGRESS = "alreadyInProgress"
    INVALID_PARAMETERS = "invalidParameters"
    CANCELED = "canceled"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "notFound"
    REQUEST_TIMEOUT = "requestTimeout"
    UNSUPPORTED_MEDIA_TYPE = "unsupportedMediaType"
    INTERNAL_ERROR = "internalError"
    MAINTENANCE = "maintenance"


# Requests


class Requirement(WireModel):
    """Optional authentication policy; unset fields use the service defaults."""

    certificate_policies: Optional[List[str]] = None
    allow_fingerprint: Optional[bool] = None
    auto_start_token_required: Optional[bool] = None
    issuer_cn: Optional[List[str]] = None
    card_reader: Optional[Literal["class1", "class2"]] = None


class AuthRequest(WireModel):
    end_user_ip: IPvAnyAddress
    personal_number: Optional[PersonalNumber] = None
    requirement: Optional[Requirement] = None

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        if payload.get("requirement") == {}:
            del payload["requirement"]
        return payload


class SignRequest(AuthRequest):
    """Sign request; the data fields hold plain text and are base64 encoded on the wire."""

    user_visible_data: Optional[str] = None
    user_non_visible_data: Optional[str] = None
    user_visible_data_format: Optional[Literal["simpleMarkdownV1"]] = None

    @field_validator("user_visible_data", "user_non_visible_data", mode="before")
    @classmethod
    def _blank_is_absent(cls, value: Any) -> Any:
        if value == "":
            return None
        return value

    @field_serializer("user_visible_data", "user_non_visible_data")
    def _encode_text(self, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return base64.b64encode(value.encode("utf-8")).decode("ascii")


class CollectRequest(WireModel):
    order_ref: str


class CancelRequest(WireModel):
    order_ref: str


# Responses


class Order(WireModel):
    """Handle returned by auth and sign.

    Holding ``order_ref`` is enough to collect or cancel the order.
    """

    order_ref: str
    auto_start_token: str
    qr_start_token: str
    qr_start_secret: str


class User(WireModel):
    personal_number: PersonalNumber
    name: str
    given_name: str
    surname: str


class Device(WireModel):
    ip_address: IPvAnyAddress


class Cert(WireModel):
    # milliseconds since the epoch, as sent by the service
    not_before: str
    not_after: str


class CompletionData(WireModel):
    user: User
    device: Device
    cert: Cert
    signature: str
    ocsp_response: str


class Pending(WireModel):
    status: Literal["pending"] = "pending"
    order_ref: Optional[str] = None
    hint_code: HintCode

    @property
    def is_terminal(self) -> bool:
        return False


class Failed(WireModel):
    status: Literal["failed"] = "failed"
    order_ref: Optional[str] = None
    hint_code: HintCode

    @property
    def is_terminal(self) -> bool:
        return True


class Complete(WireModel):
    status: Literal["complete"] = "complete"
    order_ref: Optional[str] = None
    completion_data: CompletionData

    @property
    def is_terminal(self) -> bool:
        return True


CollectOutcome = Annotated[
    Union[Pending, Failed, Complete], Field(discriminator="status")
]

collect_outcome_adapter: TypeAdapter[CollectOutcome] = TypeAdapter(CollectOutcome)


class ErrorBody(WireModel):
    error_code: ErrorCode
    details: str = ""


class CancelResponse(WireModel):
    """The service answers a successful cancel with ``{}``."""
