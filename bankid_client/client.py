"""Async client for the BankID RP API."""

from __future__ import annotations

import logging
from ipaddress import IPv4Address, IPv6Address
from typing import Any, Callable, Optional, Type, TypeVar, Union

import httpx
from pydantic import ValidationError

from .environment import EnvironmentProfile, build_ssl_context, resolve
from .errors import InvalidRequest, ServerError, TransportFailure, UnexpectedResponse
from .models import (
    AuthRequest,
    CancelRequest,
    CancelResponse,
    CollectOutcome,
    CollectRequest,
    Complete,
    ErrorBody,
    Failed,
    Order,
    Requirement,
    SignRequest,
    WireModel,
    collect_outcome_adapter,
)
from .personal_number import PersonalNumber

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0

T = TypeVar("T")
W = TypeVar("W", bound=WireModel)

IPAddress = Union[str, IPv4Address, IPv6Address]
PersonalNumberLike = Union[str, PersonalNumber]
OrderRefLike = Union[str, Order]


def _coerce_personal_number(
    value: Optional[PersonalNumberLike],
) -> Optional[PersonalNumber]:
    if value is None or isinstance(value, PersonalNumber):
        return value
    if isinstance(value, str):
        return PersonalNumber.parse(value)
    raise TypeError(f"personal_number must be text or PersonalNumber, not {type(value).__name__}")


def _order_ref(value: OrderRefLike) -> str:
    return value.order_ref if isinstance(value, Order) else value


def _build(model: Type[W], **fields: Any) -> W:
    try:
        return model(**fields)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        )
        raise InvalidRequest(f"Invalid {model.__name__}: {problems}") from exc


class BankIDClient:
    """Client for the four RP operations: auth, sign, collect and cancel.

    Each call is a single HTTPS exchange with no internal retry. The instance
    keeps no per-order state, so one client can be shared by concurrent
    tasks. Polling ``collect`` until a terminal outcome is up to the caller;
    the service recommends an interval of one to two seconds.

    Construction resolves the environment and loads the TLS material right
    away, raising :class:`~bankid_client.errors.ConfigurationError` on any
    problem.
    """

    def __init__(
        self,
        profile: EnvironmentProfile,
        *,
        timeout: Union[float, httpx.Timeout] = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.profile = profile
        self._resolved = resolve(profile)
        self._endpoints = self._resolved.endpoints()
        self._http = httpx.AsyncClient(
            verify=build_ssl_context(self._resolved),
            timeout=timeout,
            transport=transport,
        )

    @property
    def base_url(self) -> httpx.URL:
        return self._resolved.base_url

    async def __aenter__(self) -> "BankIDClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close pooled connections."""
        await self._http.aclose()

    async def start_auth(
        self,
        end_user_ip: IPAddress,
        personal_number: Optional[PersonalNumberLike] = None,
        requirement: Optional[Requirement] = None,
    ) -> Order:
        """Start an authentication order.

        Without ``personal_number`` the user is identified on their device,
        e.g. by scanning a QR code.

        Raises:
            InvalidPersonalNumber: Before any request, for a malformed number.
            InvalidRequest: Before any request, for any other bad argument.
            ServerError: If the service rejects the order.
            TransportFailure: If no response was received.
            UnexpectedResponse: If the response could not be decoded.
        """
        pnr = _coerce_personal_number(personal_number)
        request = _build(
            AuthRequest,
            end_user_ip=end_user_ip,
            personal_number=pnr,
            requirement=requirement,
        )
        response = await self._post("auth", request)
        order = self._decode("auth", response, Order.model_validate_json)
        logger.info(
            f"Started auth order {order.order_ref} for {pnr.masked() if pnr else 'any user'}"
        )
        return order

    async def start_sign(
        self,
        end_user_ip: IPAddress,
        user_visible_data: Optional[str] = None,
        personal_number: Optional[PersonalNumberLike] = None,
        requirement: Optional[Requirement] = None,
        user_non_visible_data: Optional[str] = None,
        user_visible_data_format: Optional[str] = None,
    ) -> Order:
        """Start a sign order. The data arguments are plain text."""
        pnr = _coerce_personal_number(personal_number)
        request = _build(
            SignRequest,
            end_user_ip=end_user_ip,
            personal_number=pnr,
            requirement=requirement,
            user_visible_data=user_visible_data,
            user_non_visible_data=user_non_visible_data,
            user_visible_data_format=user_visible_data_format,
        )
        response = await self._post("sign", request)
        order = self._decode("sign", response, Order.model_validate_json)
        logger.info(
            f"Started sign order {order.order_ref} for {pnr.masked() if pnr else 'any user'}"
        )
        return order

    async def collect(self, order_ref: OrderRefLike) -> CollectOutcome:
        """Fetch the current status of an order once.

        Returns ``Pending``, ``Failed`` or ``Complete``. After the order is
        terminal the service either repeats the outcome or answers with
        ``ServerError(ErrorCode.NOT_FOUND)``.
        """
        ref = _order_ref(order_ref)
        response = await self._post("collect", CollectRequest(order_ref=ref))
        outcome = self._decode("collect", response, collect_outcome_adapter.validate_json)

        if isinstance(outcome, Complete):
            user = outcome.completion_data.user
            logger.info(f"Order {ref} complete for {user.personal_number.masked()}")
        elif isinstance(outcome, Failed):
            logger.info(f"Order {ref} failed: {outcome.hint_code.value}")
        else:
            logger.debug(f"Order {ref} pending: {outcome.hint_code.value}")
        return outcome

    async def cancel(self, order_ref: OrderRefLike) -> None:
        """Cancel an order.

        Cancelling an order that already reached a terminal state raises a
        :class:`ServerError`; callers usually treat that as a harmless race.
        """
        ref = _order_ref(order_ref)
        response = await self._post("cancel", CancelRequest(order_ref=ref))
        if response.content.strip():
            self._decode("cancel", response, CancelResponse.model_validate_json)
        logger.info(f"Cancelled order {ref}")

    async def _post(self, operation: str, request: WireModel) -> httpx.Response:
        url = self._endpoints[operation]
        logger.debug(f"POST {url}")
        try:
            response = await self._http.post(url, json=request.to_payload())
        except httpx.HTTPError as exc:
            logger.error(f"{operation} request to {url} failed: {exc!r}")
            raise TransportFailure(exc) from exc

        if response.is_success:
            return response
        raise self._server_error(operation, response)

    @staticmethod
    def _server_error(operation: str, response: httpx.Response) -> Exception:
        try:
            body = ErrorBody.model_validate_json(response.content)
        except ValidationError:
            return UnexpectedResponse(
                f"{operation} returned HTTP {response.status_code} without an error body",
                status_code=response.status_code,
                body=response.content,
            )
        logger.warning(
            f"{operation} rejected with HTTP {response.status_code}: "
            f"{body.error_code.value}"
        )
        return ServerError(body.error_code, body.details, response.status_code)

    @staticmethod
    def _decode(
        operation: str, response: httpx.Response, parse: Callable[[bytes], T]
    ) -> T:
        try:
            return parse(response.content)
        except ValidationError as exc:
            raise UnexpectedResponse(
                f"Unexpected {operation} response: {exc.error_count()} validation errors",
                status_code=response.status_code,
                body=response.content,
            ) from exc


__all__ = ["BankIDClient", "DEFAULT_TIMEOUT"]
