"""Shared request path for resource services."""

from __future__ import annotations

import re
from collections.abc import Mapping
from logging import getLogger
from typing import TYPE_CHECKING, Any, ClassVar, Unpack

from pydantic import BaseModel, ValidationError

from spotify_catalog.errors import (
    DomainError,
    ErrorCode,
    ErrorContext,
    ValidationDetails,
)

from .markets import validate_market_code

if TYPE_CHECKING:
    from collections.abc import Iterable

    from spotify_catalog.adapters.http_resilience import RequestOptions, ResilientClient

log = getLogger(__name__)

SPOTIFY_ID_PATTERN = re.compile(r"[0-9A-Za-z]{22}")


def _field_value(response: object, name: str) -> object:
    if isinstance(response, Mapping):
        return response.get(name)
    return getattr(response, name, None)


def validate_required_fields[ResponseT](
    response: ResponseT,
    fields: Iterable[str],
    resource_type: str,
) -> ResponseT:
    """Return ``response`` unchanged, or raise ``INVALID_RESPONSE`` naming every absent/falsy field."""

    missing = tuple(name for name in fields if not _field_value(response, name))
    if missing:
        raise DomainError(
            f"Invalid {resource_type} response: missing required fields: {', '.join(missing)}",
            code=ErrorCode.INVALID_RESPONSE,
            context=ErrorContext(
                resource_type=resource_type,
                validation_details=ValidationDetails(missing_fields=missing),
            ),
        )
    return response


class BaseService:
    """Base for resource services.

    Subclasses call :meth:`request` rather than the transport directly so that
    every error leaving a service carries the service's ``resource_type`` and,
    when known, the id of the resource concerned.
    """

    resource_type: ClassVar[str] = "resource"

    def __init__(self, *, http: ResilientClient) -> None:
        self._http = http

    async def request(
        self,
        method: str,
        path: str,
        *,
        resource_id: str | None = None,
        **kwargs: Unpack[RequestOptions],
    ) -> Any:
        try:
            match method.upper():
                case "GET":
                    return await self._http.get(path, **kwargs)
                case "POST":
                    return await self._http.post(path, **kwargs)
                case "PUT":
                    return await self._http.put(path, **kwargs)
                case "DELETE":
                    return await self._http.delete(path, **kwargs)
                case _:
                    raise DomainError(
                        f"Unsupported HTTP method: {method}",
                        code=ErrorCode.INVALID_METHOD,
                    )
        except DomainError as exc:
            raise exc.with_context(
                resource_type=self.resource_type,
                resource_id=resource_id,
            ) from exc.__cause__

    async def get_resource(
        self,
        path: str,
        resource_id: str,
        **kwargs: Unpack[RequestOptions],
    ) -> Any:
        """GET one resource; a 404 becomes NOT_FOUND for ``resource_id`` whatever its body."""

        try:
            return await self.request("GET", path, resource_id=resource_id, **kwargs)
        except DomainError as exc:
            if exc.code is ErrorCode.NOT_FOUND:
                raise self.not_found(resource_id) from exc
            raise

    validate_required_fields = staticmethod(validate_required_fields)

    @staticmethod
    def validate_market_code(code: str) -> bool:
        return validate_market_code(code)

    def ensure_market(self, market: str) -> str:
        if not validate_market_code(market):
            raise DomainError(
                f"Invalid market code provided: {market}",
                code=ErrorCode.INVALID_MARKET,
                status_code=400,
                context=ErrorContext(
                    resource_type=self.resource_type,
                    validation_details=ValidationDetails(
                        invalid_fields={"market": "ISO 3166-1 alpha-2 code"},
                    ),
                    extra={"market": market},
                ),
            )
        return market

    def ensure_id(self, value: str) -> str:
        if not SPOTIFY_ID_PATTERN.fullmatch(value or ""):
            raise DomainError(
                f"Invalid {self.resource_type} ID format: {value}",
                code=ErrorCode.INVALID_ID,
                status_code=400,
                context=ErrorContext(
                    resource_type=self.resource_type,
                    resource_id=value,
                    validation_details=ValidationDetails(
                        invalid_fields={"id": "22 character base62 Spotify ID"},
                    ),
                ),
            )
        return value

    def invalid_param(self, name: str, value: object, reason: str) -> DomainError:
        return DomainError(
            reason,
            code=ErrorCode.INVALID_PARAM,
            status_code=400,
            context=ErrorContext(
                resource_type=self.resource_type,
                validation_details=ValidationDetails(invalid_fields={name: reason}),
                extra={"param": name, "value": value},
            ),
        )

    def not_found(self, resource_id: str) -> DomainError:
        return DomainError(
            f"{self.resource_type.capitalize()} not found: {resource_id}",
            code=ErrorCode.NOT_FOUND,
            status_code=404,
            context=ErrorContext(resource_type=self.resource_type, resource_id=resource_id),
        )

    def parse[ModelT: BaseModel](
        self,
        model: type[ModelT],
        payload: object,
        *,
        resource_id: str | None = None,
    ) -> ModelT:
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            log.warning("Unexpected %s payload: %s", self.resource_type, exc)
            raise DomainError(
                f"Invalid {self.resource_type} response: {exc.error_count()} validation error(s)",
                code=ErrorCode.INVALID_RESPONSE,
                context=ErrorContext(
                    resource_type=self.resource_type,
                    resource_id=resource_id,
                    validation_details=ValidationDetails(
                        messages=tuple(str(error["msg"]) for error in exc.errors()),
                    ),
                ),
                cause=exc,
            ) from exc
