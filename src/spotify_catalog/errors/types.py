"""Domain error type, its context and the normalised projection."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .codes import ErrorCode, ErrorTypeMetadata, Severity, lookup_metadata

_RETRYABLE_CODES = frozenset({ErrorCode.RATE_LIMIT, ErrorCode.NETWORK})


def _utcnow() -> datetime:
    return datetime.now(UTC)


class _FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class RequestInfo(_FrozenModel):
    endpoint: str
    method: str
    params: dict[str, Any] | None = None
    attempt: int = 0


class ValidationDetails(_FrozenModel):
    missing_fields: tuple[str, ...] = ()
    invalid_fields: dict[str, str] = Field(default_factory=dict)
    messages: tuple[str, ...] = ()


class ErrorContext(_FrozenModel):
    """Diagnostic data attached to a :class:`DomainError`.

    Contexts are never mutated. :meth:`merge` builds a new context in which fields
    already set on ``self`` win over the ones supplied by ``other``, so layers can
    add information on the way up without clobbering what a lower layer recorded.
    """

    resource_type: str | None = None
    resource_id: str | None = None
    request_info: RequestInfo | None = None
    validation_details: ValidationDetails | None = None
    timestamp: datetime = Field(default_factory=_utcnow)
    correlation_id: str | None = None
    extra: dict[str, Any] = Field(default_factory=dict)

    def merge(self, other: ErrorContext | None) -> ErrorContext:
        if other is None:
            return self
        update: dict[str, Any] = {}
        for name in ("resource_type", "resource_id", "request_info", "validation_details"):
            if getattr(self, name) is None and getattr(other, name) is not None:
                update[name] = getattr(other, name)
        if self.correlation_id is None and other.correlation_id is not None:
            update["correlation_id"] = other.correlation_id
        missing_extra = {k: v for k, v in other.extra.items() if k not in self.extra}
        if missing_extra:
            update["extra"] = {**self.extra, **missing_extra}
        if not update:
            return self
        return self.model_copy(update=update)


class DomainError(Exception):
    """The one failure type surfaced by the client.

    Callers branch on :attr:`code`; :attr:`message` is for humans and may vary.
    Instances are treated as immutable: use :meth:`with_context` to obtain a copy
    carrying additional context.
    """

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode = ErrorCode.UNKNOWN,
        status_code: int | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
        retry_after_ms: int | None = None,
    ) -> None:
        super().__init__(message)
        self._message = message
        self._code = code
        self._status_code = status_code
        self._context = context if context is not None else ErrorContext()
        self._cause = cause
        self._retry_after_ms = retry_after_ms

    @property
    def message(self) -> str:
        return self._message

    @property
    def code(self) -> ErrorCode:
        return self._code

    @property
    def status_code(self) -> int | None:
        return self._status_code

    @property
    def context(self) -> ErrorContext:
        return self._context

    @property
    def cause(self) -> BaseException | None:
        return self._cause

    @property
    def retry_after_ms(self) -> int | None:
        return self._retry_after_ms

    @property
    def metadata(self) -> ErrorTypeMetadata:
        return lookup_metadata(self._code)

    @property
    def severity(self) -> Severity:
        return self.metadata.severity

    def with_context(self, context: ErrorContext | None = None, **fields: Any) -> DomainError:
        """Return a copy whose context is merged with ``context`` and ``fields``.

        Fields already present on this error's context are kept.
        """

        incoming = context
        if fields:
            extra_fields = ErrorContext(**fields)
            incoming = extra_fields if incoming is None else incoming.merge(extra_fields)
        merged = self._context.merge(incoming)
        if merged is self._context:
            return self
        enriched = DomainError(
            self._message,
            code=self._code,
            status_code=self._status_code,
            context=merged,
            cause=self._cause,
            retry_after_ms=self._retry_after_ms,
        )
        enriched.__cause__ = self.__cause__
        enriched.__traceback__ = self.__traceback__
        return enriched

    def __repr__(self) -> str:
        return (
            f"DomainError(code={self._code.value!r}, status_code={self._status_code!r}, "
            f"message={self._message!r})"
        )


class NormalizedError(_FrozenModel):
    """Log- and wire-facing projection of a :class:`DomainError`."""

    code: ErrorCode
    message: str
    status_code: int
    context: ErrorContext
    is_retryable: bool
    severity: Severity
    retry_after_ms: int | None = None
    timestamp: datetime


def is_retryable(error: DomainError) -> bool:
    if error.code in _RETRYABLE_CODES:
        return True
    return error.status_code is not None and error.status_code >= 500


def to_normalized(error: DomainError) -> NormalizedError:
    metadata = error.metadata
    status_code = error.status_code if error.status_code is not None else metadata.default_status_code
    return NormalizedError(
        code=error.code,
        message=error.message,
        status_code=status_code,
        context=error.context,
        is_retryable=is_retryable(error),
        severity=metadata.severity,
        retry_after_ms=error.retry_after_ms,
        timestamp=_utcnow(),
    )
