from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Callable

import httpx
import structlog
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential

from tcmonitor.config.settings import Credentials, Settings
from tcmonitor.core.errors import TransportFailure
from tcmonitor.endpoints import EndpointResolver, Generation, default_resolver
from tcmonitor.signing import SignatureContext, sign

logger = structlog.get_logger()

DEFAULT_USER_AGENT = "tcmonitor/0.1.0"


def is_retryable_status(status_code: int) -> bool:
    """Determine if HTTP status code is retryable."""
    return status_code in (408, 429, 500, 502, 503, 504)


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, TransportFailure) and exc.retryable


@dataclass(frozen=True)
class PreparedRequest:
    """A fully signed request, built before it is sent."""

    service: str
    action: str
    url: str
    generation: Generation
    headers: dict[str, str]
    params: dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    method: str = "POST"


class CloudAPIClient:
    """Signs and sends Tencent Cloud API calls, returning the parsed body."""

    def __init__(
        self,
        credentials: Credentials,
        *,
        base_url: str | None = None,
        resolver: EndpointResolver | None = None,
        timeout: float = 30.0,
        max_retries: int = 3,
        backoff_factor: float = 0.5,
        clock: Callable[[], float] = time.time,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self._credentials = credentials
        self._base_url = base_url.rstrip("/") if base_url else None
        self._resolver = resolver or default_resolver
        self._timeout = timeout
        self._max_retries = max(1, max_retries)
        self._backoff_factor = backoff_factor
        self._clock = clock
        self._user_agent = user_agent

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> "CloudAPIClient":
        return cls(
            Credentials.from_settings(settings),
            base_url=settings.api_base_url,
            timeout=settings.http_timeout,
            max_retries=settings.http_max_retries,
            backoff_factor=settings.http_retry_backoff_factor,
            **kwargs,
        )

    def prepare(
        self,
        service: str,
        action: str,
        *,
        region: str = "",
        payload: dict[str, Any] | None = None,
    ) -> PreparedRequest:
        """Resolve the endpoint and sign; the timestamp is taken here, not at send time."""
        endpoint = self._resolver.resolve(region, service)
        context = SignatureContext(
            secret_id=self._credentials.secret_id,
            secret_key=self._credentials.secret_key,
            service_id=endpoint.service_id,
            host=endpoint.host,
            api_version=endpoint.api_version,
            action=action,
            region=region,
            timestamp=int(self._clock()),
            payload=payload or {},
        )
        signed = sign(context, endpoint.generation)
        headers = dict(signed.headers)
        if self._base_url:
            # the proxy forwards to the signed host itself
            headers.pop("Host", None)
        headers.setdefault("User-Agent", self._user_agent)
        return PreparedRequest(
            service=service,
            action=action,
            url=endpoint.url(self._base_url),
            generation=endpoint.generation,
            headers=headers,
            params=signed.params,
            body=signed.body,
        )

    async def call(
        self,
        service: str,
        action: str,
        *,
        region: str = "",
        payload: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        prepared = self.prepare(service, action, region=region, payload=payload)
        return await self.send(prepared)

    async def send(self, prepared: PreparedRequest) -> dict[str, Any]:
        """Send with retries on retryable transport failures."""
        retrying = AsyncRetrying(
            retry=retry_if_exception(_is_retryable),
            stop=stop_after_attempt(self._max_retries),
            wait=wait_exponential(multiplier=self._backoff_factor, max=30),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                data = await self._send_once(prepared)
        if prepared.generation == 3:
            return data.get("Response") or {}
        return data

    async def _send_once(self, prepared: PreparedRequest) -> dict[str, Any]:
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.request(
                    prepared.method,
                    prepared.url,
                    params=prepared.params or None,
                    content=prepared.body or None,
                    headers=prepared.headers,
                )
        except httpx.TransportError as exc:
            logger.warning(
                "http_network_error",
                service=prepared.service,
                action=prepared.action,
                url=prepared.url,
                error=str(exc),
            )
            raise TransportFailure(str(exc), retryable=True) from exc
        except httpx.RequestError as exc:
            # undecodable body or redirect loop, not retried
            logger.error(
                "http_request_error",
                service=prepared.service,
                action=prepared.action,
                url=prepared.url,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            raise TransportFailure(str(exc) or type(exc).__name__) from exc

        if response.is_error:
            retryable = is_retryable_status(response.status_code)
            log = logger.warning if retryable else logger.error
            log(
                "http_error",
                status=response.status_code,
                service=prepared.service,
                action=prepared.action,
                url=prepared.url,
            )
            raise TransportFailure(
                f"HTTP {response.status_code}: {response.reason_phrase}",
                status_code=response.status_code,
                status_text=response.reason_phrase,
                data=_safe_body(response),
                retryable=retryable,
            )

        try:
            data = response.json() if response.content else {}
        except ValueError as exc:
            raise TransportFailure(
                "Invalid JSON in response",
                status_code=response.status_code,
                status_text=response.reason_phrase,
                data=response.text,
            ) from exc
        if not isinstance(data, dict):
            raise TransportFailure("Unexpected response shape", status_code=response.status_code, data=data)
        return data


def _safe_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text or None
