"""
Datasource health probe.

Three calls run concurrently: the region catalog (cvm), the metric catalog
(monitor) and the product's resource listing. Auth failures found in any
response are reported verbatim. A transport failure turns into a
connectivity message.
"""

from __future__ import annotations

import asyncio
from dataclasses import asdict, dataclass
from typing import Any, Literal, Mapping, Sequence

import structlog

from tcmonitor.clients.base import CloudAPIClient
from tcmonitor.core.errors import TransportFailure
from tcmonitor.endpoints import Generation
from tcmonitor.envelopes import extract_error, is_auth_failure
from tcmonitor.products.registry import ProductSpec

logger = structlog.get_logger()

PROBE_REGION = "ap-guangzhou"


@dataclass(frozen=True)
class HealthResult:
    service: str
    status: Literal["success", "error"]
    message: str
    title: str | None = None
    namespace: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == "success"

    def to_dict(self) -> dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass(frozen=True)
class Probe:
    service: str
    action: str
    generation: Generation
    region: str = ""
    payload: Mapping[str, Any] | None = None


def probes_for(product: ProductSpec) -> list[Probe]:
    return [
        Probe("cvm", "DescribeRegions", 3),
        Probe("monitor", "DescribeBaseMetrics", 3, PROBE_REGION, {"Namespace": product.namespace}),
        Probe(
            product.listing_service,
            product.listing_action,
            product.generation,
            PROBE_REGION,
            product.page_params(0, 1),
        ),
    ]


def auth_failure_messages(
    probes: Sequence[Probe],
    responses: Sequence[Mapping[str, Any]],
) -> list[str]:
    """Distinct ``"code: message"`` strings for every probe that hit an auth failure."""
    messages: list[str] = []
    for probe, response in zip(probes, responses):
        error = extract_error(response or {}, probe.generation)
        if error is None:
            continue
        code, message = error
        if not is_auth_failure(code, probe.generation):
            continue
        text = f"{code}: {message}"
        if text not in messages:
            messages.append(text)
    return messages


def connectivity_message(label: str, exc: TransportFailure) -> str:
    message = f"{label} service:"
    if exc.status_text:
        message += f"{exc.status_text}; "
    data = exc.data
    error = data.get("error") if isinstance(data, Mapping) else None
    if isinstance(error, Mapping) and error.get("code"):
        message += f"{error['code']}. {error.get('message', '')}"
    elif error:
        message += str(error)
    elif data:
        message += str(data)
    else:
        message += f"Cannot connect to {label} service."
    return message


class HealthProbe:
    def __init__(self, client: CloudAPIClient, product: ProductSpec) -> None:
        self._client = client
        self._product = product

    async def check(self) -> HealthResult:
        product = self._product
        probes = probes_for(product)
        responses = await asyncio.gather(
            *(
                self._client.call(
                    probe.service,
                    probe.action,
                    region=probe.region,
                    payload=dict(probe.payload or {}),
                )
                for probe in probes
            ),
            return_exceptions=True,
        )
        failure = next((r for r in responses if isinstance(r, BaseException)), None)
        if isinstance(failure, TransportFailure):
            logger.warning("health_probe_failed", product=product.name, error=failure.message)
            return HealthResult(
                service=product.name,
                status="error",
                message=connectivity_message(product.label, failure),
            )
        if failure is not None:
            raise failure

        messages = auth_failure_messages(probes, responses)
        if messages:
            return HealthResult(service=product.name, status="error", message="; ".join(messages))
        return HealthResult(
            service=product.name,
            status="success",
            message=f"Successfully queried the {product.label} service.",
            title="Success",
            namespace=product.namespace,
        )
