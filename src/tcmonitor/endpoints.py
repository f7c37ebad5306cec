"""
Regional endpoint resolution for Tencent Cloud APIs.

Every service has a default entry; finance regions swap in dedicated
hosts and proxy paths while keeping the service id and API version.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Literal

from tcmonitor.core.errors import ConfigurationError

Generation = Literal[2, 3]

FINANCE_REGIONS: frozenset[str] = frozenset({"ap-shanghai-fsi", "ap-shenzhen-fsi"})

V2_REQUEST_PATH = "/v2/index.php"


@dataclass(frozen=True)
class ServiceEndpoint:
    """Where and how to call one service in one region."""

    service_id: str
    api_version: str
    host: str
    path: str
    generation: Generation = 3

    @property
    def request_path(self) -> str:
        """Path on the API host that the signature covers."""
        return V2_REQUEST_PATH if self.generation == 2 else "/"

    def url(self, base_url: str | None = None) -> str:
        if base_url:
            return f"{base_url.rstrip('/')}{self.path}"
        return f"https://{self.host}{self.request_path}"


DEFAULT_ENDPOINTS: dict[str, ServiceEndpoint] = {
    "cvm": ServiceEndpoint("cvm", "2017-03-12", "cvm.tencentcloudapi.com", "/cvm"),
    "cdb": ServiceEndpoint("cdb", "2017-03-20", "cdb.tencentcloudapi.com", "/cdb"),
    "monitor": ServiceEndpoint("monitor", "2018-07-24", "monitor.tencentcloudapi.com", "/monitor"),
    "pcx": ServiceEndpoint("vpc", "", "vpc.api.qcloud.com", "/pcx", generation=2),
}


def _finance_overrides() -> dict[str, dict[str, tuple[str, str]]]:
    cities = {"ap-shanghai-fsi": "shanghai", "ap-shenzhen-fsi": "shenzhen"}
    return {
        service: {
            region: (f"{service}.{region}.tencentcloudapi.com", f"/fsi/{service}/{city}")
            for region, city in cities.items()
        }
        for service in ("cvm", "cdb", "monitor")
    }


# service -> region -> (host, path)
FINANCE_OVERRIDES: dict[str, dict[str, tuple[str, str]]] = _finance_overrides()


class EndpointResolver:
    """Resolve (region, service) pairs against a static endpoint table."""

    def __init__(
        self,
        endpoints: dict[str, ServiceEndpoint] | None = None,
        overrides: dict[str, dict[str, tuple[str, str]]] | None = None,
        finance_regions: frozenset[str] = FINANCE_REGIONS,
    ) -> None:
        self._endpoints = DEFAULT_ENDPOINTS if endpoints is None else endpoints
        self._overrides = FINANCE_OVERRIDES if overrides is None else overrides
        self._finance_regions = finance_regions

    def resolve(self, region: str, service: str) -> ServiceEndpoint:
        default = self._endpoints.get(service)
        if default is None:
            raise ConfigurationError(
                f"No endpoint configured for service '{service}'",
                {"service": service, "region": region},
            )
        if region not in self._finance_regions:
            return default
        override = self._overrides.get(service, {}).get(region)
        if override is None:
            return default
        host, path = override
        return replace(default, host=host, path=path)


default_resolver = EndpointResolver()


def resolve_endpoint(region: str, service: str) -> ServiceEndpoint:
    return default_resolver.resolve(region, service)
