"""
Monitor datasource facade.

Ties the planner, client, lister, correlator and health probe together
behind the operations a dashboard calls: ``query``, ``metric_find_query``
and ``test_datasource``.
"""

from __future__ import annotations

import asyncio
import re
from typing import Any, Mapping, Sequence

from tcmonitor.clients.base import CloudAPIClient
from tcmonitor.config.settings import Settings
from tcmonitor.core.errors import ConfigurationError, TcMonitorError
from tcmonitor.correlator import correlate, format_results, series_from_response
from tcmonitor.envelopes import check_response
from tcmonitor.health import PROBE_REGION, HealthProbe, HealthResult
from tcmonitor.listing import PaginatedLister
from tcmonitor.logging import bind_context
from tcmonitor.models import ResolvedInstance, Target
from tcmonitor.planner import PlannedQuery, QueryPlanner, TimeRange
from tcmonitor.products import ProductSpec, get_product
from tcmonitor.variables import VariableResolver

REGIONS_ACTION = re.compile(r"^DescribeRegions$", re.IGNORECASE)
# Dashboards saved against any product ask for instances with this action.
INSTANCES_ACTION = "DescribeDBInstances"
AVAILABLE = "AVAILABLE"


def alias_options(instances: Sequence[ResolvedInstance], alias_field: str) -> list[dict[str, str]]:
    """Variable picker options; list-valued alias fields yield one option per element."""
    options = []
    for instance in instances:
        value = instance.get(alias_field)
        if not value:
            continue
        if isinstance(value, str):
            options.append({"text": value, "value": instance.with_alias(value).serialize()})
        elif isinstance(value, (list, tuple)):
            for sub_value in value:
                options.append({"text": str(sub_value), "value": instance.with_alias(str(sub_value)).serialize()})
    return options


class MonitorDatasource:
    """One product's datasource (e.g. CDB or PCX)."""

    def __init__(
        self,
        client: CloudAPIClient,
        product: ProductSpec,
        variables: VariableResolver | None = None,
    ) -> None:
        self._client = client
        self._product = product
        self._variables = variables or VariableResolver()
        self._planner = QueryPlanner(self._variables)
        self._lister = PaginatedLister(client, product)
        self._log = bind_context(product=product.name)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        variables: VariableResolver | None = None,
        product: str | None = None,
    ) -> "MonitorDatasource":
        return cls(
            CloudAPIClient.from_settings(settings),
            get_product(product or settings.product),
            variables,
        )

    @property
    def product(self) -> ProductSpec:
        return self._product

    @property
    def namespace(self) -> str:
        return self._product.namespace

    async def query(
        self,
        targets: Sequence[Target | Mapping[str, Any]],
        time_range: TimeRange,
        scoped_vars: Mapping[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        """Run every valid target concurrently; any API failure yields ``[]``."""
        planned = self._planner.plan(self._parse_targets(targets), time_range, scoped_vars)
        if not planned:
            return []
        results = await asyncio.gather(
            *(self.get_monitor_data(query) for query in planned),
            return_exceptions=True,
        )
        failure = next((r for r in results if isinstance(r, BaseException)), None)
        if isinstance(failure, TcMonitorError):
            self._log.warning(
                "query_failed",
                error_type=type(failure).__name__,
                error=failure.message,
            )
            return []
        if failure is not None:
            raise failure
        return [series for result in results for series in result]

    def _parse_targets(self, targets: Sequence[Target | Mapping[str, Any]]) -> list[Target]:
        parsed = []
        for target in targets:
            if isinstance(target, Target):
                parsed.append(target)
                continue
            try:
                parsed.append(Target.from_dict(target, self._product.name))
            except ConfigurationError as exc:
                self._log.warning("target_skipped", error=exc.message, **exc.details)
        return parsed

    async def get_monitor_data(self, query: PlannedQuery) -> list[dict[str, Any]]:
        response = await self._client.call("monitor", "GetMonitorData", region=query.region, payload=query.payload)
        check_response(response, 3, "monitor")
        pairs = correlate(series_from_response(response), query.instances)
        return format_results(response.get("MetricName") or query.target.metric_name, pairs)

    async def metric_find_query(self, query: Mapping[str, Any]) -> list[dict[str, str]]:
        """Template variable queries: regions, or the product's instances in a region."""
        action = str(query.get("action") or "")
        if REGIONS_ACTION.match(action):
            return await self.get_regions()

        actions = "|".join(re.escape(a) for a in (INSTANCES_ACTION, self._product.listing_action))
        listing = re.match(f"^(?:{actions})", action, re.IGNORECASE)
        region = self._variables.resolve_scalar(query.get("region"))
        if not (listing and region):
            return []

        instances = await self.get_variable_instances(region)
        requested = query.get("instanceAlias") or query.get("instancealias")
        alias = requested if requested in self._product.alias_fields else self._product.default_alias
        return alias_options(instances, alias)

    async def get_variable_instances(self, region: str) -> list[ResolvedInstance]:
        return await self._lister.list_all(region)

    async def get_regions(self) -> list[dict[str, str]]:
        response = await self._client.call("cvm", "DescribeRegions")
        check_response(response, 3, "cvm")
        return [
            {"text": item.get("RegionName", ""), "value": item.get("Region", "")}
            for item in response.get("RegionSet") or []
            if item.get("RegionState") == AVAILABLE
        ]

    async def get_zones(self, region: str) -> list[dict[str, str]]:
        response = await self._client.call("cvm", "DescribeZones", region=region)
        check_response(response, 3, "cvm")
        return [
            {"text": item.get("ZoneName", ""), "value": item.get("ZoneId", ""), "zone": item.get("Zone", "")}
            for item in response.get("ZoneSet") or []
            if item.get("ZoneState") == AVAILABLE
        ]

    async def get_metrics(self, region: str = PROBE_REGION) -> list[dict[str, Any]]:
        response = await self._client.call(
            "monitor",
            "DescribeBaseMetrics",
            region=region,
            payload={"Namespace": self.namespace},
        )
        check_response(response, 3, "monitor")
        return [
            item
            for item in response.get("MetricSet") or []
            if item.get("Namespace") == self.namespace and item.get("MetricName")
        ]

    async def test_datasource(self) -> HealthResult:
        return await HealthProbe(self._client, self._product).check()
