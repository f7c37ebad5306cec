"""
Query planning: dashboard targets to GetMonitorData payloads.

One payload per target, with one ``Instances`` entry per resolved
instance in input order. Result correlation relies on that order.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Mapping

import structlog

from tcmonitor.models import ResolvedInstance, Target, dimensions_for
from tcmonitor.variables import VariableResolver, parse_instances

logger = structlog.get_logger()


def format_timestamp(value: datetime) -> str:
    """RFC3339 with offset, second precision (``2024-05-01T08:00:00+08:00``)."""
    if value.tzinfo is None:
        value = value.astimezone()
    return value.isoformat(timespec="seconds")


@dataclass(frozen=True)
class TimeRange:
    start: datetime
    end: datetime


@dataclass(frozen=True)
class PlannedQuery:
    target: Target
    region: str
    instances: tuple[ResolvedInstance, ...]
    payload: dict[str, Any]


class QueryPlanner:
    def __init__(self, variables: VariableResolver) -> None:
        self._variables = variables

    def accepts(self, target: Target, scoped_vars: Mapping[str, Any] | None = None) -> bool:
        """Targets failing this produce no request and no error."""
        if target.hidden or not target.namespace or not target.metric_name:
            return False
        if self._variables.resolve(target.region_expr, scoped_vars).is_empty():
            return False
        return not self._variables.resolve(target.instance_expr, scoped_vars, multi=True).is_empty()

    def plan_target(
        self,
        target: Target,
        time_range: TimeRange,
        scoped_vars: Mapping[str, Any] | None = None,
    ) -> PlannedQuery | None:
        if not self.accepts(target, scoped_vars):
            return None

        instances = parse_instances(self._variables.resolve(target.instance_expr, scoped_vars, multi=True))
        if not instances:
            logger.info("target_skipped_no_instances", metric=target.metric_name, ref_id=target.ref_id)
            return None

        region = self._variables.resolve_scalar(target.region_expr, scoped_vars)
        payload = {
            "StartTime": format_timestamp(time_range.start),
            "EndTime": format_timestamp(time_range.end),
            "Period": target.period,
            "Namespace": target.namespace,
            "MetricName": target.metric_name,
            "Instances": [
                {
                    "Dimensions": [
                        dimension.to_payload()
                        for dimension in dimensions_for(instance, target.dimension_template)
                    ]
                }
                for instance in instances
            ],
        }
        return PlannedQuery(target=target, region=region, instances=tuple(instances), payload=payload)

    def plan(
        self,
        targets: Iterable[Target],
        time_range: TimeRange,
        scoped_vars: Mapping[str, Any] | None = None,
    ) -> list[PlannedQuery]:
        planned = []
        for target in targets:
            query = self.plan_target(target, time_range, scoped_vars)
            if query is not None:
                planned.append(query)
        return planned
