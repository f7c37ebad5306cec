"""Data model for dashboard targets, resolved instances and metric series."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from tcmonitor.core.errors import ConfigurationError, MalformedInstanceError

ALIAS_FIELD = "_InstanceAliasValue"
DEFAULT_PERIOD = 300


def _parse_period(value: Any, ref_id: str) -> int:
    if not value:
        return DEFAULT_PERIOD
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid period {value!r}", {"ref_id": ref_id}) from exc


@dataclass(frozen=True)
class Target:
    """A dashboard query target. Read-only to the connector."""

    namespace: str
    metric_name: str
    region_expr: str
    instance_expr: str
    dimension_template: Mapping[str, Any] = field(default_factory=dict)
    period: int = DEFAULT_PERIOD
    hidden: bool = False
    ref_id: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], product: str | None = None) -> "Target":
        """Build from the dashboard schema.

        Product specific fields may be nested under the product key
        (``{"namespace": ..., "cdb": {"metricName": ...}}``) or flat.
        """
        body = data.get(product, data) if product else data
        return cls(
            namespace=data.get("namespace") or "",
            metric_name=body.get("metricName") or "",
            region_expr=body.get("region") or "",
            instance_expr=body.get("instance") or "",
            dimension_template=dict(body.get("dimensionObject") or {}),
            period=_parse_period(body.get("period"), data.get("refId", "")),
            hidden=bool(body.get("hide", False)),
            ref_id=data.get("refId", ""),
        )


@dataclass(frozen=True)
class ResolvedInstance:
    """One resource descriptor, as selected in a template variable."""

    fields: Mapping[str, Any]

    @property
    def alias_value(self) -> str:
        value = self.fields.get(ALIAS_FIELD)
        if value is None:
            value = self.fields.get("InstanceId", "")
        return str(value)

    def get(self, key: str, default: Any = None) -> Any:
        return self.fields.get(key, default)

    def with_alias(self, alias_value: str) -> "ResolvedInstance":
        return ResolvedInstance({**self.fields, ALIAS_FIELD: alias_value})

    def serialize(self) -> str:
        return json.dumps(dict(self.fields), ensure_ascii=False, sort_keys=False)

    @classmethod
    def parse(cls, literal: str | Mapping[str, Any]) -> "ResolvedInstance":
        if isinstance(literal, Mapping):
            return cls(dict(literal))
        try:
            data = json.loads(literal)
        except (TypeError, ValueError) as exc:
            raise MalformedInstanceError(str(literal), str(exc)) from exc
        if not isinstance(data, dict):
            raise MalformedInstanceError(literal, f"expected object, got {type(data).__name__}")
        return cls(data)


@dataclass(frozen=True)
class Dimension:
    name: str
    value: Any

    def to_payload(self) -> dict[str, Any]:
        return {"Name": self.name, "Value": self.value}


def dimensions_for(instance: ResolvedInstance, template: Mapping[str, Any]) -> list[Dimension]:
    """One Dimension per template key, valued from the instance's field of that name."""
    return [Dimension(name=key, value=instance.get(key)) for key in template]


@dataclass(frozen=True)
class MetricSeries:
    timestamps: Sequence[int] = ()
    values: Sequence[float | None] = ()
    dimensions: Sequence[Dimension] = ()

    @classmethod
    def empty(cls) -> "MetricSeries":
        return cls()

    @classmethod
    def from_datapoint(cls, data: Mapping[str, Any]) -> "MetricSeries":
        return cls(
            timestamps=tuple(int(ts) for ts in data.get("Timestamps") or []),
            values=tuple(data.get("Values") or []),
            dimensions=tuple(
                Dimension(d.get("Name", ""), d.get("Value")) for d in data.get("Dimensions") or []
            ),
        )


@dataclass(frozen=True)
class ListingPage:
    items: Sequence[ResolvedInstance]
    total_count: int
    offset: int
    limit: int
