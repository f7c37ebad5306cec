"""Match returned metric series back to the instances that were requested."""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from tcmonitor.models import MetricSeries, ResolvedInstance


def correlate(
    series: Sequence[MetricSeries],
    instances: Sequence[ResolvedInstance],
) -> list[tuple[ResolvedInstance, MetricSeries]]:
    """Zip by position; instances beyond the returned series get an empty series."""
    return [
        (instance, series[index] if index < len(series) else MetricSeries.empty())
        for index, instance in enumerate(instances)
    ]


def series_from_response(response: Mapping[str, Any]) -> list[MetricSeries]:
    return [MetricSeries.from_datapoint(point) for point in response.get("DataPoints") or []]


def to_datapoints(series: MetricSeries) -> list[list[Any]]:
    """``[[value, timestamp_ms], ...]``; missing values stay None."""
    values = list(series.values)
    return [
        [values[i] if i < len(values) else None, int(ts) * 1000]
        for i, ts in enumerate(series.timestamps)
    ]


def format_results(
    metric_name: str,
    pairs: Sequence[tuple[ResolvedInstance, MetricSeries]],
) -> list[dict[str, Any]]:
    return [
        {"target": f"{metric_name} - {instance.alias_value}", "datapoints": to_datapoints(series)}
        for instance, series in pairs
    ]
