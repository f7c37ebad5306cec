"""Tests for positional series-to-instance correlation."""

from tcmonitor.correlator import correlate, format_results, series_from_response, to_datapoints
from tcmonitor.models import MetricSeries, ResolvedInstance

i0 = ResolvedInstance({"InstanceId": "cdb-0", "_InstanceAliasValue": "orders"})
i1 = ResolvedInstance({"InstanceId": "cdb-1"})
s0 = MetricSeries(timestamps=(1700000000, 1700000060), values=(1.0, 2.0))
s1 = MetricSeries(timestamps=(1700000000,), values=(3.0,))


def test_correlate_zips_by_index():
    assert correlate([s0, s1], [i0, i1]) == [(i0, s0), (i1, s1)]


def test_missing_trailing_series_are_empty():
    assert correlate([s0], [i0, i1]) == [(i0, s0), (i1, MetricSeries.empty())]


def test_extra_series_ignored():
    assert correlate([s0, s1], [i0]) == [(i0, s0)]


def test_to_datapoints_uses_milliseconds():
    assert to_datapoints(s0) == [[1.0, 1700000000000], [2.0, 1700000060000]]


def test_to_datapoints_pads_missing_values():
    series = MetricSeries(timestamps=(1, 2), values=(5.0,))

    assert to_datapoints(series) == [[5.0, 1000], [None, 2000]]


def test_series_from_response():
    response = {
        "MetricName": "CPUUseRate",
        "DataPoints": [
            {"Dimensions": [], "Timestamps": [1700000000], "Values": [0.5]},
            {"Dimensions": [], "Timestamps": [], "Values": []},
        ],
    }

    series = series_from_response(response)

    assert len(series) == 2
    assert series[0].values == (0.5,)
    assert series[1].timestamps == ()


def test_format_results_labels_by_alias():
    results = format_results("CPUUseRate", correlate([s0], [i0, i1]))

    assert results == [
        {"target": "CPUUseRate - orders", "datapoints": [[1.0, 1700000000000], [2.0, 1700000060000]]},
        {"target": "CPUUseRate - cdb-1", "datapoints": []},
    ]
