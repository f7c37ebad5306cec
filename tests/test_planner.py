"""Tests for turning dashboard targets into GetMonitorData payloads."""

import json
from datetime import datetime, timedelta, timezone

import pytest
from tcmonitor.models import Target
from tcmonitor.planner import QueryPlanner, TimeRange, format_timestamp
from tcmonitor.variables import MappingVariableSource, VariableResolver

INSTANCES = [
    json.dumps({"InstanceId": "cdb-1", "InstanceType": 1}),
    json.dumps({"InstanceId": "cdb-2", "InstanceType": 2}),
]


@pytest.fixture
def planner():
    return QueryPlanner(
        VariableResolver(
            MappingVariableSource(
                {
                    "region": "ap-guangzhou",
                    "instance": INSTANCES,
                    "empty": "",
                }
            )
        )
    )


@pytest.fixture
def time_range():
    start = datetime(2024, 5, 1, 0, 0, tzinfo=timezone.utc)
    return TimeRange(start, start + timedelta(hours=1))


def make_target(**overrides):
    fields = {
        "namespace": "QCE/CDB",
        "metric_name": "CPUUseRate",
        "region_expr": "$region",
        "instance_expr": "$instance",
        "dimension_template": {"InstanceId": "", "InstanceType": ""},
    }
    fields.update(overrides)
    return Target(**fields)


class TestPayload:
    def test_builds_one_payload_with_instances_in_order(self, planner, time_range):
        planned = planner.plan([make_target(period=60)], time_range)

        assert len(planned) == 1
        assert planned[0].region == "ap-guangzhou"
        assert planned[0].payload == {
            "StartTime": "2024-05-01T00:00:00+00:00",
            "EndTime": "2024-05-01T01:00:00+00:00",
            "Period": 60,
            "Namespace": "QCE/CDB",
            "MetricName": "CPUUseRate",
            "Instances": [
                {
                    "Dimensions": [
                        {"Name": "InstanceId", "Value": "cdb-1"},
                        {"Name": "InstanceType", "Value": 1},
                    ]
                },
                {
                    "Dimensions": [
                        {"Name": "InstanceId", "Value": "cdb-2"},
                        {"Name": "InstanceType", "Value": 2},
                    ]
                },
            ],
        }
        assert [i.get("InstanceId") for i in planned[0].instances] == ["cdb-1", "cdb-2"]

    def test_single_instance_literal(self, planner, time_range):
        target = make_target(region_expr="ap-beijing", instance_expr=INSTANCES[0])

        planned = planner.plan_target(target, time_range)

        assert planned.region == "ap-beijing"
        assert len(planned.payload["Instances"]) == 1

    def test_malformed_instance_dropped_from_batch(self, time_range):
        planner = QueryPlanner(
            VariableResolver(MappingVariableSource({"instance": ["{oops", INSTANCES[1]]}))
        )

        planned = planner.plan_target(make_target(region_expr="ap-guangzhou"), time_range)

        assert [i.get("InstanceId") for i in planned.instances] == ["cdb-2"]
        assert len(planned.payload["Instances"]) == 1

    def test_all_instances_malformed_skips_target(self, planner, time_range):
        assert planner.plan_target(make_target(instance_expr="not-json"), time_range) is None

    def test_template_not_mutated(self, planner, time_range):
        template = {"InstanceId": ""}
        planner.plan([make_target(dimension_template=template)], time_range)

        assert template == {"InstanceId": ""}

    def test_scoped_vars(self, planner, time_range):
        scoped = {"region": {"text": "Shanghai", "value": "ap-shanghai"}}

        planned = planner.plan([make_target()], time_range, scoped)

        assert planned[0].region == "ap-shanghai"


class TestPreFilter:
    @pytest.mark.parametrize(
        "overrides",
        [
            {"hidden": True},
            {"namespace": ""},
            {"metric_name": ""},
            {"region_expr": ""},
            {"region_expr": "$empty"},
            {"instance_expr": ""},
            {"instance_expr": "$empty"},
        ],
    )
    def test_excluded_targets_produce_no_query(self, planner, time_range, overrides):
        target = make_target(**overrides)

        assert not planner.accepts(target)
        assert planner.plan([target], time_range) == []

    def test_excluded_targets_do_not_affect_others(self, planner, time_range):
        planned = planner.plan([make_target(hidden=True), make_target(metric_name="MemoryUse")], time_range)

        assert [p.target.metric_name for p in planned] == ["MemoryUse"]


class TestFormatTimestamp:
    def test_keeps_offset(self):
        tz = timezone(timedelta(hours=8))

        assert format_timestamp(datetime(2024, 5, 1, 8, 30, 15, 999, tzinfo=tz)) == "2024-05-01T08:30:15+08:00"

    def test_naive_gets_local_offset(self):
        formatted = format_timestamp(datetime(2024, 5, 1, 8, 30))

        assert formatted.startswith("2024-05-01T08:30:00")
        assert len(formatted) == len("2024-05-01T08:30:00+00:00")
