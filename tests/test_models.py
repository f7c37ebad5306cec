"""Tests for targets, resolved instances and dimensions."""

import json

import pytest
from tcmonitor.core.errors import ConfigurationError, MalformedInstanceError
from tcmonitor.models import (
    Dimension,
    MetricSeries,
    ResolvedInstance,
    Target,
    dimensions_for,
)


class TestResolvedInstance:
    def test_round_trip(self):
        instance = ResolvedInstance(
            {
                "InstanceId": "cdb-abc",
                "InstanceName": "orders",
                "Vip": ["10.0.0.1", "10.0.0.2"],
                "Port": 3306,
                "_InstanceAliasValue": "orders",
            }
        )

        assert ResolvedInstance.parse(instance.serialize()) == instance

    def test_round_trip_preserves_unicode(self):
        instance = ResolvedInstance({"InstanceName": "订单库"})

        assert ResolvedInstance.parse(instance.serialize()).fields == {"InstanceName": "订单库"}

    def test_alias_value_prefers_alias_field(self):
        instance = ResolvedInstance({"InstanceId": "cdb-1", "_InstanceAliasValue": "primary"})

        assert instance.alias_value == "primary"

    def test_alias_value_falls_back_to_instance_id(self):
        assert ResolvedInstance({"InstanceId": "cdb-1"}).alias_value == "cdb-1"

    def test_with_alias_does_not_mutate(self):
        base = ResolvedInstance({"InstanceId": "cdb-1"})
        aliased = base.with_alias("10.0.0.1")

        assert "_InstanceAliasValue" not in base.fields
        assert aliased.alias_value == "10.0.0.1"

    @pytest.mark.parametrize("literal", ["{not json", "[1, 2]", '"cdb-1"', ""])
    def test_parse_rejects_non_objects(self, literal):
        with pytest.raises(MalformedInstanceError):
            ResolvedInstance.parse(literal)

    def test_parse_accepts_mapping(self):
        assert ResolvedInstance.parse({"InstanceId": "cdb-1"}).get("InstanceId") == "cdb-1"


class TestDimensions:
    def test_one_dimension_per_template_key_in_order(self):
        instance = ResolvedInstance({"InstanceId": "cdb-1", "InstanceType": 1, "Other": "x"})
        template = {"InstanceId": "", "InstanceType": ""}

        dims = dimensions_for(instance, template)

        assert dims == [Dimension("InstanceId", "cdb-1"), Dimension("InstanceType", 1)]
        assert len(dims) == len(template)

    def test_missing_field_gives_none_value(self):
        dims = dimensions_for(ResolvedInstance({}), {"InstanceId": ""})

        assert dims[0].to_payload() == {"Name": "InstanceId", "Value": None}


class TestTarget:
    def test_from_nested_dashboard_schema(self):
        target = Target.from_dict(
            {
                "refId": "A",
                "namespace": "QCE/CDB",
                "cdb": {
                    "metricName": "CPUUseRate",
                    "region": "$region",
                    "instance": "$instance",
                    "dimensionObject": {"InstanceId": {"Name": "InstanceId", "Value": ""}},
                    "period": 60,
                    "hide": True,
                },
            },
            product="cdb",
        )

        assert target.namespace == "QCE/CDB"
        assert target.metric_name == "CPUUseRate"
        assert target.region_expr == "$region"
        assert target.instance_expr == "$instance"
        assert list(target.dimension_template) == ["InstanceId"]
        assert target.period == 60
        assert target.hidden is True
        assert target.ref_id == "A"

    def test_period_defaults_to_300(self):
        target = Target.from_dict({"namespace": "QCE/CDB", "metricName": "CPUUseRate"})

        assert target.period == 300
        assert target.hidden is False

    def test_string_period_is_converted(self):
        target = Target.from_dict({"namespace": "QCE/CDB", "metricName": "CPUUseRate", "period": "60"})

        assert target.period == 60

    def test_non_numeric_period_rejected(self):
        with pytest.raises(ConfigurationError, match="Invalid period") as exc_info:
            Target.from_dict({"refId": "B", "namespace": "QCE/CDB", "period": "five minutes"})

        assert exc_info.value.details == {"ref_id": "B"}


class TestMetricSeries:
    def test_from_datapoint(self):
        series = MetricSeries.from_datapoint(
            {
                "Dimensions": [{"Name": "InstanceId", "Value": "cdb-1"}],
                "Timestamps": [1700000000, 1700000300],
                "Values": [1.5, 2.0],
            }
        )

        assert series.timestamps == (1700000000, 1700000300)
        assert series.values == (1.5, 2.0)
        assert series.dimensions == (Dimension("InstanceId", "cdb-1"),)

    def test_empty(self):
        assert MetricSeries.empty().timestamps == ()
        assert json.dumps(list(MetricSeries.empty().values)) == "[]"
