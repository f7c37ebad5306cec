"""Tests for template variable resolution."""

import json

import pytest
from tcmonitor.variables import (
    MappingVariableSource,
    Multi,
    Scalar,
    VariableResolver,
    parse_instances,
)


@pytest.fixture
def resolver():
    return VariableResolver(
        MappingVariableSource(
            {
                "region": "ap-guangzhou",
                "instance": ['{"InstanceId": "cdb-1"}', '{"InstanceId": "cdb-2"}'],
                "single": '{"InstanceId": "cdb-9"}',
            }
        )
    )


class TestResolve:
    @pytest.mark.parametrize("expression", ["$region", "${region}", "[[region]]", "  $region  "])
    def test_token_forms(self, resolver, expression):
        assert resolver.resolve(expression) == Scalar("ap-guangzhou")

    def test_literal_without_tokens(self, resolver):
        assert resolver.resolve("ap-beijing") == Scalar("ap-beijing")

    def test_multi_valued_variable_yields_sequence(self, resolver):
        result = resolver.resolve("$instance", multi=True)

        assert isinstance(result, Multi)
        assert result.values == ('{"InstanceId": "cdb-1"}', '{"InstanceId": "cdb-2"}')

    def test_multi_valued_variable_joined_when_scalar_requested(self, resolver):
        assert resolver.resolve("$instance") == Scalar('{"InstanceId": "cdb-1"},{"InstanceId": "cdb-2"}')

    def test_scalar_variable_stays_scalar_in_multi_mode(self, resolver):
        assert resolver.resolve("$single", multi=True) == Scalar('{"InstanceId": "cdb-9"}')

    def test_scoped_vars_take_precedence(self, resolver):
        scoped = {"region": {"text": "Beijing", "value": "ap-beijing"}}

        assert resolver.resolve("$region", scoped) == Scalar("ap-beijing")

    def test_unknown_token_left_as_written(self, resolver):
        assert resolver.resolve("$nope") == Scalar("$nope")

    def test_embedded_token(self, resolver):
        assert resolver.resolve("region=${region}") == Scalar("region=ap-guangzhou")

    def test_none_expression_is_empty(self, resolver):
        assert resolver.resolve(None).is_empty()

    def test_empty_multi(self):
        resolver = VariableResolver(MappingVariableSource({"instance": []}))

        assert resolver.resolve("$instance", multi=True).is_empty()


class TestParseInstances:
    def test_parses_every_literal(self):
        instances = parse_instances(Multi(('{"InstanceId": "a"}', '{"InstanceId": "b"}')))

        assert [i.get("InstanceId") for i in instances] == ["a", "b"]

    def test_single_literal_becomes_one_element(self):
        instances = parse_instances(Scalar(json.dumps({"InstanceId": "a"})))

        assert len(instances) == 1

    def test_malformed_literal_dropped_rest_kept(self):
        instances = parse_instances(Multi(('{"InstanceId": "a"}', "{broken", "[1]", '{"InstanceId": "c"}')))

        assert [i.get("InstanceId") for i in instances] == ["a", "c"]

    def test_all_malformed_yields_empty(self):
        assert parse_instances(Scalar("cdb-1")) == []
