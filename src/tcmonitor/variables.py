"""
Template variable resolution.

Dashboard expressions such as ``$region`` or ``[[instance]]`` are
substituted against the per-query scoped variables first and the
dashboard's variable store second. The result is an explicit sum type:
``Scalar`` for a single literal, ``Multi`` for a multi-valued selection.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Mapping, Protocol, Sequence, Union

import structlog

from tcmonitor.core.errors import MalformedInstanceError
from tcmonitor.models import ResolvedInstance

logger = structlog.get_logger()

VariableValue = Union[str, Sequence[str]]

TOKEN_PATTERN = re.compile(
    r"\$(?P<plain>\w+)"
    r"|\[\[(?P<bracket>\w+)(?::\w+)?\]\]"
    r"|\$\{(?P<braced>\w+)(?::\w+)?\}"
)


@dataclass(frozen=True)
class Scalar:
    value: str

    def is_empty(self) -> bool:
        return not self.value.strip()


@dataclass(frozen=True)
class Multi:
    values: tuple[str, ...]

    def is_empty(self) -> bool:
        return not self.values


ResolvedValue = Union[Scalar, Multi]


class VariableSource(Protocol):
    """The dashboard's template variable store."""

    def get(self, name: str) -> VariableValue | None:
        ...


class MappingVariableSource:
    """Variable store backed by a plain mapping of name -> value(s)."""

    def __init__(self, variables: Mapping[str, VariableValue] | None = None) -> None:
        self._variables = dict(variables or {})

    def get(self, name: str) -> VariableValue | None:
        return self._variables.get(name)


def _unwrap_scoped(value: Any) -> VariableValue | None:
    # Grafana scoped vars arrive as {"text": ..., "value": ...}
    if isinstance(value, Mapping):
        value = value.get("value")
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    return str(value)


class VariableResolver:
    """Resolve template tokens to a literal or a sequence of literals."""

    def __init__(self, source: VariableSource | None = None) -> None:
        self._source = source or MappingVariableSource()

    def lookup(self, name: str, scoped_vars: Mapping[str, Any] | None = None) -> VariableValue | None:
        if scoped_vars and name in scoped_vars:
            return _unwrap_scoped(scoped_vars[name])
        return self._source.get(name)

    def resolve(
        self,
        expression: str | None,
        scoped_vars: Mapping[str, Any] | None = None,
        multi: bool = False,
    ) -> ResolvedValue:
        text = (expression or "").strip()
        match = TOKEN_PATTERN.fullmatch(text)
        if multi and match:
            name = match.group("plain") or match.group("bracket") or match.group("braced")
            value = self.lookup(name, scoped_vars)
            if isinstance(value, (list, tuple)):
                return Multi(tuple(value))

        def substitute(m: re.Match[str]) -> str:
            name = m.group("plain") or m.group("bracket") or m.group("braced")
            value = self.lookup(name, scoped_vars)
            if value is None:
                return m.group(0)
            if isinstance(value, (list, tuple)):
                return ",".join(value)
            return value

        return Scalar(TOKEN_PATTERN.sub(substitute, text))

    def resolve_scalar(self, expression: str | None, scoped_vars: Mapping[str, Any] | None = None) -> str:
        return self.resolve(expression, scoped_vars).value  # type: ignore[union-attr]


def parse_instances(value: ResolvedValue) -> list[ResolvedInstance]:
    """Parse each literal into a ResolvedInstance, dropping malformed ones.

    A bad literal only removes itself from the batch.
    """
    literals = value.values if isinstance(value, Multi) else (value.value,)
    instances: list[ResolvedInstance] = []
    for literal in literals:
        try:
            instances.append(ResolvedInstance.parse(literal))
        except MalformedInstanceError as exc:
            logger.warning("instance_parse_failed", error=exc.message, **exc.details)
    return instances
