from __future__ import annotations

import argparse
import asyncio
import json
from datetime import datetime, timedelta, timezone
from typing import Any, Sequence

from tcmonitor.config.settings import get_settings
from tcmonitor.core.errors import ConfigurationError, ExitCode, main_with_error_handling
from tcmonitor.datasource import MonitorDatasource
from tcmonitor.logging import configure_logging
from tcmonitor.models import Target
from tcmonitor.planner import TimeRange
from tcmonitor.products import list_products
from tcmonitor.variables import MappingVariableSource, VariableResolver


def _format_product_info(name: str, namespace: str, description: str | None) -> str:
    if description:
        return f"{name}\t{namespace}\t{description}"
    return f"{name}\t{namespace}"


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def _parse_time(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value)
    except ValueError as exc:
        raise ConfigurationError(f"Invalid timestamp '{value}'") from exc


def _parse_variables(pairs: Sequence[str]) -> dict[str, Any]:
    variables: dict[str, Any] = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep:
            raise ConfigurationError(f"Variables must be NAME=VALUE, got '{pair}'")
        existing = variables.get(name)
        if existing is None:
            variables[name] = value
        elif isinstance(existing, list):
            existing.append(value)
        else:
            variables[name] = [existing, value]
    return variables


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tcmonitor", description="Tencent Cloud monitor connector")
    parser.add_argument("--product", help="Product to use (default from TCMONITOR_PRODUCT)", default=None)
    parser.add_argument("--log-level", default=None, help="Log level (default from TCMONITOR_LOG_LEVEL)")
    parser.add_argument("--log-format", default=None, help="json or console (default from TCMONITOR_LOG_FORMAT)")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("products", help="List supported products")
    subparsers.add_parser("health", help="Check credentials and connectivity")
    subparsers.add_parser("regions", help="List available regions")

    zones_parser = subparsers.add_parser("zones", help="List available zones in a region")
    zones_parser.add_argument("--region", default=None)

    metrics_parser = subparsers.add_parser("metrics", help="List the product's metrics")
    metrics_parser.add_argument("--region", default=None)

    instances_parser = subparsers.add_parser("instances", help="List instances as variable options")
    instances_parser.add_argument("--region", default=None)
    instances_parser.add_argument("--alias", default=None, help="Field used as the option label")

    query_parser = subparsers.add_parser("query", help="Fetch metric data for one target")
    query_parser.add_argument("--metric", required=True)
    query_parser.add_argument("--region", default=None, help="Region or template expression")
    query_parser.add_argument("--instance", required=True, help="Instance JSON or template expression")
    query_parser.add_argument("--dimension", action="append", default=[], help="Dimension name (repeatable)")
    query_parser.add_argument("--period", type=int, default=300)
    query_parser.add_argument("--start", default=None, help="ISO timestamp (default: one hour ago)")
    query_parser.add_argument("--end", default=None, help="ISO timestamp (default: now)")
    query_parser.add_argument("--var", action="append", default=[], help="Template variable NAME=VALUE")
    return parser


async def _run(args: argparse.Namespace, datasource: MonitorDatasource, default_region: str) -> Any:
    region = getattr(args, "region", None) or default_region
    if args.command == "health":
        return (await datasource.test_datasource()).to_dict()
    if args.command == "regions":
        return await datasource.get_regions()
    if args.command == "zones":
        return await datasource.get_zones(region)
    if args.command == "metrics":
        return await datasource.get_metrics(region)
    if args.command == "instances":
        query = {"action": datasource.product.listing_action, "region": region, "instanceAlias": args.alias}
        return await datasource.metric_find_query(query)

    end = _parse_time(args.end) if args.end else datetime.now(timezone.utc)
    start = _parse_time(args.start) if args.start else end - timedelta(hours=1)
    target = Target(
        namespace=datasource.namespace,
        metric_name=args.metric,
        region_expr=region,
        instance_expr=args.instance,
        dimension_template={name: "" for name in args.dimension or ["InstanceId"]},
        period=args.period,
    )
    return await datasource.query([target], TimeRange(start, end))


@main_with_error_handling()
def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = get_settings()
    configure_logging(args.log_level or settings.log_level, args.log_format or settings.log_format)

    if args.command == "products":
        for spec in list_products():
            print(_format_product_info(spec.name, spec.namespace, spec.description))
        return ExitCode.SUCCESS

    if args.command is None:
        parser.print_help()
        return 1

    variables = VariableResolver(MappingVariableSource(_parse_variables(getattr(args, "var", []))))
    datasource = MonitorDatasource.from_settings(settings, variables, product=args.product)
    result = asyncio.run(_run(args, datasource, settings.default_region))
    _print_json(result)
    if args.command == "health" and result.get("status") != "success":
        return ExitCode.PROVIDER_ERROR
    return ExitCode.SUCCESS


if __name__ == "__main__":  # pragma: no cover - exercised via module entrypoint
    raise SystemExit(main())
