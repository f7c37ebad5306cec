"""Tencent Cloud monitor connector: signed API calls reshaped into per-instance time series."""

from tcmonitor.clients.base import CloudAPIClient
from tcmonitor.config.settings import Credentials, Settings
from tcmonitor.datasource import MonitorDatasource
from tcmonitor.endpoints import EndpointResolver, ServiceEndpoint
from tcmonitor.health import HealthProbe, HealthResult
from tcmonitor.listing import PaginatedLister
from tcmonitor.models import Dimension, ListingPage, MetricSeries, ResolvedInstance, Target
from tcmonitor.planner import QueryPlanner, TimeRange
from tcmonitor.variables import MappingVariableSource, Multi, Scalar, VariableResolver

__version__ = "0.1.0"

__all__ = [
    "CloudAPIClient",
    "Credentials",
    "Dimension",
    "EndpointResolver",
    "HealthProbe",
    "HealthResult",
    "ListingPage",
    "MappingVariableSource",
    "MetricSeries",
    "MonitorDatasource",
    "Multi",
    "PaginatedLister",
    "QueryPlanner",
    "ResolvedInstance",
    "Scalar",
    "ServiceEndpoint",
    "Settings",
    "Target",
    "TimeRange",
    "VariableResolver",
]
