"""Products shipped with the connector."""

from tcmonitor.products.registry import ProductSpec, register_product

CDB = ProductSpec(
    name="cdb",
    label="CDB",
    namespace="QCE/CDB",
    listing_service="cdb",
    listing_action="DescribeDBInstances",
    generation=3,
    items_key="Items",
    total_key="TotalCount",
    offset_param="Offset",
    limit_param="Limit",
    first_page_size=2000,
    alias_fields=("InstanceId", "InstanceName", "Vip"),
    description="TencentDB for MySQL",
)

PCX = ProductSpec(
    name="pcx",
    label="PCX",
    namespace="QCE/PCX",
    listing_service="pcx",
    listing_action="DescribeVpcPeeringConnections",
    generation=2,
    items_key="data",
    total_key="totalCount",
    offset_param="offset",
    limit_param="limit",
    first_page_size=50,
    alias_fields=("peeringConnectionId", "peeringConnectionName"),
    description="VPC peering connections",
)

register_product(CDB)
register_product(PCX)
