"""
Typed views over legacy template properties.

Legacy resource files store each resource's ``Properties`` as an untyped bag.
The models here cover the properties the reconcilers read, keyed by
CloudFormation resource type. Anything else is kept as extra fields so nothing
is lost when a view is built. Values that may hold a template intrinsic
(``{"Ref": ...}``) are typed as ``Any``.
"""

from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_pascal

from .types import CfnType


class Tag(BaseModel):
    model_config = ConfigDict(alias_generator=to_pascal, populate_by_name=True)

    key: str
    value: Any = None


class ResourceProperties(BaseModel):
    """Properties common to every resource, plus a passthrough for unknown keys."""

    model_config = ConfigDict(alias_generator=to_pascal, populate_by_name=True, extra="allow")

    tags: List[Tag] = Field(default_factory=list)

    def tag(self, name: str = "Name") -> Optional[Any]:
        return next((tag.value for tag in self.tags if tag.key == name), None)

    @property
    def unknown(self) -> Dict[str, Any]:
        """Properties not covered by the typed view."""
        return dict(self.model_extra or {})


class RoleProperties(ResourceProperties):
    role_name: Optional[str] = None
    path: Optional[str] = None
    managed_policy_arns: List[Any] = Field(default_factory=list)
    permissions_boundary: Any = None
    assume_role_policy_document: Optional[Dict[str, Any]] = None


class ManagedPolicyProperties(ResourceProperties):
    managed_policy_name: Optional[str] = None
    policy_document: Optional[Dict[str, Any]] = None


class GroupProperties(ResourceProperties):
    group_name: Optional[str] = None
    managed_policy_arns: List[Any] = Field(default_factory=list)


class UserProperties(ResourceProperties):
    user_name: Optional[str] = None
    groups: List[Any] = Field(default_factory=list)
    permissions_boundary: Any = None


class InstanceProfileProperties(ResourceProperties):
    instance_profile_name: Optional[str] = None
    roles: List[Any] = Field(default_factory=list)


class VpcProperties(ResourceProperties):
    cidr_block: Optional[str] = None
    enable_dns_hostnames: Optional[bool] = None
    enable_dns_support: Optional[bool] = None
    instance_tenancy: Optional[str] = None


class VpcCidrBlockProperties(ResourceProperties):
    cidr_block: Optional[str] = None
    vpc_id: Any = None


class SubnetProperties(ResourceProperties):
    cidr_block: Optional[str] = None
    availability_zone: Any = None
    vpc_id: Any = None
    map_public_ip_on_launch: Optional[bool] = None


class NatGatewayProperties(ResourceProperties):
    subnet_id: Any = None
    allocation_id: Any = None


class VpnGatewayProperties(ResourceProperties):
    amazon_side_asn: Optional[int] = None
    type: Optional[str] = None


class SecurityGroupProperties(ResourceProperties):
    group_name: Optional[str] = None
    group_description: Optional[str] = None
    vpc_id: Any = None


class SecurityGroupRuleProperties(ResourceProperties):
    group_id: Any = None
    source_security_group_id: Any = None
    destination_security_group_id: Any = None


class TransitGatewayProperties(ResourceProperties):
    amazon_side_asn: Optional[int] = None
    dns_support: Optional[str] = None
    vpn_ecmp_support: Optional[str] = None


class TransitGatewayAttachmentProperties(ResourceProperties):
    transit_gateway_id: Any = None
    vpc_id: Any = None
    subnet_ids: List[Any] = Field(default_factory=list)


class TransitGatewayRouteProperties(ResourceProperties):
    transit_gateway_route_table_id: Any = None
    transit_gateway_attachment_id: Any = None
    destination_cidr_block: Optional[str] = None
    blackhole: Optional[bool] = None


class TransitGatewayRouteTableLinkProperties(ResourceProperties):
    """Association or propagation between an attachment and a route table."""

    transit_gateway_attachment_id: Any = None
    transit_gateway_route_table_id: Any = None


class TgwPeeringAttachmentProperties(ResourceProperties):
    tag_value: Optional[str] = Field(default=None, alias="tagValue")
    transit_gateway_id: Any = Field(default=None, alias="transitGatewayId")
    target_transit_gateway_id: Any = Field(default=None, alias="targetTransitGatewayId")


class VpcPeeringConnectionProperties(ResourceProperties):
    vpc_id: Any = None
    peer_vpc_id: Any = None
    peer_owner_id: Any = None


class RouteProperties(ResourceProperties):
    route_table_id: Any = None
    destination_cidr_block: Optional[str] = None
    vpc_peering_connection_id: Any = None
    transit_gateway_id: Any = None
    nat_gateway_id: Any = None
    gateway_id: Any = None


class VpcEndpointProperties(ResourceProperties):
    service_name: Optional[str] = None
    vpc_id: Any = None
    vpc_endpoint_type: Optional[str] = None


class HostedZoneProperties(ResourceProperties):
    name: Optional[str] = None


class AliasTarget(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    dns_name: Optional[str] = Field(default=None, alias="DNSName")
    hosted_zone_id: Optional[str] = Field(default=None, alias="HostedZoneId")


class RecordSetProperties(ResourceProperties):
    name: Optional[str] = None
    hosted_zone_id: Any = None
    alias_target: Optional[AliasTarget] = None


class ResolverEndpointProperties(ResourceProperties):
    name: Optional[str] = None
    direction: Optional[str] = None


class QueryLoggingConfigProperties(ResourceProperties):
    name: Optional[str] = None
    destination_arn: Any = None


class QueryLoggingAssociationProperties(ResourceProperties):
    resolver_query_log_config_id: Any = None
    resource_id: Any = None


class FirewallProperties(ResourceProperties):
    firewall_name: Optional[str] = None
    firewall_policy_arn: Any = None
    vpc_id: Any = None
    delete_protection: Optional[bool] = None
    description: Optional[str] = None


class FirewallPolicyProperties(ResourceProperties):
    firewall_policy_name: Optional[str] = None


class RuleGroupProperties(ResourceProperties):
    rule_group_name: Optional[str] = None
    capacity: Optional[int] = None
    type: Optional[str] = None


class FirewallLoggingProperties(ResourceProperties):
    firewall_arn: Any = None


class LoadBalancerProperties(ResourceProperties):
    name: Optional[str] = None
    scheme: Optional[str] = None
    type: Optional[str] = None


class TargetGroupProperties(ResourceProperties):
    name: Optional[str] = None
    port: Optional[int] = None
    protocol: Optional[str] = None
    target_type: Optional[str] = None


class ListenerProperties(ResourceProperties):
    load_balancer_arn: Any = None


class SsmParameterProperties(ResourceProperties):
    name: Optional[str] = None
    value: Any = None


class ResourceDataSyncProperties(ResourceProperties):
    sync_name: Optional[str] = None


class SsmAssociationProperties(ResourceProperties):
    association_name: Optional[str] = None
    name: Optional[str] = None


PROPERTY_MODELS: Dict[str, Type[ResourceProperties]] = {
    CfnType.IAM_ROLE: RoleProperties,
    CfnType.IAM_MANAGED_POLICY: ManagedPolicyProperties,
    CfnType.IAM_GROUP: GroupProperties,
    CfnType.IAM_USER: UserProperties,
    CfnType.IAM_INSTANCE_PROFILE: InstanceProfileProperties,
    CfnType.VPC: VpcProperties,
    CfnType.VPC_CIDR_BLOCK: VpcCidrBlockProperties,
    CfnType.SUBNET: SubnetProperties,
    CfnType.NAT_GATEWAY: NatGatewayProperties,
    CfnType.VPN_GATEWAY: VpnGatewayProperties,
    CfnType.SECURITY_GROUP: SecurityGroupProperties,
    CfnType.SECURITY_GROUP_INGRESS: SecurityGroupRuleProperties,
    CfnType.SECURITY_GROUP_EGRESS: SecurityGroupRuleProperties,
    CfnType.TRANSIT_GATEWAY: TransitGatewayProperties,
    CfnType.TRANSIT_GATEWAY_ATTACHMENT: TransitGatewayAttachmentProperties,
    CfnType.TRANSIT_GATEWAY_ROUTE: TransitGatewayRouteProperties,
    CfnType.TRANSIT_GATEWAY_ASSOCIATION: TransitGatewayRouteTableLinkProperties,
    CfnType.TRANSIT_GATEWAY_PROPAGATION: TransitGatewayRouteTableLinkProperties,
    CfnType.TGW_PEERING_ATTACHMENT: TgwPeeringAttachmentProperties,
    CfnType.VPC_PEERING_CONNECTION: VpcPeeringConnectionProperties,
    CfnType.ROUTE: RouteProperties,
    CfnType.VPC_ENDPOINT: VpcEndpointProperties,
    CfnType.HOSTED_ZONE: HostedZoneProperties,
    CfnType.RECORD_SET: RecordSetProperties,
    CfnType.RESOLVER_ENDPOINT: ResolverEndpointProperties,
    CfnType.QUERY_LOGGING_CONFIG: QueryLoggingConfigProperties,
    CfnType.QUERY_LOGGING_ASSOCIATION: QueryLoggingAssociationProperties,
    CfnType.NETWORK_FIREWALL: FirewallProperties,
    CfnType.NETWORK_FIREWALL_POLICY: FirewallPolicyProperties,
    CfnType.NETWORK_FIREWALL_RULE_GROUP: RuleGroupProperties,
    CfnType.NETWORK_FIREWALL_LOGGING: FirewallLoggingProperties,
    CfnType.LOAD_BALANCER: LoadBalancerProperties,
    CfnType.TARGET_GROUP: TargetGroupProperties,
    CfnType.LISTENER: ListenerProperties,
    CfnType.SSM_PARAMETER: SsmParameterProperties,
    CfnType.SSM_RESOURCE_DATA_SYNC: ResourceDataSyncProperties,
    CfnType.SSM_ASSOCIATION: SsmAssociationProperties,
}


def typed_properties(resource_type: str, properties: Dict[str, Any]) -> ResourceProperties:
    """Build the typed view for ``properties`` of a resource of ``resource_type``."""
    model = PROPERTY_MODELS.get(resource_type, ResourceProperties)
    return model.model_validate(properties)
