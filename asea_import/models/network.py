"""Network configuration: VPCs, transit gateways, peering and central network services."""

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import Field

from .base import ConfigModel, DeploymentTargets, ShareTargets


class SubnetConfig(ConfigModel):
    name: str
    availability_zone: Optional[Union[str, int]] = None
    ipv4_cidr_block: Optional[str] = None
    map_public_ip_on_launch: bool = False
    route_table: Optional[str] = None
    share_targets: Optional[ShareTargets] = None


class NatGatewayConfig(ConfigModel):
    name: str
    subnet: str


class RouteTableConfig(ConfigModel):
    name: str
    routes: List[Dict[str, Any]] = Field(default_factory=list)


class SecurityGroupConfig(ConfigModel):
    name: str
    description: str = ""
    inbound_rules: List[Dict[str, Any]] = Field(default_factory=list)
    outbound_rules: List[Dict[str, Any]] = Field(default_factory=list)


class TransitGatewayReferenceConfig(ConfigModel):
    name: str
    account: str


class TransitGatewayAttachmentConfig(ConfigModel):
    name: str
    transit_gateway: TransitGatewayReferenceConfig
    subnets: List[str] = Field(default_factory=list)
    route_table_associations: List[str] = Field(default_factory=list)
    route_table_propagations: List[str] = Field(default_factory=list)


class VirtualPrivateGatewayConfig(ConfigModel):
    asn: int


class InterfaceEndpointServiceConfig(ConfigModel):
    service: str
    service_name: Optional[str] = None


class InterfaceEndpointConfig(ConfigModel):
    central: bool = False
    subnets: List[str] = Field(default_factory=list)
    endpoints: List[InterfaceEndpointServiceConfig] = Field(default_factory=list)
    allowed_cidrs: List[str] = Field(default_factory=list)


class TargetGroupConfig(ConfigModel):
    name: str
    port: int = 443
    protocol: str = "HTTPS"
    type: str = "instance"


class ApplicationLoadBalancerConfig(ConfigModel):
    name: str
    scheme: str = "internal"
    subnets: List[str] = Field(default_factory=list)
    security_groups: List[str] = Field(default_factory=list)


class LoadBalancersConfig(ConfigModel):
    application_load_balancers: List[ApplicationLoadBalancerConfig] = Field(default_factory=list)


class VpcBaseConfig(ConfigModel):
    """Fields shared by account-scoped VPCs and VPC templates."""

    name: str
    region: str
    cidrs: List[str] = Field(default_factory=list)
    enable_dns_hostnames: bool = True
    enable_dns_support: bool = True
    instance_tenancy: str = "default"
    internet_gateway: bool = False
    virtual_private_gateway: Optional[VirtualPrivateGatewayConfig] = None
    subnets: List[SubnetConfig] = Field(default_factory=list)
    nat_gateways: List[NatGatewayConfig] = Field(default_factory=list)
    route_tables: List[RouteTableConfig] = Field(default_factory=list)
    security_groups: List[SecurityGroupConfig] = Field(default_factory=list)
    transit_gateway_attachments: List[TransitGatewayAttachmentConfig] = Field(
        default_factory=list
    )
    interface_endpoints: Optional[InterfaceEndpointConfig] = None
    query_logs: List[str] = Field(default_factory=list)
    load_balancers: Optional[LoadBalancersConfig] = None
    target_groups: List[TargetGroupConfig] = Field(default_factory=list)

    def subnet(self, name: str) -> Optional[SubnetConfig]:
        return next((subnet for subnet in self.subnets if subnet.name == name), None)

    @property
    def is_shared(self) -> bool:
        return any(subnet.share_targets for subnet in self.subnets)


class VpcConfig(VpcBaseConfig):
    account: str


class VpcTemplatesConfig(VpcBaseConfig):
    deployment_targets: DeploymentTargets = Field(default_factory=DeploymentTargets)


class TransitGatewayRouteAttachmentConfig(ConfigModel):
    """The target of a static transit gateway route; exactly one field group is set."""

    vpc_name: Optional[str] = None
    account: Optional[str] = None
    transit_gateway_peering_name: Optional[str] = None
    direct_connect_gateway_name: Optional[str] = None
    vpn_connection_name: Optional[str] = None


class TransitGatewayRouteEntryConfig(ConfigModel):
    destination_cidr_block: Optional[str] = None
    destination_prefix_list: Optional[str] = None
    blackhole: bool = False
    attachment: Optional[TransitGatewayRouteAttachmentConfig] = None


class TransitGatewayRouteTableConfig(ConfigModel):
    name: str
    routes: List[TransitGatewayRouteEntryConfig] = Field(default_factory=list)


class TransitGatewayConfig(ConfigModel):
    name: str
    account: str
    region: str
    asn: int = 65521
    dns_support: str = "enable"
    vpn_ecmp_support: str = "enable"
    default_route_table_association: str = "disable"
    default_route_table_propagation: str = "disable"
    auto_accept_sharing_attachments: str = "disable"
    route_tables: List[TransitGatewayRouteTableConfig] = Field(default_factory=list)
    share_targets: Optional[ShareTargets] = None


class TransitGatewayPeeringEndpointConfig(ConfigModel):
    transit_gateway_name: str
    account: str
    region: str
    route_table_association: Optional[str] = None


class TransitGatewayPeeringConfig(ConfigModel):
    name: str
    requester: TransitGatewayPeeringEndpointConfig
    accepter: TransitGatewayPeeringEndpointConfig


class VpcPeeringConfig(ConfigModel):
    name: str
    vpcs: List[str]
    tags: List[Dict[str, str]] = Field(default_factory=list)


class ResolverEndpointConfig(ConfigModel):
    name: str
    type: Literal["INBOUND", "OUTBOUND"]
    vpc: str
    subnets: List[str] = Field(default_factory=list)


class DnsQueryLogsConfig(ConfigModel):
    name: str
    destinations: List[str] = Field(default_factory=list)


class ResolverConfig(ConfigModel):
    endpoints: List[ResolverEndpointConfig] = Field(default_factory=list)
    query_logs: Optional[DnsQueryLogsConfig] = None


class NfwFirewallConfig(ConfigModel):
    name: str
    vpc: str
    firewall_policy: str
    subnets: List[str] = Field(default_factory=list)
    delete_protection: bool = False
    description: Optional[str] = None


class NfwFirewallPolicyConfig(ConfigModel):
    name: str
    firewall_policy: Dict[str, Any] = Field(default_factory=dict)
    regions: List[str] = Field(default_factory=list)
    share_targets: Optional[ShareTargets] = None


class NfwRuleGroupConfig(ConfigModel):
    name: str
    type: Literal["STATEFUL", "STATELESS"]
    capacity: int
    regions: List[str] = Field(default_factory=list)
    description: Optional[str] = None
    rule_group: Optional[Dict[str, Any]] = None


class NfwConfig(ConfigModel):
    firewalls: List[NfwFirewallConfig] = Field(default_factory=list)
    policies: List[NfwFirewallPolicyConfig] = Field(default_factory=list)
    rules: List[NfwRuleGroupConfig] = Field(default_factory=list)


class CentralNetworkServicesConfig(ConfigModel):
    delegated_admin_account: str
    route53_resolver: Optional[ResolverConfig] = None
    network_firewall: Optional[NfwConfig] = None


class NetworkConfig(ConfigModel):
    vpcs: List[VpcConfig] = Field(default_factory=list)
    vpc_templates: List[VpcTemplatesConfig] = Field(default_factory=list)
    transit_gateways: List[TransitGatewayConfig] = Field(default_factory=list)
    transit_gateway_peering: List[TransitGatewayPeeringConfig] = Field(default_factory=list)
    vpc_peering: List[VpcPeeringConfig] = Field(default_factory=list)
    central_network_services: Optional[CentralNetworkServicesConfig] = None

    @property
    def all_vpcs(self) -> List[VpcBaseConfig]:
        return [*self.vpcs, *self.vpc_templates]

    def vpc(self, name: str) -> Optional[VpcBaseConfig]:
        return next((vpc for vpc in self.all_vpcs if vpc.name == name), None)

    def transit_gateway(self, name: str) -> Optional[TransitGatewayConfig]:
        return next((tgw for tgw in self.transit_gateways if tgw.name == name), None)
