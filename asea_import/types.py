"""
Core Type Definitions for ASEA Import

This module defines the enumerations and the output records shared by the
reconciliation engine: the CloudFormation resource type strings found in legacy
inventories, the resource categories written to the resource mapping, the
parameter path table, and the records a reconciler emits.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Dict, Optional, Union

# Value of an emitted parameter: a literal or a template intrinsic such as {"Ref": id}
ParameterValue = Union[str, Dict[str, Any]]


class CfnType:
    """CloudFormation resource type strings found in legacy inventories."""

    IAM_ROLE = "AWS::IAM::Role"
    IAM_USER = "AWS::IAM::User"
    IAM_GROUP = "AWS::IAM::Group"
    IAM_MANAGED_POLICY = "AWS::IAM::ManagedPolicy"
    IAM_INSTANCE_PROFILE = "AWS::IAM::InstanceProfile"

    VPC = "AWS::EC2::VPC"
    VPC_CIDR_BLOCK = "AWS::EC2::VPCCidrBlock"
    SUBNET = "AWS::EC2::Subnet"
    ROUTE_TABLE = "AWS::EC2::RouteTable"
    ROUTE = "AWS::EC2::Route"
    SUBNET_ROUTE_TABLE_ASSOCIATION = "AWS::EC2::SubnetRouteTableAssociation"
    INTERNET_GATEWAY = "AWS::EC2::InternetGateway"
    VPN_GATEWAY = "AWS::EC2::VPNGateway"
    VPC_GATEWAY_ATTACHMENT = "AWS::EC2::VPCGatewayAttachment"
    NAT_GATEWAY = "AWS::EC2::NatGateway"
    EIP = "AWS::EC2::EIP"
    SECURITY_GROUP = "AWS::EC2::SecurityGroup"
    SECURITY_GROUP_INGRESS = "AWS::EC2::SecurityGroupIngress"
    SECURITY_GROUP_EGRESS = "AWS::EC2::SecurityGroupEgress"
    VPC_ENDPOINT = "AWS::EC2::VPCEndpoint"
    VPC_PEERING_CONNECTION = "AWS::EC2::VPCPeeringConnection"

    TRANSIT_GATEWAY = "AWS::EC2::TransitGateway"
    TRANSIT_GATEWAY_ROUTE_TABLE = "AWS::EC2::TransitGatewayRouteTable"
    TRANSIT_GATEWAY_ROUTE = "AWS::EC2::TransitGatewayRoute"
    TRANSIT_GATEWAY_ATTACHMENT = "AWS::EC2::TransitGatewayAttachment"
    TRANSIT_GATEWAY_ASSOCIATION = "AWS::EC2::TransitGatewayRouteTableAssociation"
    TRANSIT_GATEWAY_PROPAGATION = "AWS::EC2::TransitGatewayRouteTablePropagation"
    TGW_PEERING_ATTACHMENT = "Custom::TGWCreatePeeringAttachment"

    HOSTED_ZONE = "AWS::Route53::HostedZone"
    RECORD_SET = "AWS::Route53::RecordSet"
    RESOLVER_ENDPOINT = "AWS::Route53Resolver::ResolverEndpoint"
    QUERY_LOGGING_CONFIG = "AWS::Route53Resolver::ResolverQueryLoggingConfig"
    QUERY_LOGGING_ASSOCIATION = "AWS::Route53Resolver::ResolverQueryLoggingConfigAssociation"

    NETWORK_FIREWALL = "AWS::NetworkFirewall::Firewall"
    NETWORK_FIREWALL_POLICY = "AWS::NetworkFirewall::FirewallPolicy"
    NETWORK_FIREWALL_RULE_GROUP = "AWS::NetworkFirewall::RuleGroup"
    NETWORK_FIREWALL_LOGGING = "AWS::NetworkFirewall::LoggingConfiguration"

    LOAD_BALANCER = "AWS::ElasticLoadBalancingV2::LoadBalancer"
    TARGET_GROUP = "AWS::ElasticLoadBalancingV2::TargetGroup"
    LISTENER = "AWS::ElasticLoadBalancingV2::Listener"

    SSM_PARAMETER = "AWS::SSM::Parameter"
    SSM_ASSOCIATION = "AWS::SSM::Association"
    SSM_RESOURCE_DATA_SYNC = "AWS::SSM::ResourceDataSync"

    NESTED_STACK = "AWS::CloudFormation::Stack"


class AseaResourceType(str, Enum):
    """Resource categories recorded in the resource mapping."""

    IAM_POLICY = "IAM_POLICY"
    IAM_ROLE = "IAM_ROLE"
    IAM_GROUP = "IAM_GROUP"
    IAM_USER = "IAM_USER"
    EC2_VPC = "EC2_VPC"
    EC2_VPC_CIDR = "EC2_VPC_CIDR"
    EC2_SUBNET = "EC2_SUBNET"
    EC2_VPC_IGW = "EC2_VPC_IGW"
    EC2_VPC_VPN_GW = "EC2_VPC_VPN_GW"
    EC2_SECURITY_GROUP = "EC2_SECURITY_GROUP"
    EC2_VPC_PEERING_CONNECTION = "EC2_VPC_PEERING_CONNECTION"
    EC2_TARGET_GROUP = "EC2_TARGET_GROUP"
    ROUTE_TABLE = "ROUTE_TABLE"
    TRANSIT_GATEWAY = "TRANSIT_GATEWAY"
    TRANSIT_GATEWAY_ROUTE_TABLE = "TRANSIT_GATEWAY_ROUTE_TABLE"
    TRANSIT_GATEWAY_ROUTE = "TRANSIT_GATEWAY_ROUTE"
    TRANSIT_GATEWAY_ATTACHMENT = "TRANSIT_GATEWAY_ATTACHMENT"
    TRANSIT_GATEWAY_PEERING = "TRANSIT_GATEWAY_PEERING"
    TRANSIT_GATEWAY_PROPAGATION = "TRANSIT_GATEWAY_PROPAGATION"
    TRANSIT_GATEWAY_ASSOCIATION = "TRANSIT_GATEWAY_ASSOCIATION"
    NAT_GATEWAY = "NAT_GATEWAY"
    NETWORK_FIREWALL = "NETWORK_FIREWALL"
    NETWORK_FIREWALL_POLICY = "NETWORK_FIREWALL_POLICY"
    NETWORK_FIREWALL_RULE_GROUP = "NETWORK_FIREWALL_RULE_GROUP"
    VPC_ENDPOINT = "VPC_ENDPOINT"
    ROUTE_53_PHZ = "ROUTE_53_PHZ_ID"
    ROUTE_53_RECORD_SET = "ROUTE_53_RECORD_SET"
    ROUTE_53_QUERY_LOGGING = "ROUTE_53_QUERY_LOGGING"
    ROUTE_53_QUERY_LOGGING_ASSOCIATION = "ROUTE_53_QUERY_LOGGING_ASSOCIATION"
    ROUTE_53_RESOLVER_ENDPOINT = "ROUTE_53_RESOLVER_ENDPOINT"
    SSM_RESOURCE_DATA_SYNC = "SSM_RESOURCE_DATA_SYNC"
    SSM_ASSOCIATION = "SSM_ASSOCIATION"
    APPLICATION_LOAD_BALANCER = "APPLICATION_LOAD_BALANCER"


class SsmPath(Enum):
    """Parameter path templates, relative to the configured prefix."""

    IAM_POLICY = "/iam/policy/{0}/arn"
    IAM_ROLE = "/iam/role/{0}/arn"
    IAM_GROUP = "/iam/group/{0}/arn"
    IAM_USER = "/iam/user/{0}/arn"
    VPC = "/network/vpc/{0}/id"
    SUBNET = "/network/vpc/{0}/subnet/{1}/id"
    ROUTE_TABLE = "/network/vpc/{0}/routeTable/{1}/id"
    IGW = "/network/vpc/{0}/internetGateway/id"
    VPN_GW = "/network/vpc/{0}/virtualPrivateGateway/id"
    NAT_GW = "/network/vpc/{0}/natGateway/{1}/id"
    SECURITY_GROUP = "/network/vpc/{0}/securityGroup/{1}/id"
    TGW_ATTACHMENT = "/network/vpc/{0}/transitGatewayAttachment/{1}/id"
    VPC_ENDPOINT = "/network/vpc/{0}/endpoints/{1}/id"
    ENDPOINT_DNS = "/network/vpc/{0}/endpoints/{1}/dns"
    ENDPOINT_ZONE_ID = "/network/vpc/{0}/endpoints/{1}/hostedZoneId"
    PHZ_ID = "/network/vpc/{0}/route53/hostedZone/{1}/id"
    NFW = "/network/vpc/{0}/networkFirewall/{1}/arn"
    ALB = "/network/vpc/{0}/alb/{1}/arn"
    TARGET_GROUP = "/network/vpc/{0}/targetGroups/{1}/arn"
    TGW = "/network/transitGateways/{0}/id"
    TGW_ROUTE_TABLE = "/network/transitGateways/{0}/routeTables/{1}/id"
    TGW_PEERING = "/network/transitGateways/{0}/peering/{1}/id"
    VPC_PEERING = "/network/vpcPeering/{0}/id"
    RESOLVER_ENDPOINT = "/network/route53Resolver/endpoints/{0}/id"
    QUERY_LOGS = "/network/route53Resolver/queryLogConfigs/{0}/id"
    NFW_POLICY = "/network/networkFirewall/policies/{0}/arn"
    NFW_RULE_GROUP = "/network/networkFirewall/ruleGroups/{0}/arn"

    def render(self, prefix: str, *parts: str) -> str:
        """Render the full parameter name under ``prefix``."""
        expected = self.value.count("{")
        if len(parts) != expected:
            raise ValueError(f"{self.name} path needs {expected} parts, got {len(parts)}")
        return f"{prefix}{self.value.format(*parts)}"


class LookupPolicy(Enum):
    """What a reconciler does when a lookup comes back empty."""

    SKIP = auto()  # Expected absence, logged at INFO
    WARN = auto()  # Upstream incomplete, logged at WARNING
    FAIL = auto()  # Configuration inconsistency, raised


@dataclass(frozen=True)
class ResourceMappingEntry:
    """Asserts that a legacy resource is now owned by the new configuration."""

    account_id: str
    region: str
    resource_type: AseaResourceType
    resource_identifier: str
    logical_resource_id: str
    physical_resource_id: Optional[str] = None
    is_deleted: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "accountId": self.account_id,
            "region": self.region,
            "resourceType": self.resource_type.value,
            "resourceIdentifier": self.resource_identifier,
            "logicalResourceId": self.logical_resource_id,
            "physicalResourceId": self.physical_resource_id,
            "isDeleted": self.is_deleted,
        }


@dataclass(frozen=True)
class ParameterEmissionRequest:
    """A parameter a reconciler wants created in its scope."""

    logical_id: str
    parameter_name: str
    string_value: ParameterValue


@dataclass(frozen=True)
class DeletionFlagEntry:
    """Records that a legacy resource should be removed on the next deployment."""

    resource_type: str
    identifier: str
    logical_id: str
    stack_key: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.resource_type,
            "identifier": self.identifier,
            "logicalId": self.logical_id,
            "stackKey": self.stack_key,
        }
