"""Tests for the VPC, security group and interface endpoint reconcilers."""

import pytest
from conftest import NETWORK_ID, WORKLOAD1_ID, make_config, resource

from asea_import.reconcilers import (
    NatGatewayReconciler,
    RouteTableReconciler,
    SecurityGroupReconciler,
    SharedSecurityGroupReconciler,
    TgwAttachmentReconciler,
    VpcEndpointReconciler,
    VpcGatewayReconciler,
    VpcPeeringReconciler,
    VpcReconciler,
)
from asea_import.types import AseaResourceType, CfnType

VPC_RECONCILERS = [
    VpcReconciler,
    RouteTableReconciler,
    VpcGatewayReconciler,
    NatGatewayReconciler,
    TgwAttachmentReconciler,
]

VPC_REF = {"Ref": "Vpc"}

APP_VPC_STACK = [
    resource("Vpc", CfnType.VPC, "vpc-0app", {"CidrBlock": "10.0.0.0/16"}, {"Name": "App_vpc"}),
    resource("Cidr2", CfnType.VPC_CIDR_BLOCK, "cidr-2", {"VpcId": VPC_REF, "CidrBlock": "10.1.0.0/16"}),
    resource("Cidr3", CfnType.VPC_CIDR_BLOCK, "cidr-3", {"VpcId": VPC_REF, "CidrBlock": "10.2.0.0/16"}),
    resource("SubnetA", CfnType.SUBNET, "subnet-a", {"VpcId": VPC_REF, "CidrBlock": "10.0.0.0/24"}, {"Name": "App_a"}),
    resource("RtApp", CfnType.ROUTE_TABLE, "rtb-app", {"VpcId": VPC_REF}, {"Name": "App_rt"}),
    resource("RtOld", CfnType.ROUTE_TABLE, "rtb-old", {"VpcId": VPC_REF}, {"Name": "Old_rt"}),
    resource("RtOldAssoc", CfnType.SUBNET_ROUTE_TABLE_ASSOCIATION, "rtbassoc-1", {"RouteTableId": {"Ref": "RtOld"}}),
    resource("RtOldRoute", CfnType.ROUTE, "route-1", {"RouteTableId": {"Ref": "RtOld"}}),
    resource("Igw", CfnType.INTERNET_GATEWAY, "igw-1"),
    resource("IgwAttach", CfnType.VPC_GATEWAY_ATTACHMENT, "igw-attach", {"VpcId": VPC_REF, "InternetGatewayId": {"Ref": "Igw"}}),
    resource("IgwRoute", CfnType.ROUTE, "route-2", {"RouteTableId": {"Ref": "RtApp"}, "GatewayId": {"Ref": "Igw"}}),
    resource("Nat", CfnType.NAT_GATEWAY, "nat-1", {"SubnetId": "subnet-a"}, {"Name": "Nat_a"}),
    resource("NatOld", CfnType.NAT_GATEWAY, "nat-2", {"SubnetId": "subnet-a"}, {"Name": "Nat_b"}),
    resource("NatOldRoute", CfnType.ROUTE, "route-3", {"RouteTableId": {"Ref": "RtApp"}, "NatGatewayId": {"Ref": "NatOld"}}),
    resource(
        "TgwAttach",
        CfnType.TRANSIT_GATEWAY_ATTACHMENT,
        "tgw-attach-app",
        {"VpcId": VPC_REF, "TransitGatewayId": "tgw-main", "SubnetIds": ["subnet-a"]},
        {"Name": "App_tgw_attach"},
    ),
]

APP_VPC = {
    "name": "App_vpc",
    "account": "Workload1",
    "region": "ca-central-1",
    "cidrs": ["10.10.0.0/16", "10.1.0.0/16"],
    "internetGateway": False,
    "subnets": [{"name": "App_a", "availabilityZone": "a", "ipv4CidrBlock": "10.10.0.0/24"}],
    "routeTables": [{"name": "App_rt"}],
    "natGateways": [{"name": "Nat_a", "subnet": "App_a"}],
    "transitGatewayAttachments": [
        {
            "name": "App_tgw_attach",
            "transitGateway": {"name": "Main", "account": "Network"},
            "subnets": ["App_a"],
        }
    ],
    "securityGroups": [{"name": "Web_sg"}],
    "interfaceEndpoints": {"endpoints": [{"service": "ssm"}]},
}


@pytest.fixture
def config():
    return make_config(network={"vpcs": [APP_VPC]})


@pytest.fixture
def phase1(assets):
    return assets.stack(
        WORKLOAD1_ID,
        "ASEA-Phase1",
        1,
        [resource("AppVpcStack", CfnType.NESTED_STACK, "arn:stack/app")],
        nested={"AppVpcStack": APP_VPC_STACK},
    )


def mapped(context, resource_type):
    return {
        entry.resource_identifier: entry.logical_resource_id
        for entry in context.entries
        if entry.resource_type == resource_type
    }


def flagged(context):
    return {entry.logical_id for entry in context.cascade.entries}


class TestVpcChildren:
    @pytest.fixture
    def context(self, phase1, config, reconcile):
        return reconcile(phase1, config, VPC_RECONCILERS)

    @pytest.fixture
    def nested(self, context):
        return context.graph.nested["AppVpcStack"]

    def test_vpc_properties(self, context, nested):
        vpc = nested.get("Vpc")
        assert vpc.properties["CidrBlock"] == "10.10.0.0/16"
        assert vpc.properties["EnableDnsSupport"] is True
        assert mapped(context, AseaResourceType.EC2_VPC) == {"App_vpc": "Vpc"}

    def test_parameters_land_in_nested_stack(self, context, nested):
        assert nested.get("SsmParamAppVpcVpcId").properties["Value"] == {"Ref": "Vpc"}
        assert context.graph.get("SsmParamAppVpcVpcId") is None

    def test_additional_cidrs(self, context):
        assert mapped(context, AseaResourceType.EC2_VPC_CIDR) == {"App_vpc/10.1.0.0/16": "Cidr2"}
        assert "Cidr3" in flagged(context)

    def test_subnet(self, context, nested):
        subnet = nested.get("SubnetA")
        assert subnet.properties["AvailabilityZone"] == "ca-central-1a"
        assert subnet.properties["CidrBlock"] == "10.10.0.0/24"
        assert mapped(context, AseaResourceType.EC2_SUBNET) == {"App_vpc/App_a": "SubnetA"}

    def test_route_tables(self, context):
        assert mapped(context, AseaResourceType.ROUTE_TABLE) == {"App_vpc/App_rt": "RtApp"}
        assert {"RtOld", "RtOldAssoc", "RtOldRoute"} <= flagged(context)
        assert "RtApp" not in flagged(context)

    def test_unconfigured_internet_gateway(self, context):
        assert {"Igw", "IgwAttach", "IgwRoute"} <= flagged(context)
        assert mapped(context, AseaResourceType.EC2_VPC_IGW) == {}

    def test_nat_gateways(self, context, nested):
        assert nested.get("Nat").properties["SubnetId"] == {"Ref": "SubnetA"}
        assert mapped(context, AseaResourceType.NAT_GATEWAY) == {"App_vpc/Nat_a": "Nat"}
        assert {"NatOld", "NatOldRoute"} <= flagged(context)

    def test_tgw_attachment(self, context, nested):
        assert nested.get("TgwAttach").properties["SubnetIds"] == [{"Ref": "SubnetA"}]
        assert mapped(context, AseaResourceType.TRANSIT_GATEWAY_ATTACHMENT) == {
            "App_vpc/App_tgw_attach": "TgwAttach"
        }

    def test_resource_file_keeps_flagged_records(self, context):
        nested_inventory = context.inventory.nested["AppVpcStack"]
        records = {item["logicalResourceId"]: item["isDeleted"] for item in nested_inventory.to_records()}
        assert records["RtOld"] is True
        assert records["RtApp"] is False


class TestSecurityGroups:
    PHASE2 = [
        resource("WebSg", CfnType.SECURITY_GROUP, "sg-web", {"GroupName": "Web_sg", "VpcId": "vpc-0app"}, {"Name": "Web_sg"}),
        resource("OldSg", CfnType.SECURITY_GROUP, "sg-old", {"GroupName": "Old_sg", "VpcId": "vpc-0app"}, {"Name": "Old_sg"}),
        resource(
            "OldSgParam",
            CfnType.SSM_PARAMETER,
            "old-sg-param",
            {"Name": "/accelerator/network/vpc/App_vpc/securityGroup/Old_sg/id"},
        ),
        resource("OldIngress", CfnType.SECURITY_GROUP_INGRESS, "sgr-1", {"GroupId": {"Ref": "OldSg"}}),
        resource(
            "WebFromOld",
            CfnType.SECURITY_GROUP_INGRESS,
            "sgr-2",
            {"GroupId": {"Ref": "WebSg"}, "SourceSecurityGroupId": {"Ref": "OldSg"}},
        ),
        resource("StraySg", CfnType.SECURITY_GROUP, "sg-stray", {"VpcId": "vpc-other"}, {"Name": "Stray_sg"}),
    ]

    @pytest.fixture
    def context(self, assets, phase1, config, reconcile):
        mapping = assets.stack(WORKLOAD1_ID, "ASEA-Phase2", 2, self.PHASE2)
        return reconcile(mapping, config, [SecurityGroupReconciler])

    def test_configured_group_adopted(self, context):
        assert mapped(context, AseaResourceType.EC2_SECURITY_GROUP) == {"App_vpc/Web_sg": "WebSg"}
        assert context.graph.get("SsmParamAppVpcWebSgSg").properties["Value"] == {"Ref": "WebSg"}

    def test_unconfigured_group_flagged_with_rules(self, context):
        assert flagged(context) == {"OldSg", "OldSgParam", "OldIngress", "WebFromOld"}

    def test_groups_of_other_vpcs_ignored(self, context):
        assert not context.inventory.is_deleted("StraySg")


class TestSharedSecurityGroups:
    SHARED_VPC = {
        "name": "Shared_vpc",
        "account": "Network",
        "region": "ca-central-1",
        "subnets": [{"name": "Shared_a", "shareTargets": {"organizationalUnits": ["Workloads"]}}],
        "securityGroups": [{"name": "Web_sg"}],
    }

    SHARED_GROUPS = [
        resource("SharedWeb", CfnType.SECURITY_GROUP, "sg-sw", {"GroupName": "Web_sg", "GroupDescription": "Shared_vpc web tier"}),
        resource("SharedOld", CfnType.SECURITY_GROUP, "sg-so", {"GroupName": "Old_sg", "GroupDescription": "Shared old tier"}),
        resource("OtherVpcSg", CfnType.SECURITY_GROUP, "sg-ot", {"GroupName": "Web_sg", "GroupDescription": "SharedTest_vpc web tier"}),
    ]

    @pytest.fixture
    def context(self, assets, reconcile):
        mapping = assets.stack(
            WORKLOAD1_ID,
            "ASEA-Phase2",
            2,
            [resource("SharedSgStack", CfnType.NESTED_STACK, "arn:stack/sg")],
            nested={"SharedSgStack": self.SHARED_GROUPS},
        )
        config = make_config(network={"vpcs": [self.SHARED_VPC]})
        return reconcile(mapping, config, [SharedSecurityGroupReconciler])

    def test_copy_matched_by_description_token(self, context):
        assert mapped(context, AseaResourceType.EC2_SECURITY_GROUP) == {"Shared_vpc/Web_sg": "SharedWeb"}

    def test_unconfigured_copy_flagged(self, context):
        assert flagged(context) == {"SharedOld"}

    def test_similar_vpc_name_not_matched(self, context):
        assert not context.inventory.nested["SharedSgStack"].is_deleted("OtherVpcSg")

    def test_owner_account_skipped(self, assets, reconcile):
        mapping = assets.stack(
            NETWORK_ID,
            "ASEA-Phase2",
            2,
            [resource("SharedSgStack", CfnType.NESTED_STACK, "arn:stack/sg")],
            nested={"SharedSgStack": self.SHARED_GROUPS},
        )
        context = reconcile(mapping, make_config(network={"vpcs": [self.SHARED_VPC]}), [SharedSecurityGroupReconciler])
        assert context.entries == []
        assert context.cascade.entries == []


class TestInterfaceEndpoints:
    SSM_ZONE = "ssm.ca-central-1.amazonaws.com."
    EC2_ZONE = "ec2.ca-central-1.amazonaws.com."

    PHASE2 = [
        resource("SsmEndpoint", CfnType.VPC_ENDPOINT, "vpce-ssm", {"ServiceName": "com.amazonaws.ca-central-1.ssm", "VpcId": "vpc-0app"}),
        resource("SsmZone", CfnType.HOSTED_ZONE, "Z-SSM", {"Name": SSM_ZONE, "VPCs": [{"VPCId": "vpc-0app"}]}),
        resource(
            "SsmRecord",
            CfnType.RECORD_SET,
            "ssm-record",
            {"Name": SSM_ZONE, "HostedZoneId": {"Ref": "SsmZone"}, "AliasTarget": {"DNSName": "vpce-ssm.ca-central-1.vpce.amazonaws.com", "HostedZoneId": "Z1"}},
        ),
        resource("Ec2Endpoint", CfnType.VPC_ENDPOINT, "vpce-ec2", {"ServiceName": "com.amazonaws.ca-central-1.ec2", "VpcId": "vpc-0app"}),
        resource("Ec2Zone", CfnType.HOSTED_ZONE, "Z-EC2", {"Name": EC2_ZONE, "VPCs": [{"VPCId": "vpc-0app"}]}),
        resource("Ec2Record", CfnType.RECORD_SET, "ec2-record", {"Name": EC2_ZONE, "HostedZoneId": "Z-EC2"}),
        resource("Ec2Param", CfnType.SSM_PARAMETER, "ec2-param", {"Name": "/accelerator/network/vpc/App_vpc/endpoints/ec2/id"}),
    ]

    @pytest.fixture
    def context(self, assets, phase1, config, reconcile):
        mapping = assets.stack(WORKLOAD1_ID, "ASEA-Phase2", 2, self.PHASE2)
        return reconcile(mapping, config, [VpcEndpointReconciler])

    def test_endpoint_zone_and_record_adopted(self, context):
        assert mapped(context, AseaResourceType.VPC_ENDPOINT) == {"App_vpc/ssm": "SsmEndpoint"}
        assert mapped(context, AseaResourceType.ROUTE_53_PHZ) == {"App_vpc/ssm": "SsmZone"}
        assert mapped(context, AseaResourceType.ROUTE_53_RECORD_SET) == {"App_vpc/ssm": "SsmRecord"}

    def test_endpoint_parameters(self, context):
        graph = context.graph
        assert graph.get("SsmParamAppVpcSsmEndpointId").properties["Value"] == {"Ref": "SsmEndpoint"}
        assert graph.get("SsmParamAppVpcVpcSsmEpHostedZone").properties["Value"] == {"Fn::GetAtt": ["SsmZone", "Id"]}
        assert graph.get("SsmParamAppVpcSsmDns").properties["Value"] == "vpce-ssm.ca-central-1.vpce.amazonaws.com"
        assert graph.get("SsmParamAppVpcSsmPhz").properties["Value"] == "Z1"

    def test_removed_service_flagged_with_zone(self, context):
        assert flagged(context) == {"Ec2Endpoint", "Ec2Param", "Ec2Zone", "Ec2Record"}


class TestEndpointZonesPerVpc:
    SSM_ZONE = "ssm.ca-central-1.amazonaws.com."

    @staticmethod
    def endpoint_stack(prefix, vpc_id):
        return [
            resource(f"{prefix}SsmEndpoint", CfnType.VPC_ENDPOINT, f"vpce-{vpc_id}", {"ServiceName": "com.amazonaws.ca-central-1.ssm", "VpcId": vpc_id}),
            resource(f"{prefix}SsmZone", CfnType.HOSTED_ZONE, f"Z-{vpc_id}", {"Name": TestEndpointZonesPerVpc.SSM_ZONE, "VPCs": [{"VPCId": vpc_id}]}),
            resource(
                f"{prefix}SsmRecord",
                CfnType.RECORD_SET,
                f"record-{vpc_id}",
                {"Name": TestEndpointZonesPerVpc.SSM_ZONE, "HostedZoneId": {"Ref": f"{prefix}SsmZone"}},
            ),
        ]

    @pytest.fixture
    def context(self, assets, reconcile):
        assets.stack(
            WORKLOAD1_ID,
            "ASEA-Phase1",
            1,
            [
                resource("AVpcStack", CfnType.NESTED_STACK, "arn:stack/a"),
                resource("BVpcStack", CfnType.NESTED_STACK, "arn:stack/b"),
            ],
            nested={
                "AVpcStack": [resource("Vpc", CfnType.VPC, "vpc-0a", tags={"Name": "A_vpc"})],
                "BVpcStack": [resource("Vpc", CfnType.VPC, "vpc-0b", tags={"Name": "B_vpc"})],
            },
        )
        config = make_config(
            network={
                "vpcs": [
                    {"name": "A_vpc", "account": "Workload1", "region": "ca-central-1"},
                    {
                        "name": "B_vpc",
                        "account": "Workload1",
                        "region": "ca-central-1",
                        "interfaceEndpoints": {"endpoints": [{"service": "ssm"}]},
                    },
                ]
            }
        )
        phase2 = self.endpoint_stack("A", "vpc-0a") + self.endpoint_stack("B", "vpc-0b")
        mapping = assets.stack(WORKLOAD1_ID, "ASEA-Phase2", 2, phase2)
        return reconcile(mapping, config, [VpcEndpointReconciler])

    def test_zone_of_other_vpc_is_not_flagged(self, context):
        assert flagged(context) == {"ASsmEndpoint", "ASsmZone", "ASsmRecord"}

    def test_endpoint_adopts_zone_of_its_own_vpc(self, context):
        assert mapped(context, AseaResourceType.VPC_ENDPOINT) == {"B_vpc/ssm": "BSsmEndpoint"}
        assert mapped(context, AseaResourceType.ROUTE_53_PHZ) == {"B_vpc/ssm": "BSsmZone"}
        assert mapped(context, AseaResourceType.ROUTE_53_RECORD_SET) == {"B_vpc/ssm": "BSsmRecord"}
        zone_param = context.graph.get("SsmParamBVpcVpcSsmEpHostedZone")
        assert zone_param.properties["Value"] == {"Fn::GetAtt": ["BSsmZone", "Id"]}


class TestVpcPeering:
    PHASE2 = [
        resource("Pcx", CfnType.VPC_PEERING_CONNECTION, "pcx-1", tags={"Name": "App-Shared"}),
        resource("OldPcx", CfnType.VPC_PEERING_CONNECTION, "pcx-2", tags={"Name": "Old-pcx"}),
        resource("OldPcxRoute", CfnType.ROUTE, "route-pcx", {"VpcPeeringConnectionId": {"Ref": "OldPcx"}}),
    ]

    def config(self, requester="App_vpc"):
        shared = {"name": "Shared_vpc", "account": "Network", "region": "ca-central-1"}
        return make_config(
            network={
                "vpcs": [APP_VPC, shared],
                "vpcPeering": [{"name": "App-Shared", "vpcs": [requester, "App_vpc"]}],
            }
        )

    def test_requester_adopts_connection(self, assets, reconcile):
        mapping = assets.stack(WORKLOAD1_ID, "ASEA-Phase2", 2, self.PHASE2)
        context = reconcile(mapping, self.config(), [VpcPeeringReconciler])

        assert mapped(context, AseaResourceType.EC2_VPC_PEERING_CONNECTION) == {"App-Shared": "Pcx"}
        assert context.graph.get("SsmParamAppSharedVpcPeering").properties["Value"] == {"Ref": "Pcx"}
        assert flagged(context) == {"OldPcx", "OldPcxRoute"}

    def test_connection_owned_by_other_requester_is_flagged(self, assets, reconcile):
        mapping = assets.stack(WORKLOAD1_ID, "ASEA-Phase2", 2, self.PHASE2)
        context = reconcile(mapping, self.config(requester="Shared_vpc"), [VpcPeeringReconciler])

        assert context.entries == []
        assert flagged(context) == {"Pcx", "OldPcx", "OldPcxRoute"}
