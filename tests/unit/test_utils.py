"""Tests for naming and hosted zone helpers."""

import pytest
from asea_import.hosted_zones import endpoint_hosted_zone_name, endpoint_service_name
from asea_import.utils.naming import get_att, pascal_case, ref, referenced_logical_id


class TestPascalCase:
    @pytest.mark.parametrize(
        "values, expected",
        [
            (("my-role",), "MyRole"),
            (("Shared_vpc", "App_az1"), "SharedVpcAppAz1"),
            (("SsmParam", "App_vpc", "VpcId"), "SsmParamAppVpcVpcId"),
            (("ASEA-Ops Role",), "AseaOpsRole"),
        ],
    )
    def test_pascal_case(self, values, expected):
        assert pascal_case(*values) == expected

    def test_stable_across_calls(self):
        assert pascal_case("App_vpc", "Web_sg") == pascal_case("App_vpc", "Web_sg")


class TestIntrinsics:
    def test_ref(self):
        assert ref("Vpc") == {"Ref": "Vpc"}

    def test_get_att(self):
        assert get_att("Role", "Arn") == {"Fn::GetAtt": ["Role", "Arn"]}

    def test_referenced_logical_id(self):
        assert referenced_logical_id({"Ref": "Vpc"}) == "Vpc"
        assert referenced_logical_id({"Fn::GetAtt": ["Sg", "GroupId"]}) == "Sg"
        assert referenced_logical_id({"Fn::GetAtt": "Sg.GroupId"}) == "Sg"

    def test_literal_has_no_reference(self):
        assert referenced_logical_id("vpc-123") is None
        assert referenced_logical_id({"Fn::Sub": "x"}) is None


class TestHostedZones:
    def test_plain_service(self):
        assert endpoint_hosted_zone_name("ssm", "ca-central-1") == "ssm.ca-central-1.amazonaws.com"

    def test_dotted_service_is_reversed(self):
        zone = endpoint_hosted_zone_name("ssm.contacts", "ca-central-1")
        assert zone == "contacts.ssm.ca-central-1.amazonaws.com"

    def test_non_reversed_service(self):
        assert endpoint_hosted_zone_name("ecr.dkr", "ca-central-1") == "ecr.dkr.ca-central-1.amazonaws.com"

    def test_special_case_zone(self):
        assert endpoint_hosted_zone_name("notebook", "ca-central-1") == "notebook.ca-central-1.sagemaker.aws"
        assert endpoint_hosted_zone_name("ecs-agent", "ca-central-1") == "ecs-a.ca-central-1.amazonaws.com"

    def test_service_name(self):
        assert endpoint_service_name("ssm", "ca-central-1") == "com.amazonaws.ca-central-1.ssm"
        assert endpoint_service_name("notebook", "ca-central-1") == "aws.sagemaker.ca-central-1.notebook"
