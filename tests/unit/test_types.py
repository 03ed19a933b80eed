"""Tests for core type definitions."""

import pytest
from asea_import.types import (
    AseaResourceType,
    DeletionFlagEntry,
    ParameterEmissionRequest,
    ResourceMappingEntry,
    SsmPath,
)


class TestSsmPath:
    def test_render_single_part(self):
        assert SsmPath.IAM_ROLE.render("/accelerator", "Ops") == "/accelerator/iam/role/Ops/arn"

    def test_render_two_parts(self):
        path = SsmPath.SUBNET.render("/accelerator", "App_vpc", "App_a")
        assert path == "/accelerator/network/vpc/App_vpc/subnet/App_a/id"

    def test_render_wrong_part_count(self):
        with pytest.raises(ValueError, match="needs 2 parts"):
            SsmPath.SECURITY_GROUP.render("/accelerator", "App_vpc")


class TestResourceMappingEntry:
    def test_to_dict_uses_file_keys(self):
        entry = ResourceMappingEntry(
            account_id="111111111111",
            region="ca-central-1",
            resource_type=AseaResourceType.IAM_ROLE,
            resource_identifier="Ops",
            logical_resource_id="OpsRole",
            physical_resource_id="Ops",
        )
        assert entry.to_dict() == {
            "accountId": "111111111111",
            "region": "ca-central-1",
            "resourceType": "IAM_ROLE",
            "resourceIdentifier": "Ops",
            "logicalResourceId": "OpsRole",
            "physicalResourceId": "Ops",
            "isDeleted": False,
        }

    def test_entries_are_immutable(self):
        entry = ResourceMappingEntry("1", "r", AseaResourceType.EC2_VPC, "App_vpc", "Vpc")
        with pytest.raises(Exception):
            entry.resource_identifier = "Other"


class TestOutputRecords:
    def test_deletion_flag_entry_to_dict(self):
        entry = DeletionFlagEntry("AWS::IAM::Role", "Legacy", "LegacyRole", "1|r|s")
        assert entry.to_dict() == {
            "type": "AWS::IAM::Role",
            "identifier": "Legacy",
            "logicalId": "LegacyRole",
            "stackKey": "1|r|s",
        }

    def test_parameter_request_holds_intrinsic(self):
        request = ParameterEmissionRequest("P", "/p", {"Ref": "Vpc"})
        assert request.string_value == {"Ref": "Vpc"}

    def test_phz_category_value(self):
        assert AseaResourceType.ROUTE_53_PHZ.value == "ROUTE_53_PHZ_ID"
