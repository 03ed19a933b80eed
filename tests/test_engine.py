"""
End-to-end tests for the import engine: stack ordering, a full run over files
on disk, saving results and re-running against the saved output.
"""

import json

import pytest
from conftest import MANAGEMENT_ID, NETWORK_ID, WORKLOAD1_ID, make_config, resource

from asea_import.config import ImportConfig
from asea_import.engine import DELETIONS_FILE, RESOURCE_MAPPING_FILE, ImportEngine
from asea_import.errors import MappingError
from asea_import.models.mapping import StackMappings
from asea_import.types import AseaResourceType, CfnType

IAM = {
    "roleSets": [
        {
            "deploymentTargets": {"accounts": ["Management"]},
            "roles": [{"name": "Ops", "assumedBy": [{"type": "service", "principal": "ec2.amazonaws.com"}]}],
        }
    ]
}

NETWORK = {
    "vpcs": [
        {
            "name": "App_vpc",
            "account": "Workload1",
            "region": "ca-central-1",
            "cidrs": ["10.10.0.0/16"],
            "subnets": [{"name": "App_a", "availabilityZone": "a"}],
        }
    ]
}


@pytest.fixture
def config():
    return make_config(iam=IAM, network=NETWORK)


@pytest.fixture
def populated(assets):
    assets.stack(
        MANAGEMENT_ID,
        "ASEA-Phase1",
        1,
        [
            resource("OpsRole", CfnType.IAM_ROLE, "Ops", {"RoleName": "Ops"}),
            resource("LegacyRole", CfnType.IAM_ROLE, "Legacy", {"RoleName": "Legacy"}),
        ],
    )
    assets.stack(
        WORKLOAD1_ID,
        "ASEA-Phase1",
        1,
        [resource("AppVpcStack", CfnType.NESTED_STACK, "arn:stack/app")],
        nested={
            "AppVpcStack": [
                resource("Vpc", CfnType.VPC, "vpc-0app", {"CidrBlock": "10.0.0.0/16"}, {"Name": "App_vpc"}),
                resource("SubnetA", CfnType.SUBNET, "subnet-a", {"VpcId": {"Ref": "Vpc"}}, {"Name": "App_a"}),
                resource("SubnetB", CfnType.SUBNET, "subnet-b", {"VpcId": {"Ref": "Vpc"}}, {"Name": "App_b"}),
            ]
        },
    )
    assets.stack(NETWORK_ID, "ASEA-Phase0", 0, [])
    assets.stack(NETWORK_ID, "ASEA-CustomStack", None, [])
    return assets


class TestStackOrder:
    def test_phase_order_with_unphased_stacks_last(self, populated, config, settings):
        engine = ImportEngine(populated.mappings, config, settings=settings)
        assert [mapping.stack_name for mapping in engine.stacks()] == [
            "ASEA-Phase0",
            "ASEA-Phase1",
            "ASEA-Phase1",
            "ASEA-CustomStack",
        ]

    def test_nested_stacks_are_not_top_level(self, populated, config, settings):
        engine = ImportEngine(populated.mappings, config, settings=settings)
        assert all(not mapping.is_nested for mapping in engine.stacks())

    def test_selected_keys(self, populated, config, settings):
        engine = ImportEngine(populated.mappings, config, settings=settings)
        key = f"{MANAGEMENT_ID}|ca-central-1|ASEA-Phase1"
        assert [mapping.key for mapping in engine.stacks([key])] == [key]

    def test_unknown_key(self, populated, config, settings):
        engine = ImportEngine(populated.mappings, config, settings=settings)
        with pytest.raises(MappingError):
            engine.stacks(["missing|ca-central-1|stack"])


class TestImportRun:
    @pytest.fixture
    def result(self, populated, config, settings):
        return ImportEngine(populated.mappings, config, settings=settings).run()

    def test_entries_and_deletions(self, result):
        mapped = {(entry.resource_type, entry.resource_identifier) for entry in result.entries}
        assert mapped == {
            (AseaResourceType.IAM_ROLE, "Ops"),
            (AseaResourceType.EC2_VPC, "App_vpc"),
            (AseaResourceType.EC2_SUBNET, "App_vpc/App_a"),
        }
        assert [entry.logical_id for entry in result.deletions] == ["LegacyRole"]

    def test_summary(self, result):
        summary = result.summary()
        assert summary["stacks"] == 4
        assert summary["mapped_resources"] == 3
        assert summary["deleted_resources"] == 1
        assert summary["parameters"] == 3

    def test_import_disabled(self, populated, settings):
        config = make_config(
            iam=IAM,
            globalConfig={
                "homeRegion": "ca-central-1",
                "externalLandingZoneResources": {"importExternalLandingZoneResources": False},
            },
        )
        result = ImportEngine(populated.mappings, config, settings=settings).run()
        assert result.entries == []
        assert result.deletions == []
        assert result.graphs == {}


class TestSave:
    @pytest.fixture
    def output(self, populated, config, settings):
        result = ImportEngine(populated.mappings, config, settings=settings).run()
        return result.save(settings.output_path)

    def test_mapping_and_deletion_files(self, output):
        with open(output / RESOURCE_MAPPING_FILE) as f:
            entries = json.load(f)
        with open(output / DELETIONS_FILE) as f:
            deletions = json.load(f)

        assert {entry["resourceIdentifier"] for entry in entries} == {"Ops", "App_vpc", "App_vpc/App_a"}
        assert all(entry["isDeleted"] is False for entry in entries)
        assert deletions[0]["logicalId"] == "LegacyRole"

    def test_resource_file_carries_deletion_flag(self, output):
        path = output / "resources" / MANAGEMENT_ID / "ca-central-1" / "ASEA-Phase1.json"
        with open(path) as f:
            records = {item["logicalResourceId"]: item for item in json.load(f)}
        assert records["LegacyRole"]["isDeleted"] is True
        assert records["OpsRole"]["isDeleted"] is False

    def test_nested_template_holds_parameters(self, output):
        path = output / "templates" / WORKLOAD1_ID / "ca-central-1" / "ASEA-Phase1-AppVpcStack.json"
        with open(path) as f:
            template = json.load(f)
        parameter = template["Resources"]["SsmParamAppVpcVpcId"]
        assert parameter["Type"] == CfnType.SSM_PARAMETER
        assert parameter["Properties"]["Value"] == {"Ref": "Vpc"}
        assert template["Resources"]["SubnetA"]["Properties"]["AvailabilityZone"] == "ca-central-1a"


class TestRerun:
    def test_second_run_over_saved_output_is_stable(self, populated, config, settings, tmp_path):
        first = ImportEngine(populated.mappings, config, settings=settings).run()
        first.save(settings.output_path)

        rerun_settings = ImportConfig(asset_dir=settings.output_dir, output_dir=str(tmp_path / "rerun"))
        second = ImportEngine(populated.mappings, config, settings=rerun_settings).run()

        assert second.deletions == []
        assert [entry.to_dict() for entry in second.entries] == [entry.to_dict() for entry in first.entries]
        assert second.inventories[f"{MANAGEMENT_ID}|ca-central-1|ASEA-Phase1"].is_deleted("LegacyRole")

    def test_mapping_table_round_trip(self, populated, tmp_path):
        path = populated.write_mappings()
        loaded = StackMappings.load(path)
        assert sorted(loaded.keys()) == sorted(populated.mappings.keys())
        nested = loaded[f"{WORKLOAD1_ID}|ca-central-1|ASEA-Phase1"].nested_stacks
        assert list(nested) == ["AppVpcStack"]
