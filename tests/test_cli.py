"""Tests for the CLI interface."""

import json

import pytest
from conftest import ACCOUNTS, HOME_REGION, MANAGEMENT_ID, NETWORK_ID, resource
from typer.testing import CliRunner

from asea_import.cli import cli
from asea_import.engine import DELETIONS_FILE, RESOURCE_MAPPING_FILE
from asea_import.types import CfnType

runner = CliRunner()

IAM = {
    "roleSets": [
        {
            "deploymentTargets": {"accounts": ["Management"]},
            "roles": [{"name": "Ops", "assumedBy": [{"type": "service", "principal": "ec2.amazonaws.com"}]}],
        }
    ]
}


def write_config(path, **sections):
    data = {"accounts": ACCOUNTS, "globalConfig": {"homeRegion": HOME_REGION}}
    data.update(sections)
    with open(path, "w") as f:
        json.dump(data, f)
    return path


@pytest.fixture
def files(assets, tmp_path):
    assets.stack(
        MANAGEMENT_ID,
        "ASEA-Phase1",
        1,
        [
            resource("OpsRole", CfnType.IAM_ROLE, "Ops", {"RoleName": "Ops"}),
            resource("LegacyRole", CfnType.IAM_ROLE, "Legacy", {"RoleName": "Legacy"}),
        ],
    )
    assets.stack(NETWORK_ID, "ASEA-Phase0", 0, [])
    mapping = assets.write_mappings()
    config = write_config(tmp_path / "config.json", iam=IAM)
    return mapping, config


class TestCLIValidate:
    def test_validate_defaults(self):
        result = runner.invoke(cli, ["validate"])
        assert result.exit_code == 0
        assert "Settings are valid" in result.output
        assert "All validation checks passed" in result.output
        assert "iam_roles" in result.output

    def test_validate_files(self, files):
        mapping, config = files
        result = runner.invoke(cli, ["validate", "--mapping", str(mapping), "--config", str(config)])
        assert result.exit_code == 0
        assert "Mapping table loaded (2 stacks)" in result.output
        assert "Configuration loaded" in result.output

    def test_validate_bad_mapping(self, tmp_path):
        path = tmp_path / "stacks.json"
        path.write_text("[]")
        result = runner.invoke(cli, ["validate", "--mapping", str(path)])
        assert result.exit_code == 1
        assert "Validation failed with 1 error(s)" in result.output

    def test_validate_same_asset_and_output_dir(self, monkeypatch, tmp_path):
        monkeypatch.setenv("ASEA_IMPORT_ASSET_DIR", str(tmp_path))
        monkeypatch.setenv("ASEA_IMPORT_OUTPUT_DIR", str(tmp_path))
        result = runner.invoke(cli, ["validate"])
        assert result.exit_code == 1
        assert "FAIL" in result.output


class TestCLIStacks:
    def test_stacks_table(self, files):
        mapping, _ = files
        result = runner.invoke(cli, ["stacks", str(mapping)])
        assert result.exit_code == 0
        assert "Legacy Stacks" in result.output

    def test_stacks_json_in_phase_order(self, files):
        mapping, _ = files
        result = runner.invoke(cli, ["stacks", str(mapping), "--json"])
        assert result.exit_code == 0
        phase0 = result.output.index(f"{NETWORK_ID}|{HOME_REGION}|ASEA-Phase0")
        phase1 = result.output.index(f"{MANAGEMENT_ID}|{HOME_REGION}|ASEA-Phase1")
        assert phase0 < phase1

    def test_stacks_missing_file(self, tmp_path):
        result = runner.invoke(cli, ["stacks", str(tmp_path / "missing.json")])
        assert result.exit_code == 1
        assert "Error" in result.output


class TestCLIRun:
    def test_run_writes_results(self, files, settings):
        mapping, config = files
        result = runner.invoke(
            cli,
            [
                "run",
                str(mapping),
                str(config),
                "--asset-dir",
                settings.asset_dir,
                "--output-dir",
                settings.output_dir,
            ],
        )
        assert result.exit_code == 0
        assert "Import Summary" in result.output

        with open(settings.output_path / RESOURCE_MAPPING_FILE) as f:
            assert [entry["resourceIdentifier"] for entry in json.load(f)] == ["Ops"]
        with open(settings.output_path / DELETIONS_FILE) as f:
            assert [entry["logicalId"] for entry in json.load(f)] == ["LegacyRole"]

    def test_run_selected_reconciler(self, files, settings):
        mapping, config = files
        result = runner.invoke(
            cli,
            [
                "run",
                str(mapping),
                str(config),
                "--asset-dir",
                settings.asset_dir,
                "-o",
                settings.output_dir,
                "-r",
                "vpcs",
            ],
        )
        assert result.exit_code == 0
        with open(settings.output_path / RESOURCE_MAPPING_FILE) as f:
            assert json.load(f) == []

    def test_run_configuration_inconsistency(self, assets, settings, tmp_path):
        assets.stack(
            NETWORK_ID,
            "ASEA-Phase0",
            0,
            [
                resource(
                    "Route",
                    CfnType.TRANSIT_GATEWAY_ROUTE,
                    "route-1",
                    {"TransitGatewayRouteTableId": "tgw-rtb-1", "DestinationCidrBlock": "10.0.0.0/8"},
                )
            ],
        )
        mapping = assets.write_mappings()
        tgw = {
            "name": "Main",
            "account": "Network",
            "region": HOME_REGION,
            "routeTables": [{"name": "Main_Missing", "routes": [{"destinationCidrBlock": "10.0.0.0/8", "blackhole": True}]}],
        }
        config = write_config(tmp_path / "config.json", network={"transitGateways": [tgw]})

        result = runner.invoke(
            cli,
            ["run", str(mapping), str(config), "--asset-dir", settings.asset_dir, "-o", settings.output_dir],
        )
        assert result.exit_code == 1
        assert "Configuration inconsistency" in result.output

    def test_run_same_asset_and_output_dir(self, files, settings):
        mapping, config = files
        result = runner.invoke(
            cli,
            ["run", str(mapping), str(config), "--asset-dir", settings.asset_dir, "-o", settings.asset_dir],
        )
        assert result.exit_code == 1
        assert "Validation error" in result.output

    def test_run_missing_config(self, files, settings, tmp_path):
        mapping, _ = files
        result = runner.invoke(
            cli,
            ["run", str(mapping), str(tmp_path / "missing.yaml"), "--asset-dir", settings.asset_dir],
        )
        assert result.exit_code == 1
        assert "Error" in result.output
