"""Shared test fixtures for asea-import."""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest
from asea_import.config import ImportConfig, reset_config
from asea_import.context import ImportContext
from asea_import.engine import ImportEngine
from asea_import.graph import TemplateGraph
from asea_import.inventory import InventoryLoader, ResourceInventory
from asea_import.models import AcceleratorConfig
from asea_import.models.mapping import LegacyResourceRecord, StackMapping, StackMappings
from asea_import.resolver import CrossStackResolver

HOME_REGION = "ca-central-1"

MANAGEMENT_ID = "111111111111"
NETWORK_ID = "222222222222"
WORKLOAD1_ID = "333333333333"
WORKLOAD2_ID = "444444444444"

ACCOUNTS = {
    "mandatoryAccounts": [
        {"name": "Management", "email": "management@example.com", "organizationalUnit": "Security"},
        {"name": "Network", "email": "network@example.com", "organizationalUnit": "Infrastructure"},
    ],
    "workloadAccounts": [
        {"name": "Workload1", "email": "workload1@example.com", "organizationalUnit": "Workloads"},
        {"name": "Workload2", "email": "workload2@example.com", "organizationalUnit": "Workloads"},
    ],
    "accountIds": [
        {"email": "management@example.com", "accountId": MANAGEMENT_ID},
        {"email": "network@example.com", "accountId": NETWORK_ID},
        {"email": "workload1@example.com", "accountId": WORKLOAD1_ID},
        {"email": "workload2@example.com", "accountId": WORKLOAD2_ID},
    ],
}

ACCOUNT_KEYS = {
    MANAGEMENT_ID: "management",
    NETWORK_ID: "shared-network",
    WORKLOAD1_ID: "workload1",
    WORKLOAD2_ID: "workload2",
}


def resource(
    logical_id: str,
    resource_type: str,
    physical_id: Optional[str] = None,
    properties: Optional[Dict[str, Any]] = None,
    tags: Optional[Dict[str, str]] = None,
    is_deleted: bool = False,
) -> Dict[str, Any]:
    """One entry of a legacy resource file."""
    properties = dict(properties or {})
    if tags:
        properties["Tags"] = [{"Key": key, "Value": value} for key, value in tags.items()]
    data = {
        "logicalResourceId": logical_id,
        "resourceType": resource_type,
        "resourceMetadata": {"Type": resource_type, "Properties": properties},
    }
    if physical_id is not None:
        data["physicalResourceId"] = physical_id
    if is_deleted:
        data["isDeleted"] = True
    return data


def record(*args, **kwargs) -> LegacyResourceRecord:
    return LegacyResourceRecord.model_validate(resource(*args, **kwargs))


def make_config(**sections) -> AcceleratorConfig:
    """Accelerator configuration over the four test accounts; ``sections`` use file keys."""
    data = {"accounts": ACCOUNTS, "globalConfig": {"homeRegion": HOME_REGION}}
    data.update(sections)
    return AcceleratorConfig.from_dict(data)


def make_mapping(
    account_id: str = MANAGEMENT_ID,
    stack_name: str = "ASEA-Phase1",
    phase: Optional[int] = 1,
    region: str = HOME_REGION,
) -> StackMapping:
    return StackMapping(
        stack_name=stack_name,
        account_id=account_id,
        account_key=ACCOUNT_KEYS.get(account_id, account_id),
        region=region,
        phase=phase,
        resource_path=f"resources/{account_id}/{region}/{stack_name}.json",
    )


def make_context(
    config: AcceleratorConfig,
    resources: List[Dict[str, Any]],
    mapping: Optional[StackMapping] = None,
    nested: Optional[Dict[str, List[Dict[str, Any]]]] = None,
    **kwargs,
) -> ImportContext:
    """Context over an in-memory inventory; nothing is read from disk."""
    mapping = mapping or make_mapping()
    nested_inventories = {}
    nested_graphs = {}
    for nested_id, nested_resources in (nested or {}).items():
        key = f"{mapping.key}/{nested_id}"
        records = [LegacyResourceRecord.model_validate(item) for item in nested_resources]
        nested_inventories[nested_id] = ResourceInventory(key, records)
        nested_graphs[nested_id] = TemplateGraph.from_records(key, records)

    records = [LegacyResourceRecord.model_validate(item) for item in resources]
    inventory = ResourceInventory(mapping.key, records, nested=nested_inventories, mapping=mapping)
    graph = TemplateGraph.from_records(mapping.key, records, nested=nested_graphs)
    resolver = CrossStackResolver(StackMappings(), InventoryLoader("."), config.accounts)
    return ImportContext(mapping, inventory, graph, config, resolver, **kwargs)


class AssetBuilder:
    """Writes legacy resource files and templates the way the export step lays them out."""

    def __init__(self, root: Path):
        self.root = root
        self.mappings = StackMappings()

    def stack(
        self,
        account_id: str,
        stack_name: str,
        phase: Optional[int],
        resources: List[Dict[str, Any]],
        region: str = HOME_REGION,
        nested: Optional[Dict[str, List[Dict[str, Any]]]] = None,
    ) -> StackMapping:
        mapping = self._write(account_id, region, stack_name, phase, resources, nested)
        self.mappings.add(mapping)
        return mapping

    def _write(
        self,
        account_id: str,
        region: str,
        stack_name: str,
        phase: Optional[int],
        resources: List[Dict[str, Any]],
        nested: Optional[Dict[str, List[Dict[str, Any]]]] = None,
        logical_resource_id: Optional[str] = None,
    ) -> StackMapping:
        nested_stacks = {}
        for nested_id, nested_resources in (nested or {}).items():
            nested_stacks[nested_id] = self._write(
                account_id,
                region,
                f"{stack_name}-{nested_id}",
                phase,
                nested_resources,
                logical_resource_id=nested_id,
            )

        resource_path = f"resources/{account_id}/{region}/{stack_name}.json"
        template_path = f"templates/{account_id}/{region}/{stack_name}.json"
        template = {
            "AWSTemplateFormatVersion": "2010-09-09",
            "Resources": {
                item["logicalResourceId"]: {
                    "Type": item["resourceType"],
                    "Properties": item["resourceMetadata"]["Properties"],
                }
                for item in resources
            },
        }
        self._dump(self.root / resource_path, resources)
        self._dump(self.root / template_path, template)

        return StackMapping(
            stack_name=stack_name,
            account_id=account_id,
            account_key=ACCOUNT_KEYS.get(account_id, account_id),
            region=region,
            phase=phase,
            resource_path=resource_path,
            template_path=template_path,
            nested_stacks=nested_stacks,
            logical_resource_id=logical_resource_id,
        )

    @staticmethod
    def _dump(path: Path, data) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(data, f, indent=2)

    def write_mappings(self, name: str = "stacks.json") -> Path:
        path = self.root / name
        self._dump(path, self.mappings.to_dict())
        return path


@pytest.fixture(autouse=True)
def _reset_global_config(monkeypatch):
    """Reset global config and clear import settings from the environment for all tests."""
    for name in ("ASEA_IMPORT_ASSET_DIR", "ASEA_IMPORT_OUTPUT_DIR", "ASEA_IMPORT_SSM_PREFIX"):
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def settings(tmp_path):
    """Settings reading assets from and writing results to the test's temporary directory."""
    return ImportConfig(asset_dir=str(tmp_path / "assets"), output_dir=str(tmp_path / "output"))


@pytest.fixture
def assets(tmp_path):
    """Builder for legacy resource files under the settings' asset directory."""
    return AssetBuilder(tmp_path / "assets")


@pytest.fixture
def reconcile(assets, settings):
    """Reconcile one stack of ``assets`` with the given reconcilers and return its context."""

    def _reconcile(mapping, config, reconcilers=None, ssm_lookup=None):
        kwargs = {"settings": settings, "ssm_lookup": ssm_lookup}
        if reconcilers is not None:
            kwargs["reconcilers"] = reconcilers
        engine = ImportEngine(assets.mappings, config, **kwargs)
        return engine.reconcile_stack(mapping)

    return _reconcile
