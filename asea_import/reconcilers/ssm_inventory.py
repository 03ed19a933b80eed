"""SSM inventory collection: the resource data sync and the inventory association."""

from ..logging import get_logger
from ..models.mapping import LegacyResourceRecord
from ..types import AseaResourceType, CfnType
from .base import Reconciler

logger = get_logger(__name__)

INVENTORY_DOCUMENT = "AWS-GatherSoftwareInventory"


def is_inventory_association(record: LegacyResourceRecord) -> bool:
    properties = record.properties
    return properties.get("Name") == INVENTORY_DOCUMENT or "Inventory" in (
        properties.get("AssociationName") or ""
    )


class SsmInventoryReconciler(Reconciler):
    name = "ssm_inventory"
    phases = (2,)

    def reconcile(self) -> None:
        ssm_inventory = self.context.config.security.central_security_services.ssm_inventory
        enabled = (
            ssm_inventory is not None
            and ssm_inventory.enable
            and self.context.is_included(ssm_inventory.deployment_targets)
        )
        if not enabled:
            logger.info("SSM inventory not enabled for stack", stack_key=self.context.stack_key)

        for inventory, record in self.records(CfnType.SSM_RESOURCE_DATA_SYNC):
            name = record.typed().sync_name or record.logical_resource_id
            if enabled:
                self.context.add_mapping_entry(AseaResourceType.SSM_RESOURCE_DATA_SYNC, name, record)
            else:
                self.cascade.flag(inventory, record, name)

        for inventory, record in self.records(CfnType.SSM_ASSOCIATION):
            if not is_inventory_association(record):
                continue
            name = record.properties.get("AssociationName") or record.logical_resource_id
            if enabled:
                self.context.add_mapping_entry(AseaResourceType.SSM_ASSOCIATION, name, record)
            else:
                self.cascade.flag(inventory, record, name)
