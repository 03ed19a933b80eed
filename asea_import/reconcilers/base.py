"""Abstract base class for resource reconcilers."""

from abc import ABC, abstractmethod
from typing import Iterator, Tuple

from ..context import ImportContext
from ..deletion import DeletionCascade
from ..inventory import ResourceInventory
from ..logging import get_logger
from ..matcher import ResourceMatcher, VpcLocation
from ..models.mapping import LegacyResourceRecord
from ..models.network import VpcBaseConfig
from ..types import LookupPolicy

logger = get_logger(__name__)

ALL_PHASES = (0, 1, 2, 3)


class Reconciler(ABC):
    """Base class that every resource family reconciler inherits from.

    Subclasses set ``name`` to a short identifier (e.g. ``"iam_roles"``),
    ``phases`` to the legacy deployment phases whose stacks can hold the
    family, and implement ``reconcile``. ``run`` does the phase gating so a
    reconciler invoked against a stack of another phase does nothing at all.
    """

    name: str = ""
    phases: Tuple[int, ...] = ()
    home_region_only: bool = False

    def __init__(self, context: ImportContext) -> None:
        self.context = context

    @property
    def inventory(self) -> ResourceInventory:
        return self.context.inventory

    @property
    def matcher(self) -> ResourceMatcher:
        return self.context.matcher

    @property
    def cascade(self) -> DeletionCascade:
        return self.context.cascade

    def records(self, resource_type: str) -> Iterator[Tuple[ResourceInventory, LegacyResourceRecord]]:
        """Visible records of a type in the stack and every nested stack."""
        for inventory in self.inventory.walk():
            for record in inventory.by_type(resource_type):
                yield inventory, record

    def vpc_locations(self) -> Iterator[Tuple[VpcBaseConfig, VpcLocation]]:
        """VPCs in scope paired with where the legacy stack holds them; missing VPCs are skipped."""
        for vpc in self.context.vpcs_in_scope():
            location = self.context.lookup(
                self.matcher.vpc(vpc.name),
                LookupPolicy.SKIP,
                item=vpc.name,
                reason="VPC not deployed by legacy stack",
                account=self.context.account_name,
                region=self.context.region,
            )
            if location is not None:
                yield vpc, location

    def applies(self) -> bool:
        """Whether this reconciler handles the context's stack."""
        if self.context.phase not in self.phases:
            logger.info(
                "No resources to handle in stack",
                reconciler=self.name,
                stack_name=self.context.mapping.stack_name,
                phase=self.context.phase,
            )
            return False

        if self.home_region_only and self.context.region != self.context.home_region:
            logger.info(
                "Stack outside home region",
                reconciler=self.name,
                region=self.context.region,
                home_region=self.context.home_region,
            )
            return False

        return True

    def run(self) -> bool:
        """Reconcile the stack if the phase matches; returns whether work was attempted."""
        if not self.applies():
            return False
        self.reconcile()
        return True

    @abstractmethod
    def reconcile(self) -> None:
        """Project configuration onto the matched legacy resources of the stack."""
        ...
