"""
Reconciliation scope for one legacy stack.

``ImportContext`` bundles everything a reconciler needs for the stack being
reconciled: the stack mapping, its inventory and live template graph, the
matcher, adapter, resolver, parameter aggregator and deletion cascade, and the
typed configuration. Reconcilers receive the context instead of inheriting
shared state.
"""

from typing import Any, Dict, List, Optional, Set, Tuple

from .adapter import IdentityAdapter
from .config import ImportConfig, get_config
from .deletion import DeletionCascade
from .errors import ConfigurationInconsistencyError
from .graph import ResourceNode, TemplateGraph
from .inventory import ResourceInventory
from .logging import get_logger
from .matcher import ResourceMatcher
from .models import AcceleratorConfig
from .models.accounts import AccountConfig
from .models.base import DeploymentTargets, ShareTargets
from .models.mapping import LegacyResourceRecord, StackMapping
from .models.network import VpcBaseConfig, VpcConfig
from .parameters import ParameterAggregator
from .resolver import CrossStackResolver
from .types import (
    AseaResourceType,
    LookupPolicy,
    ParameterEmissionRequest,
    ParameterValue,
    ResourceMappingEntry,
    SsmPath,
)

logger = get_logger(__name__)


class ImportContext:
    """Collaborators and configuration for reconciling one legacy stack."""

    def __init__(
        self,
        mapping: StackMapping,
        inventory: ResourceInventory,
        graph: TemplateGraph,
        config: AcceleratorConfig,
        resolver: CrossStackResolver,
        aggregator: Optional[ParameterAggregator] = None,
        cascade: Optional[DeletionCascade] = None,
        settings: Optional[ImportConfig] = None,
        ssm_lookup: Optional[Dict[str, str]] = None,
    ):
        self.mapping = mapping
        self.inventory = inventory
        self.graph = graph
        self.config = config
        self.resolver = resolver
        self.settings = settings or get_config()
        self.aggregator = aggregator or ParameterAggregator(self.settings.parameter_batch_size)
        self.cascade = cascade or DeletionCascade()
        self.ssm_lookup: Dict[str, str] = dict(ssm_lookup or {})

        self.adapter = IdentityAdapter(graph)
        self.matcher = ResourceMatcher(inventory)

        # Customer managed policies reconciled in this stack, name -> ARN intrinsic
        self.policies: Dict[str, ParameterValue] = {}
        self.entries: List[ResourceMappingEntry] = []
        self._entry_keys: Set[Tuple[AseaResourceType, str]] = set()

    # Stack identity

    @property
    def account_id(self) -> str:
        return self.mapping.account_id

    @property
    def region(self) -> str:
        return self.mapping.region

    @property
    def phase(self) -> Optional[int]:
        return self.mapping.phase

    @property
    def stack_key(self) -> str:
        return self.mapping.key

    @property
    def account_name(self) -> str:
        """Configuration name of the stack's account, falling back to the legacy account key."""
        return self.config.accounts.get_account_name(self.account_id) or self.mapping.account_key

    @property
    def account(self) -> Optional[AccountConfig]:
        name = self.account_name
        return next(
            (item for item in self.config.accounts.all_accounts if item.name == name), None
        )

    @property
    def home_region(self) -> str:
        return self.config.global_config.home_region

    @property
    def partition(self) -> str:
        return self.settings.partition

    @property
    def ssm_prefix(self) -> str:
        return self.settings.ssm_prefix

    @property
    def accelerator_prefix(self) -> str:
        return self.config.global_config.external_landing_zone_resources.accelerator_prefix

    def account_id_for(self, name: str) -> str:
        return self.config.accounts.get_account_id(name)

    # Scope

    def is_included(self, targets: Optional[DeploymentTargets]) -> bool:
        """Whether ``targets`` select this stack's account and region.

        An excluded region or account always wins; otherwise the account must
        be listed explicitly or belong to a listed organizational unit
        (``Root`` selects every account). Anything else is excluded.
        """
        if targets is None:
            return False

        if self.region in targets.excluded_regions:
            return False
        if self.account_name in targets.excluded_accounts:
            return False

        if self.account_name in targets.accounts:
            return True

        account = self.account
        for organizational_unit in targets.organizational_units:
            if organizational_unit == "Root":
                return True
            if account is not None and account.organizational_unit == organizational_unit:
                return True
        return False

    def is_shared_with(self, targets: Optional[ShareTargets]) -> bool:
        """Whether a resource shared with ``targets`` is visible in this stack's account."""
        if targets is None:
            return False
        if self.account_name in targets.accounts:
            return True
        account = self.account
        return any(
            organizational_unit == "Root"
            or (account is not None and account.organizational_unit == organizational_unit)
            for organizational_unit in targets.organizational_units
        )

    def account_names_for(self, targets: DeploymentTargets) -> List[str]:
        """Account names selected by ``targets``, excluded accounts removed."""
        names = []
        for account in self.config.accounts.all_accounts:
            if account.name in targets.excluded_accounts:
                continue
            if account.name in targets.accounts or any(
                organizational_unit in ("Root", account.organizational_unit)
                for organizational_unit in targets.organizational_units
            ):
                names.append(account.name)
        return names

    def vpc_account_names(self, vpc: VpcBaseConfig) -> List[str]:
        """Accounts a VPC (or every copy of a VPC template) is deployed to."""
        if isinstance(vpc, VpcConfig):
            return [vpc.account]
        return self.account_names_for(vpc.deployment_targets)

    def vpcs_in_scope(self) -> List[VpcBaseConfig]:
        """VPCs and VPC templates deployed to this stack's account and region."""
        vpcs: List[VpcBaseConfig] = []
        for vpc in self.config.network.all_vpcs:
            if vpc.region != self.region:
                continue
            if isinstance(vpc, VpcConfig):
                if self.account_id_for(vpc.account) == self.account_id:
                    vpcs.append(vpc)
            elif self.is_included(vpc.deployment_targets):
                vpcs.append(vpc)
        return vpcs

    # Outputs

    def ssm_path(self, path: SsmPath, *parts: str) -> str:
        return path.render(self.ssm_prefix, *parts)

    def add_parameter(
        self,
        logical_id: str,
        parameter_name: str,
        string_value: ParameterValue,
        graph: Optional[TemplateGraph] = None,
    ) -> ParameterEmissionRequest:
        """Queue a parameter; it lands in the root template unless ``graph`` is given."""
        return self.aggregator.add(graph or self.graph, logical_id, parameter_name, string_value)

    def add_mapping_entry(
        self,
        resource_type: AseaResourceType,
        identifier: str,
        record: LegacyResourceRecord,
    ) -> Optional[ResourceMappingEntry]:
        """Record that ``record`` is owned by configuration item ``identifier``."""
        key = (resource_type, identifier)
        if key in self._entry_keys:
            return None

        entry = ResourceMappingEntry(
            account_id=self.account_id,
            region=self.region,
            resource_type=resource_type,
            resource_identifier=identifier,
            logical_resource_id=record.logical_resource_id,
            physical_resource_id=record.physical_resource_id,
        )
        self._entry_keys.add(key)
        self.entries.append(entry)
        logger.info(
            "Resource mapped",
            resource_type=resource_type.value,
            identifier=identifier,
            logical_id=record.logical_resource_id,
        )
        return entry

    # Lookups

    def node_for(self, inventory: ResourceInventory, record: LegacyResourceRecord) -> ResourceNode:
        return self.adapter.resolve_record(inventory, record)

    def graph_for(self, inventory: ResourceInventory) -> TemplateGraph:
        return self.adapter.scope(inventory.stack_key)

    def lookup(self, value: Any, policy: LookupPolicy, item: str, reason: str, **details) -> Any:
        """Apply ``policy`` when ``value`` is missing and return ``value`` unchanged.

        ``SKIP`` logs at INFO, ``WARN`` at WARNING and ``FAIL`` raises
        ``ConfigurationInconsistencyError`` naming ``item``.
        """
        if value is not None:
            return value

        if policy is LookupPolicy.FAIL:
            logger.error("Required resource not found", item=item, reason=reason, **details)
            raise ConfigurationInconsistencyError(item, reason, **details)
        if policy is LookupPolicy.WARN:
            logger.warning("Related resource not found", item=item, reason=reason, **details)
        else:
            logger.info("Item excluded", item=item, reason=reason, **details)
        return None

    def ssm_value(self, parameter_name: str) -> Optional[str]:
        """Value of a parameter that is already deployed."""
        return self.ssm_lookup.get(parameter_name)

    def policy_arn(self, name: str) -> Optional[ParameterValue]:
        """ARN of a customer managed policy: reconciled here, else already deployed."""
        if name in self.policies:
            return self.policies[name]
        return self.ssm_value(self.ssm_path(SsmPath.IAM_POLICY, name))

    def aws_managed_policy_arn(self, name: str) -> str:
        return f"arn:{self.partition}:iam::aws:policy/{name}"
