"""Network firewalls, firewall policies and rule groups.

Firewalls live with their VPC; policies and rule groups are deployed once per
region in the central network services delegated admin account.
"""

from typing import List, Optional, Tuple

from ..inventory import ResourceInventory
from ..logging import get_logger
from ..models.mapping import LegacyResourceRecord
from ..models.network import NfwConfig
from ..types import AseaResourceType, CfnType, LookupPolicy, SsmPath
from ..utils.naming import pascal_case
from .base import Reconciler

logger = get_logger(__name__)

Found = Tuple[ResourceInventory, LegacyResourceRecord]


class NetworkFirewallReconciler(Reconciler):
    name = "network_firewall"
    phases = (2,)

    @property
    def config(self) -> Optional[NfwConfig]:
        services = self.context.config.network.central_network_services
        return services.network_firewall if services is not None else None

    def is_delegated_admin(self) -> bool:
        services = self.context.config.network.central_network_services
        return services is not None and services.delegated_admin_account == self.context.account_name

    def in_region(self, regions: List[str]) -> bool:
        return not regions or self.context.region in regions

    def find(self, resource_type: str, property_name: str, value: str) -> Optional[Found]:
        return next(
            (
                (inventory, record)
                for inventory, record in self.records(resource_type)
                if record.properties.get(property_name) == value
            ),
            None,
        )

    def reconcile(self) -> None:
        config = self.config
        if config is None:
            return
        self.reconcile_firewalls(config)
        if self.is_delegated_admin():
            self.reconcile_policies(config)
            self.reconcile_rule_groups(config)

    def reconcile_firewalls(self, config: NfwConfig) -> None:
        vpcs = {vpc.name for vpc in self.context.vpcs_in_scope()}
        firewalls = [firewall for firewall in config.firewalls if firewall.vpc in vpcs]
        names = {firewall.name for firewall in firewalls}

        for inventory, record in self.records(CfnType.NETWORK_FIREWALL):
            name = record.typed().firewall_name
            if name and name not in names:
                self.cascade.with_references(
                    inventory,
                    record,
                    ["FirewallArn"],
                    (CfnType.NETWORK_FIREWALL_LOGGING,),
                    identifier=name,
                )

        for firewall in firewalls:
            identifier = f"{firewall.vpc}/{firewall.name}"
            found = self.context.lookup(
                self.find(CfnType.NETWORK_FIREWALL, "FirewallName", firewall.name),
                LookupPolicy.SKIP,
                item=identifier,
                reason="network firewall not deployed by legacy stack",
            )
            if found is None:
                continue

            inventory, record = found
            node = self.context.node_for(inventory, record)
            node.set("DeleteProtection", firewall.delete_protection)
            node.set("Description", firewall.description)
            self.context.add_parameter(
                pascal_case("SsmParam", firewall.vpc, firewall.name, "FirewallArn"),
                self.context.ssm_path(SsmPath.NFW, firewall.vpc, firewall.name),
                node.get_att("FirewallArn"),
                graph=self.context.graph_for(inventory),
            )
            self.context.add_mapping_entry(AseaResourceType.NETWORK_FIREWALL, identifier, record)

    def reconcile_policies(self, config: NfwConfig) -> None:
        policies = [policy for policy in config.policies if self.in_region(policy.regions)]
        names = {policy.name for policy in policies}

        for inventory, record in self.records(CfnType.NETWORK_FIREWALL_POLICY):
            name = record.typed().firewall_policy_name
            if name and name not in names:
                self.cascade.with_parameter(
                    inventory, record, self.context.ssm_path(SsmPath.NFW_POLICY, name), name
                )

        for policy in policies:
            found = self.context.lookup(
                self.find(CfnType.NETWORK_FIREWALL_POLICY, "FirewallPolicyName", policy.name),
                LookupPolicy.SKIP,
                item=policy.name,
                reason="firewall policy not deployed by legacy stack",
            )
            if found is None:
                continue

            inventory, record = found
            node = self.context.node_for(inventory, record)
            if policy.firewall_policy:
                node.set("FirewallPolicy", policy.firewall_policy)
            self.context.add_parameter(
                pascal_case("SsmParam", policy.name, "FirewallPolicyArn"),
                self.context.ssm_path(SsmPath.NFW_POLICY, policy.name),
                node.get_att("FirewallPolicyArn"),
                graph=self.context.graph_for(inventory),
            )
            self.context.add_mapping_entry(AseaResourceType.NETWORK_FIREWALL_POLICY, policy.name, record)

    def reconcile_rule_groups(self, config: NfwConfig) -> None:
        rule_groups = [rule for rule in config.rules if self.in_region(rule.regions)]
        names = {rule.name for rule in rule_groups}

        for inventory, record in self.records(CfnType.NETWORK_FIREWALL_RULE_GROUP):
            name = record.typed().rule_group_name
            if name and name not in names:
                self.cascade.with_parameter(
                    inventory, record, self.context.ssm_path(SsmPath.NFW_RULE_GROUP, name), name
                )

        for rule in rule_groups:
            found = self.context.lookup(
                self.find(CfnType.NETWORK_FIREWALL_RULE_GROUP, "RuleGroupName", rule.name),
                LookupPolicy.SKIP,
                item=rule.name,
                reason="rule group not deployed by legacy stack",
            )
            if found is None:
                continue

            inventory, record = found
            node = self.context.node_for(inventory, record)
            if rule.rule_group is not None:
                node.set("RuleGroup", rule.rule_group)
            node.set("Description", rule.description)
            self.context.add_parameter(
                pascal_case("SsmParam", rule.name, "RuleGroupArn"),
                self.context.ssm_path(SsmPath.NFW_RULE_GROUP, rule.name),
                node.get_att("RuleGroupArn"),
                graph=self.context.graph_for(inventory),
            )
            self.context.add_mapping_entry(
                AseaResourceType.NETWORK_FIREWALL_RULE_GROUP, rule.name, record
            )
