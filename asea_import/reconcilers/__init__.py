"""Resource family reconcilers.

Every reconciler is run against every legacy stack; phase gating inside
``Reconciler.run`` decides which ones do any work.
"""

from typing import Dict, Iterable, List, Type

from ..logging import get_logger
from .base import ALL_PHASES, Reconciler
from .iam_groups import GroupReconciler
from .iam_policies import ManagedPolicyReconciler
from .iam_roles import RoleReconciler
from .iam_users import UserReconciler
from .load_balancers import LoadBalancerReconciler
from .nat_gateways import NatGatewayReconciler
from .network_firewall import NetworkFirewallReconciler
from .query_logging import QueryLoggingReconciler
from .resolver_endpoints import ResolverEndpointReconciler
from .route_tables import RouteTableReconciler
from .security_groups import SecurityGroupReconciler
from .shared_security_groups import SharedSecurityGroupReconciler
from .ssm_inventory import SsmInventoryReconciler
from .tgw_attachments import TgwAttachmentReconciler
from .tgw_cross_account import TgwCrossAccountReconciler
from .tgw_peering import TgwPeeringReconciler
from .tgw_routes import TgwRouteReconciler
from .transit_gateways import TransitGatewayReconciler
from .vpc_endpoints import VpcEndpointReconciler
from .vpc_gateways import VpcGatewayReconciler
from .vpc_peering import VpcPeeringReconciler
from .vpcs import VpcReconciler

logger = get_logger(__name__)

# Ordered list of all reconcilers. Managed policies run before roles, groups
# and users so their ARNs resolve within the same stack; VPCs run before
# their children.
ALL_RECONCILERS: List[Type[Reconciler]] = [
    ManagedPolicyReconciler,
    RoleReconciler,
    GroupReconciler,
    UserReconciler,
    TransitGatewayReconciler,
    VpcReconciler,
    RouteTableReconciler,
    VpcGatewayReconciler,
    NatGatewayReconciler,
    TgwAttachmentReconciler,
    TgwPeeringReconciler,
    SecurityGroupReconciler,
    SharedSecurityGroupReconciler,
    TgwCrossAccountReconciler,
    TgwRouteReconciler,
    VpcPeeringReconciler,
    ResolverEndpointReconciler,
    QueryLoggingReconciler,
    VpcEndpointReconciler,
    NetworkFirewallReconciler,
    SsmInventoryReconciler,
    LoadBalancerReconciler,
]

_RECONCILER_MAP: Dict[str, Type[Reconciler]] = {cls.name: cls for cls in ALL_RECONCILERS}


def select_reconcilers(names: Iterable[str]) -> List[Type[Reconciler]]:
    """Reconciler classes for ``names`` in registry order; ``all`` selects every one."""
    names = [name.strip().lower() for name in names]
    if "all" in names:
        return list(ALL_RECONCILERS)

    for name in names:
        if name not in _RECONCILER_MAP:
            logger.warning("Unknown reconciler, skipping", reconciler=name)
    return [cls for cls in ALL_RECONCILERS if cls.name in names]


__all__ = [
    "ALL_PHASES",
    "ALL_RECONCILERS",
    "Reconciler",
    "select_reconcilers",
    "GroupReconciler",
    "LoadBalancerReconciler",
    "ManagedPolicyReconciler",
    "NatGatewayReconciler",
    "NetworkFirewallReconciler",
    "QueryLoggingReconciler",
    "ResolverEndpointReconciler",
    "RoleReconciler",
    "RouteTableReconciler",
    "SecurityGroupReconciler",
    "SharedSecurityGroupReconciler",
    "SsmInventoryReconciler",
    "TgwAttachmentReconciler",
    "TgwCrossAccountReconciler",
    "TgwPeeringReconciler",
    "TgwRouteReconciler",
    "TransitGatewayReconciler",
    "UserReconciler",
    "VpcEndpointReconciler",
    "VpcGatewayReconciler",
    "VpcPeeringReconciler",
    "VpcReconciler",
]
