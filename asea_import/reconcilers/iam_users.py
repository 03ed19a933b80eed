"""IAM users."""

from typing import List

from ..logging import get_logger
from ..models.iam import UserConfig
from ..types import AseaResourceType, CfnType, LookupPolicy, SsmPath
from ..utils.naming import pascal_case
from .base import Reconciler
from .iam_policies import set_boundary_policy

logger = get_logger(__name__)


class UserReconciler(Reconciler):
    """Adopts legacy users by exact ``UserName`` and re-points their group membership."""

    name = "iam_users"
    phases = (1,)
    home_region_only = True

    def users_in_scope(self) -> List[UserConfig]:
        return [
            user
            for user_set in self.context.config.iam.user_sets
            if self.context.is_included(user_set.deployment_targets)
            for user in user_set.users
        ]

    def reconcile(self) -> None:
        users = self.users_in_scope()
        names = {user.username for user in users}

        for record in self.inventory.by_type(CfnType.IAM_USER):
            user_name = record.typed().user_name
            if user_name and user_name not in names:
                self.cascade.with_parameter(
                    self.inventory,
                    record,
                    self.context.ssm_path(SsmPath.IAM_USER, user_name),
                    identifier=user_name,
                )

        for user in users:
            self.update(user)

    def update(self, user: UserConfig) -> None:
        record = self.context.lookup(
            self.matcher.user(user.username),
            LookupPolicy.SKIP,
            item=user.username,
            reason="user not deployed by legacy stack",
        )
        if record is None:
            return

        node = self.context.node_for(self.inventory, record)

        # Group membership points at the legacy group node when it lives in this stack
        group = self.matcher.group(user.group)
        if group is not None:
            node.set("Groups", [self.context.node_for(self.inventory, group).ref])
        else:
            node.set("Groups", [user.group])

        set_boundary_policy(self.context, node, user.boundary_policy, user.username)
        if user.disable_console_access:
            node.unset("LoginProfile")

        self.context.add_parameter(
            pascal_case("SsmParam", user.username, "UserArn"),
            self.context.ssm_path(SsmPath.IAM_USER, user.username),
            node.get_att("Arn"),
        )
        self.context.add_mapping_entry(AseaResourceType.IAM_USER, user.username, record)
