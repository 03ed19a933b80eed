"""Accounts configuration: account names, organizational units and account ids."""

from typing import Dict, List, Optional

from pydantic import Field

from ..errors import ConfigurationInconsistencyError
from .base import ConfigModel


class AccountConfig(ConfigModel):
    """A named account and the organizational unit it belongs to."""

    name: str
    email: str
    organizational_unit: str = ""


class AccountIdConfig(ConfigModel):
    email: str
    account_id: str


class AccountsConfig(ConfigModel):
    """Every account known to the accelerator."""

    mandatory_accounts: List[AccountConfig] = Field(default_factory=list)
    workload_accounts: List[AccountConfig] = Field(default_factory=list)
    account_ids: List[AccountIdConfig] = Field(default_factory=list)

    @property
    def all_accounts(self) -> List[AccountConfig]:
        return [*self.mandatory_accounts, *self.workload_accounts]

    def _ids_by_email(self) -> Dict[str, str]:
        return {item.email.lower(): item.account_id for item in self.account_ids}

    def get_account(self, name: str) -> AccountConfig:
        for account in self.all_accounts:
            if account.name == name:
                return account
        raise ConfigurationInconsistencyError(name, "account not found in accounts configuration")

    def get_account_id(self, name: str) -> str:
        """Resolve an account name to its 12-digit id."""
        account = self.get_account(name)
        account_id = self._ids_by_email().get(account.email.lower())
        if account_id is None:
            raise ConfigurationInconsistencyError(
                name, "no account id recorded for account", email=account.email
            )
        return account_id

    def get_account_name(self, account_id: str) -> Optional[str]:
        """Reverse lookup from id to account name."""
        emails = {email for email, value in self._ids_by_email().items() if value == account_id}
        for account in self.all_accounts:
            if account.email.lower() in emails:
                return account.name
        return None

    def get_account_ids(self, names: List[str]) -> List[str]:
        return [self.get_account_id(name) for name in names]

    def get_account_ids_for_ou(self, organizational_unit: str) -> List[str]:
        """Account ids in an organizational unit; ``Root`` means every account."""
        ids = []
        for account in self.all_accounts:
            if organizational_unit == "Root" or account.organizational_unit == organizational_unit:
                ids.append(self.get_account_id(account.name))
        return ids
