from typing import Dict, Iterator, List

from models import ClientAccount


class ClientLedger:
    """
    Per-client balance state, created lazily on first reference.
    Iteration order is the order in which client ids were first seen.
    """

    def __init__(self):
        self._accounts: Dict[int, ClientAccount] = {}

    def get_or_create_account(self, client_id: int) -> ClientAccount:
        """Get existing account or create a zeroed one."""
        account = self._accounts.get(client_id)
        if account is None:
            account = ClientAccount(client_id=client_id)
            self._accounts[client_id] = account
        return account

    def snapshot(self, client_id: int) -> ClientAccount:
        """Return the account for an already-seen client. Raises KeyError otherwise."""
        return self._accounts[client_id]

    def client_ids(self) -> List[int]:
        """Client ids in first-seen order."""
        return list(self._accounts)

    def get_all_accounts(self) -> Dict[int, ClientAccount]:
        """Return all accounts (for final output), keyed in first-seen order."""
        return dict(self._accounts)

    def __contains__(self, client_id: int) -> bool:
        return client_id in self._accounts

    def __iter__(self) -> Iterator[ClientAccount]:
        return iter(self._accounts.values())

    def __len__(self) -> int:
        return len(self._accounts)
