"""Admin authorization policy: the set of wallet addresses allowed to administer."""

from typing import Iterable, Optional

from .errors import AuthorizationError


class AdminPolicy:
    def __init__(self, addresses: Iterable[str]) -> None:
        self._addresses = frozenset(address.lower() for address in addresses)

    def is_admin(self, address: Optional[str]) -> bool:
        return bool(address) and address.lower() in self._addresses

    def require_admin(self, address: Optional[str]) -> str:
        if not self.is_admin(address):
            raise AuthorizationError("Unauthorized: Admin access required")
        return address

    def __contains__(self, address: str) -> bool:
        return self.is_admin(address)

    def __len__(self) -> int:
        return len(self._addresses)
