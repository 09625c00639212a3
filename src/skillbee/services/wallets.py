"""Wallet lookups."""

from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from skillbee.domain.bookings import Wallet


class WalletRepository(Protocol):
    """Persistence interface for wallets and transactions."""

    def get_wallet(self, user_id: UUID) -> Wallet | None:
        """Return a user's wallet, or None when it does not exist."""

    def create_wallet(self, user_id: UUID) -> None:
        """Create a zero-balance wallet."""

    def list_transactions(self, wallet_id: UUID, limit: int) -> list[dict[str, object]]:
        """Return recent transactions, newest first."""


@dataclass
class WalletService:
    """Read access to balances and history."""

    repository: WalletRepository

    def overview(self, user_id: UUID, limit: int = 50) -> dict[str, object]:
        """Return the balance and recent transactions for a user."""
        wallet = self.repository.get_wallet(user_id)
        if wallet is None:
            return {"wallet": None, "transactions": []}
        return {
            "wallet": {"id": str(wallet.id), "balance": wallet.balance},
            "transactions": self.repository.list_transactions(wallet.id, limit),
        }
