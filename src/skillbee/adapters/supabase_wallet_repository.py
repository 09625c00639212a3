"""Supabase-backed wallet repository."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from skillbee.adapters.supabase_errors import backend_errors, fetch_single
from skillbee.domain.bookings import Wallet
from skillbee.services.wallets import WalletRepository


@dataclass
class SupabaseWalletRepository(WalletRepository):
    """Supabase implementation for ``wallets`` and ``transactions``."""

    client: Client

    def get_wallet(self, user_id: UUID) -> Wallet | None:
        """Return the wallet for a user, or None when missing."""
        with backend_errors("get_wallet"):
            row = fetch_single(
                self.client.table("wallets").select("*").eq("user_id", str(user_id))
            )
        if row is None:
            return None
        return Wallet(
            id=UUID(str(row["wallet_id"])),
            user_id=UUID(str(row["user_id"])),
            balance=float(row.get("balance") or 0),
        )

    def create_wallet(self, user_id: UUID) -> None:
        """Create a zero-balance wallet."""
        with backend_errors("create_wallet"):
            self.client.table("wallets").insert(
                {"user_id": str(user_id), "balance": 0}
            ).execute()

    def list_transactions(self, wallet_id: UUID, limit: int) -> list[dict[str, object]]:
        """Return recent transactions."""
        with backend_errors("list_transactions"):
            response = (
                self.client.table("transactions")
                .select("*")
                .eq("wallet_id", str(wallet_id))
                .order("created_at", desc=True)
                .limit(limit)
                .execute()
            )
        return response.data or []
