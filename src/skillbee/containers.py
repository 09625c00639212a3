"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from skillbee.adapters.supabase_auth_backend import SupabaseAuthBackend
from skillbee.adapters.supabase_booking_repository import SupabaseBookingRepository
from skillbee.adapters.supabase_change_feed import SupabaseChangeFeed
from skillbee.adapters.supabase_document_storage import SupabaseDocumentStorage
from skillbee.adapters.supabase_message_repository import SupabaseMessageRepository
from skillbee.adapters.supabase_profile_repository import SupabaseProfileRepository
from skillbee.adapters.supabase_tasker_repository import SupabaseTaskerRepository
from skillbee.adapters.supabase_verification_repository import (
    SupabaseVerificationRepository,
)
from skillbee.adapters.supabase_wallet_repository import SupabaseWalletRepository
from skillbee.config import Settings
from skillbee.services.accounts import AccountService
from skillbee.services.auth_callback import EmailConfirmationHandler
from skillbee.services.messaging import MessagingService
from skillbee.services.profiles import ProfileLoader
from skillbee.services.sessions import SessionStore
from skillbee.services.storage import DocumentService
from skillbee.services.task_requests import TaskRequestService
from skillbee.services.verification import VerificationService
from skillbee.services.wallets import WalletService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    session_store: SessionStore
    profile_loader: ProfileLoader
    confirmation_handler: EmailConfirmationHandler
    verification_service: VerificationService
    task_request_service: TaskRequestService
    messaging_service: MessagingService
    wallet_service: WalletService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_anon_key
    )
    profile_repository = SupabaseProfileRepository(supabase_client)
    wallet_repository = SupabaseWalletRepository(supabase_client)
    booking_repository = SupabaseBookingRepository(supabase_client)
    change_feed = SupabaseChangeFeed(
        resolved_settings.supabase_url, resolved_settings.supabase_anon_key
    )
    profile_loader = ProfileLoader(
        profile_repository,
        poll_attempts=resolved_settings.profile_poll_attempts,
        poll_interval_seconds=resolved_settings.profile_poll_interval_seconds,
    )
    session_store = SessionStore(
        auth_backend=SupabaseAuthBackend(supabase_client),
        profile_loader=profile_loader,
        account_service=AccountService(profile_repository, wallet_repository),
        init_timeout_seconds=resolved_settings.session_init_timeout_seconds,
    )
    document_service = DocumentService(
        storage=SupabaseDocumentStorage(
            supabase_client, resolved_settings.documents_bucket
        ),
        bucket=resolved_settings.documents_bucket,
        max_bytes=resolved_settings.max_document_bytes,
        signed_url_ttl_seconds=resolved_settings.signed_url_ttl_seconds,
    )
    verification_service = VerificationService(
        repository=SupabaseVerificationRepository(supabase_client),
        profile_repository=profile_repository,
        documents=document_service,
    )
    task_request_service = TaskRequestService(
        bookings=booking_repository,
        taskers=SupabaseTaskerRepository(supabase_client),
        nearby_radius_km=resolved_settings.nearby_radius_km,
    )
    messaging_service = MessagingService(
        messages=SupabaseMessageRepository(supabase_client),
        bookings=booking_repository,
        profiles=profile_repository,
        change_feed=change_feed,
    )

    async def close_resources() -> None:
        await session_store.teardown()
        await change_feed.close()

    return AppContainer(
        settings=resolved_settings,
        session_store=session_store,
        profile_loader=profile_loader,
        confirmation_handler=EmailConfirmationHandler(session_store, profile_loader),
        verification_service=verification_service,
        task_request_service=task_request_service,
        messaging_service=messaging_service,
        wallet_service=WalletService(wallet_repository),
        close_resources=close_resources,
    )
