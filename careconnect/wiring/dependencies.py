import logging

from careconnect.application.ports.checkout import CheckoutLauncherPort, NavigatorPort
from careconnect.application.ports.key_value_storage import KeyValueStoragePort
from careconnect.application.use_cases.book_appointment import BookAppointmentUseCase
from careconnect.application.use_cases.payment_reconciler import PaymentReconciler
from careconnect.core.config import settings
from careconnect.infrastructure.backend.api_client import BackendApiClient
from careconnect.infrastructure.backend.auth_client import AuthClient
from careconnect.infrastructure.backend.auth_session import AuthSession
from careconnect.infrastructure.backend.booking_client import HttpBookingClient
from careconnect.infrastructure.backend.catalog_client import HttpCatalogClient
from careconnect.infrastructure.backend.payment_order_client import HttpPaymentOrderClient
from careconnect.infrastructure.checkout.hosted_checkout import CheckoutLauncher, HostedCheckoutSdk, MockCheckoutLauncher
from careconnect.infrastructure.checkout.navigators import RecordingNavigator
from careconnect.infrastructure.pricing.fee_schedule import FeeSchedulePricing
from careconnect.infrastructure.store.json_store import JsonLocalStorage
from careconnect.infrastructure.store.payment_state_store import LocalPaymentStateStore


_storage: KeyValueStoragePort | None = None
_api_client: BackendApiClient | None = None
_navigator: RecordingNavigator | None = None
_launcher: CheckoutLauncherPort | None = None
_reconciler: PaymentReconciler | None = None
_booking_use_case: BookAppointmentUseCase | None = None


def get_storage() -> KeyValueStoragePort:
    global _storage
    if _storage is None:
        _storage = JsonLocalStorage(path=settings.STORAGE_PATH)
    return _storage


def get_auth_session() -> AuthSession:
    return AuthSession(get_storage())


def get_api_client() -> BackendApiClient:
    global _api_client
    if _api_client is None:
        _api_client = BackendApiClient(
            base_url=settings.BACKEND_BASE_URL,
            session=get_auth_session(),
            timeout=settings.BACKEND_TIMEOUT_SECONDS,
        )
    return _api_client


def get_auth_client() -> AuthClient:
    return AuthClient(get_api_client())


def get_booking_client() -> HttpBookingClient:
    return HttpBookingClient(get_api_client())


def get_navigator() -> RecordingNavigator:
    global _navigator
    if _navigator is None:
        _navigator = RecordingNavigator()
    return _navigator


def build_launcher(navigator: NavigatorPort) -> CheckoutLauncherPort:
    logger = logging.getLogger(__name__)
    if settings.ENV.lower() in {"dev", "local"}:
        logger.info("Using MockCheckoutLauncher (ENV=dev/local)")
        return MockCheckoutLauncher()
    return CheckoutLauncher(HostedCheckoutSdk(navigator=navigator), mode=settings.CHECKOUT_MODE)


def get_launcher() -> CheckoutLauncherPort:
    global _launcher
    if _launcher is None:
        _launcher = build_launcher(get_navigator())
    return _launcher


def build_reconciler(storage: KeyValueStoragePort, api: BackendApiClient, launcher: CheckoutLauncherPort) -> PaymentReconciler:
    return PaymentReconciler(
        store=LocalPaymentStateStore(storage),
        payments=HttpPaymentOrderClient(api),
        launcher=launcher,
        poll_interval=settings.PAYMENT_POLL_INTERVAL_SECONDS,
        max_attempts=settings.PAYMENT_POLL_MAX_ATTEMPTS,
        stale_after_ms=settings.PAYMENT_STATE_STALE_HOURS * 60 * 60 * 1000,
    )


def get_reconciler() -> PaymentReconciler:
    global _reconciler
    if _reconciler is None:
        _reconciler = build_reconciler(get_storage(), get_api_client(), get_launcher())
    return _reconciler


def build_booking_use_case(api: BackendApiClient, reconciler: PaymentReconciler) -> BookAppointmentUseCase:
    return BookAppointmentUseCase(
        bookings=HttpBookingClient(api),
        payments=HttpPaymentOrderClient(api),
        catalog=HttpCatalogClient(api),
        pricing=FeeSchedulePricing(),
        reconciler=reconciler,
        is_authenticated=lambda: api.session.is_authenticated,
    )


def get_booking_use_case() -> BookAppointmentUseCase:
    global _booking_use_case
    if _booking_use_case is None:
        _booking_use_case = build_booking_use_case(get_api_client(), get_reconciler())
    return _booking_use_case


async def shutdown() -> None:
    global _api_client, _reconciler, _booking_use_case
    if _reconciler is not None:
        _reconciler.stop()
    if _api_client is not None:
        await _api_client.aclose()
    _api_client = None
    _reconciler = None
    _booking_use_case = None
