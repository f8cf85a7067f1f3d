class BackendError(RuntimeError):
    """Raised when the backend answers with a non-success status."""

    def __init__(self, detail: str, status_code: int | None = None) -> None:
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code


class AuthenticationRequired(BackendError):
    """Raised on 401: the stored token is gone and the user must log in again."""
    pass


class ValidationRejected(BackendError):
    """Raised when the backend rejects a booking payload (e.g. slot already booked)."""
    pass


class BackendUnavailable(BackendError):
    """Raised on network failures and 5xx answers."""
    pass


class TransientQueryError(BackendError):
    """Raised when a payment status query fails in a way the next poll may not."""
    pass


class OrderCreationFailed(RuntimeError):
    """Raised when a payment order comes back without a checkout session token."""
    pass


class LauncherUnavailable(RuntimeError):
    """Raised when the hosted checkout SDK cannot be loaded or opened."""
    pass


class PaymentInProgress(RuntimeError):
    """Raised when a new payment is started while another one is unresolved."""
    pass
