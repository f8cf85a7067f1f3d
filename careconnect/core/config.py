from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    BACKEND_BASE_URL: str = "http://localhost:8000/api"
    BACKEND_TIMEOUT_SECONDS: float = 30.0

    STORAGE_PATH: str = "./data/local_storage.json"

    PAYMENT_POLL_INTERVAL_SECONDS: float = 10.0
    PAYMENT_POLL_MAX_ATTEMPTS: int = 30
    PAYMENT_STATE_STALE_HOURS: int = 24

    CURRENCY: str = "INR"
    APPOINTMENT_FEE: int = 500
    OPERATION_FEE: int = 500
    # hospital_id -> consultation fee override
    HOSPITAL_FEES: dict[int, int] = {}

    CHECKOUT_MODE: str = "sandbox"
    CHECKOUT_SDK_URL: str = "https://sdk.cashfree.com/js/v3/cashfree.js"
    CHECKOUT_PAGE_URL: str = "https://payments.example.com/checkout?payment_session_id={session_id}&mode={mode}"
    CHECKOUT_TIMEOUT_SECONDS: float = 10.0

    APPOINTMENTS_VIEW_PATH: str = "/my-appointments"


settings = Settings()
