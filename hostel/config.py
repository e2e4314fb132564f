from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    store_backend: str = "postgrest"
    postgrest_url: str = ""
    postgrest_service_key: str = ""
    greenpay_base_url: str = "https://sandbox-merchant.greenpay.me"
    greenpay_merchant_id: str = ""
    greenpay_terminal_id: str = ""
    greenpay_secret: str = ""
    resend_api_key: str = ""
    email_from: str = "Mai Ke Kai <noreply@maikekaihouse.com>"
    staff_email: str = ""
    site_url: str = "https://maikekaihouse.com"
    cron_secret: str = ""
    pending_payment_ttl_hours: int = 24
    max_draft_sessions: int = 1000
    log_level: str = "INFO"
