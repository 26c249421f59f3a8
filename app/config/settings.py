from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List, Dict


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: Optional[str] = None  # Required for admin auth operations and realtime workers

    # Email (Resend)
    resend_api_key: Optional[str] = None
    email_from_address: str = "appointments@managethefans.com"

    # SMS (Twilio)
    twilio_account_sid: Optional[str] = None
    twilio_auth_token: Optional[str] = None
    twilio_phone_number: Optional[str] = None

    # Stripe
    stripe_secret_key: Optional[str] = None
    stripe_price_basic: Optional[str] = None
    stripe_price_pro: Optional[str] = None
    stripe_price_premium: Optional[str] = None

    # Appointments
    appointment_reopen_policy: str = "forbid"  # forbid | allow

    # Realtime reconnect policy (seconds)
    realtime_initial_delay: float = 1.0
    realtime_max_delay: float = 60.0
    realtime_backoff_multiplier: float = 2.0
    realtime_jitter: float = 0.1

    # App
    app_name: str = "managethefans-backend"
    app_url: str = "http://localhost:5000"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://localhost:5000,http://localhost:5173,http://127.0.0.1:5173"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"
    auth_rate_limit: str = "10/minute"  # login and registration, per client address

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def allow_reopen(self) -> bool:
        return self.appointment_reopen_policy.lower() == "allow"

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    def get_price_plan_map(self) -> Dict[str, str]:
        """Map configured Stripe price ids to plan names."""
        plans = {
            self.stripe_price_basic: "basic",
            self.stripe_price_pro: "pro",
            self.stripe_price_premium: "premium",
        }
        return {price: plan for price, plan in plans.items() if price}

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore"
    )


settings = Settings()
