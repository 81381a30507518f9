from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class CeleryConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="CELERY_")

    broker_url: str = "redis://localhost:6379/0"


class DispatchConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="DISPATCH_")

    log_level: str = "INFO"
    attempt_timeout_seconds: float = 8.0
    max_body_length: int = 1000
    operator_phone: str = "+919740303404"
    default_country_code: str = "91"
    source_tag: str = "AKSHATA_PARLOR_BOOKING"


class ProviderConfig(BaseSettings):
    """Fields shared by every provider's settings."""

    enabled: bool = True
    priority: int = 100

    @property
    def credentials_present(self) -> bool:
        """Whether the provider can be called. Settings subclasses with
        credential fields override this; bare settings have none."""
        return False


def _present(*values: str | SecretStr | None) -> bool:
    for value in values:
        if value is None:
            return False
        raw = value.get_secret_value() if isinstance(value, SecretStr) else value
        if not raw.strip():
            return False
    return True


class TextLocalConfig(ProviderConfig):
    model_config = SettingsConfigDict(env_prefix="TEXTLOCAL_")

    priority: int = 1
    api_key: SecretStr | None = None
    sender_id: str = "AKSHATA"
    base_url: str = "https://api.textlocal.in/send/"
    country_code: str = "91"

    @property
    def credentials_present(self) -> bool:
        return _present(self.api_key)


class TwilioConfig(ProviderConfig):
    model_config = SettingsConfigDict(env_prefix="TWILIO_")

    priority: int = 2
    account_sid: str | None = None
    auth_token: SecretStr | None = None
    from_phone: str | None = None
    base_url: str = "https://api.twilio.com"

    @property
    def credentials_present(self) -> bool:
        return _present(self.account_sid, self.auth_token, self.from_phone)


class AwsSnsConfig(ProviderConfig):
    model_config = SettingsConfigDict(env_prefix="AWS_SNS_")

    priority: int = 3
    endpoint: str | None = None
    api_key: SecretStr | None = None
    sender_id: str = "AKSHATA"

    @property
    def credentials_present(self) -> bool:
        return _present(self.endpoint, self.api_key)


class WebhookConfig(ProviderConfig):
    model_config = SettingsConfigDict(env_prefix="SMS_WEBHOOK_")

    priority: int = 4
    url: str | None = None

    @property
    def credentials_present(self) -> bool:
        return _present(self.url)
