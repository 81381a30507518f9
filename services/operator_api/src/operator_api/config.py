from pydantic_settings import BaseSettings, SettingsConfigDict


class OperatorApiConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="OPERATOR_API_")

    host: str = "127.0.0.1"
    port: int = 8000
    log_level: str = "INFO"
