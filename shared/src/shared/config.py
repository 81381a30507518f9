from pydantic_settings import BaseSettings, SettingsConfigDict


class FailureLogDBConfig(BaseSettings):
    """Where the durable failure log lives.

    SQLite by default so a single booking host keeps its manual-follow-up
    queue on local disk; a PostgreSQL DSN works too.
    """

    model_config = SettingsConfigDict(env_prefix="FAILURE_LOG_DB_")

    dsn: str = "sqlite:///failure_log.db"
    echo: bool = False

    @property
    def is_sqlite(self) -> bool:
        return self.dsn.startswith("sqlite")
