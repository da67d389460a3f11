from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Configuration loaded from ``DOCMIGRATE_*`` environment variables or a
    ``.env`` file.
    """

    # MongoDB settings
    mongodb: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection URI",
    )
    mongodb_database: str = Field(
        default="app",
        description="Database the migrations run against",
    )
    mongo_server_selection_timeout_ms: int = Field(
        default=5000,
        description="How long to wait for a reachable server",
    )

    # Migration settings
    migrations_collection: str = Field(
        default="migrations",
        description="Collection holding the applied-version ledger",
    )
    migrations_dir: str = Field(
        default="migrations",
        description="Directory with NNN_name.py migration files",
    )
    migrations_lock_enabled: bool = Field(
        default=False,
        description="Hold a MongoDB lease lock while migrating",
    )
    migrations_lock_timeout: int = Field(
        default=300,
        description="Lease lock expiry in seconds",
    )

    # Logging settings
    log_level: str = Field(default="INFO", description="Minimum log level")
    json_logs: bool = Field(default=False, description="Emit JSON log lines")

    model_config = SettingsConfigDict(
        env_prefix="DOCMIGRATE_",
        env_file=".env",
        extra="ignore",
    )


settings = Settings()
