"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Identity provider (OAuth2 authorization-code exchange)
    identity_base_url: str = "http://localhost:8080"
    identity_token_path: str = "/realms/finance-app/protocol/openid-connect/token"
    identity_issuer: str = "http://localhost:8080/realms/finance-app"
    oauth_client_id: str = "finance-client"
    oauth_client_secret: str = "finance-secret"
    oauth_redirect_uri: str = "http://localhost:8081/token"

    # Transaction service
    transaction_api_base: str = "http://localhost:8082"
    transactions_path: str = "/api/transactions"
    transaction_page_size: int = 20

    # Outbound channel
    redis_url: str = "redis://localhost:6379/0"
    transactions_channel: str = "user-transactions"
    stream_max_length: int = 10_000

    # Subject derivation from account ids, e.g. "ACC-42-X" -> "42"
    account_id_marker: str = "ACC-"
    account_id_separator: str = "-"

    # Service
    service_name: str = "token-service"
    log_level: str = "INFO"

    # Timeouts
    http_timeout_seconds: float = 5.0
    publish_timeout_seconds: float = 5.0


settings = Settings()
