from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    env: str = Field(default="production")
    debug: bool = Field(default=False)
    log_level: str = Field(default="ERROR")

    api_host: str = Field(default="0.0.0.0")
    api_http_port: int = Field(default=8040)
    api_workers: int = Field(default=2)

    db_host: str = Field(default="localhost")
    db_port: int = Field(default=5432)
    db_name: str = Field(default="ninebooks_db")
    db_user: str = Field(default="postgres")
    db_password: str = Field(default="postgres")
    db_pool_size: int = Field(default=5)
    db_max_overflow: int = Field(default=10)
    db_run_migrations: bool = Field(default=True)

    redis_host: str = Field(default="localhost")
    redis_port: int = Field(default=6379)
    redis_db: int = Field(default=0)
    redis_password: str = Field(default="")
    redis_max_connections: int = Field(default=10)

    book_cache_backend: str = Field(default="memory", pattern="^(memory|redis)$")
    book_cache_ttl_seconds: int = Field(default=24 * 60 * 60)
    book_cache_key_prefix: str = Field(default="book_search:")

    rakuten_api_url: str = Field(
        default="https://openapi.rakuten.co.jp/services/api/BooksBook/Search/20170404"
    )
    rakuten_app_id: str = Field(default="")
    rakuten_access_key: str = Field(default="")

    google_books_api_url: str = Field(default="https://www.googleapis.com/books/v1")
    google_books_api_key: str = Field(default="")

    site_url: str = Field(default="https://ninebooks.example")
    provider_user_agent: str = Field(default="ninebooks/1.0")
    provider_max_results: int = Field(default=20)
    provider_request_timeout: float = Field(default=10.0)
    search_provider_max_attempts: int = Field(default=1)
    search_provider_retry_delay: float = Field(default=1.0)

    shelf_max_books: int = Field(default=9)
    feed_page_size: int = Field(default=20)
    shelf_search_limit: int = Field(default=30)

    jwt_secret_key: str = Field(default="change-me-in-production")
    jwt_algorithm: str = Field(default="HS256")
    jwt_public_key: str = Field(default="")
    jwt_issuer: str = Field(default="")
    jwt_leeway_seconds: int = Field(default=5)
    webhook_secret: str = Field(default="")

    cors_origins: str = Field(default="*")
    cors_allow_credentials: bool = Field(default=True)
    cors_allow_methods: str = Field(default="*")
    cors_allow_headers: str = Field(default="*")

    rate_limit_enabled: bool = Field(default=False)
    rate_limit_per_minute: int = Field(default=60)
    rate_limit_search_per_minute: int = Field(default=30)

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    @property
    def database_url(self) -> str:
        return f"postgresql+asyncpg://{self.db_user}:{self.db_password}@{self.db_host}:{self.db_port}/{self.db_name}"

    @property
    def redis_url(self) -> str:
        if self.redis_password:
            return f"redis://:{self.redis_password}@{self.redis_host}:{self.redis_port}/{self.redis_db}"
        return f"redis://{self.redis_host}:{self.redis_port}/{self.redis_db}"

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",")]


class FeedClientSettings(BaseSettings):
    """Settings for the swipe feed controller running on the client side."""

    feed_api_base_url: str = Field(default="http://localhost:8040/api/v1")
    feed_request_timeout: float = Field(default=10.0)
    feed_fetch_timeout: float = Field(default=15.0)
    feed_prefetch_threshold: int = Field(default=5)
    feed_transition_duration: float = Field(default=0.35)

    guest_swipe_limit: int = Field(default=10)

    wheel_window: float = Field(default=0.8)
    wheel_min_delta: float = Field(default=30.0)
    swipe_threshold: float = Field(default=50.0)

    hydration_stagger: float = Field(default=0.15)
    hydration_neighbours: int = Field(default=1)

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")


settings = Settings()
