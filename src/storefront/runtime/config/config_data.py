"""Typed sections of config.yaml.

Each top-level key under ``config:`` maps to one model below; values arrive
as strings after environment substitution and are coerced here.
"""

from __future__ import annotations

import os
from typing import Literal

from loguru import logger
from pydantic import BaseModel, Field, computed_field


class CORSConfig(BaseModel):
    """CORS configuration for the application."""

    origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:8000"]
    )
    allow_credentials: bool = False
    allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "DELETE", "OPTIONS"]
    )
    allow_headers: list[str] = Field(default=["*"])


class RedisConfig(BaseModel):
    """Redis configuration model."""

    enabled: bool = Field(default=True, description="Enable Redis service")
    url: str = Field(default="", description="Redis connection URL")
    password: str | None = Field(
        default=None, description="Password for Redis authentication"
    )
    decode_responses: bool = Field(
        default=True, description="Decode Redis responses to strings"
    )
    max_connections: int = Field(
        default=50, description="Maximum connections in the Redis pool"
    )
    socket_timeout: float = Field(
        default=2.0, description="Socket timeout in seconds"
    )
    socket_connect_timeout: float = Field(
        default=2.0, description="Socket connect timeout in seconds"
    )

    @computed_field
    @property
    def connection_string(self) -> str:
        """Construct the Redis connection string with password if provided."""
        if self.password:
            if "@" in self.url:
                # URL already has auth info
                return self.url
            parts = self.url.split("://", 1)
            if len(parts) == 2:
                scheme, rest = parts
                return f"{scheme}://:{self.password}@{rest}"
        return self.url

    @property
    def sanitized_connection_string(self) -> str:
        """Connection string safe for logs (password masked)."""
        conn = self.connection_string
        if "@" not in conn or "://" not in conn:
            return conn
        scheme, rest = conn.split("://", 1)
        _, host = rest.rsplit("@", 1)
        return f"{scheme}://***@{host}"


class CacheConfig(BaseModel):
    """Listing and detail response cache configuration."""

    enabled: bool = Field(default=True, description="Enable response caching")
    backend: Literal["auto", "redis", "memory"] = Field(
        default="auto", description="Cache backend; auto prefers Redis"
    )
    listing_ttl: int = Field(
        default=300, ge=1, description="TTL of cached listings in seconds"
    )
    detail_ttl: int = Field(
        default=600, ge=1, description="TTL of cached product details in seconds"
    )
    max_entries: int = Field(
        default=1024, ge=1, description="Maximum entries of the in-memory cache"
    )
    key_prefix: str = Field(
        default="storefront", description="Prefix for every cache key"
    )


class PaginationConfig(BaseModel):
    """Pagination defaults for listing pages."""

    per_page: int = Field(default=24, ge=1, description="Default page size")
    max_per_page: int = Field(default=100, ge=1, description="Largest page size")
    orphans: int = Field(
        default=0, ge=0, description="Trailing items merged into the last page"
    )
    on_each_side: int = Field(
        default=3, ge=0, description="Page links shown around the current page"
    )
    on_ends: int = Field(
        default=2, ge=0, description="Page links shown at each end"
    )


class StaticConfig(BaseModel):
    """Static asset pipeline configuration."""

    source_dir: str = Field(
        default="src/storefront/static", description="Unprocessed asset sources"
    )
    output_dir: str = Field(
        default="build/static", description="Collected (minified) assets"
    )
    url_prefix: str = Field(default="/static/", description="Local static URL")
    media_dir: str = Field(default="media", description="Uploaded product media")
    media_url_prefix: str = Field(default="/media/", description="Local media URL")
    minify: bool = Field(default=True, description="Minify CSS and JS on collect")
    precompress: bool = Field(
        default=True, description="Write .gz siblings for text assets"
    )
    manifest_name: str = Field(default="manifest.json")
    immutable_max_age: int = Field(
        default=31536000, description="max-age for fingerprinted assets"
    )


class CDNConfig(BaseModel):
    """Content delivery network configuration."""

    enabled: bool = Field(default=False, description="Serve assets from the CDN")
    static_base_url: str = Field(
        default="", description="CDN base URL for static assets"
    )
    media_base_url: str = Field(
        default="", description="CDN base URL for product media"
    )
    image_width_param: str = Field(
        default="w", description="Query parameter the CDN uses for resizing"
    )
    thumbnail_width: int = Field(default=400, ge=1)


class ImagesConfig(BaseModel):
    """Image loading behaviour on listing pages."""

    eager_count: int = Field(
        default=4, ge=0, description="Images above the fold loaded eagerly"
    )
    placeholder: str = Field(
        default="img/placeholder.svg", description="Logical placeholder asset"
    )
    width: int = Field(default=400, ge=1)
    height: int = Field(default=400, ge=1)


class ServerConfig(BaseModel):
    """Uvicorn process configuration."""

    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=8000, description="Bind port")
    workers: int = Field(
        default=0, ge=0, description="Worker processes; 0 computes from CPUs"
    )
    max_workers: int = Field(default=16, ge=1, description="Upper bound on workers")
    proxy_headers: bool = Field(default=True)
    forwarded_allow_ips: str = Field(default="127.0.0.1")
    timeout_keep_alive: int = Field(default=5, ge=1)


class LoggingConfig(BaseModel):
    """Logging configuration model."""

    level: str = Field(default="INFO", description="Logging level")
    format: Literal["json", "plain"] = Field(default="json", description="Log format")
    file: str = Field(default="logs/app.log", description="Log file path")
    max_size_mb: int = Field(default=10, description="Maximum log file size in MB")
    backup_count: int = Field(
        default=5, description="Number of backup log files to keep"
    )


class DatabaseConfig(BaseModel):
    """Database configuration model."""

    url: str = Field(
        default="sqlite:///./storefront.db",
        description="Database connection URL",
    )
    pool_size: int = Field(default=20, description="Connection pool size")
    max_overflow: int = Field(default=10, description="Maximum pool overflow")
    pool_timeout: int = Field(default=30, description="Pool timeout in seconds")
    pool_recycle: int = Field(default=1800, description="Pool recycle time in seconds")
    echo: bool = Field(default=False, description="Echo SQL statements")
    query_count_warning: int = Field(
        default=10,
        ge=1,
        description="Log a warning when a request issues more statements",
    )
    environment_mode: str = Field(
        default="development", description="Environment mode: development or production"
    )
    password_env_var: str | None = Field(
        default=None,
        description="Environment variable name containing database password",
    )
    password_file: str | None = Field(
        default=None,
        description="Path to file containing database password",
    )

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    @computed_field
    @property
    def password(self) -> str | None:
        """
        Get the database password from the appropriate source.
        1. Outside production, use the password embedded in the URL (if any)
        2. In production, read from the mounted secrets file specified by
           `password_file` or the environment variable named by `password_env_var`
        """
        from sqlalchemy.engine import make_url

        if self.is_sqlite:
            return None

        if self.environment_mode in ("development", "test"):
            return make_url(self.url).password

        if self.environment_mode == "production":
            if self.password_file:
                try:
                    with open(self.password_file) as f:
                        return f.read().strip()
                except OSError as e:
                    raise ValueError(
                        "Failed to read database password from file."
                    ) from e
            if self.password_env_var:
                password = os.getenv(self.password_env_var)
                if password:
                    return password
                raise ValueError(
                    f"Environment variable {self.password_env_var} not set"
                )
            return make_url(self.url).password

        raise ValueError(
            "Invalid environment_mode; must be 'development', 'production', or 'test'"
        )

    @computed_field
    @property
    def connection_string(self) -> str:
        """Construct the database connection string with password if provided."""
        from sqlalchemy.engine import make_url

        if self.is_sqlite:
            return self.url

        base_url = make_url(self.url)

        if base_url.password:
            if self.environment_mode == "production":
                logger.warning(
                    "Database URL contains a password in production mode; "
                    "consider using a secrets file or environment variable."
                )
            return base_url.render_as_string(hide_password=False)

        resolved_password = self.password
        if resolved_password:
            base_url = base_url.set(password=resolved_password)
        return base_url.render_as_string(hide_password=False)


class AppConfig(BaseModel):
    """Application configuration model."""

    environment: Literal["development", "production", "test"] = Field(
        default="development", description="Application environment"
    )
    debug_headers: bool = Field(
        default=False, description="Expose X-Query-Count on responses"
    )
    gzip_minimum_size: int = Field(
        default=500, ge=0, description="Smallest response body to gzip"
    )
    listing_max_age: int = Field(
        default=60, ge=0, description="Cache-Control max-age for listing pages"
    )
    cors: CORSConfig = Field(
        default_factory=CORSConfig, description="CORS configuration"
    )


class ConfigData(BaseModel):
    """Root configuration model that matches the config.yaml structure."""

    app: AppConfig = Field(
        default_factory=AppConfig, description="Application configuration"
    )
    database: DatabaseConfig = Field(
        default_factory=DatabaseConfig, description="Database configuration"
    )
    redis: RedisConfig = Field(
        default_factory=RedisConfig, description="Redis configuration"
    )
    cache: CacheConfig = Field(
        default_factory=CacheConfig, description="Response cache configuration"
    )
    pagination: PaginationConfig = Field(
        default_factory=PaginationConfig, description="Pagination configuration"
    )
    static: StaticConfig = Field(
        default_factory=StaticConfig, description="Static asset configuration"
    )
    cdn: CDNConfig = Field(default_factory=CDNConfig, description="CDN configuration")
    images: ImagesConfig = Field(
        default_factory=ImagesConfig, description="Image loading configuration"
    )
    server: ServerConfig = Field(
        default_factory=ServerConfig, description="Server process configuration"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
