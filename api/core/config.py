"""Application configuration using pydantic-settings."""

from functools import cached_property, lru_cache
from pathlib import Path
from typing import Self

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_API_DIR = Path(__file__).resolve().parent.parent

DEFAULT_FONT_CSS_URL = (
    "https://fonts.googleapis.com/css2?family=Alex+Brush"
    "&family=Montserrat:wght@400;600;700&display=swap"
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    environment: str = "production"

    # Comma-separated list of allowed CORS origins (in addition to localhost defaults)
    # Example: "https://app.example.com,https://staging.example.com"
    cors_allowed_origins: str = ""

    # Origin of the marketing UI. Preview image loads are judged
    # same-origin/cross-origin against this value.
    frontend_url: str = "http://localhost:5173"

    # Timeout for fetching a remote template on the PDF/JPEG path
    http_timeout: float = 10.0
    # Fixed per-strategy timeout for preview image loads
    image_fetch_timeout: float = 8.0

    # Same-origin image proxy, called as GET {template_proxy_url}?url=<template>
    template_proxy_url: str = ""

    # Bundled background used when no template is given or it can't be loaded.
    # Relative paths resolve against the api/ directory.
    default_template_path: str = "assets/certificate.jpg"

    # Optional JSON layout descriptor; the built-in layout is used when empty
    layout_path: str = ""

    # @import'ed by the HTML template. Empty disables web fonts entirely.
    font_css_url: str = DEFAULT_FONT_CSS_URL

    device_scale_factor: float = Field(default=2.0, gt=0, le=4)
    jpeg_quality: int = Field(default=90, ge=1, le=100)

    # Comma-separated Chromium launch flags
    browser_args: str = "--no-sandbox,--disable-setuid-sandbox"

    # Use "redis://host:port" in production for distributed rate limiting
    # memory:// only works for single-instance deployments
    ratelimit_storage_uri: str = "memory://"

    debug: bool = False
    enable_docs: bool = False

    @model_validator(mode="after")
    def validate_config(self) -> Self:
        if self.template_proxy_url and not self.template_proxy_url.startswith(
            ("http://", "https://")
        ):
            raise ValueError(
                "TEMPLATE_PROXY_URL must be an http(s) URL. "
                "Leave it empty to skip the proxy strategy."
            )
        if self.frontend_url and not self.frontend_url.startswith(
            ("http://", "https://")
        ):
            raise ValueError("FRONTEND_URL must be an http(s) URL.")
        return self

    @cached_property
    def default_template_file(self) -> Path:
        path = Path(self.default_template_path)
        if not path.is_absolute():
            path = _API_DIR / path
        return path

    @cached_property
    def layout_file(self) -> Path | None:
        if not self.layout_path:
            return None
        path = Path(self.layout_path)
        if not path.is_absolute():
            path = _API_DIR / path
        return path

    @cached_property
    def browser_launch_args(self) -> list[str]:
        return [arg.strip() for arg in self.browser_args.split(",") if arg.strip()]

    @cached_property
    def allowed_origins(self) -> list[str]:
        """Combines localhost (dev only), frontend_url, and cors_allowed_origins."""
        origins: list[str] = []

        # Only include localhost origins in debug mode
        if self.debug:
            origins.extend(
                [
                    "http://localhost:3000",
                    "http://localhost:5173",
                ]
            )

        # Add frontend_url if not already present
        if self.frontend_url and self.frontend_url not in origins:
            origins.append(self.frontend_url)

        # Add any additional origins from cors_allowed_origins (comma-separated)
        if self.cors_allowed_origins:
            for origin in self.cors_allowed_origins.split(","):
                origin = origin.strip()
                if origin and origin not in origins:
                    origins.append(origin)

        return origins


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache.

    Call this in tests to reset settings between test cases.
    After clearing, the next get_settings() call will create
    a fresh Settings instance with current environment variables.

    Example:
        def test_something(monkeypatch):
            monkeypatch.setenv("JPEG_QUALITY", "70")
            clear_settings_cache()
            settings = get_settings()  # Fresh instance
    """
    get_settings.cache_clear()
