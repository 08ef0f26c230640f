from typing import Annotated, Any, List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DEFAULT_ORIGINS = ["http://localhost:3000", "http://127.0.0.1:5500"]
RATE_LIMIT_BACKENDS = {"memory", "redis"}


class Settings(BaseSettings):
    PROJECT_NAME: str = "Storefront"
    VERSION: str = "1.0.0"
    API_PREFIX: str = "/api"

    # --- Environment & Debug ---
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"

    # --- Server ---
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # --- Data files ---
    PRODUCTS_FILE: str = "data/products.json"
    SUBMISSIONS_FILE: str = "data/contact-submissions.json"
    DEFAULT_PRODUCT_IMAGE: str = "Images/product-placeholder.png"
    SERIALIZE_WRITES: bool = Field(
        default=True,
        description="Hold a per-file lock across each read-modify-write cycle.",
    )

    # --- Request limits ---
    MAX_BODY_BYTES: int = Field(default=10 * 1024, ge=1)

    # --- Static frontend ---
    FRONTEND_DIR: str = "public"

    # --- CORS ---
    ALLOWED_ORIGINS: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_ORIGINS),
        description="Allowed CORS origins, comma-separated or a JSON list.",
    )
    ALLOWED_METHODS: List[str] = Field(
        default_factory=lambda: ["GET", "POST", "PUT", "DELETE", "PATCH"],
    )
    ALLOWED_HEADERS: List[str] = Field(
        default_factory=lambda: ["Content-Type", "Authorization"],
    )

    # --- Rate Limiting / Proxy ---
    RATE_LIMIT_BACKEND: str = "memory"
    RATE_LIMIT_MAX: int = Field(default=100, ge=1)
    RATE_LIMIT_WINDOW_SECONDS: int = Field(default=15 * 60, ge=1)
    REDIS_URL: str = "redis://localhost:6379/0"
    TRUSTED_PROXIES: List[str] = Field(
        default_factory=lambda: ["127.0.0.1", "10.0.0.0/8", "172.16.0.0/12", "192.168.0.0/16"],
        description="CIDR ranges of trusted reverse proxies for X-Forwarded-For",
    )

    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=True, extra="ignore"
    )

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def parse_allowed_origins(cls, v: Any) -> List[str]:
        if v is None:
            return list(DEFAULT_ORIGINS)
        if isinstance(v, str):
            raw = v.strip()
            if raw in ("", "[]"):
                return list(DEFAULT_ORIGINS)
            if raw.startswith("["):
                raw = raw.strip("[]").replace('"', "").replace("'", "")
            return [origin.strip() for origin in raw.split(",") if origin.strip()]
        return list(v)

    @field_validator("RATE_LIMIT_BACKEND", mode="after")
    @classmethod
    def validate_rate_limit_backend(cls, v: str) -> str:
        backend = v.strip().lower()
        if backend not in RATE_LIMIT_BACKENDS:
            raise ValueError(
                f"RATE_LIMIT_BACKEND must be one of {sorted(RATE_LIMIT_BACKENDS)}, got '{v}'"
            )
        return backend

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() == "development"

    @property
    def expose_errors(self) -> bool:
        """Error responses carry internals in development or with DEBUG on."""
        return self.DEBUG or self.is_development


settings = Settings()
