"""
Configuration module for the application.
Values are read from environment variables (a .env file is loaded first).
"""
import os
import secrets
import warnings


DEFAULT_AUTH_COOKIES = "sb-access-token,sb-refresh-token,supabase-auth-token,supabase-auth-token.0"


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name, "")
    if not value:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: str) -> list[str]:
    raw = os.getenv(name, "") or default
    return [item.strip() for item in raw.split(",") if item.strip()]


class Config:
    """Application configuration loaded from environment variables."""

    def __init__(self):
        # Flask Configuration
        self.SECRET_KEY: str = os.getenv("SECRET_KEY", "")
        self.FLASK_ENV: str = os.getenv("FLASK_ENV", "")
        self.FLASK_DEBUG: bool = _env_bool("FLASK_DEBUG")

        if not self.SECRET_KEY and self.FLASK_ENV != "production":
            self.SECRET_KEY = secrets.token_urlsafe(32)
            warnings.warn(
                "SECRET_KEY not set. Generated a temporary key for development. "
                "Set SECRET_KEY in your .env file for production!",
                UserWarning
            )

        # Database Configuration
        self.DATABASE_URL: str = os.getenv("DATABASE_URL", "")
        self.DB_USER: str = os.getenv("DB_USER", "")
        self.DB_PASSWORD: str = os.getenv("DB_PASSWORD", "")
        self.DB_HOST: str = os.getenv("DB_HOST", "localhost")
        self.DB_PORT: str = os.getenv("DB_PORT", "5432")
        self.DB_NAME: str = os.getenv("DB_NAME", "academy")
        self.SQLALCHEMY_TRACK_MODIFICATIONS: bool = False
        self.SQLALCHEMY_ECHO: bool = _env_bool("SQLALCHEMY_ECHO")

        # Session Configuration
        # The session cookie doubles as the auth cookie checked by the request gate.
        self.SESSION_COOKIE_NAME: str = os.getenv("SESSION_COOKIE_NAME", "sb-access-token")
        self.SESSION_COOKIE_SECURE: bool = _env_bool("SESSION_COOKIE_SECURE")
        self.SESSION_COOKIE_HTTPONLY: bool = _env_bool("SESSION_COOKIE_HTTPONLY", True)
        self.SESSION_COOKIE_SAMESITE: str = os.getenv("SESSION_COOKIE_SAMESITE", "Lax")
        self.AUTH_COOKIE_NAMES: list[str] = _env_list("AUTH_COOKIE_NAMES", DEFAULT_AUTH_COOKIES)

        # Object storage (local bucket directories served under STORAGE_PUBLIC_BASE_URL)
        self.UPLOAD_DIR: str = os.getenv("UPLOAD_DIR", os.path.abspath("uploads"))
        self.STORAGE_PUBLIC_BASE_URL: str = os.getenv("STORAGE_PUBLIC_BASE_URL", "/uploads")
        self.MAX_FILE_SIZE: int = int(os.getenv("MAX_FILE_SIZE", "10485760"))  # 10MB
        self.ALLOWED_EXTENSIONS: set = set(
            ext.lower() for ext in _env_list("ALLOWED_EXTENSIONS", "jpg,jpeg,png,gif,webp,svg,pdf")
        )

        # Accounts and quizzes
        self.MIN_PASSWORD_LENGTH: int = int(os.getenv("MIN_PASSWORD_LENGTH", "8"))
        self.DEFAULT_PASSING_SCORE: int = int(os.getenv("DEFAULT_PASSING_SCORE", "60"))
        self.CERTIFICATE_PDF_ENABLED: bool = _env_bool("CERTIFICATE_PDF_ENABLED", True)

        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    @property
    def SQLALCHEMY_DATABASE_URI(self) -> str:
        """Database URI: DATABASE_URL wins, otherwise built from the DB_* variables."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+psycopg2://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )

    def validate(self) -> None:
        """
        Validate required configuration values.
        Only enforces SECRET_KEY in production environment.
        """
        if not self.SECRET_KEY and self.FLASK_ENV == "production":
            raise ValueError(
                "SECRET_KEY environment variable is required in production. "
                "Set it in your .env file or environment variables."
            )
        if not 0 <= self.DEFAULT_PASSING_SCORE <= 100:
            raise ValueError("DEFAULT_PASSING_SCORE must be between 0 and 100")

    def to_flask(self) -> dict:
        """Flask config mapping for this configuration."""
        return {
            "SECRET_KEY": self.SECRET_KEY,
            "SQLALCHEMY_DATABASE_URI": self.SQLALCHEMY_DATABASE_URI,
            "SQLALCHEMY_TRACK_MODIFICATIONS": self.SQLALCHEMY_TRACK_MODIFICATIONS,
            "SQLALCHEMY_ECHO": self.SQLALCHEMY_ECHO,
            "SESSION_COOKIE_NAME": self.SESSION_COOKIE_NAME,
            "SESSION_COOKIE_SECURE": self.SESSION_COOKIE_SECURE,
            "SESSION_COOKIE_HTTPONLY": self.SESSION_COOKIE_HTTPONLY,
            "SESSION_COOKIE_SAMESITE": self.SESSION_COOKIE_SAMESITE,
            "AUTH_COOKIE_NAMES": self.AUTH_COOKIE_NAMES,
            "UPLOAD_DIR": self.UPLOAD_DIR,
            "STORAGE_PUBLIC_BASE_URL": self.STORAGE_PUBLIC_BASE_URL,
            "MAX_FILE_SIZE": self.MAX_FILE_SIZE,
            "ALLOWED_EXTENSIONS": self.ALLOWED_EXTENSIONS,
            "MIN_PASSWORD_LENGTH": self.MIN_PASSWORD_LENGTH,
            "DEFAULT_PASSING_SCORE": self.DEFAULT_PASSING_SCORE,
            "CERTIFICATE_PDF_ENABLED": self.CERTIFICATE_PDF_ENABLED,
            "LOG_LEVEL": self.LOG_LEVEL,
        }
