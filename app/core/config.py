from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve .env from the project root so it loads regardless of cwd
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"
PUBLIC_DIR = _PROJECT_ROOT / "public"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=(str(_ENV_FILE), ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database. Leave empty to run on in-memory storage only.
    database_url: str = "postgresql://localhost:5432/consultations"
    database_probe_timeout_seconds: float = 5.0

    # Session cookie
    session_secret: str = "consult-dev-secret"
    session_cookie_name: str = "consult.sid"
    session_lifetime_hours: int = 8
    session_algorithm: str = "HS256"
    cookie_secure: bool = False
    cookie_samesite: str = "lax"

    # Single admin identity
    admin_user: str = "admin"
    admin_pass: str = "admin123"

    # CORS
    cors_origins: str = "http://localhost:3000"

    # Server
    env: str = "development"
    port: int = 3000

    # Email (Gmail SMTP over implicit TLS by default)
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 465
    smtp_use_ssl: bool = True
    smtp_timeout_seconds: float = 20.0
    email_user: str = ""
    email_pass: str = ""
    from_name: str = "GEICS Consultancy"
    reply_to: str = ""

    # Branding and contact details used in emails
    site_name: str = "GEICS Consultancy"
    site_tagline: str = "Global Education & Immigration Consultancy Services"
    office_name: str = "GEICS Consultancy Office"
    office_address: str = "123 Business District, Your City, Your Country"
    contact_email: str = "info@geics.com"
    contact_phone: str = "+1 (555) 123-4567"

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def email_enabled(self) -> bool:
        return bool(self.smtp_host and self.email_user and self.email_pass)

    @property
    def reply_to_address(self) -> str:
        return self.reply_to or self.email_user

    @property
    def session_lifetime_seconds(self) -> int:
        return self.session_lifetime_hours * 60 * 60


settings = Settings()
