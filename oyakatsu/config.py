"""Oyakatsu API Configuration."""

import secrets
from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Server
    app_name: str = "Oyakatsu API"
    version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"

    # Paths
    data_dir: Path = Path.home() / "oyakatsu" / "data"

    # Database
    db_path: Path = Path.home() / "oyakatsu" / "data" / "oyakatsu.db"
    db_busy_timeout_seconds: int = 30

    # JWT
    jwt_secret: str = ""
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 15
    refresh_token_expire_days: int = 30

    # Verification codes
    verification_code_expire_minutes: int = 10
    verification_retry_after_seconds: int = 60

    # Passwords
    password_hash_rounds: int = 12

    # Families
    family_max_members: int = 10
    invite_code_attempts: int = 2  # first try + one retry on unique conflict
    invite_url_base: str = "https://oyakatsu.app/join/"

    model_config = {"env_prefix": "OYAKATSU_"}

    @property
    def database_url(self) -> str:
        return f"sqlite:///{self.db_path}"

    @property
    def access_token_expire_seconds(self) -> int:
        return self.access_token_expire_minutes * 60

    def ensure_dirs(self) -> None:
        """Create all required directories."""
        for d in [self.data_dir, self.db_path.parent]:
            d.mkdir(parents=True, exist_ok=True)

    def ensure_secrets(self) -> None:
        """Generate the JWT secret if not set, persist it so tokens survive restarts."""
        secrets_file = self.data_dir / ".secrets"
        saved = {}
        if secrets_file.exists():
            for line in secrets_file.read_text().strip().splitlines():
                if "=" in line:
                    k, v = line.split("=", 1)
                    saved[k.strip()] = v.strip()

        if not self.jwt_secret:
            self.jwt_secret = saved.get("jwt_secret", "") or secrets.token_urlsafe(32)
            secrets_file.write_text(f"jwt_secret={self.jwt_secret}\n")


settings = Settings()
settings.ensure_dirs()
settings.ensure_secrets()
