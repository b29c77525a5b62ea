"""Web application settings for the stationery pickup store."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

from common.config import AppConfig, load_env
from common.services.logging import log_event


@dataclass
class StoreConfig:
    """Settings for the Flask app on top of the shared ``AppConfig``."""

    secret_key: str
    admin_email: str
    admin_password: str
    jwt_secret: str
    razorpay_key_id: str
    razorpay_key_secret: str
    app_root: Path
    app: AppConfig = field(repr=False, default=None)  # type: ignore[assignment]

    @property
    def data_dir(self) -> Path:
        return self.app_root / "data"

    @property
    def admin_credentials_file(self) -> Path:
        return self.data_dir / "admin.json"

    @property
    def payments_enabled(self) -> bool:
        return bool(self.razorpay_key_id and self.razorpay_key_secret)

    @classmethod
    def load(cls, overrides: Optional[Dict[str, str]] = None) -> "StoreConfig":
        """Build settings from the environment and make sure ``data/`` exists."""

        app_root = Path(__file__).resolve().parent
        app_config = load_env(overrides)
        env = dict(os.environ)
        env.update(overrides or {})

        config = cls(
            secret_key=env.get("STORE_SECRET_KEY", "stationery-store-dev"),
            admin_email=env.get("STORE_ADMIN_EMAIL", "admin@example.com"),
            admin_password=env.get("STORE_ADMIN_PASSWORD", "admin123"),
            jwt_secret=env.get("STORE_JWT_SECRET", "stationery-store-jwt"),
            razorpay_key_id=env.get("RAZORPAY_KEY_ID", ""),
            razorpay_key_secret=env.get("RAZORPAY_KEY_SECRET", ""),
            app_root=app_root,
            app=app_config,
        )
        config.data_dir.mkdir(parents=True, exist_ok=True)

        # data/admin.json takes precedence over the environment
        if config.admin_credentials_file.exists():
            try:
                admin_data = json.loads(config.admin_credentials_file.read_text(encoding="utf-8"))
                if isinstance(admin_data, dict):
                    config.admin_email = admin_data.get("email", config.admin_email)
                    config.admin_password = admin_data.get("password", config.admin_password)
                    log_event("info", "config.admin_credentials_loaded", path=str(config.admin_credentials_file))
            except (OSError, ValueError) as exc:
                log_event("warning", "config.admin_credentials_unreadable", error=str(exc))

        return config
