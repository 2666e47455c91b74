import os


class Settings:
    def __init__(self):
        self.app_name = "Spartan CRM"
        self.api_version = "1.0.0"
        self.environment = os.getenv("ENVIRONMENT", "development")
        self.secret_key = os.getenv("SECRET_KEY", "CHANGE_ME")
        self.SECRET_KEY = self.secret_key
        self.access_token_expire_minutes = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "43200"))
        self.ACCESS_TOKEN_EXPIRE_MINUTES = self.access_token_expire_minutes
        self.database_url = os.getenv("DATABASE_URL", "sqlite:///./spartan.db")
        self.offline_database_url = os.getenv("OFFLINE_DATABASE_URL", "sqlite:///./spartan_offline.db")
        self.twenty_api_url = os.getenv("TWENTY_API_URL", "https://crm.thespartanexteriors.com")
        self.remote_timeout_seconds = float(os.getenv("REMOTE_TIMEOUT_SECONDS", "30"))
        self.sync_interval_seconds = float(os.getenv("SYNC_INTERVAL_SECONDS", "300"))
        self.sync_company_id = os.getenv("SYNC_COMPANY_ID") or None
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        self.cors_origins = [
            origin.strip()
            for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
            if origin.strip()
        ]


_settings_instance = None


def get_settings():
    """Return a singleton Settings instance."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
