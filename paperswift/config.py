from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file='.env', extra='ignore')

    app_name: str = 'Paper-Swift Console'
    backend_url: str = 'http://127.0.0.1:8000'
    backend_timeout_seconds: float | None = None
    session_file: str = '.paperswift/session.json'
    session_storage_key: str = 'auth-storage'
    # The records backend serves schemes under this misspelled path.
    scheme_resource_path: str = 'scemes'
    form_registry_capacity: int = 256
    metrics_slow_ms: int = 200
    log_level: str = 'INFO'


settings = Settings()
