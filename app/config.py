from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file='.env', extra='ignore')

    app_name: str = 'Fresher Orientation Portal'
    app_env: str = 'local'
    app_timezone: str = 'Asia/Kolkata'
    database_url: str = 'sqlite:///./orientation.db'
    cors_origins: list[str] = ['http://localhost:3000', 'http://localhost:5173']
    auth_secret: str = 'change-me'
    auth_token_expiry_hours: int = 24 * 7
    bootstrap_admin_email: str = ''
    bootstrap_admin_password: str = ''
    bootstrap_admin_name: str = 'Administrator'
    upload_dir: str = 'uploads'
    upload_url_prefix: str = '/uploads'
    upload_allowed_mime_types: list[str] = [
        'image/jpeg',
        'image/png',
        'image/gif',
        'application/pdf',
        'application/msword',
        'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
        'text/plain',
    ]
    max_file_size_mib: int = 100
    day_active_start_hour: int = 9
    db_slow_query_ms: int = 100
    metrics_slow_ms: int = 200


settings = Settings()
