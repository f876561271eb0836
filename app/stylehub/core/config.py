from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env")

    APP_NAME: str = "StyleHub POS"
    SECRET_KEY: str = "change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    DATABASE_URL: str = "sqlite+pysqlite:///./stylehub.db"
    ADMIN_EMAIL: str = "admin@sistema.com"
    ADMIN_PASSWORD: str = "change-me"
    ADMIN_NAME: str = "Administrador"
    DEFAULT_CUSTOMER_NAME: str = "Consumidor Final"
    MAX_INSTALLMENTS: int = 12
    INSTALLMENT_ROUNDING_POLICY: str = "equal_split"
    PRODUCTS_MAX_PAGE_SIZE: int = 200
    LOG_LEVEL: str = "INFO"
    SLOW_REQUEST_MS: float = 1000.0
    METRICS_ENABLED: bool = True


settings = Settings()
