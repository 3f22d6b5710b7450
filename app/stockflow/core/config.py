from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env")

    APP_NAME: str = "StockFlow"
    DATABASE_URL: str = "sqlite+pysqlite:///./stockflow.db"
    DEFAULT_TENANT_NAME: str = "StockFlow Solutions"
    DEFAULT_STORE_NAME: str = "Main Store"
    REPORTS_TIMEZONE: str = "UTC"
    REPORTS_DEFAULT_WINDOW_DAYS: int = 7
    REPORTS_MAX_WINDOW_DAYS: int = 366
    REPORTS_DEFAULT_TOP_LIMIT: int = 5
    REPORTS_MAX_TOP_LIMIT: int = 100
    REPORTS_DEFAULT_EXPENSE_LIMIT: int = 7
    REPORTS_LOW_STOCK_THRESHOLD: int = 5
    BILLS_LIST_MAX_LIMIT: int = 200
    METRICS_ENABLED: bool = True
    LOG_LEVEL: str = "INFO"


settings = Settings()
