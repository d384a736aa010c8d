from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="AV_", extra="ignore")
    base_url: str = "https://www.alphavantage.co/query"
    api_key: str | None = None
    log_level: str = "WARNING"

settings = Settings()
