from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    app_name: str = "resource-generator"

    output_dir: str = "generated"
    log_level: str = "INFO"

settings = Settings()
