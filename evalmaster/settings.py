from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    app_title: str = "EvalMaster"
    db_path: str = "evalmaster_state.db"
    log_level: str = "INFO"

    tasks_key: str = "evalmaster_tasks"
    evaluations_key: str = "evalmaster_evaluations"

    model_config = SettingsConfigDict(env_prefix="EVALMASTER_", env_file=".env", extra="ignore")

settings = Settings()
