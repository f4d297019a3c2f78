from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "sqlite+aiosqlite:///./data/db.sqlite3"
    api_key: str = ""  # empty = no auth check (local dev)
    data_dir: str = "./data"
    log_level: str = "INFO"
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:8000"]

    # Compliance scoring
    max_open_days: int = 30
    photo_quality_threshold: int = 70

    # Step submissions
    gps_max_accuracy_meters: float = 10_000.0

    # Progress reporting
    stale_intervention_days: int = 7
    minutes_per_step: int = 45

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
