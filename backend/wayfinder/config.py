from pathlib import Path
from typing import Dict, Literal

from pydantic import SecretStr, Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "Wayfinder Navigation API"
    secret_key: SecretStr = SecretStr("super-secret-key-change-me")
    database_url: str = "sqlite:///./wayfinder.db"
    log_level: str = "INFO"
    graph_source: Literal["database", "json"] = "database"
    default_graph_name: str = "temple"
    entry_distance_threshold_m: float = Field(default=4.0, ge=0.0)
    entry_name_pattern: str = r"^ENTRY(\b|_|\s|$)"
    profile_speeds_mps: Dict[str, float] = {
        "walking": 1.35,
        "wheelchair": 1.10,
        "accessible": 1.10,
        "guided": 1.20,
        "default": 1.30,
    }
    default_profile: str = "walking"
    max_alternatives: int = Field(default=3, ge=0)
    alternative_penalty: float = Field(default=2.0, gt=1.0)
    route_timeout_s: float = 5.0  # 0 disables the solver deadline
    geometry_tolerance_m: float = 1.0
    graph_refresh_interval_s: float = 0.0  # 0 disables periodic refresh
    graph_load_retries: int = Field(default=3, ge=1)
    graph_retry_delay_s: float = 0.5
    features_max_limit: int = 100
    nearest_max_limit: int = 50
    service_token: SecretStr = SecretStr("dev-service-token")

    class Config:
        env_file = ".env"

    @property
    def graphs_dir(self) -> str:
        return str(Path(__file__).resolve().parent.parent / "graphs")


settings = Settings()
