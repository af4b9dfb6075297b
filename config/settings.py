# tat_sentinel/config/settings.py
# CENTRALIZED CONFIGURATION HUB FOR THE TAT ANALYTICS ENGINE

import logging
from typing import Literal

from pydantic import BaseModel, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

settings_logger = logging.getLogger(__name__)

# --- Nested Models for Structured Configuration ---
class StageTargetsConfig(BaseModel):
    """Per-stage target turnaround, in minutes."""
    dispatch: int = 20; collection: int = 60; registration: int = 30
    processing: int = 240; delivery: int = 40

class EfficiencyConfig(BaseModel):
    on_time_target_minutes: int = 240; avg_tat_warning_minutes: int = 300
    on_time_good_pct: float = 90.0; on_time_warning_pct: float = 75.0
    delayed_good_max: int = 5; delayed_warning_max: int = 15
    status_warning_overage_pct: float = 20.0

# --- Main Settings Class ---
class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix='TAT_', case_sensitive=False, env_file='.env', env_file_encoding='utf-8', extra='ignore')

    APP_NAME: str = "TAT Sentinel"; APP_VERSION: str = "1.0.0"
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    LOG_DATE_FORMAT: str = "%Y-%m-%d %H:%M:%S"

    # Calendar boundaries (start of day/week/month) and naive timestamps are read in this zone.
    REPORTING_TIMEZONE: str = "UTC"

    NOT_AVAILABLE_LABEL: str = "N/A"
    NO_DATA_LABEL: str = "No Data"

    DEFAULT_ROUTINE_TARGET_HOURS: float = 4.0
    DEFAULT_URGENT_TARGET_HOURS: float = 2.0
    URGENT_PRIORITY_VALUES: list[str] = ["urgent", "stat"]

    STAGE_TARGETS: StageTargetsConfig = StageTargetsConfig()
    EFFICIENCY: EfficiencyConfig = EfficiencyConfig()

    @computed_field
    @property
    def STAGE_TARGET_MAP(self) -> dict[str, int]: return self.STAGE_TARGETS.model_dump()

try:
    settings = Settings()
    settings_logger.info(f"TAT settings loaded successfully. App: {settings.APP_NAME} v{settings.APP_VERSION}")
except Exception as e:
    settings_logger.critical(f"FATAL: Could not initialize Pydantic settings. Error: {e}", exc_info=True)
    raise
