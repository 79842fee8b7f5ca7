"""
Host configuration models

Validated shape of config/host.yaml. Loaded by managers.config_manager.ConfigManager.
"""

from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from models.enums import LogLevel


class MemoryPressureConfig(BaseModel):
    """Thresholds for the polling memory pressure monitor"""

    enabled: bool = Field(True, description="Start the polling monitor in pre_main_message_loop_run")
    poll_interval_seconds: float = Field(5.0, gt=0)
    moderate_percent: float = Field(80.0, gt=0, le=100, description="Used RAM % reported as MODERATE")
    critical_percent: float = Field(92.0, gt=0, le=100, description="Used RAM % reported as CRITICAL")

    @model_validator(mode="after")
    def check_thresholds(self) -> "MemoryPressureConfig":
        if self.critical_percent < self.moderate_percent:
            raise ValueError("critical_percent must be >= moderate_percent")
        return self


class HostConfig(BaseModel):
    """Top-level host configuration"""

    app_name: str = Field("Atrium", min_length=1)
    user_data_dir: Optional[Path] = Field(
        None, description="Per-user data directory; derived from app_name when omitted"
    )
    entry_script: Optional[Path] = Field(None, description="Script loaded into the top-level environment")
    idle_interval_seconds: float = Field(60.0, gt=0)
    debug: bool = False
    enable_features: List[str] = Field(default_factory=list)
    disable_features: List[str] = Field(default_factory=list)
    memory_pressure: MemoryPressureConfig = Field(default_factory=MemoryPressureConfig)
    log_level: LogLevel = LogLevel.INFO
    use_colors: bool = True

    @model_validator(mode="before")
    @classmethod
    def parse_log_level(cls, data):
        # YAML stores the enum by name
        if isinstance(data, dict) and isinstance(data.get("log_level"), str):
            data = dict(data)
            try:
                data["log_level"] = LogLevel[data["log_level"].upper()]
            except KeyError:
                raise ValueError(f"Unknown log_level: {data['log_level']}")
        return data

    def resolved_user_data_dir(self) -> Path:
        """User data directory, defaulting to ~/.config/<app_name>"""
        if self.user_data_dir is not None:
            return self.user_data_dir.expanduser()
        return Path.home() / ".config" / self.app_name
