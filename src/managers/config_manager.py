"""
Config Manager

Loads host.yaml (with include system support) and validates it into HostConfig.
"""

from pathlib import Path
from typing import Dict, List, Optional, Union

import yaml
from pydantic import ValidationError

from models.config import HostConfig
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.CONFIG)

SRC_DIR = Path(__file__).parent.parent


class ConfigError(Exception):
    """Neither the configuration nor the factory defaults could be loaded"""


class ConfigManager:
    """
    Host configuration manager with include system support

    Loads config/host.yaml and processes an include: directive to merge modular
    YAML files. Falls back to config/factory_defaults.yaml when the main file is
    missing, unreadable or invalid.

    Example:
        config = ConfigManager()
        host_config = config.load()

        host_config.app_name
        host_config.memory_pressure.critical_percent
    """

    def __init__(
        self,
        config_path: Union[str, Path] = "config/host.yaml",
        defaults_path: Union[str, Path] = "config/factory_defaults.yaml",
    ):
        """
        Initialize ConfigManager

        Args:
            config_path: Path to main host.yaml (relative paths resolve against src/)
            defaults_path: Path to factory defaults fallback
        """
        self.config_path = self._resolve(config_path)
        self.factory_defaults_path = self._resolve(defaults_path)
        self.data: Dict = {}
        self.config: Optional[HostConfig] = None
        self.used_factory_defaults = False

    def load(self) -> HostConfig:
        """
        Load and validate the host configuration

        Process:
        1. Load main host.yaml
        2. If it has 'include:' list, load and merge those files
        3. Validate into HostConfig
        4. Fallback to factory defaults on any failure

        Raises:
            ConfigError: factory defaults failed as well
        """
        try:
            self.data = self._read(self.config_path)
            self.config = HostConfig.model_validate(self.data)
            self.used_factory_defaults = False
            log.info(f"Loaded {self.config_path.name}", app_name=self.config.app_name)
        except (OSError, yaml.YAMLError, ValidationError, ValueError) as ex:
            log.error(f"Failed to load {self.config_path.name}", error=str(ex), error_type=type(ex).__name__)
            log.warn("Falling back to factory defaults")
            self.config = self._load_factory_defaults()

        return self.config

    def _load_factory_defaults(self) -> HostConfig:
        try:
            self.data = self._read(self.factory_defaults_path)
            config = HostConfig.model_validate(self.data)
        except (OSError, yaml.YAMLError, ValidationError, ValueError) as ex:
            raise ConfigError(f"Cannot load factory defaults {self.factory_defaults_path}: {ex}") from ex
        self.used_factory_defaults = True
        return config

    def _read(self, path: Path) -> Dict:
        with open(path, "r", encoding="utf-8") as f:
            main_config = yaml.safe_load(f) or {}

        if not isinstance(main_config, dict):
            raise ValueError(f"{path.name}: top level must be a mapping")

        if "include" in main_config:
            log.info("Using include-based configuration")
            includes = main_config.pop("include") or []
            merged = self._load_with_includes(includes, path.parent)
            # Keys in the main file override included ones
            merged.update(main_config)
            return merged

        return main_config

    def _load_with_includes(self, include_list: List[str], config_dir: Path) -> Dict:
        """
        Load and merge multiple YAML files from include list

        Args:
            include_list: Filenames to load, later files override earlier ones
            config_dir: Directory containing config files
        """
        merged = {}

        for filename in include_list:
            filepath = config_dir / filename
            try:
                with open(filepath, "r", encoding="utf-8") as f:
                    file_data = yaml.safe_load(f)
            except FileNotFoundError:
                log.error(f"File not found: {filename}")
                raise
            if file_data:
                merged.update(file_data)
                log.debug(f"Loaded {filename}", keys=str(list(file_data.keys())))

        log.debug("Config merge complete", total_keys=len(merged))
        return merged

    @staticmethod
    def _resolve(path: Union[str, Path]) -> Path:
        path = Path(path)
        return path if path.is_absolute() else SRC_DIR / path
