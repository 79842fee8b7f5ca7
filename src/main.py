"""
main.py — Application entry point for Atrium
--------------------------------------------

Responsible for:
- loading host.yaml (factory defaults on failure)
- configuring the logger
- running the host lifecycle and exiting with its exit code
"""

import sys

# Set UTF-8 encoding for output BEFORE logging (log symbols are non-ASCII)
if hasattr(sys.stdout, 'reconfigure') and sys.stdout.encoding != 'UTF-8':
    sys.stdout.reconfigure(encoding='utf-8')  # type: ignore
if hasattr(sys.stderr, 'reconfigure') and sys.stderr.encoding != 'UTF-8':
    sys.stderr.reconfigure(encoding='utf-8')  # type: ignore

from lifecycle.host_main import run_host
from managers import ConfigManager, ConfigError
from utils.logger import get_logger, configure_logger, LogCategory

log = get_logger().for_category(LogCategory.SYSTEM)


def main(config_path: str = "config/host.yaml") -> int:
    try:
        config = ConfigManager(config_path=config_path).load()
    except ConfigError as ex:
        log.error(f"Configuration unavailable: {ex}")
        return 1

    configure_logger(min_level=config.log_level, use_colors=config.use_colors)
    return run_host(config)


if __name__ == "__main__":
    sys.exit(main())
