"""
Feature List

Process-wide feature switches, initialized once from the enable_features /
disable_features lists in host.yaml.
"""

from typing import Dict, Iterable, List, Optional

from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.CONFIG)


class FeatureList:
    """
    Named feature overrides

    A feature named in both lists is disabled. Features not named in either
    list fall back to the default passed to is_enabled().

    Example:
        features = FeatureList()
        features.initialize(enable=["SmoothScrolling"], disable=["Spellcheck"])
        features.is_enabled("SmoothScrolling")          # True
        features.is_enabled("Unknown", default=True)    # True
    """

    def __init__(self):
        self._overrides: Dict[str, bool] = {}
        self.initialized = False

    def initialize(self, enable: Optional[Iterable[str]] = None, disable: Optional[Iterable[str]] = None) -> bool:
        """
        Apply overrides. Only the first call has an effect.

        Returns:
            False if the list was already initialized
        """
        if self.initialized:
            log.warn("FeatureList already initialized; ignoring overrides")
            return False

        for name in self._split(enable):
            self._overrides[name] = True
        # Disable wins over enable
        for name in self._split(disable):
            self._overrides[name] = False

        self.initialized = True
        if self._overrides:
            log.info(
                "Feature overrides applied",
                enabled=",".join(self.enabled_features) or "-",
                disabled=",".join(self.disabled_features) or "-",
            )
        return True

    def is_enabled(self, name: str, default: bool = False) -> bool:
        return self._overrides.get(name, default)

    @property
    def enabled_features(self) -> List[str]:
        return [name for name, on in self._overrides.items() if on]

    @property
    def disabled_features(self) -> List[str]:
        return [name for name, on in self._overrides.items() if not on]

    @staticmethod
    def _split(names: Optional[Iterable[str]]) -> List[str]:
        # Accept "A,B" strings as well as lists
        if names is None:
            return []
        if isinstance(names, str):
            names = names.split(",")
        return [n.strip() for n in names if n and n.strip()]
