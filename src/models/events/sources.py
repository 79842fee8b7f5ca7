from enum import Enum, auto


class EventSource(Enum):
    """Event source identifiers for application events"""
    APPLICATION = auto()        # Application object (launch, quit)
    WINDOW_REGISTRY = auto()    # Window list changes surfaced as app events
    ORCHESTRATOR = auto()       # Lifecycle orchestrator
