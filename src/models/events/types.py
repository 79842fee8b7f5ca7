from enum import Enum, auto


class EventType(Enum):
    # Application launch
    WILL_FINISH_LAUNCHING = auto()
    READY = auto()

    # Windows
    WINDOW_ALL_CLOSED = auto()

    # Quit sequence
    BEFORE_QUIT = auto()
    WILL_QUIT = auto()
    QUIT = auto()

    # Memory
    MEMORY_PRESSURE = auto()
