"""Services layer"""

from .event_bus import EventBus
from .host_process import HostProcess, RESULT_CODE_NORMAL_EXIT
from .application import Application
from .application_context import ApplicationContext
from .location_services import AccessTokenStore, LocationServicesDelegate
from .host_context import HostContext
from .host_api import HostAPI

__all__ = [
    "EventBus",
    "HostProcess",
    "RESULT_CODE_NORMAL_EXIT",
    "Application",
    "ApplicationContext",
    "AccessTokenStore",
    "LocationServicesDelegate",
    "HostContext",
    "HostAPI",
]
