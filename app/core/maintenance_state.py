"""Maintenance mode state: configuration snapshot, time window and access rules"""
import enum
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

from pydantic import BaseModel

from app.core.config import settings


class MaintenanceMode(enum.IntEnum):
    DISABLE = 0
    READONLY = 1
    ENABLE = 2


class NotificationLevel(str, enum.Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class DateSelector(BaseModel):
    """An optional window boundary"""
    enabled: bool = False
    timestamp: int = 0


class MaintenanceConfig(BaseModel):
    """Maintenance settings of one Opencast instance"""
    mode: MaintenanceMode = MaintenanceMode.DISABLE
    notification_level: NotificationLevel = NotificationLevel.WARNING
    message: str = ""
    startdate: DateSelector = DateSelector()
    enddate: DateSelector = DateSelector()


def get_timezone(name: Optional[str] = None) -> ZoneInfo:
    return ZoneInfo(name or settings.TIMEZONE)


def current_timestamp(tz: Optional[ZoneInfo] = None) -> int:
    """Current time as a timestamp, taken in the tenant's zone"""
    return int(datetime.now(tz or get_timezone()).timestamp())


def make_timestamp(year: int, month: int, day: int, hour: int = 0, minute: int = 0,
                   tz: Optional[ZoneInfo] = None) -> int:
    """Convert wall-clock components authored in the tenant's zone into a timestamp"""
    return int(datetime(year, month, day, hour, minute, tzinfo=tz or get_timezone()).timestamp())


def is_window_active(config: MaintenanceConfig, now: int) -> bool:
    """
    Check whether maintenance is active at `now`.

    - disabled mode is never active, whatever the window says
    - no boundary enabled means active until further notice
    - both boundaries: closed interval [start, end]
    - only start: active from start on
    - only end: active until end
    """
    if config.mode == MaintenanceMode.DISABLE:
        return False

    start = config.startdate
    end = config.enddate

    if not start.enabled and not end.enabled:
        return True

    if start.enabled and end.enabled and start.timestamp <= now <= end.timestamp:
        return True

    if start.enabled and not end.enabled and now >= start.timestamp:
        return True

    if not start.enabled and end.enabled and now <= end.timestamp:
        return True

    return False


def can_access(config: MaintenanceConfig, method: str, now: int) -> bool:
    """
    Decide whether `method` may run.

    Read-only mode lets through every method whose name contains "get",
    case-insensitively and anywhere in the name.
    """
    if not is_window_active(config, now):
        return True

    if config.mode == MaintenanceMode.READONLY and "get" in method.lower():
        return True

    return False
