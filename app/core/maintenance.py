"""
Maintenance controller of an Opencast instance.

One controller is built per request from a fresh configuration snapshot, so
a mode change made by an admin applies from the next request on.
"""
import logging
from typing import Dict, Optional

import requests

from app.core.bounce import BounceAction, BounceContext, BounceKind, BounceStrategy, PageContext
from app.core.config import settings
from app.core.exceptions import (
    AccessDeniedError,
    MaintenanceCloseWindow,
    MaintenanceError,
    MaintenanceRedirect,
    OpencastApiHttpError,
)
from app.core.maintenance_state import (
    DateSelector,
    MaintenanceConfig,
    MaintenanceMode,
    NotificationLevel,
    can_access,
    current_timestamp,
    is_window_active,
)
from app.core.settings_api import (
    CONFIG_ID_ENDDATE,
    CONFIG_ID_MESSAGE,
    CONFIG_ID_MODE,
    CONFIG_ID_NOTIFLEVEL,
    CONFIG_ID_STARTDATE,
    ConfigProvider,
    generate_config_id,
    get_default_ocinstance,
)
from app.schemas import NotificationPayload

logger = logging.getLogger(__name__)


def get_bounce_strategy() -> BounceStrategy:
    return BounceStrategy(settings.MAINTENANCE_ROOT_PATHS, settings.MAINTENANCE_BLOCKED_PATHS)


def apply_bounce(action: BounceAction) -> None:
    """Carry out a bounce decision, returns only for pass-through"""
    if action.kind == BounceKind.REDIRECT:
        raise MaintenanceRedirect(action.url)
    if action.kind == BounceKind.CLOSE_WINDOW:
        raise MaintenanceCloseWindow()
    if action.kind == BounceKind.THROW_ACCESS_DENIED:
        raise AccessDeniedError()


class MaintenanceController:

    def __init__(
        self,
        provider: ConfigProvider,
        ocinstanceid: Optional[int] = None,
        page: Optional[PageContext] = None,
        strategy: Optional[BounceStrategy] = None,
    ):
        self.provider = provider
        self.ocinstanceid = ocinstanceid if ocinstanceid is not None else get_default_ocinstance().id
        self.page = page if page is not None else PageContext()
        self.strategy = strategy or get_bounce_strategy()
        self.config: MaintenanceConfig = provider.get(self.ocinstanceid)

    @property
    def mode(self) -> MaintenanceMode:
        return self.config.mode

    @property
    def notification_level(self) -> NotificationLevel:
        return self.config.notification_level

    @property
    def message(self) -> str:
        return self.config.message

    @property
    def startdate(self) -> DateSelector:
        return self.config.startdate

    @property
    def enddate(self) -> DateSelector:
        return self.config.enddate

    def is_activated(self, now: Optional[int] = None) -> bool:
        return is_window_active(self.config, current_timestamp() if now is None else now)

    def can_access(self, method: str, now: Optional[int] = None) -> bool:
        allowed = can_access(self.config, method, current_timestamp() if now is None else now)
        if not allowed:
            logger.info(f"Maintenance on instance {self.ocinstanceid} denies '{method}'")
        return allowed

    def decide_bounce(self, context: Optional[BounceContext] = None) -> BounceAction:
        context = context or self.page.bounce
        if context is None:
            # nothing tells us whether this is a web, cli or test call
            raise MaintenanceError()
        return self.strategy.resolve(context)

    def bounce(self, context: Optional[BounceContext] = None) -> BounceAction:
        action = self.decide_bounce(context)
        apply_bounce(action)
        return action

    def notify(self, now: Optional[int] = None) -> Optional[NotificationPayload]:
        """Notification for the current page, handed out once per page"""
        if self.page.notified or not self.is_activated(now):
            return None
        self.page.notified = True
        return NotificationPayload(
            message=self.message or settings.MAINTENANCE_DEFAULT_MESSAGE,
            level=self.notification_level,
        )

    def update_mode_from_remote(self, mode: int) -> bool:
        try:
            mode = MaintenanceMode(mode)
        except ValueError:
            logger.warning(f"Ignoring unknown maintenance mode {mode} for instance {self.ocinstanceid}")
            return False
        result = self.provider.set_mode(self.ocinstanceid, mode)
        if result:
            self.config.mode = mode
        return result

    def sync_from_remote(self, api, timeout: Optional[float] = None) -> bool:
        """
        Pull the maintenance status from Opencast and store it as the local mode.

        `api` has to be an undecorated client, a gated one would refuse the
        status call while maintenance is enabled. Returns False whenever the
        remote cannot tell or the update fails.
        """
        service = getattr(api, "maintenance", None)
        query = getattr(service, "get_remote_maintenance_status", None)
        if query is None:
            logger.info(f"Opencast instance {self.ocinstanceid} offers no maintenance status")
            return False

        try:
            status = query(timeout=timeout if timeout is not None else settings.MAINTENANCE_SYNC_TIMEOUT)
        except (OpencastApiHttpError, requests.RequestException) as e:
            logger.warning(f"Maintenance sync with instance {self.ocinstanceid} failed: {e}")
            return False

        if status is None:
            logger.info(f"Opencast instance {self.ocinstanceid} does not support maintenance status")
            return False

        if status.get("in_maintenance"):
            mode = MaintenanceMode.READONLY if status.get("read_only") else MaintenanceMode.ENABLE
        else:
            mode = MaintenanceMode.DISABLE

        logger.info(f"Synced maintenance mode {mode.name} from Opencast instance {self.ocinstanceid}")
        return self.update_mode_from_remote(mode)

    # STATIC HELPERS

    @staticmethod
    def mode_choices() -> Dict[int, str]:
        return {
            MaintenanceMode.DISABLE: "Disable",
            MaintenanceMode.READONLY: "Read Only",
            MaintenanceMode.ENABLE: "Enable",
        }

    @staticmethod
    def notification_level_choices() -> Dict[str, str]:
        return {
            NotificationLevel.WARNING.value: "Warning",
            NotificationLevel.ERROR.value: "Error",
            NotificationLevel.INFO.value: "Information",
            NotificationLevel.SUCCESS.value: "Success",
        }

    @staticmethod
    def mode_config_id(ocinstanceid: int, with_pluginname: bool = False) -> str:
        return generate_config_id(CONFIG_ID_MODE, ocinstanceid, with_pluginname)

    @staticmethod
    def notification_level_config_id(ocinstanceid: int, with_pluginname: bool = False) -> str:
        return generate_config_id(CONFIG_ID_NOTIFLEVEL, ocinstanceid, with_pluginname)

    @staticmethod
    def message_config_id(ocinstanceid: int, with_pluginname: bool = False) -> str:
        return generate_config_id(CONFIG_ID_MESSAGE, ocinstanceid, with_pluginname)

    @staticmethod
    def startdate_config_id(ocinstanceid: int, with_pluginname: bool = False) -> str:
        return generate_config_id(CONFIG_ID_STARTDATE, ocinstanceid, with_pluginname)

    @staticmethod
    def enddate_config_id(ocinstanceid: int, with_pluginname: bool = False) -> str:
        return generate_config_id(CONFIG_ID_ENDDATE, ocinstanceid, with_pluginname)


def validate_maintenance_window(startdate: DateSelector, enddate: DateSelector, now: int) -> Dict[str, str]:
    """
    Write-time checks of a maintenance window.

    The start may lie in the past, the end may not. When both are enabled the
    start has to come before the end.
    """
    errors = {}
    if enddate.enabled and enddate.timestamp < now:
        errors["enddate"] = "This field should not be in the past!"
    if startdate.enabled and enddate.enabled and startdate.timestamp > enddate.timestamp:
        errors["startdate"] = 'This field should be before "Maintenance ends at"'
        errors.setdefault("enddate", 'This field should be after "Maintenance starts at"')
    return errors
