"""Access to stored plugin configuration and the configured Opencast instances"""
import json
import logging
from typing import List, Optional

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app import crud
from app.core.config import settings, OcInstance
from app.core.maintenance_state import (
    DateSelector,
    MaintenanceConfig,
    MaintenanceMode,
    NotificationLevel,
)

logger = logging.getLogger(__name__)

PLUGINNAME = "tool_opencast"

CONFIG_ID_MODE = "maintenancemode"
CONFIG_ID_NOTIFLEVEL = "maintenancemode_notification_level"
CONFIG_ID_MESSAGE = "maintenancemode_message"
CONFIG_ID_STARTDATE = "maintenancemode_startdate"
CONFIG_ID_ENDDATE = "maintenancemode_enddate"


def generate_config_id(configid: str, ocinstanceid: int, with_pluginname: bool = False) -> str:
    config_id = f"{configid}_{ocinstanceid}"
    if with_pluginname:
        config_id = f"{PLUGINNAME}/{config_id}"
    return config_id


def get_ocinstances() -> List[OcInstance]:
    return list(settings.OCINSTANCES)


def get_default_ocinstance() -> OcInstance:
    return next(instance for instance in settings.OCINSTANCES if instance.isdefault)


def get_ocinstance(ocinstanceid: Optional[int]) -> Optional[OcInstance]:
    if ocinstanceid is None:
        return get_default_ocinstance()
    return next((instance for instance in settings.OCINSTANCES if instance.id == ocinstanceid), None)


class ConfigProvider:
    """Reads and writes the maintenance configuration of an Opencast instance"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, ocinstanceid: int) -> MaintenanceConfig:
        ids = {
            key: generate_config_id(key, ocinstanceid)
            for key in (CONFIG_ID_MODE, CONFIG_ID_NOTIFLEVEL, CONFIG_ID_MESSAGE, CONFIG_ID_STARTDATE, CONFIG_ID_ENDDATE)
        }
        stored = crud.get_configs(self.db, PLUGINNAME, list(ids.values()))
        if not stored:
            logger.debug(f"No maintenance configuration for instance {ocinstanceid}, using defaults")

        config = MaintenanceConfig()

        mode = stored.get(ids[CONFIG_ID_MODE])
        if mode not in (None, ""):
            try:
                config.mode = MaintenanceMode(int(mode))
            except ValueError:
                logger.warning(f"Invalid maintenance mode '{mode}' for instance {ocinstanceid}")

        level = stored.get(ids[CONFIG_ID_NOTIFLEVEL])
        if level:
            try:
                config.notification_level = NotificationLevel(level)
            except ValueError:
                logger.warning(f"Invalid notification level '{level}' for instance {ocinstanceid}")

        config.message = stored.get(ids[CONFIG_ID_MESSAGE]) or ""
        config.startdate = self._load_date(stored.get(ids[CONFIG_ID_STARTDATE]))
        config.enddate = self._load_date(stored.get(ids[CONFIG_ID_ENDDATE]))
        return config

    def set(self, ocinstanceid: int, config: MaintenanceConfig) -> bool:
        values = {
            CONFIG_ID_MODE: str(int(config.mode)),
            CONFIG_ID_NOTIFLEVEL: config.notification_level.value,
            CONFIG_ID_MESSAGE: config.message,
            CONFIG_ID_STARTDATE: config.startdate.model_dump_json(),
            CONFIG_ID_ENDDATE: config.enddate.model_dump_json(),
        }
        try:
            for key, value in values.items():
                crud.set_config(self.db, PLUGINNAME, generate_config_id(key, ocinstanceid), value, commit=False)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error saving maintenance configuration for instance {ocinstanceid}: {e}")
            return False
        return True

    def set_mode(self, ocinstanceid: int, mode: MaintenanceMode) -> bool:
        try:
            crud.set_config(self.db, PLUGINNAME, generate_config_id(CONFIG_ID_MODE, ocinstanceid), str(int(mode)))
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error saving maintenance mode for instance {ocinstanceid}: {e}")
            return False
        return True

    @staticmethod
    def _load_date(value: Optional[str]) -> DateSelector:
        if not value:
            return DateSelector()
        try:
            return DateSelector(**json.loads(value))
        except (ValueError, TypeError, ValidationError):
            logger.warning(f"Unreadable maintenance date '{value}', treating it as disabled")
            return DateSelector()
