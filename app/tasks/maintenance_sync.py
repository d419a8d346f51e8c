from typing import Dict, Optional
from sqlalchemy.orm import Session
from app.core.bounce import PageContext
from app.core.maintenance import MaintenanceController
from app.core.settings_api import ConfigProvider, get_ocinstance, get_ocinstances
from app.opencast.client import OpencastApi
import logging

logger = logging.getLogger(__name__)


def sync_instance(db: Session, ocinstanceid: Optional[int] = None, page: Optional[PageContext] = None) -> bool:
    """pull the maintenance mode of one opencast instance, False if it could not be synced"""
    instance = get_ocinstance(ocinstanceid)
    if instance is None:
        logger.warning(f"Unknown Opencast instance {ocinstanceid}, nothing to sync")
        return False

    maintenance = MaintenanceController(ConfigProvider(db), instance.id, page)
    api = OpencastApi(instance)
    try:
        return maintenance.sync_from_remote(api)
    finally:
        api.close()


def sync_all_instances(db: Session, page: Optional[PageContext] = None) -> Dict[int, bool]:
    """sync every configured instance, one failure does not stop the others"""
    results = {}
    for instance in get_ocinstances():
        try:
            results[instance.id] = sync_instance(db, instance.id, page)
        except Exception as e:
            logger.error(f"Error syncing maintenance of instance {instance.id}: {e}")
            results[instance.id] = False
    return results
