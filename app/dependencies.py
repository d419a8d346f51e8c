from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from .database import get_db
from .core.bounce import PageContext
from .core.maintenance import MaintenanceController
from .core.settings_api import ConfigProvider, get_ocinstance
from .core.config import OcInstance
from .proxy.decorated import DecoratedOpencastApi
from .middleware.maintenance import build_page_context


def get_page_context(request: Request) -> PageContext:
    page = getattr(request.state, "page", None)
    if page is None:
        page = build_page_context(request)
        request.state.page = page
    return page


def get_config_provider(db: Session = Depends(get_db)) -> ConfigProvider:
    return ConfigProvider(db)


def get_instance(ocinstanceid: int) -> OcInstance:
    instance = get_ocinstance(ocinstanceid)
    if instance is None:
        raise HTTPException(status_code=404, detail="Opencast instance not found")
    return instance


def get_maintenance_controller(
    instance: OcInstance = Depends(get_instance),
    provider: ConfigProvider = Depends(get_config_provider),
    page: PageContext = Depends(get_page_context),
) -> MaintenanceController:
    return MaintenanceController(provider, instance.id, page)


def get_opencast_api(
    instance: OcInstance = Depends(get_instance),
    maintenance: MaintenanceController = Depends(get_maintenance_controller),
):
    api = DecoratedOpencastApi(instance, maintenance)
    try:
        yield api
    finally:
        api.close()
