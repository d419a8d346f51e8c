from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, Request, Security
from slowapi import Limiter
from slowapi.util import get_remote_address

from app import models, schemas
from app.core.config import OcInstance
from app.core.maintenance import MaintenanceController, validate_maintenance_window
from app.core.maintenance_state import (
    DateSelector,
    MaintenanceConfig,
    current_timestamp,
    get_timezone,
    make_timestamp,
)
from app.core.security import get_current_active_superuser, audit_log
from app.dependencies import get_instance, get_maintenance_controller
from app.opencast.client import OpencastApi

limiter = Limiter(key_func=get_remote_address)

router = APIRouter(prefix="/admin/maintenance", tags=["admin-maintenance"])


def to_date_selector(selection: schemas.DateTimeSelection) -> DateSelector:
    if not selection.enabled:
        return DateSelector()
    return DateSelector(
        enabled=True,
        timestamp=make_timestamp(selection.year, selection.month, selection.day, selection.hour, selection.minute),
    )


def to_date_out(date: DateSelector) -> schemas.DateSelectorOut:
    local = None
    if date.enabled:
        local = datetime.fromtimestamp(date.timestamp, get_timezone()).isoformat()
    return schemas.DateSelectorOut(enabled=date.enabled, timestamp=date.timestamp, local_datetime=local)


def to_config_out(maintenance: MaintenanceController) -> schemas.MaintenanceConfigOut:
    return schemas.MaintenanceConfigOut(
        ocinstanceid=maintenance.ocinstanceid,
        mode=maintenance.mode,
        notification_level=maintenance.notification_level,
        message=maintenance.message,
        startdate=to_date_out(maintenance.startdate),
        enddate=to_date_out(maintenance.enddate),
        activated=maintenance.is_activated(),
    )


@router.get("/jobs")
def get_sync_jobs(current_user: models.User = Security(get_current_active_superuser)):
    """List the scheduled maintenance sync jobs (admin only)"""
    from app.core.scheduler import get_scheduled_jobs

    audit_log(f"Admin {current_user.id} viewed scheduled jobs")

    jobs = get_scheduled_jobs()
    return {
        "jobs": jobs,
        "total_jobs": len(jobs)
    }


@router.get("/{ocinstanceid}/status", response_model=schemas.MaintenanceStatus)
def get_maintenance_status(maintenance: MaintenanceController = Depends(get_maintenance_controller)):
    """Get current maintenance status and the notification to show (public endpoint)"""
    return schemas.MaintenanceStatus(
        ocinstanceid=maintenance.ocinstanceid,
        mode=maintenance.mode,
        activated=maintenance.is_activated(),
        notification=maintenance.notify(),
    )


@router.get("/{ocinstanceid}", response_model=schemas.MaintenanceConfigOut)
def get_maintenance_config(
    maintenance: MaintenanceController = Depends(get_maintenance_controller),
    current_user: models.User = Security(get_current_active_superuser),
):
    """Get the maintenance configuration of an Opencast instance (admin only)"""
    return to_config_out(maintenance)


@router.put("/{ocinstanceid}", response_model=schemas.MaintenanceConfigOut)
def update_maintenance_config(
    update: schemas.MaintenanceConfigUpdate,
    maintenance: MaintenanceController = Depends(get_maintenance_controller),
    current_user: models.User = Security(get_current_active_superuser),
):
    """Replace the maintenance configuration of an Opencast instance (admin only)"""
    startdate = to_date_selector(update.startdate)
    enddate = to_date_selector(update.enddate)

    errors = validate_maintenance_window(startdate, enddate, current_timestamp())
    if errors:
        raise HTTPException(status_code=422, detail=errors)

    config = MaintenanceConfig(
        mode=update.mode,
        notification_level=update.notification_level,
        message=update.message,
        startdate=startdate,
        enddate=enddate,
    )
    if not maintenance.provider.set(maintenance.ocinstanceid, config):
        raise HTTPException(status_code=500, detail="Unable to save maintenance configuration")

    audit_log(f"Maintenance of instance {maintenance.ocinstanceid} set to {config.mode.name} by admin {current_user.id}")
    maintenance.config = config
    return to_config_out(maintenance)


@router.post("/{ocinstanceid}/sync", response_model=schemas.MaintenanceSyncResult)
@limiter.limit("10/minute")
def sync_maintenance(
    request: Request,
    instance: OcInstance = Depends(get_instance),
    maintenance: MaintenanceController = Depends(get_maintenance_controller),
    current_user: models.User = Security(get_current_active_superuser),
):
    """Overwrite the local maintenance mode with the one reported by Opencast (admin only)"""
    api = OpencastApi(instance)
    try:
        result = maintenance.sync_from_remote(api)
    finally:
        api.close()
    audit_log(f"Maintenance sync of instance {instance.id} by admin {current_user.id}: {result}")
    return schemas.MaintenanceSyncResult(status=result)
