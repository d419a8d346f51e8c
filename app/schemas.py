from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, Any
from datetime import datetime

from app.core.maintenance_state import MaintenanceMode, NotificationLevel

# ============= MAINTENANCE SCHEMAS =============

class NotificationPayload(BaseModel):
    message: str
    level: NotificationLevel


class DateTimeSelection(BaseModel):
    """Wall-clock components of a window boundary, in the tenant's time zone"""
    enabled: bool = False
    year: Optional[int] = Field(None, ge=1970, le=9999)
    month: Optional[int] = Field(None, ge=1, le=12)
    day: Optional[int] = Field(None, ge=1, le=31)
    hour: int = Field(0, ge=0, le=23)
    minute: int = Field(0, ge=0, le=59)

    @model_validator(mode="after")
    def check_date_given(self):
        if self.enabled and None in (self.year, self.month, self.day):
            raise ValueError("year, month and day are required when the date is enabled")
        if self.enabled:
            # raises for impossible dates like 31st of February
            datetime(self.year, self.month, self.day, self.hour, self.minute)
        return self


class MaintenanceConfigUpdate(BaseModel):
    mode: MaintenanceMode = MaintenanceMode.DISABLE
    notification_level: NotificationLevel = NotificationLevel.WARNING
    message: str = Field("", max_length=10000)
    startdate: DateTimeSelection = DateTimeSelection()
    enddate: DateTimeSelection = DateTimeSelection()

    @field_validator("message")
    @classmethod
    def strip_message(cls, v):
        return v.strip()


class DateSelectorOut(BaseModel):
    enabled: bool
    timestamp: int
    local_datetime: Optional[str] = None


class MaintenanceConfigOut(BaseModel):
    ocinstanceid: int
    mode: MaintenanceMode
    notification_level: NotificationLevel
    message: str
    startdate: DateSelectorOut
    enddate: DateSelectorOut
    activated: bool


class MaintenanceStatus(BaseModel):
    ocinstanceid: int
    mode: MaintenanceMode
    activated: bool
    notification: Optional[NotificationPayload] = None


class MaintenanceSyncResult(BaseModel):
    status: bool

# ============= OPENCAST SCHEMAS =============

class OpencastResponse(BaseModel):
    code: int
    body: Any = None
    reason: Optional[str] = None
