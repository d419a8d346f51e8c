from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import BaseModel, field_validator
from typing import Optional, Dict, List


class OcInstance(BaseModel):
    id: int
    name: str = "Default"
    isvisible: bool = True
    isdefault: bool = False
    apiurl: str = "http://localhost:8080"
    apiusername: str = "admin"
    apipassword: str = "opencast"
    apitimeout: int = 2000


class Settings(BaseSettings):
    # --- Project Settings ---
    PROJECT_NAME: str = "Opencast Maintenance Gate"
    API_V1_STR: str = "/api/v1"
    API_PORT: str = "8000"
    BASE_DIR: Path = Path(__file__).resolve().parent.parent

    # public base url of the site, paths are classified relative to it
    WWWROOT: str = "http://localhost:8000"
    TIMEZONE: str = "Europe/Berlin"

    # --- Security Settings ---
    SECRET_KEY: str = "change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # --- CORS / Host Settings ---
    BACKEND_CORS_ORIGINS: List[str] = ["http://localhost:8000", "http://localhost:3000"]
    ALLOWED_HOSTS: List[str] = ["localhost", "127.0.0.1", "testserver"]

    # --- Database Settings ---
    DATABASE_URL: str = "sqlite:///./ocgate.db"

    # --- Opencast Settings ---
    OCINSTANCES: List[OcInstance] = [OcInstance(id=1, isdefault=True)]

    @field_validator("OCINSTANCES")
    @classmethod
    def check_default_instance(cls, v: List[OcInstance]) -> List[OcInstance]:
        defaults = [instance for instance in v if instance.isdefault]
        if len(defaults) != 1:
            raise ValueError("Exactly one Opencast instance must be the default")
        return v

    # --- Maintenance Settings ---
    MAINTENANCE_ROOT_PATHS: List[str] = ["", "/course/view.php", "/my", "/my/courses.php", "/course"]
    MAINTENANCE_BLOCKED_PATHS: Dict[str, str] = {
        "block_opencast": "/blocks/opencast",
        "mod_opencast": "/mod/opencast",
        "modedit": "/course/modedit",
        "repository_opencast": "/repository",
        "admin_cron": "/admin/cron",
        "local": "/local",
        "opencast_api": "/api/v1/opencast",
    }
    MAINTENANCE_DEFAULT_MESSAGE: str = (
        "<h5>Opencast Maintenance Notice</h5><br>Please note that Opencast is currently undergoing maintenance. "
        "As a result, some or all features related to Opencast may be temporarily unavailable. "
        "Thank you for your understanding."
    )
    MAINTENANCE_EXCEPTION_MESSAGE: str = (
        "Opencast is currently undergoing maintenance. Interactions are temporarily disabled."
    )
    MAINTENANCE_SYNC_INTERVAL_MINUTES: int = 0
    MAINTENANCE_SYNC_TIMEOUT: Optional[float] = 10.0

    model_config = SettingsConfigDict(case_sensitive=True, env_file=".env")


settings = Settings()
