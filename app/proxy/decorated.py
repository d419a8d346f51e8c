"""
Decorated proxies around the Opencast API.

Every method call made through a proxy is first checked against the
maintenance controller, so callers never need to know about maintenance.
"""
import functools
import logging
from typing import Optional, Union

import requests

from app.core.config import OcInstance
from app.core.maintenance import MaintenanceController
from app.opencast.client import OcRest, OcRestClient, OpencastApi

logger = logging.getLogger(__name__)


class DecoratedService:
    """Gate in front of one Opencast service object"""

    def __init__(self, service: Union[OcRest, OcRestClient], maintenance: Optional[MaintenanceController] = None):
        self._service = service
        self._maintenance = maintenance
        self._children = {}

    @property
    def wrapped(self):
        return self._service

    def __getattr__(self, name: str):
        if name in ("_service", "_maintenance", "_children"):
            raise AttributeError(name)
        attr = getattr(self._service, name)

        if isinstance(attr, (OcRest, OcRestClient)):
            # one wrapper per sub-service, rebuilt if the attribute was replaced
            child = self._children.get(name)
            if child is None or child.wrapped is not attr:
                child = DecoratedService(attr, self._maintenance)
                self._children[name] = child
            return child

        if not callable(attr):
            return attr

        @functools.wraps(attr)
        def gated(*args, **kwargs):
            if self._maintenance is not None and not self._maintenance.can_access(name):
                # denial never forwards the call, not even for a pass-through bounce
                self._maintenance.bounce()
                logger.info(f"Skipped '{name}' on {self._service.__class__.__name__} during maintenance")
                return None

            result = attr(*args, **kwargs)

            # keep fluent chains behind the gate
            if result is self._service:
                return self
            return result

        return gated

    def __repr__(self):
        return f"<DecoratedService {self._service.__class__.__name__}>"


class DecoratedOpencastApi:
    """The Opencast API of one instance with each sub-service gated on its own"""

    SERVICES = ("series", "events", "workflows", "sysinfo", "maintenance")

    def __init__(self, instance: OcInstance, maintenance: Optional[MaintenanceController] = None,
                 session: Optional[requests.Session] = None, api: Optional[OpencastApi] = None):
        self.opencastapi = api or OpencastApi(instance, session=session)
        self.maintenance_controller = maintenance
        self.rest_client = DecoratedService(self.opencastapi.rest_client, maintenance)
        for name in self.SERVICES:
            setattr(self, name, DecoratedService(getattr(self.opencastapi, name), maintenance))

    def close(self):
        # releases the connection pool, never gated
        self.opencastapi.close()
