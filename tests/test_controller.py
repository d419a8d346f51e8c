"""tests for the maintenance controller and its stored configuration"""
from unittest import mock

import pytest
import requests

from app import crud
from app.core.bounce import BounceAction, BounceContext, PageContext
from app.core.config import OcInstance, settings
from app.core.exceptions import MaintenanceError, MaintenanceRedirect, OpencastApiHttpError
from app.core.maintenance import MaintenanceController, validate_maintenance_window
from app.core.maintenance_state import DateSelector, MaintenanceConfig, MaintenanceMode, NotificationLevel
from app.core.settings_api import PLUGINNAME, ConfigProvider
from app.opencast.client import OpencastApi
from helpers import WWWROOT, FakeConfigProvider, browser_context

NOW = 1_700_000_000
INSTANCE = OcInstance(id=1, isdefault=True, apiurl="http://opencast.test")


# ============= CONFIGURATION =============

def test_defaults_without_stored_config(db_session):
    controller = MaintenanceController(ConfigProvider(db_session), 1)
    assert controller.mode == MaintenanceMode.DISABLE
    assert controller.notification_level == NotificationLevel.WARNING
    assert controller.message == ""
    assert controller.startdate == DateSelector()
    assert controller.enddate == DateSelector()
    assert controller.is_activated() is False


def test_default_instance_is_used(db_session):
    controller = MaintenanceController(ConfigProvider(db_session))
    assert controller.ocinstanceid == 1


def test_stored_config_roundtrip(db_session):
    provider = ConfigProvider(db_session)
    config = MaintenanceConfig(
        mode=MaintenanceMode.READONLY,
        notification_level=NotificationLevel.ERROR,
        message="Back soon",
        startdate=DateSelector(enabled=True, timestamp=NOW),
    )
    assert provider.set(1, config) is True

    controller = MaintenanceController(ConfigProvider(db_session), 1)
    assert controller.mode == MaintenanceMode.READONLY
    assert controller.notification_level == NotificationLevel.ERROR
    assert controller.message == "Back soon"
    assert controller.startdate == DateSelector(enabled=True, timestamp=NOW)
    assert controller.enddate.enabled is False
    assert crud.get_config(db_session, PLUGINNAME, "maintenancemode_1") == "1"


def test_instances_do_not_share_config(db_session):
    provider = ConfigProvider(db_session)
    provider.set(2, MaintenanceConfig(mode=MaintenanceMode.ENABLE))
    assert provider.get(1).mode == MaintenanceMode.DISABLE
    assert provider.get(2).mode == MaintenanceMode.ENABLE


def test_unreadable_values_fall_back(db_session):
    crud.set_config(db_session, PLUGINNAME, "maintenancemode_1", "7")
    crud.set_config(db_session, PLUGINNAME, "maintenancemode_notification_level_1", "loud")
    crud.set_config(db_session, PLUGINNAME, "maintenancemode_startdate_1", "{not json")
    crud.set_config(db_session, PLUGINNAME, "maintenancemode_enddate_1", '{"enabled": true, "timestamp": "soon"}')

    config = ConfigProvider(db_session).get(1)
    assert config.mode == MaintenanceMode.DISABLE
    assert config.notification_level == NotificationLevel.WARNING
    assert config.startdate == DateSelector()
    assert config.enddate == DateSelector()


def test_set_mode_only_touches_mode(db_session):
    provider = ConfigProvider(db_session)
    provider.set(1, MaintenanceConfig(message="hello"))
    assert provider.set_mode(1, MaintenanceMode.ENABLE) is True

    config = provider.get(1)
    assert config.mode == MaintenanceMode.ENABLE
    assert config.message == "hello"


def test_config_ids():
    assert MaintenanceController.mode_config_id(3) == "maintenancemode_3"
    assert MaintenanceController.mode_config_id(3, True) == "tool_opencast/maintenancemode_3"
    assert MaintenanceController.notification_level_config_id(1) == "maintenancemode_notification_level_1"
    assert MaintenanceController.message_config_id(1, True) == "tool_opencast/maintenancemode_message_1"
    assert MaintenanceController.startdate_config_id(2) == "maintenancemode_startdate_2"
    assert MaintenanceController.enddate_config_id(2) == "maintenancemode_enddate_2"


def test_choices():
    assert list(MaintenanceController.mode_choices()) == [0, 1, 2]
    assert set(MaintenanceController.notification_level_choices()) == {"info", "success", "warning", "error"}


# ============= ACCESS AND BOUNCE =============

def test_read_only_scenario_on_course_page(make_controller):
    """read-only from the course page: reads go through, writes bounce back to the course"""
    referer = f"{WWWROOT}/course/view.php?id=2"
    controller = make_controller(
        MaintenanceMode.READONLY, browser_context(referer, f"{WWWROOT}/blocks/opencast/index.php")
    )
    assert controller.can_access("get_series", NOW) is True
    assert controller.can_access("list_items", NOW) is False
    assert controller.decide_bounce() == BounceAction.redirect(referer)
    with pytest.raises(MaintenanceRedirect):
        controller.bounce()


def test_scheduled_window_not_started_yet(make_controller):
    controller = make_controller(
        MaintenanceMode.ENABLE, startdate=DateSelector(enabled=True, timestamp=NOW + 3600)
    )
    assert controller.is_activated(NOW) is False
    assert controller.can_access("delete_event", NOW) is True
    assert controller.is_activated(NOW + 3600) is True
    assert controller.can_access("delete_event", NOW + 3600) is False


def test_bounce_without_context_raises(make_controller):
    controller = make_controller(MaintenanceMode.ENABLE)
    with pytest.raises(MaintenanceError):
        controller.decide_bounce()


def test_explicit_context_wins(make_controller):
    controller = make_controller(MaintenanceMode.ENABLE)
    assert controller.decide_bounce(BounceContext(is_cli=True, is_web=False)) == BounceAction.throw_access_denied()


# ============= NOTIFICATION =============

def test_notify_once_per_page(make_controller):
    controller = make_controller(MaintenanceMode.ENABLE, message="Down for upgrade")
    first = controller.notify(NOW)
    assert first.message == "Down for upgrade"
    assert first.level == NotificationLevel.WARNING
    assert controller.notify(NOW) is None


def test_notify_shared_between_controllers_of_a_page():
    page = PageContext()
    provider = FakeConfigProvider(MaintenanceConfig(mode=MaintenanceMode.READONLY))
    assert MaintenanceController(provider, 1, page).notify(NOW) is not None
    assert MaintenanceController(provider, 1, page).notify(NOW) is None
    assert MaintenanceController(provider, 1, PageContext()).notify(NOW) is not None


def test_notify_default_message(make_controller):
    controller = make_controller(MaintenanceMode.READONLY, notification_level=NotificationLevel.INFO)
    payload = controller.notify(NOW)
    assert payload.message == settings.MAINTENANCE_DEFAULT_MESSAGE
    assert payload.level == NotificationLevel.INFO


def test_notify_when_not_active(make_controller):
    controller = make_controller(MaintenanceMode.DISABLE)
    assert controller.notify(NOW) is None
    assert controller.page.notified is False


# ============= REMOTE SYNC =============

def test_update_mode_from_remote():
    provider = FakeConfigProvider()
    controller = MaintenanceController(provider, 1, PageContext())
    assert controller.update_mode_from_remote(2) is True
    assert controller.mode == MaintenanceMode.ENABLE
    assert provider.saved_modes == [MaintenanceMode.ENABLE]


def test_update_mode_from_remote_rejects_unknown_mode():
    provider = FakeConfigProvider()
    controller = MaintenanceController(provider, 1, PageContext())
    assert controller.update_mode_from_remote(5) is False
    assert provider.saved_modes == []


@pytest.mark.parametrize("body,mode", [
    ({"maintenance": True, "readOnly": True}, MaintenanceMode.READONLY),
    ({"maintenance": True, "readOnly": False}, MaintenanceMode.ENABLE),
    ({"maintenance": False, "readOnly": True}, MaintenanceMode.DISABLE),
    ({}, MaintenanceMode.DISABLE),
])
def test_sync_from_remote(opencast_adapter, opencast_session, body, mode):
    opencast_adapter.add("GET", "/api/maintenance", body=body)
    provider = FakeConfigProvider(MaintenanceConfig(mode=MaintenanceMode.READONLY))
    controller = MaintenanceController(provider, 1, PageContext())

    assert controller.sync_from_remote(OpencastApi(INSTANCE, session=opencast_session)) is True
    assert controller.mode == mode
    assert provider.saved_modes == [mode]


@pytest.mark.parametrize("status", [404, 405, 501])
def test_sync_unsupported_remote(opencast_adapter, opencast_session, status):
    opencast_adapter.add("GET", "/api/maintenance", status=status)
    provider = FakeConfigProvider(MaintenanceConfig(mode=MaintenanceMode.READONLY))
    controller = MaintenanceController(provider, 1, PageContext())

    assert controller.sync_from_remote(OpencastApi(INSTANCE, session=opencast_session)) is False
    assert controller.mode == MaintenanceMode.READONLY
    assert provider.saved_modes == []


def test_sync_remote_error(opencast_adapter, opencast_session):
    opencast_adapter.add("GET", "/api/maintenance", status=500)
    controller = MaintenanceController(FakeConfigProvider(), 1, PageContext())
    assert controller.sync_from_remote(OpencastApi(INSTANCE, session=opencast_session)) is False


def test_sync_connection_error():
    api = mock.Mock()
    api.maintenance.get_remote_maintenance_status.side_effect = requests.ConnectionError("refused")
    controller = MaintenanceController(FakeConfigProvider(), 1, PageContext())
    assert controller.sync_from_remote(api) is False


def test_sync_passes_timeout():
    api = mock.Mock()
    api.maintenance.get_remote_maintenance_status.return_value = {"in_maintenance": False, "read_only": False}
    controller = MaintenanceController(FakeConfigProvider(), 1, PageContext())

    assert controller.sync_from_remote(api, timeout=3) is True
    api.maintenance.get_remote_maintenance_status.assert_called_once_with(timeout=3)


def test_sync_without_capability():
    api = mock.Mock(spec=[])
    controller = MaintenanceController(FakeConfigProvider(), 1, PageContext())
    assert controller.sync_from_remote(api) is False


def test_sync_error_is_raised_by_client(opencast_adapter, opencast_session):
    """the client itself reports remote failures as OpencastApiHttpError"""
    opencast_adapter.add("GET", "/api/maintenance", status=503)
    with pytest.raises(OpencastApiHttpError):
        OpencastApi(INSTANCE, session=opencast_session).maintenance.get_remote_maintenance_status()


# ============= WINDOW VALIDATION =============

def test_validate_window_ok():
    start = DateSelector(enabled=True, timestamp=NOW - 60)
    end = DateSelector(enabled=True, timestamp=NOW + 60)
    assert validate_maintenance_window(start, end, NOW) == {}
    assert validate_maintenance_window(DateSelector(), DateSelector(), NOW) == {}


def test_validate_end_in_the_past():
    errors = validate_maintenance_window(DateSelector(), DateSelector(enabled=True, timestamp=NOW - 1), NOW)
    assert errors == {"enddate": "This field should not be in the past!"}


def test_validate_start_after_end():
    start = DateSelector(enabled=True, timestamp=NOW + 120)
    end = DateSelector(enabled=True, timestamp=NOW + 60)
    errors = validate_maintenance_window(start, end, NOW)
    assert set(errors) == {"startdate", "enddate"}


def test_validate_ignores_disabled_dates():
    start = DateSelector(enabled=True, timestamp=NOW + 120)
    end = DateSelector(enabled=False, timestamp=NOW - 60)
    assert validate_maintenance_window(start, end, NOW) == {}
