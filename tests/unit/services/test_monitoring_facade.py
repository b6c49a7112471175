import pytest
from conftest import reading_payload

from hydrowatch.domain.exceptions import ApiError
from hydrowatch.domain.thresholds import ThresholdRange, default_thresholds
from hydrowatch.enums.common import CanonicalSensorType, TimeRange
from hydrowatch.enums.events import MonitoringEvent

CROPS = [{"id": 1, "name": "Lechuga", "status": "activo"}, {"id": 2, "name": "Tomate"}]
ALL_SENSORS = [
    {"id": 1, "cropId": 1, "sensorType": "Sensor Temperatura"},
    {"id": 2, "cropId": 1, "sensorType": "humedad"},
    {"id": 3, "cropId": 2, "sensorType": "TDS"},
]
CROP_1_SENSORS = [{"id": 1, "sensorType": "Sensor Temperatura"}, {"sensorId": 2, "sensorType": "humedad"}]
HISTORY = {
    1: [reading_payload(1, 22.0, 1), reading_payload(1, 21.0, 30)],
    2: [reading_payload(2, 65.0, 1), reading_payload(2, 66.0, 30)],
}


@pytest.fixture()
def backend(stub_api):
    stub_api.route("GET", "/crops", CROPS)
    stub_api.route("GET", "/sensors", ALL_SENSORS)
    stub_api.route("GET", "/alerts/user", [{"id": 7, "cropId": 1, "alertLevel": "warning", "alertMessage": "Humedad"}])
    stub_api.route("GET", "/sensors/crop/1", CROP_1_SENSORS)
    stub_api.route("GET", "/alerts/crop/1", [])
    thresholds = [{"sensorId": 1, "sensorType": "temp", "minThreshold": 17, "maxThreshold": 25}]
    stub_api.route("GET", "/sensors/crop/1/thresholds", thresholds)
    stub_api.route("GET", "/readings/history", lambda params, _json: HISTORY.get(params["sensorId"], []))
    return stub_api


def test_load_initial_data(backend, facade):
    facade.load_initial_data()

    assert [crop.id for crop in facade.crops] == [1, 2]
    assert [sensor.id for sensor in facade.sensors] == [1, 2, 3]
    assert [alert.id for alert in facade.alerts] == [7]
    assert facade.error is None
    assert facade.loading is False
    # Nothing is monitored until a crop is selected
    assert facade.sensor_ids == ()


def test_select_crop_loads_scoped_data_and_derives_sensor_ids(backend, facade, event_bus):
    selected = []
    event_bus.subscribe(MonitoringEvent.CROP_SELECTED, selected.append)
    facade.load_initial_data()

    crop = facade.select_crop(1)

    assert crop.name == "Lechuga"
    assert facade.selected_crop == crop
    assert facade.sensor_ids == (1, 2)
    assert [sensor.sensor_type for sensor in facade.sensors] == ["temperature", "humidity"]
    assert facade.thresholds[CanonicalSensorType.TEMPERATURE] == ThresholdRange(17.0, 25.0)
    assert selected == [{"crop_id": 1}]
    assert [call["path"] for call in backend.calls[-3:]] == [
        "/sensors/crop/1",
        "/alerts/crop/1",
        "/sensors/crop/1/thresholds",
    ]


def test_select_unknown_crop_returns_none(backend, facade):
    backend.route("GET", "/crops/99", ApiError("Cultivo no encontrado", status_code=404))

    assert facade.select_crop(99) is None
    assert facade.selected_crop is None
    assert facade.error == "Cultivo no encontrado"


def test_clearing_selection_resets_ids_and_thresholds(backend, facade):
    facade.load_initial_data()
    facade.select_crop(1)

    facade.select_crop(None)

    assert facade.selected_crop is None
    assert facade.sensor_ids == ()
    assert facade.thresholds == default_thresholds()


def test_switching_crop_drops_previous_crop_thresholds(backend, facade):
    backend.route("GET", "/sensors/crop/2", [{"id": 3, "sensorType": "TDS"}])
    backend.route("GET", "/alerts/crop/2", [])
    backend.route("GET", "/sensors/crop/2/thresholds", [])
    facade.load_initial_data()
    facade.select_crop(1)
    assert facade.thresholds[CanonicalSensorType.TEMPERATURE] == ThresholdRange(17.0, 25.0)

    facade.select_crop(2)

    assert facade.sensor_ids == (3,)
    assert facade.thresholds == default_thresholds()


def test_reselecting_same_crop_keeps_thresholds(backend, facade):
    facade.load_initial_data()
    facade.select_crop(1)

    facade.select_crop(1)

    assert facade.thresholds[CanonicalSensorType.TEMPERATURE] == ThresholdRange(17.0, 25.0)


def test_sensor_list_changes_rederive_ids(backend, facade):
    facade.load_initial_data()
    facade.select_crop(1)

    facade.fetch_all_sensors()

    # The unscoped list still holds sensors 1 and 2 for crop 1
    assert facade.sensor_ids == (1, 2)

    backend.route("GET", "/sensors", [{"id": 3, "cropId": 2, "sensorType": "TDS"}])
    facade.fetch_all_sensors()
    assert facade.sensor_ids == ()


def test_loading_is_or_of_sub_resources(backend, facade):
    observed = []

    def respond(_params, _json):
        observed.append(facade.loading)
        return []

    backend.route("GET", "/alerts/user", respond)

    facade.fetch_user_alerts()

    assert observed == [True]
    assert facade.loading is False


def test_error_uses_first_non_null_in_precedence_order(backend, facade):
    backend.route("GET", "/sensors", ApiError("Error de sensores"))
    backend.route("GET", "/alerts/user", ApiError("Error de alertas"))
    facade.load_initial_data()
    facade.update_threshold(1, 1, "temp", {"min": 30, "max": 20})

    assert facade.error == "Error de sensores"

    backend.route("GET", "/crops", ApiError("Error de cultivos"))
    facade.fetch_user_crops()
    assert facade.error == "Error de cultivos"

    backend.route("GET", "/crops", CROPS)
    backend.route("GET", "/sensors", ALL_SENSORS)
    facade.fetch_user_crops()
    facade.fetch_all_sensors()
    assert facade.error == "Error de alertas"

    backend.route("GET", "/alerts/user", [])
    facade.fetch_user_alerts()
    assert "min must be lower than max" in facade.error


def test_new_snapshot_reloads_user_alerts(backend, facade):
    facade.load_initial_data()
    facade.select_crop(1)
    before = len(backend.calls_to("GET", "/alerts/user"))

    assert facade.start_monitoring() is True

    assert set(facade.real_time_data) == {1, 2}
    assert len(backend.calls_to("GET", "/alerts/user")) == before + 1
    assert facade.is_monitoring


def test_empty_snapshot_does_not_reload_alerts(backend, facade):
    backend.route("GET", "/readings/history", [])
    facade.load_initial_data()
    facade.select_crop(1)
    before = len(backend.calls_to("GET", "/alerts/user"))

    facade.refresh_now()

    assert facade.real_time_data == {}
    assert len(backend.calls_to("GET", "/alerts/user")) == before


def test_get_readings_by_crop_id_is_best_effort(backend, facade):
    backend.route("GET", "/readings/crop/1", ApiError("Servidor no disponible", status_code=503))

    assert facade.get_readings_by_crop_id(1) == []
    assert facade.get_readings_by_crop_id(None) == []
    assert facade.error is None


def test_get_readings_by_crop_id_does_not_touch_list(backend, facade):
    backend.route("GET", "/readings/crop/1", [reading_payload(1, 20.0, 5)])

    readings = facade.get_readings_by_crop_id(1)

    assert [reading.value for reading in readings] == [20.0]
    assert facade.readings == []


def test_deleting_selected_crop_clears_selection(backend, facade):
    backend.route("DELETE", "/crops/1", {"message": "Cultivo eliminado"})
    facade.load_initial_data()
    facade.select_crop(1)

    assert facade.delete_crop(1) is True

    assert facade.selected_crop is None
    assert facade.sensor_ids == ()
    assert [crop.id for crop in facade.crops] == [2]


def test_updating_selected_crop_refreshes_selection(backend, facade):
    backend.route("PUT", "/crops/1", {"data": {"id": 1, "name": "Lechuga hoja roble"}})
    facade.load_initial_data()
    facade.select_crop(1)

    facade.update_crop(1, {"name": "Lechuga hoja roble"})

    assert facade.selected_crop.name == "Lechuga hoja roble"


def test_associating_sensor_reloads_selected_crop_sensors(backend, facade):
    backend.route("POST", "/sensors/crop/1/sensor/3", {"message": "Sensor asociado"})
    facade.load_initial_data()
    facade.select_crop(1)
    backend.route("GET", "/sensors/crop/1", [*CROP_1_SENSORS, {"id": 3, "sensorType": "TDS"}])

    assert facade.add_sensor_to_crop(1, 3) is True

    assert facade.sensor_ids == (1, 2, 3)


def test_time_range_change_is_visible_without_fetch(backend, facade):
    calls = len(backend.calls)

    assert facade.change_time_range(TimeRange.ONE_DAY) is True

    assert facade.time_range is TimeRange.ONE_DAY
    assert len(backend.calls) == calls


def test_chart_series_and_statistics(backend, facade):
    backend.route("GET", "/readings/crop/1", [reading_payload(1, 20.0, 5), reading_payload(1, 24.0, 65)])
    facade.load_initial_data()
    facade.select_crop(1)
    facade.refresh_now()
    facade.fetch_readings_by_crop_id(1)

    points = facade.chart_series()
    stats = facade.reading_statistics(sensor_id=1)

    assert points[-1].temperature == 22.0
    assert points[-1].humidity == 65.0
    assert stats.count == 2
    assert stats.mean == pytest.approx(22.0)
    assert facade.reading_statistics(sensor_id=2).count == 0
    assert len(facade.chart_series(include_readings=True)) > len(points)


def test_view_is_plain_data(backend, facade):
    facade.load_initial_data()
    facade.select_crop(1)

    view = facade.view()

    assert view["selected_crop"]["id"] == 1
    assert view["sensor_ids"] == [1, 2]
    assert view["thresholds"]["temperature"] == {"min": 17.0, "max": 25.0}
    assert view["time_range"] == "6H"
    assert view["error"] is None


def test_close_detaches_from_event_bus(backend, facade, event_bus):
    facade.load_initial_data()
    calls = len(backend.calls_to("GET", "/alerts/user"))

    facade.close()
    event_bus.publish(MonitoringEvent.SNAPSHOT_UPDATED, {"crop_id": 1, "sensor_ids": [1]})

    assert len(backend.calls_to("GET", "/alerts/user")) == calls
