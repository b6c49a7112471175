from conftest import reading_payload

from hydrowatch.domain.exceptions import ApiError
from hydrowatch.schemas.resources import Reading
from infrastructure.api.repositories.sensors import reconstruct_sensors_from_readings


def test_list_by_crop_returns_canonical_sensors(stub_api, sensor_repo):
    stub_api.route(
        "GET",
        "/sensors/crop/1",
        {"data": [{"id": 1, "sensorType": "Sensor Temperatura"}, {"sensorId": 2, "sensorType": "conductividad"}]},
    )

    sensors = sensor_repo.list_by_crop(1)

    assert [(sensor.id, sensor.sensor_type, sensor.unit, sensor.crop_id) for sensor in sensors] == [
        (1, "temperature", "°C", 1),
        (2, "ec", "PPM", 1),
    ]
    assert sensor_repo.items == sensors
    assert stub_api.calls_to("GET", "/readings/crop/1") == []


def test_empty_crop_sensor_list_falls_back_to_readings(stub_api, sensor_repo):
    stub_api.route("GET", "/sensors/crop/1", {"data": [], "message": "Sin sensores"})
    stub_api.route(
        "GET",
        "/readings/crop/1",
        [
            reading_payload(1, 21.0, 30, sensor_type="temp", unit="C"),
            reading_payload(2, 850.0, 20, sensor_type="TDS", unit="ppm"),
            reading_payload(1, 22.0, 5, sensor_type="temp", unit="C"),
        ],
    )

    sensors = sensor_repo.list_by_crop(1)

    assert [(sensor.id, sensor.sensor_type, sensor.unit) for sensor in sensors] == [
        (1, "temperature", "°C"),
        (2, "ec", "PPM"),
    ]
    assert sensors[0].last_reading == 22.0
    assert sensors[0].crop_id == 1
    assert sensor_repo.error is None


def test_failed_fallback_yields_empty_list(stub_api, sensor_repo):
    stub_api.route("GET", "/sensors/crop/1", [])
    stub_api.route("GET", "/readings/crop/1", ApiError("HTTP 500", status_code=500))

    assert sensor_repo.list_by_crop(1) == []
    assert sensor_repo.items == []
    assert sensor_repo.error is None


def test_fallback_can_be_disabled(stub_api, sensor_repo):
    stub_api.route("GET", "/sensors/crop/1", [])

    assert sensor_repo.list_by_crop(1, fallback=False) == []
    assert stub_api.calls_to("GET", "/readings/crop/1") == []


def test_backend_failure_keeps_previous_sensors(stub_api, sensor_repo):
    stub_api.route("GET", "/sensors/crop/1", [{"id": 1, "sensorType": "hum"}], ApiError("Servidor caído"))
    sensor_repo.list_by_crop(1)

    assert sensor_repo.list_by_crop(1) == []
    assert [sensor.id for sensor in sensor_repo.items] == [1]
    assert sensor_repo.error == "Servidor caído"


def test_duplicate_crop_load_is_served_from_cache(stub_api, sensor_repo):
    nested = []

    def respond(_params, _json):
        nested.append(sensor_repo.list_by_crop(1))
        return [{"id": 5, "sensorType": "temp"}]

    stub_api.route("GET", "/sensors/crop/1", respond)

    sensors = sensor_repo.list_by_crop(1)

    assert nested == [[]]
    assert [sensor.id for sensor in sensors] == [5]
    assert len(stub_api.calls_to("GET", "/sensors/crop/1")) == 1


def test_list_mine_is_not_stored(stub_api, sensor_repo):
    stub_api.route("GET", "/sensors/user", [{"id": 8, "sensorType": "hum"}])

    sensors = sensor_repo.list_mine()

    assert [sensor.id for sensor in sensors] == [8]
    assert sensor_repo.items == []


def test_for_crop_filters_loaded_sensors(stub_api, sensor_repo):
    stub_api.route("GET", "/sensors", [{"id": 1, "cropId": 1}, {"id": 2, "cropId": 2}, {"id": 3}])
    sensor_repo.list()

    assert [sensor.id for sensor in sensor_repo.for_crop(1)] == [1]
    assert sensor_repo.for_crop(None) == []


def test_disassociate_and_delete_removes_locally(stub_api, sensor_repo):
    stub_api.route("GET", "/sensors/crop/1", [{"id": 1, "sensorType": "temp"}, {"id": 2, "sensorType": "hum"}])
    stub_api.route("DELETE", "/sensors/crop/1/sensor/2", None)
    stub_api.route("DELETE", "/sensors/2", None)
    stub_api.route("GET", "/sensors/2", ApiError("Sensor no encontrado", status_code=404))
    sensor_repo.list_by_crop(1)

    assert sensor_repo.disassociate_and_delete(1, 2) is True
    assert [sensor.id for sensor in sensor_repo.items] == [1]


def test_unverified_delete_surfaces_error(stub_api, sensor_repo):
    stub_api.route("DELETE", "/sensors/crop/1/sensor/2", None)
    stub_api.route("DELETE", "/sensors/2", None)
    stub_api.route("GET", "/sensors/2", {"id": 2})

    assert sensor_repo.disassociate_and_delete(1, 2) is False
    assert sensor_repo.error == "El sensor no se eliminó correctamente"


def test_create_and_associate_backfills_crop(stub_api, sensor_repo):
    stub_api.route("POST", "/sensors/crop/4/create-with-thresholds", {"data": {"id": 11, "sensorType": "temp"}})

    sensor = sensor_repo.create_and_associate(4, {"sensorType": "temp", "minThreshold": 18, "maxThreshold": 26})

    assert sensor.crop_id == 4
    assert sensor_repo.find(11) == sensor
    assert stub_api.calls[0]["json"]["minThreshold"] == 18


def test_associate_with_invalid_thresholds_sets_error(stub_api, sensor_repo):
    assert sensor_repo.associate_to_crop(1, 2, {"min": 50, "max": 10}) is False
    assert "min must be lower than max" in sensor_repo.error
    assert stub_api.calls == []


def test_reconstruct_keeps_unknown_types():
    readings = [
        Reading.model_validate(reading_payload(6, 6.1, 10, sensor_type="pH", unit="pH")),
        Reading.model_validate(reading_payload(6, 6.3, 0, sensor_type="pH", unit="pH")),
    ]

    sensors = reconstruct_sensors_from_readings(readings, 3)

    assert len(sensors) == 1
    assert sensors[0].sensor_type == "ph"
    assert sensors[0].unit == "pH"
    assert sensors[0].last_reading == 6.3
