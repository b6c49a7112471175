import pytest

from hydrowatch.domain.exceptions import ApiError, ServiceError, ValidationError
from infrastructure.api.ops.sensors import (
    NO_SENSORS_MESSAGE,
    SENSORS_FOUND_MESSAGE,
    SensorOperations,
    normalize_crop_sensor,
)


@pytest.fixture()
def sleeps():
    return []


@pytest.fixture()
def ops(stub_api, sleeps):
    return SensorOperations(stub_api, settle_delay=0.5, sleep=sleeps.append)


def test_normalize_crop_sensor_canonicalizes_type_and_unit():
    sensor = normalize_crop_sensor({"sensorId": 4, "sensorType": "Sensor Temperatura", "unitOfMeasurement": "C"}, 7)

    assert sensor["id"] == 4
    assert sensor["sensorType"] == "temperature"
    assert sensor["unitOfMeasurement"] == "°C"
    assert sensor["unit"] == "°C"
    assert sensor["cropId"] == 7


def test_normalize_crop_sensor_keeps_unknown_types_lowercased():
    sensor = normalize_crop_sensor({"id": 5, "type": "PH", "unit": "pH", "cropId": 3}, 7)

    assert sensor["sensorType"] == "ph"
    assert sensor["unit"] == "pH"
    assert sensor["cropId"] == 3


def test_list_by_crop_normalizes_every_sensor(ops, stub_api):
    stub_api.route("GET", "/sensors/crop/1", {"data": [{"id": 1, "sensorType": "TDS"}, {"id": 2, "sensorType": "hum"}]})

    response = ops.list_by_crop(1)

    assert [sensor["sensorType"] for sensor in response.data] == ["ec", "humidity"]
    assert [sensor["unit"] for sensor in response.data] == ["PPM", "%"]


@pytest.mark.parametrize(
    "body, expected_data, expected_message",
    [
        ([{"id": 1}], [{"id": 1}], SENSORS_FOUND_MESSAGE),
        ({"data": [], "message": "Sin sensores"}, [], "Sin sensores"),
        ({"id": 1}, [], SENSORS_FOUND_MESSAGE),
        (None, [], NO_SENSORS_MESSAGE),
    ],
)
def test_list_mine_tolerates_body_shapes(ops, stub_api, body, expected_data, expected_message):
    stub_api.route("GET", "/sensors/user", body)

    response = ops.list_mine()

    assert response.data == expected_data
    assert response.message == expected_message


def test_associate_with_thresholds_sends_query_params(ops, stub_api):
    stub_api.route("POST", "/sensors/crop/1/sensor/2/thresholds", {"message": "ok"})

    ops.associate_to_crop(1, 2, {"min": 18, "max": 26})

    assert stub_api.calls[-1]["params"] == {"minThreshold": 18.0, "maxThreshold": 26.0}


def test_associate_with_invalid_thresholds_never_calls_backend(ops, stub_api):
    with pytest.raises(ValidationError):
        ops.associate_to_crop(1, 2, (30, 10))
    assert stub_api.calls == []


def test_disassociate_and_delete_verifies_with_404(ops, stub_api, sleeps):
    stub_api.route("DELETE", "/sensors/crop/1/sensor/2", {"message": "detached"})
    stub_api.route("DELETE", "/sensors/2", {"data": {"id": 2}})
    stub_api.route("GET", "/sensors/2", ApiError("Not found", status_code=404))

    response = ops.disassociate_and_delete(1, 2)

    assert response.message == "Sensor eliminado correctamente."
    assert response.data == {"id": 2}
    assert sleeps == [0.5]
    assert [(call["method"], call["path"]) for call in stub_api.calls] == [
        ("DELETE", "/sensors/crop/1/sensor/2"),
        ("DELETE", "/sensors/2"),
        ("GET", "/sensors/2"),
    ]


def test_disassociate_and_delete_fails_when_sensor_still_exists(ops, stub_api):
    stub_api.route("DELETE", "/sensors/crop/1/sensor/2", None)
    stub_api.route("DELETE", "/sensors/2", None)
    stub_api.route("GET", "/sensors/2", {"id": 2})

    with pytest.raises(ServiceError, match="El sensor no se eliminó correctamente"):
        ops.disassociate_and_delete(1, 2)


def test_disassociate_and_delete_fails_when_verification_errors(ops, stub_api):
    stub_api.route("DELETE", "/sensors/crop/1/sensor/2", None)
    stub_api.route("DELETE", "/sensors/2", None)
    stub_api.route("GET", "/sensors/2", ApiError("HTTP 500", status_code=500))

    with pytest.raises(ServiceError, match="No se pudo verificar"):
        ops.disassociate_and_delete(1, 2)


def test_disassociate_failure_stops_before_delete(ops, stub_api):
    stub_api.route("DELETE", "/sensors/crop/1/sensor/2", ApiError("HTTP 500", status_code=500))

    with pytest.raises(ApiError):
        ops.disassociate_and_delete(1, 2)
    assert stub_api.calls_to("DELETE", "/sensors/2") == []
