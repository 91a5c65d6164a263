import re
import uuid

import pytest
from sqlalchemy import event

from soilsense.core.errors import DuplicateName
from soilsense.models.device import TelemetrySample
from soilsense.schemas.device import TelemetryReading
from soilsense.services.registry import DeviceRegistry, build_sample


def _create(registry, owner, name="greenhouse-1", **fields):
    return registry.create(
        device_name=name,
        api_key=registry.generate_api_key(),
        user_id=owner.id,
        first_sample=build_sample(TelemetryReading(temperature=20.0)),
        **fields
    )


def test_generated_api_keys_are_32_hex_chars(registry):
    keys = {registry.generate_api_key() for _ in range(20)}

    assert len(keys) == 20
    assert all(re.fullmatch(r"[0-9a-f]{32}", key) for key in keys)


def test_create_and_lookups(registry, owner):
    device = _create(registry, owner, location="North field", crop_type="maize", device_number=7)

    assert registry.find_by_name("greenhouse-1").id == device.id
    assert registry.find_by_api_key(device.api_key).id == device.id
    assert device.user_id == owner.id
    assert device.crop_type == "maize"
    assert device.device_number == 7
    assert device.last_connected is not None
    assert len(device.samples) == 1


def test_missing_api_key_never_matches(registry, owner):
    _create(registry, owner)

    assert registry.find_by_api_key(None) is None
    assert registry.find_by_api_key("") is None
    assert registry.find_by_api_key("0" * 32) is None


def test_duplicate_name_is_rejected(registry, owner):
    _create(registry, owner)

    with pytest.raises(DuplicateName):
        _create(registry, owner)


def test_append_sample_keeps_insertion_order(registry, owner, db_session):
    device = _create(registry, owner)

    registry.append_sample(device, build_sample(TelemetryReading(temperature=21.0, power_state=False)))
    registry.append_sample(device, build_sample(TelemetryReading(temperature=22.0, soil_moisture=30.5)))

    db_session.expire_all()
    stored = registry.find_by_name("greenhouse-1")
    assert [s.temperature for s in stored.samples] == [20.0, 21.0, 22.0]
    assert stored.samples[1].power_state is False
    assert stored.samples[2].soil_moisture == 30.5


def test_sample_cap_drops_oldest(db_session, owner):
    registry = DeviceRegistry(db_session, max_samples=3)
    device = _create(registry, owner)

    for value in (21.0, 22.0, 23.0, 24.0):
        registry.append_sample(device, build_sample(TelemetryReading(temperature=value)))

    db_session.expire_all()
    assert db_session.query(TelemetrySample).count() == 3
    assert [s.temperature for s in registry.find_by_name("greenhouse-1").samples] == [22.0, 23.0, 24.0]


def test_append_sample_never_loads_stored_samples(db_session, owner):
    registry = DeviceRegistry(db_session, max_samples=3)
    device = _create(registry, owner)
    for value in (21.0, 22.0, 23.0):
        registry.append_sample(device, build_sample(TelemetryReading(temperature=value)))
    db_session.expire_all()

    statements = []

    def capture(conn, cursor, statement, parameters, context, executemany):
        statements.append(statement)

    engine = db_session.get_bind()
    event.listen(engine, "before_cursor_execute", capture)
    try:
        registry.append_sample(device, build_sample(TelemetryReading(temperature=24.0)))
    finally:
        event.remove(engine, "before_cursor_execute", capture)

    assert statements
    assert not [s for s in statements if "device_samples.temperature" in s]
    assert db_session.query(TelemetrySample).count() == 3


def test_find_by_owner_returns_only_owned_devices(registry, owner, credentials):
    other = credentials.create("Bob", "bob@example.com", credentials.hash_secret("pw"))
    _create(registry, owner, name="mine-1")
    _create(registry, owner, name="mine-2")
    _create(registry, other, name="theirs")

    assert sorted(d.device_name for d in registry.find_by_owner(owner.id)) == ["mine-1", "mine-2"]
    assert [d.device_name for d in registry.find_by_owner(other.id)] == ["theirs"]


def test_delete_requires_matching_owner(registry, owner, credentials, db_session):
    other = credentials.create("Bob", "bob@example.com", credentials.hash_secret("pw"))
    device = _create(registry, owner)
    device_id = device.id

    assert registry.delete_by_id_for_owner(device_id, other.id) is False
    assert registry.find_by_name("greenhouse-1") is not None

    assert registry.delete_by_id_for_owner(device_id, owner.id) is True
    assert registry.find_by_name("greenhouse-1") is None
    assert db_session.query(TelemetrySample).count() == 0


def test_delete_unknown_or_malformed_id_is_false(registry, owner):
    assert registry.delete_by_id_for_owner(uuid.uuid4(), owner.id) is False
    assert registry.delete_by_id_for_owner("not-a-uuid", owner.id) is False
