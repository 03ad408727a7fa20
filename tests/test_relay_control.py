"""Tests for engine relay commands."""
import pytest

from constants import ENGINE_OFF, ENGINE_ON
from exceptions import ConflictError, TransientError
from models.optimistic import OptimisticState, OptimisticValue
from services.busy_guard import BookingBusyRegistry
from services.relay_control import EngineRelayService


@pytest.fixture
def relay(client):
    return EngineRelayService(client, BookingBusyRegistry())


async def test_engine_on(relay, backend, make_booking):
    backend.add("POST", "/admin/device/1/relay/on", json={"message": "Engine ON command sent"})
    state = OptimisticValue(confirmed_value=ENGINE_OFF)

    result = await relay.switch_engine(make_booking(status="Start Trip"), turn_on=True, engine_state=state)

    assert result.engine_status == ENGINE_ON
    assert result.message == "Engine ON command sent"
    assert state.state == OptimisticState.CONFIRMED
    assert state.value == ENGINE_ON


async def test_engine_off_default_message(relay, backend, make_booking):
    backend.add("POST", "/admin/device/1/relay/off")

    result = await relay.switch_engine(make_booking(status="Trip Extend"), turn_on=False)

    assert result.engine_status == ENGINE_OFF
    assert result.message == "Engine stopped successfully"


async def test_failed_command_rolls_back(relay, backend, make_booking):
    backend.add("POST", "/admin/device/1/relay/on", status=502, json={"message": "Device offline"})
    state = OptimisticValue(confirmed_value=ENGINE_OFF)

    with pytest.raises(TransientError):
        await relay.switch_engine(make_booking(status="Accepted"), turn_on=True, engine_state=state)

    assert state.state == OptimisticState.ROLLED_BACK
    assert state.value == ENGINE_OFF


@pytest.mark.parametrize("status", ["Confirmed", "Completed", "Cancelled"])
async def test_engine_control_needs_active_trip(relay, backend, make_booking, status):
    with pytest.raises(ConflictError):
        await relay.switch_engine(make_booking(status=status), turn_on=True)

    assert backend.requests == []


async def test_finalize_trip(relay, backend, make_booking):
    backend.add("POST", "/admin/device/1/finalize", json={"message": "Trip finalized on device"})

    assert await relay.finalize_trip(make_booking(status="End Trip")) == "Trip finalized on device"


def test_engine_status_falls_back_to_bike_details(make_booking):
    booking = make_booking(bikeDetails={"engineStatus": 1})

    assert booking.current_engine_status == ENGINE_ON
