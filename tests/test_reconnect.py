import asyncio

import pytest

from lan_bridge.errors import TransportError
from lan_bridge.reconnect import AsyncioScheduler, ConnectionState, ReconnectionController


@pytest.fixture
def controller(dialer, scheduler):
    return ReconnectionController(dialer, max_attempts=5, base_delay=1.0, scheduler=scheduler)


class TestExplicitConnect:
    @pytest.mark.asyncio
    async def test_success(self, controller):
        await controller.connect()
        assert controller.state is ConnectionState.CONNECTED
        assert controller.attempt == 0

    @pytest.mark.asyncio
    async def test_failure_goes_idle_without_retry(self, controller, dialer, scheduler):
        dialer.up = False
        with pytest.raises(TransportError):
            await controller.connect()
        assert controller.state is ConnectionState.IDLE
        assert scheduler.delays == []


class TestUnsolicitedClose:
    @pytest.mark.asyncio
    async def test_first_retry_uses_base_delay(self, controller, scheduler):
        await controller.connect()
        controller.connection_lost()
        assert controller.state is ConnectionState.RECONNECTING
        assert controller.attempt == 1
        assert scheduler.delays == [1.0]

    @pytest.mark.asyncio
    async def test_linear_backoff_until_failed(self, controller, dialer, scheduler):
        await controller.connect()
        dialer.up = False
        controller.connection_lost()
        for _ in range(5):
            await scheduler.fire_next()

        assert scheduler.delays == [1.0, 2.0, 3.0, 4.0, 5.0]
        assert controller.state is ConnectionState.FAILED
        assert scheduler.pending == []
        assert dialer.calls == 1 + 5

    @pytest.mark.asyncio
    async def test_failed_is_terminal_until_explicit_connect(self, controller, dialer, scheduler):
        await controller.connect()
        dialer.up = False
        controller.connection_lost()
        for _ in range(5):
            await scheduler.fire_next()

        controller.connection_lost()
        assert scheduler.pending == []
        assert controller.state is ConnectionState.FAILED

        dialer.up = True
        await controller.connect()
        assert controller.state is ConnectionState.CONNECTED
        assert controller.attempt == 0

    @pytest.mark.asyncio
    async def test_successful_retry_resets_attempt(self, controller, dialer, scheduler):
        await controller.connect()
        dialer.up = False
        controller.connection_lost()
        await scheduler.fire_next()
        assert controller.attempt == 2

        dialer.up = True
        await scheduler.fire_next()
        assert controller.state is ConnectionState.CONNECTED
        assert controller.attempt == 0

        # a later drop starts again from the base delay
        controller.connection_lost()
        assert scheduler.delays[-1] == 1.0

    @pytest.mark.asyncio
    async def test_close_while_reconnecting_does_not_stack_timers(self, controller, dialer, scheduler):
        await controller.connect()
        controller.connection_lost()
        controller.connection_lost()
        assert len(scheduler.pending) == 1

    @pytest.mark.asyncio
    async def test_zero_attempts_fails_immediately(self, dialer, scheduler):
        controller = ReconnectionController(dialer, max_attempts=0, scheduler=scheduler)
        await controller.connect()
        controller.connection_lost()
        assert controller.state is ConnectionState.FAILED
        assert scheduler.delays == []


class TestCancel:
    @pytest.mark.asyncio
    async def test_cancel_drops_pending_retry(self, controller, dialer, scheduler):
        await controller.connect()
        controller.connection_lost()
        controller.cancel()
        assert controller.state is ConnectionState.IDLE

        await scheduler.fire_next()
        assert dialer.calls == 1
        assert controller.state is ConnectionState.IDLE


class TestListeners:
    @pytest.mark.asyncio
    async def test_transitions_are_reported(self, controller, dialer, scheduler):
        seen = []
        controller.add_listener(lambda state, attempt: seen.append((state, attempt)))
        await controller.connect()
        dialer.up = False
        controller.connection_lost()
        await scheduler.fire_next()

        assert seen == [
            (ConnectionState.CONNECTING, 0),
            (ConnectionState.CONNECTED, 0),
            (ConnectionState.RECONNECTING, 1),
            (ConnectionState.RECONNECTING, 2),
        ]

    @pytest.mark.asyncio
    async def test_remove_listener(self, controller):
        seen = []
        remove = controller.add_listener(lambda state, attempt: seen.append(state))
        remove()
        await controller.connect()
        assert seen == []


class TestAsyncioScheduler:
    @pytest.mark.asyncio
    async def test_real_timer_reconnects(self):
        outcomes = iter([None, TransportError("down"), None])

        async def connect():
            result = next(outcomes)
            if result is not None:
                raise result

        controller = ReconnectionController(connect, base_delay=0.01, scheduler=AsyncioScheduler())
        await controller.connect()
        controller.connection_lost()

        for _ in range(200):
            if controller.state is ConnectionState.CONNECTED:
                break
            await asyncio.sleep(0.01)
        assert controller.state is ConnectionState.CONNECTED
        assert controller.attempt == 0

    @pytest.mark.asyncio
    async def test_cancel_aborts_sleeping_task(self):
        calls = []

        async def connect():
            calls.append(1)

        controller = ReconnectionController(connect, base_delay=10.0, scheduler=AsyncioScheduler())
        await controller.connect()
        controller.connection_lost()
        controller.cancel()
        await asyncio.sleep(0)
        assert calls == [1]
        assert controller.state is ConnectionState.IDLE
