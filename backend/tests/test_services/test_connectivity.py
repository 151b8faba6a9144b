"""Tests for connectivity tracking and probing."""

import httpx
import pytest

from trip_tracker.services.connectivity import ConnectivityMonitor, ConnectivityProbe


class TestConnectivityMonitor:
    @pytest.mark.asyncio
    async def test_fires_on_offline_to_online(self):
        monitor = ConnectivityMonitor(initial_state=False)
        calls = []

        async def callback():
            calls.append(monitor.current_state())

        monitor.on_became_online(callback)

        assert await monitor.report(True) is True
        assert calls == [True]
        assert monitor.current_state() is True

    @pytest.mark.asyncio
    async def test_repeated_online_reports_fire_once(self):
        monitor = ConnectivityMonitor(initial_state=False)
        calls = []

        async def callback():
            calls.append(1)

        monitor.on_became_online(callback)
        for _ in range(5):
            await monitor.report(True)

        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_each_flap_fires_once(self):
        monitor = ConnectivityMonitor(initial_state=False)
        calls = []

        async def callback():
            calls.append(1)

        monitor.on_became_online(callback)
        for state in [True, False, False, True, True, False, True]:
            await monitor.report(state)

        assert len(calls) == 3

    @pytest.mark.asyncio
    async def test_going_offline_does_not_fire(self):
        monitor = ConnectivityMonitor(initial_state=True)
        calls = []

        async def callback():
            calls.append(1)

        monitor.on_became_online(callback)
        assert await monitor.report(False) is False
        assert calls == []
        assert monitor.current_state() is False

    @pytest.mark.asyncio
    async def test_unsubscribe(self):
        monitor = ConnectivityMonitor()
        calls = []

        async def callback():
            calls.append(1)

        unsubscribe = monitor.on_became_online(callback)
        unsubscribe()
        unsubscribe()
        await monitor.report(True)

        assert calls == []

    @pytest.mark.asyncio
    async def test_failing_callback_does_not_block_others(self):
        monitor = ConnectivityMonitor()
        calls = []

        async def broken():
            raise RuntimeError("boom")

        async def healthy():
            calls.append(1)

        monitor.on_became_online(broken)
        monitor.on_became_online(healthy)

        assert await monitor.report(True) is True
        assert calls == [1]


class TestConnectivityProbe:
    @pytest.mark.asyncio
    async def test_reachable(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.method)
            return httpx.Response(204)

        probe = ConnectivityProbe(url="https://probe.test/", transport=httpx.MockTransport(handler))
        assert await probe.check() is True
        assert seen == ["HEAD"]

    @pytest.mark.asyncio
    async def test_server_error_counts_as_unreachable(self):
        probe = ConnectivityProbe(
            url="https://probe.test/",
            transport=httpx.MockTransport(lambda request: httpx.Response(503)),
        )
        assert await probe.check() is False

    @pytest.mark.asyncio
    async def test_transport_error_counts_as_unreachable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("no route to host", request=request)

        probe = ConnectivityProbe(url="https://probe.test/", transport=httpx.MockTransport(handler))
        assert await probe.check() is False
