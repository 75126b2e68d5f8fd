import asyncio

import pytest

from application.services.health_prober import HealthProber


@pytest.mark.asyncio
async def test_probe_all_reports_every_provider(make_provider):
    p1 = make_provider('API1')
    p2 = make_provider('API2', enabled=False)
    p2.probe.return_value = False

    prober = HealthProber([p1, p2], probe_timeout=1.0)
    results = await prober.probe_all()

    assert results == {'API1': True, 'API2': False}
    p2.probe.assert_awaited_once()


@pytest.mark.asyncio
async def test_exceptions_count_as_down(make_provider):
    p1 = make_provider('API1')
    p1.probe.side_effect = RuntimeError('boom')

    prober = HealthProber([p1, make_provider('API2')], probe_timeout=1.0)

    assert await prober.probe_all() == {'API1': False, 'API2': True}


@pytest.mark.asyncio
async def test_slow_probe_times_out(make_provider):
    async def hang(deadline=None):
        await asyncio.sleep(10)
        return True

    p1 = make_provider('API1')
    p1.probe.side_effect = hang

    prober = HealthProber([p1], probe_timeout=0.05)

    assert await prober.probe_all() == {'API1': False}


@pytest.mark.asyncio
async def test_caller_deadline_caps_probe_timeout(make_provider):
    captured = []

    async def record(deadline=None):
        captured.append(deadline)
        return True

    p1 = make_provider('API1')
    p1.probe.side_effect = record
    deadline = asyncio.get_running_loop().time() + 0.5

    await HealthProber([p1], probe_timeout=30).probe_all(deadline)

    assert captured == [deadline]
