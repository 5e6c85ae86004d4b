import json

import pytest

from proxyctl.console import Console


@pytest.mark.asyncio
async def test_export_then_import_round_trip_through_files(gateway, gateway_state, tmp_path):
    src = tmp_path / "routes.json"
    src.write_text(
        json.dumps(
            [
                {"name": "web", "domain": "web.localhost", "target": "web:3000", "enabled": True},
                {"name": "api", "domain": "api.localhost", "target": "api:8000", "enabled": False},
            ]
        ),
        encoding="utf-8",
    )

    async with Console(gateway, settle_delay_s=0.0) as console:
        msg = await console.import_config(src)
        assert msg == "Imported 2 routes"
        assert [r.domain for r in console.state.routes] == ["web.localhost", "api.localhost"]
        assert console.reconciler.change_set() == {1, 2}

        out = tmp_path / "export.json"
        assert await console.export_config(out) == 2

    exported = json.loads(out.read_text(encoding="utf-8"))
    assert exported[1] == {"name": "api", "domain": "api.localhost", "target": "api:8000", "enabled": False}


@pytest.mark.asyncio
async def test_import_rejects_malformed_file(gateway, gateway_state, tmp_path):
    src = tmp_path / "bad.json"
    src.write_text('{"name": "not a list"}', encoding="utf-8")

    async with Console(gateway) as console:
        with pytest.raises(ValueError):
            await console.import_config(src)

    assert "import" not in gateway_state["calls"]


@pytest.mark.asyncio
async def test_load_fills_every_view(gateway, gateway_state):
    gateway_state["routes"] = [
        {"id": 1, "name": "web", "domain": "web.localhost", "target": "web:3000", "enabled": True},
    ]
    gateway_state["applied"] = [
        {"id": 1, "name": "web", "domain": "web.localhost", "target": "web:3000", "enabled": True},
        {"id": 2, "name": "gone", "domain": "gone.localhost", "target": "x:1", "enabled": True},
    ]
    gateway_state["unhealthy"][1] = "timeout"

    async with Console(gateway) as console:
        await console.load()
        assert console.reconciler.diff().removed == {2}
        assert console.health.health_class(1) == "status-unhealthy"
        assert console.health.health_tooltip(1) == "timeout"


@pytest.mark.asyncio
async def test_close_stops_poller(gateway, gateway_state):
    console = Console(gateway, health_interval_s=30)
    console.health.start()
    assert console.health.running
    await console.close()
    assert not console.health.running
