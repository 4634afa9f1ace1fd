"""健康检查测试。"""
from httpx import AsyncClient

import app.main as main_module


class TestHealth:
    async def test_healthy(self, client: AsyncClient, sqlite_engine, monkeypatch):
        monkeypatch.setattr(main_module, "engine", sqlite_engine)
        resp = await client.get("/api/v1/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ok"
        assert data["checks"] == {"api": "ok", "database": "ok", "redis": "ok"}

    async def test_degraded_when_redis_down(self, client: AsyncClient, sqlite_engine, redis_stub, monkeypatch):
        async def refuse():
            raise ConnectionError("redis down")

        monkeypatch.setattr(main_module, "engine", sqlite_engine)
        monkeypatch.setattr(redis_stub, "ping", refuse)
        resp = await client.get("/health")
        data = resp.json()
        assert data["status"] == "degraded"
        assert data["checks"]["redis"] == "error"
