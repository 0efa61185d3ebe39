"""
Pytest configuration and shared fixtures for dashquery tests.

Provides an in-process fake of the upstream dashboard API, configuration
factories and logging isolation for CLI runs.
"""

import asyncio
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Tuple

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from dashquery.config import ExtractorConfig

TEST_COOKIE = "session=abc123"


class FakeUpstream:
    """Serves the dashboard list and cell view endpoints from memory.

    Cell responses are keyed by view path. A dict is served as JSON, a str as
    a raw body and an int as an empty response with that status.
    """

    def __init__(self, cookie: str = TEST_COOKIE):
        self.cookie = cookie
        self.dashboards: Any = {"dashboards": []}
        self.cells: Dict[str, Any] = {}
        self.cell_delay = 0.0
        self.requests: List[Tuple[str, Any]] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.base_url = ""

    def add_dashboard(self, dashboard_id: str, name: str, cells: Dict[str, List[str]]) -> None:
        """Register a dashboard whose cells each hold the given query texts."""
        self.dashboards["dashboards"].append({
            "id": dashboard_id,
            "name": name,
            "cells": [{"links": {"view": path}} for path in cells],
        })
        for path, texts in cells.items():
            self.cells[path] = {"properties": {"queries": [{"text": text} for text in texts]}}

    def paths(self) -> List[str]:
        return [path for path, _ in self.requests]

    def cell_paths(self) -> List[str]:
        return [path for path in self.paths() if path != "/api/v2/dashboards"]

    def app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/api/v2/dashboards", self._list_dashboards)
        app.router.add_get("/{tail:.*}", self._cell_view)
        return app

    def _record(self, request: web.Request) -> None:
        self.requests.append((request.path, request.headers.copy()))

    def _respond(self, payload: Any) -> web.Response:
        if isinstance(payload, int):
            return web.Response(status=payload)
        if isinstance(payload, str):
            return web.Response(text=payload, content_type="application/json")
        return web.json_response(payload)

    async def _list_dashboards(self, request: web.Request) -> web.Response:
        self._record(request)
        if request.headers.get("Cookie") != self.cookie:
            return web.Response(status=401)
        return self._respond(self.dashboards)

    async def _cell_view(self, request: web.Request) -> web.Response:
        self._record(request)
        if request.headers.get("Cookie") != self.cookie:
            return web.Response(status=401)

        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.cell_delay:
                await asyncio.sleep(self.cell_delay)
        finally:
            self.in_flight -= 1

        if request.path not in self.cells:
            return web.Response(status=404)
        return self._respond(self.cells[request.path])


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep DASHQUERY_* variables from the outer environment out of tests."""
    for key in list(os.environ):
        if key.startswith("DASHQUERY_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
async def upstream():
    """Start a fake upstream API on a local port."""
    fake = FakeUpstream()
    server = TestServer(fake.app())
    await server.start_server()
    fake.base_url = f"http://{server.host}:{server.port}"
    yield fake
    await server.close()


@pytest.fixture
def dest_dir(tmp_path: Path) -> Path:
    return tmp_path / "dashboards"


@pytest.fixture
def make_config(dest_dir):
    """Factory for configs pointing at a test upstream and temp directory."""

    def _make(upstream_url: str = "http://upstream.test", **overrides) -> ExtractorConfig:
        values = {
            "upstream": upstream_url,
            "cookie": TEST_COOKIE,
            "dest_dir": dest_dir,
        }
        values.update(overrides)
        return ExtractorConfig(**values)

    return _make


@pytest.fixture
def restore_logging():
    """Undo the root logger changes made by the CLI's logging setup."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
