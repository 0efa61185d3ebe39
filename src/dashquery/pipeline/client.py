"""
Upstream API client.

Async HTTP client for the dashboard list and single-cell view endpoints.
Every request carries the auth cookie; cell requests also send a fixed
user agent. Failures are raised as RequestError, TransportError or
DecodeError; nothing is retried.
"""

import asyncio
import contextlib
import time
from typing import Any, List, Optional, Type, TypeVar

import aiohttp
from pydantic import BaseModel, ValidationError

from ..config import ExtractorConfig
from ..data.schemas import Cell, CellView, Dashboard, DashboardList
from ..util.errors import (
    DecodeError,
    RequestError,
    TransportError,
    create_error_context,
)
from ..util.log import get_logger, log_extra

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class UpstreamClient:
    """
    HTTP client for the monitoring platform's dashboard API.

    Use as an async context manager; the session is shared by every request
    issued during a run.
    """

    def __init__(self, config: ExtractorConfig):
        self.config = config
        self.session: Optional[aiohttp.ClientSession] = None
        self._limiter: Optional[asyncio.Semaphore] = None
        if config.max_inflight_requests:
            self._limiter = asyncio.Semaphore(config.max_inflight_requests)

    async def __aenter__(self):
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def initialize(self) -> None:
        """Initialize the HTTP session."""
        if self.session and not self.session.closed:
            return

        kwargs: dict = {
            "headers": {"Cookie": self.config.cookie},
            # Set-Cookie from upstream must not change the auth cookie
            "cookie_jar": aiohttp.DummyCookieJar(),
        }
        if self.config.request_timeout is not None:
            kwargs["timeout"] = aiohttp.ClientTimeout(total=self.config.request_timeout)

        self.session = aiohttp.ClientSession(**kwargs)
        logger.debug("Upstream HTTP session initialized for %s", self.config.upstream)

    async def close(self) -> None:
        """Close the HTTP session."""
        if self.session and not self.session.closed:
            await self.session.close()
            logger.debug("Upstream HTTP session closed")

    async def list_dashboards(self) -> List[Dashboard]:
        """Fetch every dashboard with its cell references."""
        url = self.config.dashboards_url
        context = create_error_context("client", "list_dashboards", url=url)

        listed = await self._get_model(url, DashboardList, context=context)
        logger.info("Fetched %d dashboards from %s", len(listed.dashboards), url)
        return listed.dashboards

    async def fetch_cell_queries(self, cell: Cell) -> List[str]:
        """Fetch one cell's view and return its query texts in order."""
        view_link = cell.view_link
        url = self.config.cell_url(view_link)
        context = create_error_context("client", "fetch_cell_queries", cell_link=view_link, url=url)

        if not view_link:
            raise RequestError(url, "cell has no view link", context=context)

        view = await self._get_model(
            url,
            CellView,
            headers={"User-Agent": self.config.user_agent},
            context=context,
        )
        return view.query_texts()

    async def _get_model(
        self,
        url: str,
        model: Type[ModelT],
        headers: Optional[dict] = None,
        context=None,
    ) -> ModelT:
        """GET ``url`` and validate the JSON body against ``model``."""
        payload = await self._get_json(url, headers=headers, context=context)
        try:
            return model.model_validate(payload)
        except ValidationError as e:
            raise DecodeError(url, _first_validation_message(e), context=context, cause=e) from e

    async def _get_json(self, url: str, headers: Optional[dict] = None, context=None) -> Any:
        if not self.session:
            await self.initialize()

        limiter = self._limiter or contextlib.nullcontext()
        start_time = time.time()

        async with limiter:
            try:
                async with self.session.get(url, headers=headers) as response:
                    if not 200 <= response.status < 300:
                        raise TransportError(
                            url,
                            f"HTTP {response.status}",
                            status=response.status,
                            context=context,
                        )
                    try:
                        payload = await response.json(content_type=None)
                    except ValueError as e:
                        raise DecodeError(url, str(e), context=context, cause=e) from e
            except aiohttp.InvalidURL as e:
                raise RequestError(url, f"invalid URL: {e}", context=context, cause=e) from e
            except asyncio.TimeoutError as e:
                raise TransportError(url, "request timed out", context=context, cause=e) from e
            except aiohttp.ClientError as e:
                raise TransportError(url, str(e) or e.__class__.__name__, context=context, cause=e) from e
            except ValueError as e:
                # yarl rejects malformed URLs before any connection is made
                raise RequestError(url, str(e), context=context, cause=e) from e

        duration_ms = (time.time() - start_time) * 1000
        logger.debug(
            "GET %s in %.1fms",
            url,
            duration_ms,
            extra=log_extra(cell_link=getattr(context, "cell_link", None), duration_ms=round(duration_ms, 1)),
        )
        return payload


def _first_validation_message(error: ValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ())) or "body"
    return f"{location}: {first.get('msg', 'invalid value')}"
