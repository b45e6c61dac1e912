"""
Data source — fetches concept-map graphs from the extraction backend.

The backend exposes:

    POST /extract_from_text   {"topic", "text"} -> graph, or {"task_id"}
    GET  /tasks/{task_id}     {"status": "pending"|"running"|"completed"|"failed",
                               "result": graph, "error": str}
    GET  /sample              graph

When extraction runs as a background task the client polls the task
endpoint at a fixed interval, giving up after a bounded number of attempts.
Every failure is raised as ``DataSourceError`` with the endpoint it came from.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional, Protocol

import aiohttp

from .config import BACKEND_URL, MAX_POLL_ATTEMPTS, POLL_INTERVAL_SECONDS, REQUEST_TIMEOUT_SECONDS
from .errors import DataSourceError, InvalidConceptMapDataError
from .models import ConceptMapData
from .parser import concept_map_from_dict

logger = logging.getLogger(__name__)


class ConceptMapSource(Protocol):
    async def fetch(self, topic: str, text: str) -> ConceptMapData: ...


class StaticSource:
    """Always returns the same graph."""

    def __init__(self, data: ConceptMapData):
        self.data = data

    async def fetch(self, topic: str, text: str) -> ConceptMapData:
        return self.data


class BackendClient:
    """HTTP client for the extraction backend."""

    def __init__(
        self,
        base_url: str = BACKEND_URL,
        poll_interval: float = POLL_INTERVAL_SECONDS,
        max_attempts: int = MAX_POLL_ATTEMPTS,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        sample: bool = False,
    ):
        self.base_url = base_url.rstrip("/")
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.sample = sample

    async def fetch(self, topic: str, text: str) -> ConceptMapData:
        """Extract a graph for ``topic`` (and optional source ``text``)."""
        async with aiohttp.ClientSession(timeout=self.timeout) as session:
            if self.sample:
                payload = await self._request(session, "GET", "/sample")
            else:
                payload = await self._request(
                    session, "POST", "/extract_from_text", json={"topic": topic, "text": text}
                )
                if isinstance(payload, dict) and "task_id" in payload and "entities" not in payload:
                    payload = await self._poll_task(session, str(payload["task_id"]))

        try:
            return concept_map_from_dict(payload)
        except InvalidConceptMapDataError as e:
            raise DataSourceError(f"Malformed response from backend: {e}") from e

    async def _poll_task(self, session: aiohttp.ClientSession, task_id: str) -> Any:
        path = f"/tasks/{task_id}"
        for attempt in range(1, self.max_attempts + 1):
            status = await self._request(session, "GET", path)
            if not isinstance(status, dict):
                raise DataSourceError(f"Malformed task status from {path}")

            state = status.get("status")
            logger.debug(f"Task {task_id} status={state} (attempt {attempt}/{self.max_attempts})")

            if state == "completed":
                return status.get("result")
            if state == "failed":
                raise DataSourceError(f"Extraction task {task_id} failed: {status.get('error', 'unknown error')}")

            if attempt < self.max_attempts:
                await asyncio.sleep(self.poll_interval)

        raise DataSourceError(f"Extraction task {task_id} did not finish after {self.max_attempts} attempts")

    async def _request(
        self,
        session: aiohttp.ClientSession,
        method: str,
        path: str,
        json: Optional[dict] = None,
    ) -> Any:
        url = self.base_url + path
        try:
            async with session.request(method, url, json=json) as resp:
                if resp.status >= 400:
                    body = await resp.text()
                    raise DataSourceError(f"Backend returned {resp.status} for {path}: {body[:200]}")
                return await resp.json(content_type=None)
        except aiohttp.ClientError as e:
            raise DataSourceError(f"Error sending request to backend ({path}): {e}") from e
        except asyncio.TimeoutError as e:
            raise DataSourceError(f"Request to backend timed out ({path})") from e
        except ValueError as e:
            raise DataSourceError(f"Error parsing response from backend ({path}): {e}") from e
