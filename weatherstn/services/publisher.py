"""Batch delivery of unpublished observations to the remote collector.

Each cycle sends every pending row as one JSON array. Rows are flagged as
published only after the collector answers 201 Created; anything else leaves
them pending so the same batch goes out again next cycle.
"""
from __future__ import annotations

import json
import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from ..api.schemas import observations_to_wire
from ..core.periodic import PeriodicTask
from ..domain.interfaces import ObservationStore
from ..domain.models import EndpointConfig
from ..storage.sqlite_repo import StorageError

logger = logging.getLogger(__name__)

EXPECTED_STATUS = 201


class Publisher(PeriodicTask):
    name = "publisher"

    def __init__(
        self,
        store: ObservationStore,
        endpoint: EndpointConfig,
        client: Optional[httpx.AsyncClient] = None,
        interval: float = 60,
        timeout: float = 10.0,
    ) -> None:
        super().__init__(interval)
        self._store = store
        self._endpoint = endpoint
        self._client = client
        self._timeout = float(timeout)
        self.last_status: Optional[int] = None
        self.last_error: Optional[str] = None

    async def tick(self) -> None:
        await self.process()

    async def process(self) -> int:
        """Run one publish cycle. Returns the number of rows marked published."""
        try:
            batch = await self._store.read_unpublished()
        except StorageError as e:
            logger.error("Failed to read unpublished observations from store: %s", e)
            self.last_error = str(e)
            return 0

        if not batch:
            logger.info("No unpublished observations seen")
            return 0

        try:
            body = json.dumps(observations_to_wire(batch), allow_nan=False).encode("utf-8")
        except (TypeError, ValueError, ValidationError) as e:
            logger.error("Failed to serialize %d unpublished observations: %s", len(batch), e)
            self.last_error = str(e)
            return 0

        client = self._client or httpx.AsyncClient(timeout=self._timeout)
        try:
            try:
                request = client.build_request(
                    self._endpoint.method,
                    self._endpoint.url,
                    content=body,
                    headers={"Content-Type": "application/json"},
                )
            except (httpx.InvalidURL, httpx.UnsupportedProtocol, ValueError) as e:
                logger.error("Failed to create request for %s: %s", self._endpoint.url, e)
                self.last_error = str(e)
                return 0

            try:
                resp = await client.send(request)
            except httpx.HTTPError as e:
                logger.warning("Failed to send %d observations: %s", len(batch), e)
                self.last_error = str(e)
                return 0
        finally:
            if self._client is None:
                await client.aclose()

        self.last_status = resp.status_code
        if resp.status_code != EXPECTED_STATUS:
            logger.error(
                "Unexpected status code %d from %s, batch of %d kept for retry",
                resp.status_code, self._endpoint.url, len(batch),
            )
            self.last_error = f"HTTP {resp.status_code}"
            return 0

        self.last_error = None
        first, last = batch[0], batch[-1]
        up_to_id = max((o.id for o in batch if o.id is not None), default=None)
        try:
            await self._store.mark_published(first.timestamp, last.timestamp, up_to_id=up_to_id)
        except StorageError as e:
            # Rows stay pending and get resent; the collector tolerates duplicates
            logger.error("Failed to update published rows: %s", e)
            self.last_error = str(e)
            return 0

        logger.info(
            "Published %d observations (%d..%d)", len(batch), first.timestamp, last.timestamp
        )
        return len(batch)
