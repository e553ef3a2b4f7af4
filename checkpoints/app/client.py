"""HTTP client for a deployed checkpoint API."""

import logging
from typing import Any

import httpx
import pydantic

import common.settings
from checkpoints.app.models import CheckpointRecord

logger = logging.getLogger(__name__)

FETCH_TIMEOUT_SECONDS = 10.0


class CheckpointSourceError(RuntimeError):
    """The record source could not be reached or sent an unusable response."""


class CheckpointSource:
    """Fetches checkpoint records from ``<base_url>/api/dui-checkpoints``."""

    def __init__(
        self, base_url: str | None = None, timeout: float = FETCH_TIMEOUT_SECONDS
    ) -> None:
        self.base_url = (base_url or common.settings.CHECKPOINTS_API_URL).rstrip('/')
        self.timeout = timeout

    async def fetch(
        self,
        state: str | None = None,
        city: str | None = None,
        county: str | None = None,
        upcoming: bool = False,
    ) -> list[CheckpointRecord]:
        params: dict[str, str] = {}
        if state:
            params['state'] = state
        if city:
            params['city'] = city
        if county:
            params['county'] = county
        if upcoming:
            params['upcoming'] = 'true'

        url = f'{self.base_url}/api/dui-checkpoints'
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(url, params=params)
                response.raise_for_status()
                payload: Any = response.json()
        except httpx.HTTPError as exc:
            raise CheckpointSourceError(f'Fetching {url} failed: {exc}') from exc
        except ValueError as exc:
            raise CheckpointSourceError(f'{url} returned invalid JSON') from exc

        if not isinstance(payload, dict) or not payload.get('success'):
            error = payload.get('error') if isinstance(payload, dict) else None
            raise CheckpointSourceError(error or f'{url} returned an error response')
        try:
            records = [
                CheckpointRecord.model_validate(item)
                for item in payload.get('checkpoints') or []
            ]
        except pydantic.ValidationError as exc:
            raise CheckpointSourceError(f'{url} returned malformed records') from exc
        logger.info('Fetched %d checkpoints from %s', len(records), self.base_url)
        return records
