"""
Remote Catalog Client

HTTP access to the image catalog (PokeAPI) and the image reachability probe.
Both share one aiohttp.ClientSession owned by the web application.

Failure semantics:
- list_candidates(): any failure raises CatalogUnavailable (fatal to the build)
- fetch_detail(): any failure raises CandidateUnavailable (the candidate is skipped)
- probe(): never raises, resolves False on any failure
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import aiohttp
from pydantic import BaseModel, Field, ValidationError

from constants import (
    CATALOG_BASE_URL,
    CATALOG_LIST_LIMIT,
    CATALOG_REQUEST_TIMEOUT_SECONDS,
    IMAGE_PROBE_TIMEOUT_SECONDS,
)
from exceptions import CandidateUnavailable, CatalogUnavailable
from metrics import track_upstream_call
from models import Candidate, CandidateDetail

logger = logging.getLogger(__name__)

_UPSTREAM_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError, ValueError, ValidationError)


# === Upstream payloads ===


class CatalogEntry(BaseModel):
    name: str
    url: str


class CatalogPage(BaseModel):
    results: list[CatalogEntry]


class ArtworkSprites(BaseModel):
    front_default: Optional[str] = None


class OtherSprites(BaseModel):
    official_artwork: Optional[ArtworkSprites] = Field(default=None, alias="official-artwork")


class Sprites(BaseModel):
    other: Optional[OtherSprites] = None


class PokemonDetail(BaseModel):
    sprites: Sprites

    @property
    def artwork_url(self) -> Optional[str]:
        other = self.sprites.other
        if other is None or other.official_artwork is None:
            return None
        return other.official_artwork.front_default or None


# === Clients ===


def create_http_session() -> aiohttp.ClientSession:
    """Create the client session shared by the catalog and the prober."""
    return aiohttp.ClientSession(headers={"User-Agent": "memory-match/0.1"})


class PokeApiCatalog:
    """
    Catalog provider backed by the PokeAPI REST endpoints.

    Usage:
        async with create_http_session() as http:
            catalog = PokeApiCatalog(http)
            candidates = await catalog.list_candidates()
            detail = await catalog.fetch_detail(candidates[0].detail_ref)
    """

    def __init__(
        self,
        http: aiohttp.ClientSession,
        base_url: str = CATALOG_BASE_URL,
        list_limit: int = CATALOG_LIST_LIMIT,
        timeout_seconds: float = CATALOG_REQUEST_TIMEOUT_SECONDS,
    ) -> None:
        self.http = http
        self.base_url = base_url.rstrip("/")
        self.list_limit = list_limit
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)

    async def _get_json(self, url: str, params: dict[str, Any] | None = None) -> Any:
        async with self.http.get(url, params=params, timeout=self.timeout) as resp:
            resp.raise_for_status()
            return await resp.json(content_type=None)

    async def list_candidates(self) -> list[Candidate]:
        """
        Fetch the full candidate list with a single request.

        Raises:
            CatalogUnavailable: network error, bad status, or malformed payload
        """
        url = f"{self.base_url}/pokemon"
        try:
            with track_upstream_call("catalog"):
                payload = await self._get_json(url, params={"limit": self.list_limit})
            page = CatalogPage.model_validate(payload)
        except _UPSTREAM_ERRORS as e:
            logger.warning("Catalog list failed: %s", e)
            raise CatalogUnavailable(f"{type(e).__name__}: {e}") from e

        logger.info("Fetched catalog with %d candidates", len(page.results))
        return [Candidate(name=entry.name, detail_ref=entry.url) for entry in page.results]

    async def fetch_detail(self, detail_ref: str) -> CandidateDetail:
        """
        Resolve a candidate to its artwork URL.

        Raises:
            CandidateUnavailable: the detail could not be fetched or parsed
        """
        try:
            with track_upstream_call("detail"):
                payload = await self._get_json(detail_ref)
            detail = PokemonDetail.model_validate(payload)
        except _UPSTREAM_ERRORS as e:
            raise CandidateUnavailable(detail_ref, f"{type(e).__name__}: {e}") from e

        return CandidateDetail(image_url=detail.artwork_url)


class ImageProber:
    """Checks that an image URL actually serves an image."""

    def __init__(
        self,
        http: aiohttp.ClientSession,
        timeout_seconds: float = IMAGE_PROBE_TIMEOUT_SECONDS,
    ) -> None:
        self.http = http
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)

    async def probe(self, url: str) -> bool:
        """Return True if ``url`` loads as an image. Never raises."""
        try:
            with track_upstream_call("probe"):
                async with self.http.get(url, timeout=self.timeout) as resp:
                    if resp.status >= 400:
                        logger.debug("Probe %s returned HTTP %d", url, resp.status)
                        return False
                    if not resp.content_type.startswith("image/"):
                        logger.debug("Probe %s returned %s", url, resp.content_type)
                        return False
                    body = await resp.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.debug("Probe %s failed: %s", url, e)
            return False

        return len(body) > 0
