"""
Asset Source

Turns the remote catalog into a list of validated, reachable assets.

Pipeline, one candidate at a time:
1. list the catalog (fatal on failure)
2. shuffle the candidates
3. per candidate: dedup by name → resolve detail → probe image
4. stop at max_needed accepted assets or when candidates run out

A short result is not an error here; DeckBuilder decides sufficiency.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol

from constants import DETAIL_FETCH_ATTEMPTS
from exceptions import CandidateUnavailable
from metrics import record_candidate_verdict
from models import Asset, Candidate, CandidateDetail

logger = logging.getLogger(__name__)


class CatalogProvider(Protocol):
    async def list_candidates(self) -> list[Candidate]: ...

    async def fetch_detail(self, detail_ref: str) -> CandidateDetail: ...


class ReachabilityProber(Protocol):
    async def probe(self, url: str) -> bool: ...


class Verdict(Enum):
    """Accept/skip decision for one candidate."""
    ACCEPTED = "accepted"
    DUPLICATE = "duplicate"  # Name already accepted
    DETAIL_FAILED = "detail_failed"  # Detail call failed or payload malformed
    NO_IMAGE = "no_image"  # Detail has no artwork URL
    UNREACHABLE = "unreachable"  # Probe resolved False


@dataclass(frozen=True)
class CandidateResult:
    candidate: Candidate
    verdict: Verdict
    asset: Optional[Asset] = None


class AssetSource:
    """
    Sources validated assets from a catalog provider.

    Usage:
        source = AssetSource(catalog, prober)
        assets = await source.fetch_validated_assets(6)
    """

    def __init__(
        self,
        catalog: CatalogProvider,
        prober: ReachabilityProber,
        rng: random.Random | None = None,
        detail_attempts: int = DETAIL_FETCH_ATTEMPTS,
    ) -> None:
        self.catalog = catalog
        self.prober = prober
        self.rng = rng or random.Random()
        self.detail_attempts = max(1, detail_attempts)

    async def fetch_validated_assets(self, max_needed: int) -> list[Asset]:
        """
        Collect up to ``max_needed`` validated assets.

        Args:
            max_needed: Number of distinct assets wanted

        Returns:
            Accepted assets in acceptance order; may be shorter than max_needed

        Raises:
            CatalogUnavailable: the catalog list could not be fetched
        """
        if max_needed <= 0:
            return []

        candidates = list(await self.catalog.list_candidates())
        self.rng.shuffle(candidates)

        accepted: list[Asset] = []
        accepted_names: set[str] = set()
        skipped = 0

        for candidate in candidates:
            if len(accepted) >= max_needed:
                break

            result = await self.evaluate(candidate, accepted_names)
            record_candidate_verdict(result.verdict.value)

            if result.verdict is Verdict.ACCEPTED and result.asset is not None:
                accepted.append(result.asset)
                accepted_names.add(candidate.name)
            else:
                skipped += 1
                logger.debug("Skipped candidate %s: %s", candidate.name, result.verdict.value)

        logger.info(
            "Accepted %d/%d assets (%d skipped, %d candidates)",
            len(accepted),
            max_needed,
            skipped,
            len(candidates),
        )
        return accepted

    async def evaluate(self, candidate: Candidate, accepted_names: set[str]) -> CandidateResult:
        """Decide whether a single candidate becomes an asset."""
        if candidate.name in accepted_names:
            return CandidateResult(candidate, Verdict.DUPLICATE)

        detail = await self._resolve_detail(candidate)
        if detail is None:
            return CandidateResult(candidate, Verdict.DETAIL_FAILED)
        if not detail.image_url:
            return CandidateResult(candidate, Verdict.NO_IMAGE)

        if not await self.prober.probe(detail.image_url):
            return CandidateResult(candidate, Verdict.UNREACHABLE)

        return CandidateResult(candidate, Verdict.ACCEPTED, Asset(url=detail.image_url))

    async def _resolve_detail(self, candidate: Candidate) -> Optional[CandidateDetail]:
        for attempt in range(1, self.detail_attempts + 1):
            try:
                return await self.catalog.fetch_detail(candidate.detail_ref)
            except CandidateUnavailable as e:
                logger.debug(
                    "Detail for %s failed (attempt %d/%d): %s",
                    candidate.name,
                    attempt,
                    self.detail_attempts,
                    e.reason,
                )
        return None
