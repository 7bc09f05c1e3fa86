"""
Deck Builder

Assembles exactly N validated pairs into a shuffled deck of 2N hidden tiles.
"""

from __future__ import annotations

import logging
import random

from asset_source import AssetSource
from exceptions import InsufficientAssets
from models import Tile

logger = logging.getLogger(__name__)


class DeckBuilder:
    """Builds decks from an AssetSource."""

    def __init__(self, asset_source: AssetSource, rng: random.Random | None = None) -> None:
        self.asset_source = asset_source
        # Independent of the asset source's shuffle
        self.rng = rng or random.Random()

    async def build_deck(self, pair_count: int) -> list[Tile]:
        """
        Build a shuffled deck for ``pair_count`` pairs.

        Tile ids follow the shuffled order, so an id says nothing about
        which tile it pairs with.

        Raises:
            ValueError: pair_count < 1
            CatalogUnavailable: propagated from the asset source
            InsufficientAssets: fewer than pair_count assets were found
        """
        if pair_count < 1:
            raise ValueError(f"pair_count must be positive, got {pair_count}")

        assets = await self.asset_source.fetch_validated_assets(pair_count)
        if len(assets) < pair_count:
            raise InsufficientAssets(requested=pair_count, found=len(assets))

        faces = [asset for asset in assets for _ in range(2)]
        self.rng.shuffle(faces)
        tiles = [Tile(id=index, asset=asset) for index, asset in enumerate(faces)]

        logger.info("Built deck of %d tiles for %d pairs", len(tiles), pair_count)
        return tiles
