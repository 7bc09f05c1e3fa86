"""
Test doubles for deck acquisition and sessions.
"""

from __future__ import annotations

import asyncio
from typing import Optional, Union

from exceptions import CandidateUnavailable, CatalogUnavailable
from models import Asset, Candidate, CandidateDetail, Tile

# Catalog entry value: image URL, None (no artwork), or an exception (detail failure)
EntryValue = Union[str, None, Exception]


class FakeCatalog:
    """In-memory catalog provider that records every call."""

    def __init__(self, entries: list[tuple[str, EntryValue]], fail_list: bool = False):
        self.entries = entries
        self.fail_list = fail_list
        self.list_calls = 0
        self.detail_calls: list[str] = []

    async def list_candidates(self) -> list[Candidate]:
        self.list_calls += 1
        if self.fail_list:
            raise CatalogUnavailable("upstream returned 503")
        return [
            Candidate(name=name, detail_ref=f"detail://{index}")
            for index, (name, _) in enumerate(self.entries)
        ]

    async def fetch_detail(self, detail_ref: str) -> CandidateDetail:
        index = int(detail_ref.split("//")[1])
        name, value = self.entries[index]
        self.detail_calls.append(name)
        await asyncio.sleep(0)
        if isinstance(value, Exception):
            raise CandidateUnavailable(detail_ref, str(value))
        return CandidateDetail(image_url=value)


class FakeProber:
    """Prober that rejects a fixed set of URLs."""

    def __init__(self, unreachable: Optional[set[str]] = None):
        self.unreachable = unreachable or set()
        self.probed: list[str] = []

    async def probe(self, url: str) -> bool:
        self.probed.append(url)
        return url not in self.unreachable


class StubDeckBuilder:
    """
    Deck builder returning predictable decks.

    Tiles 2k and 2k+1 share asset k, so tests know which ids pair up.
    """

    def __init__(self, error: Optional[Exception] = None, gate: Optional[asyncio.Event] = None):
        self.error = error
        self.gate = gate
        self.requests: list[int] = []

    async def build_deck(self, pair_count: int) -> list[Tile]:
        self.requests.append(pair_count)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return make_tiles(pair_count)


def make_tiles(pair_count: int) -> list[Tile]:
    """Unshuffled deck: ids 0,1 → asset 0; ids 2,3 → asset 1; ..."""
    tiles = []
    for pair in range(pair_count):
        asset = Asset(url=f"https://img.example/{pair}.png")
        tiles.append(Tile(id=2 * pair, asset=asset))
        tiles.append(Tile(id=2 * pair + 1, asset=asset))
    return tiles


def image_entries(count: int) -> list[tuple[str, EntryValue]]:
    return [(f"mon-{i}", f"https://img.example/mon-{i}.png") for i in range(count)]
