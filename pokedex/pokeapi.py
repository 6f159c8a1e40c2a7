# pokedex/pokeapi.py
from __future__ import annotations

import asyncio
import re
import time
from typing import Any, Dict, Optional, Tuple

import aiohttp

from dex_core.config import Settings, DEFAULT_POKEAPI_BASE, DEFAULT_POKEAPI_CACHE_TTL, DEFAULT_POKEAPI_TIMEOUT
from dex_core.errors import CatalogError, InvalidInput, NotFound
from .models import Creature

_POKEAPI_UA = "DexChat/1.0"
_KEY_RE = re.compile(r"[a-z0-9-]+")
_CHAIN_ID_RE = re.compile(r"\d+/?")
MAX_CACHE_ENTRIES = 2048


def _clean_key(key: Any) -> str:
    return str(key if key is not None else "").strip().lower()


def _catalog_key(raw: Any, label: str) -> str:
    """Catalog slugs only; anything else would rewrite the request path."""
    key = _clean_key(raw)
    if not key:
        raise InvalidInput(f"{label} cannot be empty.")
    if not _KEY_RE.fullmatch(key):
        raise InvalidInput(f"{label} may only contain letters, digits and hyphens.")
    return key


class PokeAPIClient:
    """
    Read-only lookups against PokeAPI. Each request opens its own short-lived
    ClientSession; successful payloads are kept in a per-client TTL cache
    (ttl=0 disables it). Records are immutable, so sharing cached entries
    between concurrent requests is safe.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_POKEAPI_BASE,
        timeout: float = DEFAULT_POKEAPI_TIMEOUT,
        cache_ttl: float = DEFAULT_POKEAPI_CACHE_TTL,
    ):
        self.base_url = base_url.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self.cache_ttl = cache_ttl
        self._cache: Dict[str, Tuple[Dict[str, Any], float]] = {}  # url -> (data, expiry)

    @classmethod
    def from_settings(cls, settings: Settings) -> "PokeAPIClient":
        return cls(
            base_url=settings.pokeapi_base_url,
            timeout=settings.pokeapi_timeout,
            cache_ttl=settings.pokeapi_cache_ttl,
        )

    # ---------- cache ----------
    def _get_cached(self, url: str) -> Optional[Dict[str, Any]]:
        hit = self._cache.get(url)
        if hit is None:
            return None
        data, expiry = hit
        if time.time() > expiry:
            del self._cache[url]
            return None
        return data

    def _set_cached(self, url: str, data: Dict[str, Any]) -> None:
        if self.cache_ttl <= 0:
            return
        now = time.time()
        if len(self._cache) >= MAX_CACHE_ENTRIES:
            for stale in [k for k, (_, expiry) in self._cache.items() if now > expiry]:
                del self._cache[stale]
        while len(self._cache) >= MAX_CACHE_ENTRIES:
            # oldest insertion goes first
            del self._cache[next(iter(self._cache))]
        self._cache[url] = (data, now + self.cache_ttl)

    def clear_cache(self) -> None:
        self._cache.clear()

    # ---------- transport ----------
    async def _fetch_json(self, url: str, key: str, kind: str) -> Dict[str, Any]:
        cached = self._get_cached(url)
        if cached is not None:
            return cached
        print(f"[PokeAPI] cache miss, fetching {url}")
        try:
            async with aiohttp.ClientSession(timeout=self._timeout, headers={"User-Agent": _POKEAPI_UA}) as sess:
                async with sess.get(url) as resp:
                    if resp.status == 404:
                        raise NotFound(key, kind)
                    if resp.status != 200:
                        raise CatalogError(f"PokeAPI returned status {resp.status} for {kind} '{key}'")
                    data = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            print(f"[PokeAPI] Request failed for {url}: {e!r}")
            raise CatalogError(f"Failed to reach PokeAPI for {kind} '{key}': {e}") from e
        if not isinstance(data, dict):
            raise CatalogError(f"Unexpected PokeAPI payload for {kind} '{key}'")
        self._set_cached(url, data)
        return data

    # ---------- lookups ----------
    async def get_pokemon(self, name_or_id: Any) -> Creature:
        key = _catalog_key(name_or_id, "Pokémon name")
        data = await self._fetch_json(f"{self.base_url}/pokemon/{key}", key, "Pokémon")
        try:
            return Creature.from_api(data)
        except (KeyError, TypeError, ValueError) as e:
            raise CatalogError(f"Malformed Pokémon record for '{key}': {e}") from e

    async def get_species(self, name_or_id: Any) -> Dict[str, Any]:
        key = _catalog_key(name_or_id, "Species name or id")
        return await self._fetch_json(f"{self.base_url}/pokemon-species/{key}", key, "Pokémon species")

    async def get_evolution_chain(self, chain_url: str) -> Dict[str, Any]:
        url = str(chain_url or "").strip()
        if not url:
            raise InvalidInput("Evolution chain URL cannot be empty.")
        prefix = f"{self.base_url}/evolution-chain/"
        if not url.startswith(prefix) or not _CHAIN_ID_RE.fullmatch(url[len(prefix):]):
            raise InvalidInput("Evolution chain URL must point at this catalog's evolution-chain endpoint.")
        return await self._fetch_json(url, url, "Evolution chain")

    async def get_species_evolution_chain(self, name_or_id: Any) -> Dict[str, Any]:
        species = await self.get_species(name_or_id)
        chain_url = (species.get("evolution_chain") or {}).get("url") or ""
        if not chain_url:
            raise NotFound(_clean_key(name_or_id), "Evolution chain")
        return await self.get_evolution_chain(chain_url)

    async def get_move(self, name: Any) -> Dict[str, Any]:
        key = _catalog_key(_clean_key(name).replace(" ", "-"), "Move name")
        return await self._fetch_json(f"{self.base_url}/move/{key}", key, "Move")
