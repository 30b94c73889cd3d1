import asyncio
import json
from collections import Counter
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx
import pytest
from typer.testing import CliRunner

from dexpipe.infrastructure.cache.response_cache import TieredResponseCache
from dexpipe.infrastructure.config.settings import PipelineSettings, clear_test_config
from dexpipe.infrastructure.http.pokeapi_client import PokeApiClient
from dexpipe.infrastructure.resilience.rate_limiter import RateLimiter

BASE = "https://pokeapi.co/api/v2"

POKEMON_NAMES = [
    "bulbasaur", "ivysaur", "venusaur", "charmander", "charmeleon", "charizard",
    "squirtle", "wartortle", "blastoise", "caterpie", "metapod", "butterfree",
]

MOVE_NAMES = {1: "pound", 2: "karate-chop", 3: "double-slap", 4: "comet-punch", 5: "mega-punch"}


def named(resource: str, name: str, resource_id: int) -> Dict[str, str]:
    return {"name": name, "url": f"{BASE}/{resource}/{resource_id}/"}


def learn_detail(method: str, level: int, group: str = "red-blue") -> Dict[str, Any]:
    return {
        "level_learned_at": level,
        "move_learn_method": {"name": method, "url": f"{BASE}/move-learn-method/1/"},
        "version_group": {"name": group, "url": f"{BASE}/version-group/1/"},
    }


def pokemon_payload(pokemon_id: int, name: str, moves: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
    return {
        "id": pokemon_id,
        "name": name,
        "height": 7,
        "weight": 69,
        "base_experience": 64,
        "order": pokemon_id,
        "is_default": True,
        "sprites": {
            "front_default": f"https://sprites.example/{pokemon_id}.png",
            "other": {"official-artwork": {"front_default": f"https://art.example/{pokemon_id}.png"}},
        },
        "types": [{"slot": 1, "type": named("type", "grass", 12)}],
        "abilities": [{"is_hidden": False, "slot": 1, "ability": named("ability", "overgrow", 65)}],
        "stats": [
            {"base_stat": 45, "effort": 0, "stat": named("stat", "hp", 1)},
            {"base_stat": 49, "effort": 0, "stat": named("stat", "attack", 2)},
        ],
        "species": named("pokemon-species", name, pokemon_id),
        "moves": moves or [],
        "game_indices": [],
        "cries": {"latest": "ignored"},
    }


def move_payload(move_id: int, name: str) -> Dict[str, Any]:
    return {
        "id": move_id,
        "name": name,
        "accuracy": 100,
        "effect_chance": None,
        "pp": 35,
        "priority": 0,
        "power": 40,
        "damage_class": {"name": "physical", "url": f"{BASE}/move-damage-class/2/"},
        "effect_entries": [
            {"effect": "Inflicts regular damage.", "short_effect": "Inflicts regular damage.",
             "language": {"name": "en", "url": f"{BASE}/language/9/"}},
        ],
        "type": named("type", "normal", 1),
        "target": named("move-target", "selected-pokemon", 10),
        "generation": named("generation", "generation-i", 1),
        "learned_by_pokemon": [],
    }


class FakePokeApi:
    """In-memory PokeAPI served through httpx.MockTransport, counting requests per path."""

    def __init__(self):
        self.pokemon: Dict[int, Dict[str, Any]] = {
            index: pokemon_payload(index, name) for index, name in enumerate(POKEMON_NAMES, start=1)
        }
        self.pokemon[25] = pokemon_payload(25, "pikachu")
        self.moves: Dict[int, Dict[str, Any]] = {
            move_id: move_payload(move_id, name) for move_id, name in MOVE_NAMES.items()
        }
        self.regions = {"kanto": {
            "id": 1, "name": "kanto", "locations": [named("location", "pallet-town", 1)],
            "main_generation": named("generation", "generation-i", 1),
            "pokedexes": [named("pokedex", "kanto", 2)], "version_groups": [],
        }}
        self.types = {"grass": {"id": 12, "name": "grass", "pokemon": [
            {"slot": 1, "pokemon": named("pokemon", "bulbasaur", 1)},
            {"slot": 1, "pokemon": named("pokemon", "ivysaur", 2)},
        ]}}
        self.failures: Dict[str, int] = {}
        self.malformed: set = set()
        self.calls: Counter = Counter()
        self.requests: List[httpx.Request] = []

    # --- Test controls ---

    def add_pokemon(self, pokemon_id: int, name: str, moves: Optional[List[Dict[str, Any]]] = None) -> None:
        self.pokemon[pokemon_id] = pokemon_payload(pokemon_id, name, moves)

    def add_move(self, move_id: int, name: str) -> None:
        self.moves[move_id] = move_payload(move_id, name)

    @staticmethod
    def move_entry(move_id: int, name: str, *details: Dict[str, Any]) -> Dict[str, Any]:
        """One element of a Pokemon's `moves` array."""
        return {"move": named("move", name, move_id), "version_group_details": list(details)}

    learn_detail = staticmethod(learn_detail)

    def fail(self, path: str, status: int) -> None:
        self.failures[f"/api/v2/{path.strip('/')}"] = status

    def break_body(self, path: str) -> None:
        self.malformed.add(f"/api/v2/{path.strip('/')}")

    def hits(self, path: str) -> int:
        return self.calls[f"/api/v2/{path.strip('/')}"]

    @property
    def total_calls(self) -> int:
        return sum(self.calls.values())

    # --- Routing ---

    def _listing(self, resource: str, entries: Dict[Any, Dict[str, Any]], request: httpx.Request) -> Dict[str, Any]:
        limit = int(request.url.params.get("limit", 20))
        offset = int(request.url.params.get("offset", 0))
        ordered = sorted(entries.values(), key=lambda e: e["id"])
        page = ordered[offset:offset + limit]
        return {
            "count": len(ordered),
            "next": None,
            "previous": None,
            "results": [named(resource, e["name"], e["id"]) for e in page],
        }

    def _lookup(self, entries: Dict[int, Dict[str, Any]], key: str) -> Optional[Dict[str, Any]]:
        if key.isdigit():
            return entries.get(int(key))
        return next((e for e in entries.values() if e["name"] == key), None)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.rstrip("/")
        self.calls[path] += 1

        if path in self.failures:
            return httpx.Response(self.failures[path], json={"detail": "failure"})
        if path in self.malformed:
            return httpx.Response(200, content=b"{not json")

        parts = path.split("/")[3:]  # drop "", "api", "v2"
        body: Optional[Dict[str, Any]] = None
        if parts == ["pokemon"]:
            body = self._listing("pokemon", self.pokemon, request)
        elif parts == ["move"]:
            body = self._listing("move", self.moves, request)
        elif parts == ["region"]:
            body = self._listing("region", {r["id"]: r for r in self.regions.values()}, request)
        elif len(parts) == 2 and parts[0] == "pokemon":
            body = self._lookup(self.pokemon, parts[1])
        elif len(parts) == 2 and parts[0] == "move":
            body = self._lookup(self.moves, parts[1])
        elif len(parts) == 2 and parts[0] == "region":
            body = self.regions.get(parts[1])
        elif len(parts) == 2 and parts[0] == "type":
            body = self.types.get(parts[1])

        if body is None:
            return httpx.Response(404, content=b"Not Found")
        return httpx.Response(200, content=json.dumps(body).encode())


@pytest.fixture
def fake_api() -> FakePokeApi:
    return FakePokeApi()


@pytest.fixture
def transport(fake_api: FakePokeApi) -> httpx.MockTransport:
    return httpx.MockTransport(fake_api.handler)


@pytest.fixture
def rate_limiter() -> RateLimiter:
    """A limiter that never delays, so tests run at full speed."""
    return RateLimiter(min_interval=0)


@pytest.fixture
def response_cache(tmp_path: Path):
    cache = TieredResponseCache(l2_dir=tmp_path / "http_cache")
    yield cache
    cache.close()


@pytest.fixture
def client(rate_limiter, response_cache, transport) -> PokeApiClient:
    return PokeApiClient(rate_limiter=rate_limiter, response_cache=response_cache, transport=transport)


@pytest.fixture
def uncached_client(rate_limiter, transport) -> PokeApiClient:
    """Client without a response cache, so every request reaches the fake API."""
    return PokeApiClient(rate_limiter=rate_limiter, transport=transport)


@pytest.fixture
def run(client):
    """Runs a coroutine to completion, then closes the shared client in the same loop."""
    def _run(coro):
        async def _wrapped():
            try:
                return await coro
            finally:
                await client.aclose()
        return asyncio.run(_wrapped())
    return _run


@pytest.fixture
def fast_settings(tmp_path: Path) -> PipelineSettings:
    """Settings with every pause disabled and the cache under tmp_path."""
    return PipelineSettings(
        min_request_interval=0,
        batch_pause_seconds=0,
        bulk_pause_seconds=0,
        related_pause_seconds=0,
        cache_dir=tmp_path / "http_cache",
    )


@pytest.fixture(scope="session")
def runner():
    """Provides a Typer CliRunner instance."""
    return CliRunner()


@pytest.fixture(autouse=True)
def reset_test_config():
    yield
    clear_test_config()
