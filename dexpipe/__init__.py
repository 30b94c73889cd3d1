"""dexpipe: remote data acquisition and caching pipeline for PokeAPI.

Fetches Pokemon, moves and regions through a single rate-limited HTTP
client, caches them in memory and on disk, and drives large bulk imports
with progress reporting and static fallback data.
"""

__version__ = "1.0.0"
