"""Caching Service Implementations.

Two tiers live here: the process-lifetime entity cache (id/name maps plus
the bounded recent list) and the response cache that stores raw HTTP
bodies in L1 memory and L2 disk storage with byte budgets.
Bounded Context: Cache Management
"""
