"""API Resilience Implementations.

Contains services for pacing outbound requests against a single global
interval and retrying transient failures with exponential backoff.
Bounded Context: API Resilience
"""
