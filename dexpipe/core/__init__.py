"""Core Application Layer: Orchestrates use cases and application logic.

Connects the domain layer with the infrastructure layer through interfaces.
Contains the repository facade, the bulk fetch orchestrators and the
command handler.
"""
