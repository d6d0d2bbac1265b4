"""Domain layer: item instances, player aggregates, and ledger records.

This layer depends only on stdlib and pydantic.
It must never import from services, infrastructure, commands, or config.
"""
