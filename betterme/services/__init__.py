"""Async services wiring the progression core to storage and identity"""

from betterme.services.container import ServiceContainer

__all__ = ["ServiceContainer"]
