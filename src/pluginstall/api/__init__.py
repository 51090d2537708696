"""Clients for remote plugin APIs."""

from .spiget import SpigetClient, SpigetPlugin

__all__ = [
    "SpigetClient",
    "SpigetPlugin",
]
