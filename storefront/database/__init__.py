# Database modules

from .orders import OrderStore, InMemoryOrderDatabase

__all__ = ["OrderStore", "InMemoryOrderDatabase"]
