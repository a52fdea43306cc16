# store/ports.py
"""
Narrow read ports between store modules.

A module never touches a sibling's state. It gets a `GetterPort` that exposes
exactly the members named by one of the protocols below and nothing else.
"""

from typing import Any, Dict, List, Optional, Protocol


class ConsumersPort(Protocol):
    def get_item_by_id(self, item_id: Any) -> Optional[Dict[str, Any]]: ...

    def get_active(self) -> Optional[Dict[str, Any]]: ...

    def is_within_spending_limit(self, consumer: Any = None, next_order_value: float = 0) -> bool: ...


class ProductsPort(Protocol):
    def get_item_by_id(self, item_id: Any) -> Optional[Dict[str, Any]]: ...


class OccasionsPort(Protocol):
    def get_active(self) -> Optional[Dict[str, Any]]: ...

    def is_closed(self) -> bool: ...


class OrdersPort(Protocol):
    def get_item_by_id(self, item_id: Any) -> Optional[Dict[str, Any]]: ...

    def get_active(self) -> Optional[Dict[str, Any]]: ...

    def get_items_by_consumer(self, consumer: Any = None) -> List[Dict[str, Any]]: ...

    def count(self) -> int: ...

    def is_active_item_locked(self) -> bool: ...

    async def load(self, payload: Any = None) -> None: ...


def protocol_members(protocol: type) -> List[str]:
    return [name for name in vars(protocol) if not name.startswith("_")]


class GetterPort:
    """Expose only `protocol`'s members of `module`."""

    def __init__(self, module: Any, protocol: type):
        self._module = module
        self._protocol = protocol
        self._members = frozenset(protocol_members(protocol))
        missing = [name for name in self._members if not callable(getattr(module, name, None))]
        if missing:
            raise TypeError(f"{type(module).__name__} does not implement {protocol.__name__}: {missing}")

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_") or name not in self._members:
            raise AttributeError(f"{self._protocol.__name__} does not expose {name!r}")
        return getattr(self._module, name)

    def __repr__(self) -> str:
        return f"GetterPort({self._protocol.__name__} -> {type(self._module).__name__})"
