# store/main.py
"""
Store aggregator.

Builds the five list modules around one FSM, wires their read ports, and
offers path-based access (`"consumers/get_items"`) to getters, mutations and
actions. `init()` registers every module's observers exactly once, in
MODULE_ORDER; that order is the order in which observers of a shared hook run.
"""

import asyncio
import inspect
from collections.abc import Mapping
from typing import Any, Callable, Dict, Iterator, Optional, Tuple

from config.constants import GENERIC_UNKNOWN_ERROR, MODULE_ORDER
from config.enums import Transition as tr
from config.settings import Settings
from core.errors import TransitionRejection
from core.feedback import FeedbackItem
from core.fsm_engine import ENTER_ANY_STATE, FSMEngine
from core.list_module import ListModule, ModuleDefinition
from services.api import InMemoryApi
from services.main import Services, build_services
from store.consumers import ConsumersModule
from store.occasions import OccasionsModule
from store.orders import OrdersModule
from store.ports import ConsumersPort, GetterPort, OccasionsPort, OrdersPort, ProductsPort
from store.products import ProductsModule
from store.receipt import ReceiptModule
from utils.logger import get_logger, log_decision

MODULE_CLASSES = {
    "consumers": ConsumersModule,
    "products": ProductsModule,
    "occasions": OccasionsModule,
    "orders": OrdersModule,
    "receipt": ReceiptModule,
}


def split_path(path: str) -> Tuple[str, str]:
    module, _, name = path.partition("/")
    if not name:
        raise KeyError(f"Expected '<module>/<name>', got {path!r}")
    return module, name


class StoreGetters(Mapping):
    """Read-only view over all module getters. Getters without parameters are evaluated on access."""

    def __init__(self, definitions: Dict[str, ModuleDefinition]):
        self._definitions = definitions

    def __getitem__(self, path: str) -> Any:
        module, name = split_path(path)
        fn = self._definitions[module].getters[name]
        if inspect.signature(fn).parameters:
            return fn
        return fn()

    def __iter__(self) -> Iterator[str]:
        for module, definition in self._definitions.items():
            for name in definition.getters:
                yield f"{module}/{name}"

    def __len__(self) -> int:
        return sum(len(d.getters) for d in self._definitions.values())


class Store:
    def __init__(self, fsm: FSMEngine, modules: Dict[str, ListModule], services: Services, api=None, settings: Optional[Settings] = None):
        self.fsm = fsm
        self.modules = modules
        self.services = services
        self.api = api
        self.settings = settings
        self.definitions = {name: module.as_module() for name, module in modules.items()}
        self.getters = StoreGetters(self.definitions)
        self.state: Dict[str, Any] = {"fsm": fsm.state}
        self.state.update({name: definition.state for name, definition in self.definitions.items()})
        self.initialized = False
        self.logger = get_logger("tabkeeper.store")

    def __getitem__(self, name: str) -> ListModule:
        return self.modules[name]

    async def init(self) -> None:
        """Register every module's observers. Safe to call more than once."""
        if self.initialized:
            return
        self.fsm.observe(ENTER_ANY_STATE, self._mirror_state, owner="store")
        for name in MODULE_ORDER:
            await self.modules[name].init()
        self.initialized = True
        log_decision(self.logger, "store", "store.initialized", "observers registered", {"modules": MODULE_ORDER})

    def _mirror_state(self, lifecycle, payload) -> None:
        self.state["fsm"] = lifecycle.to_state

    async def load(self):
        """Load the catalogs, then leave the login state."""
        await asyncio.gather(
            self.modules["consumers"].load(),
            self.modules["products"].load(),
            self.modules["occasions"].load(),
        )
        return await self.fsm.do(tr.CLOSE_LOGIN)

    def _resolve(self, path: str, kind: str) -> Callable:
        module, name = split_path(path)
        group = getattr(self.definitions[module], kind)
        if name not in group:
            raise KeyError(f"Unknown {kind[:-1]} {path!r}")
        return group[name]

    def commit(self, path: str, *args, **kwargs) -> Any:
        return self._resolve(path, "mutations")(*args, **kwargs)

    async def dispatch(self, path: str, *args, **kwargs) -> Any:
        return await self._resolve(path, "actions")(*args, **kwargs)

    async def report(self, error: BaseException) -> FeedbackItem:
        """Publish a transition error for the user, then run its `on_after_error`."""
        if isinstance(error, TransitionRejection):
            item = error.to_feedback_item()
        else:
            item = FeedbackItem(is_error=True, message=GENERIC_UNKNOWN_ERROR, data={"error": repr(error)})

        self.services.feedback.add(item)
        log_decision(self.logger, "store", "transition.reported", item.message, {"error": repr(error)})

        if item.on_after_error is not None:
            result = item.on_after_error()
            if inspect.isawaitable(result):
                await result
        return item

    async def attempt(self, path: str, *args, **kwargs) -> Any:
        """Dispatch an action and report a rejected transition instead of raising it."""
        try:
            return await self.dispatch(path, *args, **kwargs)
        except TransitionRejection as error:
            await self.report(error)
            return None


def build_store(fsm: Optional[FSMEngine] = None, api=None, services: Optional[Services] = None,
                settings: Optional[Settings] = None) -> Store:
    settings = settings or Settings()
    fsm = fsm or FSMEngine()
    services = services or build_services(settings)
    api = api if api is not None else InMemoryApi(clock=services.clock)

    modules = {name: cls(fsm, api, services, settings) for name, cls in MODULE_CLASSES.items()}
    consumers, products, occasions, orders = (modules[n] for n in ("consumers", "products", "occasions", "orders"))

    consumers.connect(orders=GetterPort(orders, OrdersPort))
    occasions.connect(orders=GetterPort(orders, OrdersPort))
    orders.connect(
        consumers=GetterPort(consumers, ConsumersPort),
        products=GetterPort(products, ProductsPort),
        occasions=GetterPort(occasions, OccasionsPort),
    )
    modules["receipt"].connect(
        consumers=GetterPort(consumers, ConsumersPort),
        products=GetterPort(products, ProductsPort),
        occasions=GetterPort(occasions, OccasionsPort),
        orders=GetterPort(orders, OrdersPort),
    )
    return Store(fsm, modules, services, api=api, settings=settings)
