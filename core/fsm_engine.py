# core/fsm_engine.py
"""
Asynchronous, observable finite-state machine.

The transition table is held as a networkx MultiDiGraph: nodes are states and
every named transition is an edge keyed by its name. Observers hook into a
transition's lifecycle:

    beforeAnyTransition -> before.<T> -> leave.<FROM>   (may veto by raising)
    commit
    after.<T> -> enter.<TO> -> enterAnyState              (state already changed)

Observers of one hook run in registration order. The first one that raises
aborts the transition, skips the remaining observers and the exception is
re-raised by `do()` unchanged.
"""

import inspect
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Union

import networkx as nx

from config.constants import GENERIC_TRANSITION_PENDING
from config.fsm_rules import INITIAL_STATE, MAIN_TRANSITIONS
from core.errors import InvalidTransitionError, TransitionPendingError
from utils.logger import get_logger, log_decision

BEFORE_ANY_TRANSITION = "beforeAnyTransition"
ENTER_ANY_STATE = "enterAnyState"

Name = Union[str, Enum]
Handler = Callable[["Lifecycle", Any], Optional[Awaitable[Any]]]


def _name(value: Name) -> str:
    return value.value if isinstance(value, Enum) else str(value)


def _as_list(value) -> List[str]:
    if isinstance(value, (list, tuple, set)):
        return [_name(v) for v in value]
    return [_name(value)]


def before(transition: Name) -> str:
    return f"before.{_name(transition)}"


def after(transition: Name) -> str:
    return f"after.{_name(transition)}"


def enter(state: Name) -> str:
    return f"enter.{_name(state)}"


def leave(state: Name) -> str:
    return f"leave.{_name(state)}"


@dataclass
class Lifecycle:
    transition: str
    from_state: str
    to_state: str


@dataclass
class Observer:
    hook: str
    handler: Handler
    owner: Optional[str] = None


@dataclass
class DestinationFilter:
    fn: Callable[[str, Lifecycle], Name]
    owner: Optional[str] = None


@dataclass
class _Registry:
    observers: Dict[str, List[Observer]] = field(default_factory=lambda: defaultdict(list))
    filters: Dict[str, List[DestinationFilter]] = field(default_factory=lambda: defaultdict(list))
    requirements: Dict[str, Callable[[], bool]] = field(default_factory=dict)


class FSMEngine:
    def __init__(self, transitions: Optional[Dict[Name, Dict[Name, Name]]] = None, initial: Name = INITIAL_STATE, name: str = "main"):
        self.name = name
        self.graph = nx.MultiDiGraph()
        for source, edges in (transitions if transitions is not None else MAIN_TRANSITIONS).items():
            self.graph.add_node(_name(source))
            for transition, target in edges.items():
                self.graph.add_edge(_name(source), _name(target), key=_name(transition))

        self.state: str = _name(initial)
        self.pending: Optional[Lifecycle] = None
        self._registry = _Registry()
        self.logger = get_logger(f"tabkeeper.fsm.{name}")

    # ---------------------------------------------------------------- queries

    @property
    def busy(self) -> bool:
        return self.pending is not None

    def is_state(self, states: Union[Name, Iterable[Name]]) -> bool:
        """Whether the machine is in the given state, or in one of the given states."""
        return self.state in _as_list(states)

    def target(self, transition: Name, state: Optional[Name] = None) -> Optional[str]:
        """Destination of `transition` from `state` (default: current), before filters."""
        source = _name(state) if state is not None else self.state
        if source not in self.graph:
            return None
        for _, destination, key in self.graph.out_edges(source, keys=True):
            if key == _name(transition):
                return destination
        return None

    def can(self, transitions: Union[Name, Iterable[Name]]) -> bool:
        """Whether any of the given transitions is legal right now."""
        return any(self._can_one(t) for t in _as_list(transitions))

    def _can_one(self, transition: str) -> bool:
        if self.target(transition) is None:
            return False
        requirement = self._registry.requirements.get(transition)
        return requirement() if requirement else True

    def allowed_transitions(self) -> List[str]:
        return sorted(key for _, _, key in self.graph.out_edges(self.state, keys=True) if self._can_one(key))

    def all_states(self) -> List[str]:
        return list(self.graph.nodes)

    def registrations(self, hook: str) -> List[Optional[str]]:
        """
        Owners of the observers on `hook`, in the order they will run.

        Order is kept per hook only. Across hooks a transition always runs
        `beforeAnyTransition`, then `before.<T>`, then `leave.<FROM>`, whatever
        order the observers were registered in.
        """
        return [observer.owner for observer in self._registry.observers.get(hook, [])]

    # ------------------------------------------------------------ registration

    def observe(self, hooks: Union[str, Iterable[str]], handler: Handler, owner: Optional[str] = None) -> Callable[[], None]:
        """Register `handler` on one or more hooks. Returns a function that unregisters it."""
        hook_names = [hooks] if isinstance(hooks, str) else list(hooks)
        registered = []
        for hook in hook_names:
            observer = Observer(hook=hook, handler=handler, owner=owner)
            self._registry.observers[hook].append(observer)
            registered.append(observer)

        def unobserve() -> None:
            for observer in registered:
                if observer in self._registry.observers[observer.hook]:
                    self._registry.observers[observer.hook].remove(observer)

        return unobserve

    def filter(self, transition: Name, fn: Callable[[str, Lifecycle], Name], owner: Optional[str] = None) -> Callable[[], None]:
        """Register a destination filter `fn(to, lifecycle) -> to` for `transition`."""
        entry = DestinationFilter(fn=fn, owner=owner)
        self._registry.filters[_name(transition)].append(entry)

        def unfilter() -> None:
            if entry in self._registry.filters[_name(transition)]:
                self._registry.filters[_name(transition)].remove(entry)

        return unfilter

    def require(self, transition: Name, predicate: Callable[[], bool]) -> None:
        """Make `transition` legal only while `predicate()` holds."""
        self._registry.requirements[_name(transition)] = predicate

    # --------------------------------------------------------------- dispatch

    async def do(self, transitions: Union[Name, Iterable[Name]], payload: Any = None) -> Lifecycle:
        """
        Run the first of `transitions` that is legal from the current state.

        Raises InvalidTransitionError when none is legal, TransitionPendingError
        while another transition is running, and re-raises whatever a before or
        leave observer raised.
        """
        candidates = _as_list(transitions)

        if self.pending is not None:
            log_decision(self.logger, self.name, "transition.pending", "another transition is still running",
                         {"requested": candidates}, level=logging.INFO,
                         transition=self.pending.transition, from_state=self.pending.from_state, to_state=self.pending.to_state)
            raise TransitionPendingError(GENERIC_TRANSITION_PENDING, data={"requested": candidates})

        transition = next((t for t in candidates if self._can_one(t)), None)
        if transition is None:
            raise InvalidTransitionError(f"Invalid transition: {self.state} → {' | '.join(candidates)}")

        lifecycle = Lifecycle(transition=transition, from_state=self.state, to_state=self.target(transition))
        for entry in self._registry.filters.get(transition, []):
            lifecycle.to_state = _name(entry.fn(lifecycle.to_state, lifecycle))

        self.pending = lifecycle
        try:
            log_decision(self.logger, self.name, "transition.start", "dispatched", level=logging.DEBUG,
                         transition=transition, from_state=lifecycle.from_state, to_state=lifecycle.to_state)
            try:
                for hook in (BEFORE_ANY_TRANSITION, before(transition), leave(lifecycle.from_state)):
                    await self._run(hook, lifecycle, payload)
            except Exception as error:
                log_decision(self.logger, self.name, "transition.rejected", repr(error), level=logging.INFO,
                             transition=transition, from_state=lifecycle.from_state, to_state=lifecycle.to_state)
                raise

            self.state = lifecycle.to_state
            log_decision(self.logger, self.name, "transition.commit", "state changed", level=logging.DEBUG,
                         transition=transition, from_state=lifecycle.from_state, to_state=lifecycle.to_state)

            # The state is committed: anything raised below still propagates
            for hook in (after(transition), enter(lifecycle.to_state), ENTER_ANY_STATE):
                await self._run(hook, lifecycle, payload)
        finally:
            self.pending = None

        return lifecycle

    async def _run(self, hook: str, lifecycle: Lifecycle, payload: Any) -> None:
        for observer in list(self._registry.observers.get(hook, [])):
            result = observer.handler(lifecycle, payload)
            if inspect.isawaitable(result):
                await result

    def __repr__(self) -> str:
        return f"FSMEngine({self.name}, state={self.state})"
