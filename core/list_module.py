# core/list_module.py
"""
Base class for the list-backed store modules.

A module owns a `ListState` (canonical list, search query, active item,
feedback snapshot) and exposes its members in three groups, marked with the
`getter`, `mutation` and `action` decorators:

- getters derive values from state and never change it,
- mutations are the only code that assigns to state,
- actions are coroutines that dispatch FSM transitions or call the API.

`as_module()` collects them into the `{namespaced, state, getters, mutations,
actions}` shape the store aggregator consumes.
"""

import copy
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from config.enums import Transition as tr
from core.feedback import Feedback, FeedbackItem
from core.fsm_engine import FSMEngine, before
from core.sanitization import match_search_query, sanitization, validation
from utils.logger import get_logger

_MISSING = object()


def getter(fn):
    fn.__store_kind__ = "getter"
    return fn


def mutation(fn):
    fn.__store_kind__ = "mutation"
    return fn


def action(fn):
    fn.__store_kind__ = "action"
    return fn


def normalize_payload(payload: Any) -> Optional[Dict[str, Any]]:
    """Accept an item dict as-is and anything else as just its id."""
    if payload is None:
        return None
    if isinstance(payload, dict):
        return payload
    return {"id": payload}


def payload_id(payload: Any) -> Any:
    normalized = normalize_payload(payload)
    return normalized.get("id") if normalized else None


@dataclass
class ListState:
    all: List[Dict[str, Any]] = field(default_factory=list)
    search_query: str = ""
    active: Optional[Dict[str, Any]] = None
    feedback: List[FeedbackItem] = field(default_factory=list)
    _watchers: Dict[str, List[Callable[[Any, Any], None]]] = field(default_factory=dict, repr=False, compare=False)

    def __setattr__(self, name: str, value: Any) -> None:
        old = self.__dict__.get(name, _MISSING)
        super().__setattr__(name, value)
        watchers = self.__dict__.get("_watchers")
        # Change detection is by identity, like a reactive store
        if watchers and old is not value:
            for callback in list(watchers.get(name, [])):
                callback(value, old)

    def watch(self, name: str, callback: Callable[[Any, Any], None]) -> Callable[[], None]:
        """Call `callback(new, old)` whenever `name` is assigned a different object."""
        self._watchers.setdefault(name, []).append(callback)

        def unwatch() -> None:
            if callback in self._watchers.get(name, []):
                self._watchers[name].remove(callback)

        return unwatch


@dataclass
class ModuleDefinition:
    state: ListState
    getters: Dict[str, Callable]
    mutations: Dict[str, Callable]
    actions: Dict[str, Callable]
    namespaced: bool = True


def submittable_getter(states: Sequence[Any]):
    """Getter factory: no feedback errors, at least one patch, and the FSM in one of `states`."""

    def is_submittable(self) -> bool:
        return (
            not self.has_feedback_errors()
            and len(self.get_active_patches()) > 0
            and self.fsm.is_state(list(states))
        )

    return getter(is_submittable)


def patch_active_mutation(sanitize: Callable, validate: Callable, feedback: Feedback):
    """
    Mutation factory for the edit cycle of the active item.

    The active item is merged with the payload, sanitized and validated. The
    validation result replaces the feedback snapshot and the sanitized dict
    replaces the active item, each by a single assignment.
    """

    def patch_active(state: ListState, payload: Optional[Dict[str, Any]]) -> None:
        if state.active is None:
            return
        sanitized = sanitize({**state.active, **(payload or {})})
        state.feedback = list(validate(sanitized, feedback))
        state.active = sanitized

    return patch_active


class ListModule:
    name = "list"
    state_class = ListState
    sanitizers: Dict[str, Callable] = {}
    validators: Dict[str, Callable] = {}
    comparators: Dict[str, Callable[[Any, Dict[str, Any]], bool]] = {}
    search_field = "title"

    def __init__(self, fsm: FSMEngine, api=None, services=None, settings=None):
        self.fsm = fsm
        self.api = api
        self.services = services
        self.settings = settings
        self.state = self.state_class()
        self.feedback = Feedback(self.name, persistent=True)
        self.ports: Dict[str, Any] = {}
        self.logger = get_logger(f"tabkeeper.store.{self.name}")

        self.sanitize = sanitization(self.sanitizers)
        self.validate = validation(self.validators, get_siblings=lambda: self.state.all)
        self._patch_active = patch_active_mutation(self.sanitize, self.validate, self.feedback)
        self._unobservers: List[Callable[[], None]] = []

    def connect(self, **ports: Any) -> None:
        """Attach read ports onto sibling modules."""
        self.ports.update(ports)

    def observe(self, hooks, handler) -> Callable[[], None]:
        unobserve = self.fsm.observe(hooks, handler, owner=self.name)
        self._unobservers.append(unobserve)
        return unobserve

    def as_module(self) -> ModuleDefinition:
        groups: Dict[str, Dict[str, Callable]] = {"getter": {}, "mutation": {}, "action": {}}
        for name in dir(type(self)):
            kind = self._kind_of(name)
            if kind:
                groups[kind][name] = getattr(self, name)
        return ModuleDefinition(
            state=self.state,
            getters=groups["getter"],
            mutations=groups["mutation"],
            actions=groups["action"],
        )

    def _kind_of(self, name: str) -> Optional[str]:
        # Overrides keep the kind declared anywhere up the hierarchy
        for klass in type(self).__mro__:
            if name in klass.__dict__:
                kind = getattr(klass.__dict__[name], "__store_kind__", None)
                if kind:
                    return kind
        return None

    # ---------------------------------------------------------------- getters

    @getter
    def get_items(self) -> List[Dict[str, Any]]:
        return self.state.all

    @getter
    def get_item_by_id(self, item_id: Any) -> Optional[Dict[str, Any]]:
        return next((item for item in self.get_items() if item.get("id") == item_id), None)

    @getter
    def is_active_item(self, item_id: Any) -> bool:
        return self.state.active is not None and self.state.active.get("id") == item_id

    @getter
    def get_active(self) -> Optional[Dict[str, Any]]:
        return self.state.active

    @getter
    def get_new_item(self) -> Dict[str, Any]:
        return {}

    @getter
    def get_active_patches(self) -> Dict[str, Any]:
        """Fields of the active item that differ from the canonical item or the new-item template."""
        patches: Dict[str, Any] = {}
        active = self.state.active
        if active is None:
            return patches

        item = self.get_item_by_id(active.get("id")) or self.get_new_item()
        for prop in self.validators:
            value = active.get(prop)
            comparator = self.comparators.get(prop)
            changed = comparator(value, item) if comparator else value != item.get(prop)
            if changed:
                patches[prop] = value
        return patches

    @getter
    def get_search_query(self) -> str:
        return self.state.search_query or ""

    @getter
    def get_matching_items(self) -> List[Dict[str, Any]]:
        query = self.get_search_query()
        if not query:
            return self.get_items()
        return [item for item in self.get_items() if match_search_query(item.get(self.search_field, ""), query)]

    @getter
    def get_feedback(self) -> List[FeedbackItem]:
        return self.state.feedback or []

    @getter
    def has_feedback_errors(self) -> bool:
        return bool(self.state.feedback) and self.feedback.has_errors()

    # -------------------------------------------------------------- mutations

    @mutation
    def set_list_items(self, items: Iterable[Dict[str, Any]]) -> None:
        self.state.all = list(items)

    @mutation
    def add_item_to_list(self, item: Dict[str, Any]) -> None:
        if item and item.get("id") is not None:
            self.state.all = self.state.all + [item]

    @mutation
    def set_item_in_list(self, item: Dict[str, Any]) -> None:
        """Merge `item` onto the list entry with the same id. Unknown ids are ignored."""
        item = normalize_payload(item)
        if not item or not any(i.get("id") == item.get("id") for i in self.state.all):
            return
        self.state.all = [{**i, **item} if i.get("id") == item.get("id") else i for i in self.state.all]

    @mutation
    def remove_item_from_list(self, payload: Any) -> None:
        item_id = payload_id(payload)
        self.state.all = [i for i in self.state.all if i.get("id") != item_id]

    @mutation
    def clear_list(self) -> None:
        self.state.all = []

    @mutation
    def set_search_query(self, query: Any = None) -> None:
        self.state.search_query = str(query or "").strip()

    def _find_active_candidate(self, item_id: Any) -> Optional[Dict[str, Any]]:
        return next((i for i in self.state.all if i.get("id") == item_id), None)

    @mutation
    def set_active(self, payload: Any) -> None:
        """Make a deep copy of the list item with the payload's id, or of the payload itself, active."""
        payload = normalize_payload(payload)
        if payload is None:
            self.state.active = None
            return
        found = self._find_active_candidate(payload.get("id"))
        self.state.active = copy.deepcopy(found if found is not None else payload)

    @mutation
    def set_new_active(self, item: Dict[str, Any]) -> None:
        self.state.active = item

    @mutation
    def clear_active(self) -> None:
        self.state.active = None

    @mutation
    def add_feedback(self, item, item_id: Optional[str] = None) -> Optional[int]:
        index = self.feedback.add(item, item_id=item_id)
        self.state.feedback = list(self.feedback.get_list())
        return index

    @mutation
    def remove_feedback(self, id_or_index) -> None:
        self.feedback.remove(id_or_index)
        self.state.feedback = list(self.feedback.get_list())

    @mutation
    def clear_feedback(self) -> None:
        self.feedback.clear()
        self.state.feedback = []

    @mutation
    def patch_active(self, payload: Optional[Dict[str, Any]]) -> None:
        self._patch_active(self.state, payload)

    # ---------------------------------------------------------------- actions

    @action
    async def init(self) -> None:
        pass

    @action
    async def load(self, payload: Any = None) -> None:
        pass

    @action
    async def search(self, query: Any = None) -> None:
        self.set_search_query(query)

    @action
    async def on_feedback(self, listeners, callback: Optional[Callable] = None) -> Callable[[], None]:
        return self.feedback.on(listeners, callback)

    @action
    async def set_active_item_in_list(self, item: Dict[str, Any]) -> None:
        self.set_item_in_list(item)
        self.set_active(item)

    @action
    async def remove_active_item_from_list(self, item: Any) -> None:
        self.remove_item_from_list(item)
        self.clear_active()

    # ---------------------------------------------------------------- helpers

    def validate_into_feedback(self, data: Dict[str, Any]) -> List[FeedbackItem]:
        """Validate `data` against this module's validators and snapshot the result."""
        errors = [item for item in self.validate(data, self.feedback) if item.is_error]
        self.state.feedback = list(self.feedback.get_list())
        return errors

    def observe_edit_cancel(self, edit_state, transitions=(tr.CANCEL_EDIT, tr.CLOSE_ITEM), clear_feedback: bool = True) -> None:
        """Restore the canonical active item when leaving `edit_state` without saving."""

        def restore(lifecycle, payload):
            if lifecycle.from_state == edit_state and self.state.active is not None:
                self.set_active({"id": self.state.active.get("id")})
                if clear_feedback:
                    self.clear_feedback()

        self.observe([before(t) for t in transitions], restore)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({len(self.state.all)} items, active={payload_id(self.state.active)!r})"
