# store/products.py
"""
Products store module: the product catalog and its create/edit/trash flows.
"""

from typing import Any, Dict, List

from config.constants import GENERIC_INVALID_INPUT, GENERIC_NOT_ALLOWED
from config.enums import Capability
from config.enums import State as st
from config.enums import Transition as tr
from core.errors import TransitionRejection
from core.fsm_engine import before, enter
from core.list_module import ListModule, action, getter, normalize_payload, submittable_getter
from core.sanitization import is_number, remove_accents, sanitize_price
from services.api import ApiError
from utils.logger import log_decision


def _comparable_title(title: Any) -> str:
    return remove_accents(str(title or "").lower())


def validate_title(value, context):
    title = value or ""
    taken = {
        _comparable_title(product.get("title_raw") or product.get("title"))
        for product in context.siblings
        if product.get("id") != context.id
    }
    if _comparable_title(title) in taken:
        return "Product.Error.TitleIsAlreadyInUse"
    if not title:
        return "Product.Error.TitleIsEmpty"
    return True


def validate_price(value, context):
    if not is_number(value):
        return False
    if value <= 0:
        return "Product.Error.PriceShouldBeGreaterThanZero"
    return True


def title_changed(value, item: Dict[str, Any]) -> bool:
    return value != item.get("title_raw") and value != item.get("title")


class ProductsModule(ListModule):
    name = "products"
    sanitizers = {
        "title_raw": lambda value: str(value or "").strip(),
        "price": sanitize_price,
        "product_category": lambda value: str(value).strip() if value not in (None, "") else None,
    }
    comparators = {
        "title_raw": title_changed,
    }

    def __init__(self, fsm, api=None, services=None, settings=None):
        # Category validation depends on the configured categories
        self.validators = {
            "title_raw": validate_title,
            "price": validate_price,
            "product_category": self._validate_category,
        }
        super().__init__(fsm, api, services, settings)

    def _validate_category(self, value, context):
        categories = self.settings.product_categories if self.settings else {}
        if not categories:
            return True
        if not value:
            return "Product.Error.NoProductCategory"
        if value not in categories:
            return "Product.Error.InvalidProductCategory"
        return True

    # ---------------------------------------------------------------- getters

    @getter
    def get_new_item(self) -> Dict[str, Any]:
        return {
            "title": "",
            "title_raw": "",
            "price": 0,
            "product_category": self.settings.default_product_category if self.settings else None,
        }

    @getter
    def get_available_items(self) -> List[Dict[str, Any]]:
        return [product for product in self.get_items() if not product.get("trashed")]

    is_submittable = submittable_getter([st.CREATE_PRODUCT, st.EDIT_PRODUCT])

    # ---------------------------------------------------------------- actions

    @action
    async def init(self) -> None:
        self.observe(before(tr.SELECT_PRODUCT), lambda lifecycle, payload: self.set_active(payload))
        self.observe(before(tr.CREATE_PRODUCT), self._create)
        self.observe(before(tr.SAVE_PRODUCT), self._save)
        self.observe(before(tr.DELETE_PRODUCT), self._trash)
        self.observe(before(tr.UNTRASH_PRODUCT), self._untrash)
        self.observe_edit_cancel(st.EDIT_PRODUCT)
        self.observe(enter(st.SETTINGS), self._leave_context)

    def _create(self, lifecycle, payload):
        if not self.services.auth.user_can(Capability.CREATE_PRODUCTS):
            raise TransitionRejection(GENERIC_NOT_ALLOWED)
        self.set_new_active(self.get_new_item())

    async def _save(self, lifecycle, payload):
        if self.validate_into_feedback(payload):
            raise TransitionRejection(GENERIC_INVALID_INPUT)

        creating = lifecycle.from_state == st.CREATE_PRODUCT
        if creating:
            resp = await self.api.products.create(payload)
            self.services.feedback.add(["Product.CreatedNewProduct", resp["title"]])
            self.add_item_to_list(resp)
            self.set_active(resp)
        else:
            resp = await self.api.products.update(payload)
            self.services.feedback.add(["Product.UpdatedProduct", resp["title"]])
            await self.set_active_item_in_list(resp)
        log_decision(self.logger, self.name, "product.saved", "created" if creating else "updated", {"id": resp["id"]})

    async def _trash(self, lifecycle, payload):
        try:
            resp = await self.api.products.trash(payload)
        except ApiError as error:
            # Back out of the delete confirmation once the error was shown
            error.on_after_error = self.cancel
            raise
        self.services.feedback.add(["Product.DeletedProduct", payload.get("title", "")])
        # Trashed products stay listed
        await self.set_active_item_in_list(resp)

    async def _untrash(self, lifecycle, payload):
        resp = await self.api.products.untrash(payload)
        self.services.feedback.add(["Product.UntrashedProduct", payload.get("title", "")])
        await self.set_active_item_in_list(resp)

    def _leave_context(self, lifecycle, payload):
        self.clear_active()
        self.clear_feedback()

    @action
    async def load(self, payload: Any = None) -> None:
        products = await self.api.products.get(None, self.set_list_items)
        self.set_list_items(products)
        log_decision(self.logger, self.name, "products.loaded", "catalog loaded", {"count": len(products)})

    @action
    async def select(self, payload: Any):
        """Open the product in settings, or add it to the receipt everywhere else."""
        if self.fsm.is_state([st.SETTINGS, st.VIEW_PRODUCT]):
            return await self.fsm.do(tr.SELECT_PRODUCT, normalize_payload(payload))
        if not self.fsm.is_state([st.RECEIPT, st.EDIT_ORDER]):
            await self.fsm.do(tr.START_RECEIPT)
        return await self.fsm.do(tr.INCREMENT_PRODUCT, normalize_payload(payload))

    @action
    async def decrement(self, payload: Any):
        if not self.fsm.is_state([st.RECEIPT, st.EDIT_ORDER]):
            await self.fsm.do(tr.START_RECEIPT)
        return await self.fsm.do(tr.DECREMENT_PRODUCT, normalize_payload(payload))

    @action
    async def create(self):
        return await self.fsm.do(tr.CREATE_PRODUCT)

    @action
    async def edit(self):
        return await self.fsm.do(tr.EDIT_ITEM)

    @action
    async def patch(self, payload: Dict[str, Any]) -> None:
        self.patch_active(payload)

    @action
    async def update(self):
        return await self.fsm.do(tr.SAVE_PRODUCT, self.state.active)

    @action
    async def maybe_delete(self):
        return await self.fsm.do(tr.DELETE_ITEM, self.state.active)

    @action
    async def delete(self):
        return await self.fsm.do(tr.DELETE_PRODUCT, self.state.active)

    @action
    async def untrash(self):
        return await self.fsm.do(tr.UNTRASH_PRODUCT, self.state.active)

    @action
    async def cancel(self):
        return await self.fsm.do([tr.CANCEL_DELETE, tr.CANCEL_EDIT, tr.CLOSE_ITEM])

    @action
    async def close(self):
        return await self.fsm.do(tr.CLOSE_ITEM)
