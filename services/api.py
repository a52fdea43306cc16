# services/api.py
"""
Persistence collaborator.

`Api` is the boundary the store modules talk to. `InMemoryApi` implements it
over pydantic records and hands out plain dicts, the way a JSON backend would.
`get()` delivers results page by page through `on_stream_update` (each call
receives everything received so far) before returning the final list.
"""

import asyncio
import copy
import json
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Protocol, Union

from pydantic import BaseModel, Field, ValidationError

from core.errors import TransitionRejection
from config.constants import GENERIC_INVALID_INPUT, GENERIC_NOT_FOUND
from utils.logger import get_logger, log_decision

StreamCallback = Callable[[List[Dict[str, Any]]], Any]


class ApiError(TransitionRejection):
    """A failed backend call. Raised from observers, it rejects the transition."""


# ---------------------------------------------------------------- records

class ConsumerRecord(BaseModel):
    id: int
    name: str
    spending_limit: Optional[float] = None
    show: bool = True
    is_consumer_type: bool = False


class ConsumerTypeRecord(BaseModel):
    id: str
    name: str
    is_consumer_type: bool = True


class ProductRecord(BaseModel):
    id: int
    title: str
    title_raw: str = ""
    price: float
    product_category: Optional[str] = None
    trashed: bool = False


class OccasionRecord(BaseModel):
    id: int
    title: str
    occasion_date: Optional[date] = None
    occasion_type: Optional[str] = None
    closed: bool = False


class OrderLine(BaseModel):
    id: int
    title: str = ""
    price: float = 0
    quantity: int = 1


class ConsumerData(BaseModel):
    id: Union[int, str, None] = None
    name: str = ""


class OrderRecord(BaseModel):
    id: int
    occasion: int
    consumer: Union[int, str]
    consumer_data: ConsumerData = Field(default_factory=ConsumerData)
    date: datetime
    items: List[OrderLine] = Field(default_factory=list)


# ---------------------------------------------------------------- protocol

class Resource(Protocol):
    async def get(self, query: Optional[Dict[str, Any]] = None, on_stream_update: Optional[StreamCallback] = None) -> List[Dict[str, Any]]: ...

    async def create(self, payload: Dict[str, Any]) -> Dict[str, Any]: ...

    async def update(self, payload: Dict[str, Any]) -> Dict[str, Any]: ...


class Api(Protocol):
    consumers: Resource
    consumer_types: Resource
    products: Resource
    occasions: Resource
    orders: Resource


# ---------------------------------------------------------------- in-memory

class InMemoryResource:
    def __init__(self, name: str, model: type, records: Optional[List[Dict[str, Any]]] = None, page_size: int = 25):
        self.name = name
        self.model = model
        self.page_size = page_size
        self.records: Dict[Any, BaseModel] = {}
        self.logger = get_logger(f"tabkeeper.api.{name}")
        for record in records or []:
            item = model(**record)
            self.records[item.id] = item

    def _next_id(self) -> int:
        numeric = [key for key in self.records if isinstance(key, int)]
        return max(numeric, default=0) + 1

    def _dump(self, record: BaseModel) -> Dict[str, Any]:
        return record.model_dump()

    def _require(self, payload: Any) -> BaseModel:
        record_id = payload.get("id") if isinstance(payload, dict) else payload
        record = self.records.get(record_id)
        if record is None:
            raise ApiError(GENERIC_NOT_FOUND, data={"resource": self.name, "id": record_id})
        return record

    def _matches(self, record: BaseModel, query: Optional[Dict[str, Any]]) -> bool:
        if not query:
            return True
        return all(getattr(record, key, None) == value for key, value in query.items())

    async def get(self, query: Optional[Dict[str, Any]] = None, on_stream_update: Optional[StreamCallback] = None) -> List[Dict[str, Any]]:
        items = [self._dump(record) for record in self.records.values() if self._matches(record, query)]
        if on_stream_update:
            received: List[Dict[str, Any]] = []
            for start in range(0, len(items), self.page_size):
                # Yield to the loop between pages like a paginated request
                await asyncio.sleep(0)
                received = received + copy.deepcopy(items[start:start + self.page_size])
                on_stream_update(received)
        log_decision(self.logger, self.name, "api.get", "listed records", {"query": query or {}, "count": len(items)})
        return items

    def _prepare(self, payload: Dict[str, Any], current: Optional[BaseModel] = None) -> Dict[str, Any]:
        data = current.model_dump() if current is not None else {}
        data.update({key: value for key, value in payload.items() if key in self.model.model_fields})
        return data

    def _build(self, data: Dict[str, Any]) -> BaseModel:
        try:
            return self.model(**data)
        except ValidationError as error:
            raise ApiError(GENERIC_INVALID_INPUT, data={"resource": self.name, "errors": error.errors(include_context=False)}) from error

    async def create(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        data = self._prepare(payload)
        data["id"] = self._next_id()
        record = self._build(data)
        self.records[record.id] = record
        log_decision(self.logger, self.name, "api.create", "record created", {"id": record.id})
        return self._dump(record)

    async def update(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        current = self._require(payload)
        record = self._build(self._prepare(payload, current))
        self.records[record.id] = record
        log_decision(self.logger, self.name, "api.update", "record updated", {"id": record.id})
        return self._dump(record)

    async def _set_flag(self, payload: Dict[str, Any], flag: str, value: bool) -> Dict[str, Any]:
        current = self._require(payload)
        record = current.model_copy(update={flag: value})
        self.records[record.id] = record
        log_decision(self.logger, self.name, f"api.{flag}", f"{flag} set to {value}", {"id": record.id})
        return self._dump(record)


class ProductsResource(InMemoryResource):
    def _prepare(self, payload, current=None):
        data = super()._prepare(payload, current)
        # The display title follows the raw title
        if data.get("title_raw"):
            data["title"] = data["title_raw"]
        elif data.get("title"):
            data["title_raw"] = data["title"]
        return data

    async def trash(self, payload):
        return await self._set_flag(payload, "trashed", True)

    async def untrash(self, payload):
        return await self._set_flag(payload, "trashed", False)


class OccasionsResource(InMemoryResource):
    async def trash(self, payload):
        record = self._require(payload)
        del self.records[record.id]
        log_decision(self.logger, self.name, "api.trash", "record removed", {"id": record.id})
        return self._dump(record)

    async def close(self, payload):
        return await self._set_flag(payload, "closed", True)

    async def reopen(self, payload):
        return await self._set_flag(payload, "closed", False)


class OrdersResource(InMemoryResource):
    def __init__(self, name, model, records=None, page_size=25, consumers: Optional[InMemoryResource] = None,
                 consumer_types: Optional[InMemoryResource] = None, clock: Optional[Callable[[], datetime]] = None):
        super().__init__(name, model, records, page_size)
        self.consumers = consumers
        self.consumer_types = consumer_types
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def _consumer_data(self, consumer_id) -> Dict[str, Any]:
        for resource in (self.consumers, self.consumer_types):
            if resource is not None and consumer_id in resource.records:
                return {"id": consumer_id, "name": resource.records[consumer_id].name}
        return {"id": consumer_id, "name": ""}

    def _prepare(self, payload, current=None):
        data = super()._prepare(payload, current)
        if "consumer" in payload:
            data["consumer_data"] = self._consumer_data(payload["consumer"])
        return data

    async def create(self, payload):
        payload = {**payload, "date": self.clock()}
        return await super().create(payload)


class InMemoryApi:
    """All resources of the backend, held in memory."""

    def __init__(self, data: Optional[Dict[str, List[Dict[str, Any]]]] = None, clock: Optional[Callable[[], datetime]] = None, page_size: int = 25):
        data = data or {}
        self.consumers = InMemoryResource("consumers", ConsumerRecord, data.get("consumers"), page_size)
        self.consumer_types = InMemoryResource("consumer_types", ConsumerTypeRecord, data.get("consumer_types"), page_size)
        self.products = ProductsResource("products", ProductRecord, data.get("products"), page_size)
        self.occasions = OccasionsResource("occasions", OccasionRecord, data.get("occasions"), page_size)
        self.orders = OrdersResource("orders", OrderRecord, data.get("orders"), page_size,
                                     consumers=self.consumers, consumer_types=self.consumer_types, clock=clock)

    @classmethod
    def from_file(cls, path: Union[str, Path], **kwargs) -> "InMemoryApi":
        with open(path, "r", encoding="utf-8") as f:
            return cls(json.load(f), **kwargs)
