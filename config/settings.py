# config/settings.py
"""
Runtime settings for the store layer.

Values come from the process environment (optionally seeded from a `.env`
file) using the `TABKEEPER_` prefix. Mapping values are JSON objects, e.g.

    TABKEEPER_PRODUCT_CATEGORIES='{"beverages": "Beverages", "food": "Food"}'
"""

import json
import os
from typing import Dict, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

ENV_PREFIX = "TABKEEPER_"


class Settings(BaseModel):
    order_time_lock: int = Field(0, ge=0, description="Minutes an order stays editable, 0 disables the lock")
    min_load_duration_ms: int = Field(2500, ge=0, description="Minimum visible loading time of an occasion")
    product_categories: Dict[str, str] = Field(default_factory=dict)
    default_product_category: Optional[str] = None
    occasion_types: Dict[str, str] = Field(default_factory=dict)
    default_occasion_type: Optional[str] = None
    feedback_auto_remove_ms: int = Field(0, ge=0, description="Lifetime of global feedback items, 0 keeps them")
    log_level: str = "WARNING"
    log_dir: Optional[str] = None


_JSON_FIELDS = {"product_categories", "occasion_types"}


def load_settings(**overrides) -> Settings:
    """Build settings from `.env`, environment variables and explicit overrides."""
    load_dotenv()
    values = {}
    for name in Settings.model_fields:
        raw = os.getenv(ENV_PREFIX + name.upper())
        if raw is None or raw == "":
            continue
        values[name] = json.loads(raw) if name in _JSON_FIELDS else raw
    values.update(overrides)
    return Settings(**values)
