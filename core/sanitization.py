# core/sanitization.py
"""
Per-field sanitize and validate helpers shared by the store modules.

Sanitizers are pure `value -> value` functions keyed by field name. Validators
are `(value, context) -> True | False | error_code` functions keyed by field
name; anything other than `True` becomes an error feedback item.
"""

import copy
import math
import unicodedata
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from config.constants import GENERIC_INVALID_INPUT, INVALID_FIELD_FEEDBACK_PREFIX
from core.feedback import Feedback, FeedbackItem

Sanitizer = Callable[[Any], Any]


@dataclass
class ValidationContext:
    """What a validator may consult besides the field value."""
    data: Dict[str, Any]
    siblings: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def id(self):
        return self.data.get("id")


Validator = Callable[[Any, ValidationContext], Any]


def sanitization(sanitizers: Dict[str, Sanitizer]) -> Callable[[Dict[str, Any]], Dict[str, Any]]:
    """Build a function that applies `sanitizers` to every matching field of a dict."""

    def sanitize(data: Dict[str, Any]) -> Dict[str, Any]:
        sanitized = {}
        for prop, value in data.items():
            fn = sanitizers.get(prop)
            sanitized[prop] = fn(value) if callable(fn) else value
        return sanitized

    return sanitize


def validation(
    validators: Dict[str, Optional[Validator]],
    get_siblings: Optional[Callable[[], List[Dict[str, Any]]]] = None,
) -> Callable[..., List[FeedbackItem]]:
    """
    Build a function that validates a dict and returns the resulting feedback list.

    The feedback channel is cleared first, so the returned list replaces any
    earlier validation result. Fields without a validator only need to be present.
    """

    def validate(data: Dict[str, Any], feedback: Optional[Feedback] = None) -> List[FeedbackItem]:
        feedback = feedback if feedback is not None else Feedback("validation")
        feedback.clear()

        context = ValidationContext(
            data=copy.deepcopy(data),
            siblings=list(get_siblings()) if get_siblings else [],
        )

        for prop, validator in validators.items():
            feedback_id = INVALID_FIELD_FEEDBACK_PREFIX + prop
            feedback.remove(feedback_id)

            if callable(validator):
                validated = validator(data.get(prop), context)
            else:
                validated = prop in data

            if validated is not True:
                feedback.add(
                    {
                        "is_error": True,
                        "message": validated or GENERIC_INVALID_INPUT,
                        "data": {"field": prop, "value": data.get(prop)},
                    },
                    item_id=feedback_id,
                )

        return feedback.get_list()

    return validate


def sanitize_price(value: Any) -> Optional[float]:
    """Parse a price, accepting a decimal comma. Unparseable input becomes None."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, str):
        try:
            value = float(value.strip().replace(",", ".", 1))
        except ValueError:
            return None
    if not isinstance(value, (int, float)) or math.isnan(value):
        return None
    return round(float(value), 2)


def remove_accents(text: Any) -> str:
    normalized = unicodedata.normalize("NFKD", str(text))
    return "".join(ch for ch in normalized if not unicodedata.combining(ch))


def match_search_query(text: Any, query: str) -> bool:
    """True when every space separated term of `query` occurs in `text`."""
    haystack = remove_accents(str(text).lower())
    terms = [term.strip() for term in remove_accents(query.lower()).split(" ") if term.strip()]
    return all(term in haystack for term in terms)


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)
