from typing import Any, Dict, Optional

from config.constants import TRANSLATIONS


class L10nService:
    """Resolve message codes to display text. Unknown codes resolve to themselves."""

    def __init__(self, translations: Optional[Dict[str, str]] = None):
        self.translations = dict(TRANSLATIONS if translations is None else translations)

    def get(self, key: str, *args: Any) -> str:
        text = self.translations.get(key, key)
        for arg in args:
            text = text.replace("%s", str(arg), 1)
        return text

    def render(self, item) -> str:
        """Render a feedback item's message with its `args`."""
        return self.get(item.message, *item.data.get("args", []))
