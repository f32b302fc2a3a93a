"""
Shortcut lists as produced by the natural-language shortcut generator.

The generator replies with a JSON document of the form::

    {"shortcuts": [{"name": "Copy", "keys": "⌘ C", "description": "Copy selection"}]}

often wrapped in a markdown code fence or surrounded by prose.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class KeyboardShortcut:
    name: str
    keys: str
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "keys": self.keys, "description": self.description}

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "KeyboardShortcut":
        return KeyboardShortcut(
            name=str(data.get("name", "") or ""),
            keys=str(data.get("keys", "") or ""),
            description=str(data.get("description", "") or ""),
        )


def shortcuts_from_dict(data: Dict[str, Any]) -> List[KeyboardShortcut]:
    items = data.get("shortcuts", []) or []
    shortcuts: List[KeyboardShortcut] = []
    if isinstance(items, list):
        for raw in items:
            if isinstance(raw, dict) and raw.get("keys"):
                shortcuts.append(KeyboardShortcut.from_dict(raw))
    return shortcuts


def _clean_reply(text: str) -> str:
    cleaned = text.replace("```json", "").replace("```JSON", "").replace("```", "").strip()
    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start != -1 and end > start:
        cleaned = cleaned[start:end + 1]
    return cleaned


def shortcuts_from_text(text: str) -> List[KeyboardShortcut]:
    """Extract the shortcut list from a raw generator reply.

    Returns an empty list when the reply holds no usable JSON document.
    """
    cleaned = _clean_reply(text)
    try:
        data = json.loads(cleaned)
    except ValueError as e:
        log.warning("Failed to decode shortcuts JSON: %s", e)
        return []
    if not isinstance(data, dict):
        log.warning("Shortcuts reply is not a JSON object")
        return []
    return shortcuts_from_dict(data)
