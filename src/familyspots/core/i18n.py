"""
Localized message lookup.

Messages are stored as `key -> {lang: text}` (see `config/texts.yaml`).
Fallback chain: requested language -> "de" -> the key itself.
"""

from __future__ import annotations

from typing import Any, Mapping

FALLBACK_LANGUAGE = "de"


def base_language(lang: str | None) -> str:
    """Reduce `de-AT` / `EN` style codes to the lower-case base language."""
    if not lang:
        return FALLBACK_LANGUAGE
    return str(lang).strip().lower().split("-")[0].split("_")[0] or FALLBACK_LANGUAGE


def pick_label(labels: Mapping[str, str] | None, lang: str | None, default: str) -> str:
    """Pick a label for `lang` from a `{lang: text}` mapping with the standard fallback."""
    if labels:
        text = labels.get(base_language(lang)) or labels.get(FALLBACK_LANGUAGE)
        if text:
            return text
    return default


class MessageTable:
    """Read-only view over the message table."""

    def __init__(self, messages: Mapping[str, Mapping[str, str]]):
        self._messages = messages

    def has(self, key: str) -> bool:
        return key in self._messages

    def text(self, key: str, lang: str | None, **params: Any) -> str:
        template = pick_label(self._messages.get(key), lang, key)
        if params:
            return template.format(**params)
        return template
