"""Hearthstone card search and deck image URLs."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

SITE = "https://hs.fbigame.com"
AJAX = "https://hs.fbigame.com/ajax.php?"
CARD_IMAGE = "https://res.fbigame.com/hs/v13/"
USER_AGENT = (
    "Mozilla/5.0 (Linux; Android 6.0; Nexus 5 Build/MRA58N) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/86.0.4240.198 Mobile Safari/537.36"
)
PARAMS = (
    "mod=get_cards_list&"
    "mode=-1&"
    "extend=-1&"
    "mutil_extend=&"
    "hero=-1&"
    "rarity=-1&"
    "cost=-1&"
    "mutil_cost=&"
    "techlevel=-1&"
    "type=-1&"
    "collectible=-1&"
    "isbacon=-1&"
    "page=1&"
    "search_type=1&"
    "deckmode=normal"
)
MAX_CARDS = 5

_HASH_MARK = 'var hash = "'


def extract_hash(page: str) -> str:
    """The request hash embedded in the site's front page."""
    _, found, rest = page.partition(_HASH_MARK)
    if not found:
        raise ValueError("hash not found in page")
    return rest.split('"', 1)[0]


def search_url(hash_value: str, query: str) -> str:
    """Card search request URL."""
    return f"{AJAX}{PARAMS}&hash={hash_value}&search={query}"


def deck_image_url(hash_value: str, deck: str) -> str:
    """Deck image request URL for a deck code."""
    return (
        f"{AJAX}{PARAMS}mod=general_deck_image&deck_code={deck}"
        f"&deck_text=&hash={hash_value}&search={deck}"
    )


@dataclass(frozen=True)
class CardEntry:
    """A card of a search result."""

    card_id: str
    auth_key: str

    @property
    def image_url(self) -> str:
        return f"{CARD_IMAGE}{self.card_id}.png?auth_key={self.auth_key}"


def _str(value: Any) -> str:
    return "" if value is None else str(value)


def card_entries(payload, limit: int = MAX_CARDS) -> list[CardEntry]:
    """Up to ``limit`` cards of a search reply given as JSON text or parsed data."""
    if isinstance(payload, (str, bytes, bytearray)):
        payload = json.loads(payload) if payload else {}
    cards = payload.get("list") if isinstance(payload, dict) else None
    if not isinstance(cards, list):
        return []
    return [
        CardEntry(_str(card.get("CardID")), _str(card.get("auth_key")))
        for card in cards[:limit]
        if isinstance(card, dict)
    ]