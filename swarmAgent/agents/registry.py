"""Agent Registry - role cards available to a swarm."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from .schema import AgentCard

LOGGER = logging.getLogger(__name__)


class AgentRegistry:
    """Ordered registry of Agent Cards keyed by role.

    Registration order matters: the first selectable role is the fallback
    when the selection policy finds nothing else.
    """

    def __init__(self, cards: Optional[Iterable[AgentCard]] = None):
        self._cards: Dict[str, AgentCard] = {}
        if cards:
            for card in cards:
                self.register(card)

    # ========== Registration Methods ==========

    def register(self, card: AgentCard) -> None:
        if card.role in self._cards:
            LOGGER.warning(f"Replacing agent card for role: {card.role}")
        self._cards[card.role] = card
        LOGGER.debug(f"Registered agent role: {card.role} ({card.name})")

    # ========== Query Methods ==========

    def get(self, role: str) -> Optional[AgentCard]:
        return self._cards.get(role)

    def __contains__(self, role: object) -> bool:
        return role in self._cards

    def __len__(self) -> int:
        return len(self._cards)

    def list_cards(self) -> List[AgentCard]:
        return list(self._cards.values())

    def list_selectable(self) -> List[AgentCard]:
        return [card for card in self._cards.values() if card.selectable]

    def query_by_tags(self, tags: List[str], match_all: bool = False) -> List[AgentCard]:
        """Find cards carrying any (or, with ``match_all``, every) of ``tags``."""
        if match_all:
            return [card for card in self._cards.values() if all(card.has_tag(tag) for tag in tags)]
        return [card for card in self._cards.values() if any(card.has_tag(tag) for tag in tags)]

    # ========== Catalog ==========

    def get_catalog_text(self) -> str:
        if not self._cards:
            return "No agent roles registered."
        return "\n".join(card.get_catalog_text() for card in self._cards.values())

    def get_stats(self) -> Dict[str, int]:
        return {
            "registered": len(self._cards),
            "selectable": len(self.list_selectable()),
        }
