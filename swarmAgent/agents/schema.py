"""Agent Card schema.

An Agent Card describes one role a swarm may instantiate: who it is, what it
is good at and the system prompt it runs under.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List


@dataclass(frozen=True)
class AgentCard:
    """Role metadata used by selection, execution and synthesis.

    Attributes:
        role: Unique role identifier (e.g. "research", "master")
        name: Display name
        description: Short summary of what the role does
        expertise: Expertise tags, used in prompts and catalog text
        system_prompt: System prompt every instance of the role runs under
        tags: Free-form labels for querying
        selectable: False for roles that never work on sub-tasks (the coordinator)
    """

    # ========== Identity ==========
    role: str
    name: str
    description: str = ""

    # ========== Behaviour ==========
    expertise: List[str] = field(default_factory=list)
    system_prompt: str = ""

    # ========== Metadata ==========
    tags: List[str] = field(default_factory=list)
    selectable: bool = True

    def has_tag(self, tag: str) -> bool:
        return tag in self.tags

    def get_catalog_text(self) -> str:
        """Markdown description of the role."""
        lines = [f"## {self.role} - {self.name}"]
        if self.description:
            lines.append(self.description)
        if self.expertise:
            lines.append(f"**Expertise**: {', '.join(self.expertise)}")
        if self.tags:
            lines.append(f"**Tags**: {', '.join(self.tags)}")
        lines.append("")
        return "\n".join(lines)
