"""Identity Resolver - stable ids from free-text names.

All functions are pure: they look at the entities they are given and
never remember anything between calls.
"""
import re
from typing import Iterable, Protocol

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9]+")
_WHITESPACE = re.compile(r"\s+")


class _Named(Protocol):
    id: str
    name: str


def slugify(name: str) -> str:
    """Lowercase, trim and collapse whitespace/punctuation runs to single hyphens.

    "  Lead  Qualification!! " -> "lead-qualification"
    """
    slug = _NON_SLUG_CHARS.sub("-", name.strip().lower()).strip("-")
    return slug or "unnamed"


def normalize_name(name: str) -> str:
    """Comparison key for names: case-folded, whitespace collapsed."""
    return _WHITESPACE.sub(" ", name.strip()).casefold()


def names_match(a: str, b: str) -> bool:
    """True if two names refer to the same logical entity."""
    return normalize_name(a) == normalize_name(b)


def _mint(base: str, taken: set[str]) -> str:
    """Return base, or base-<n> with the smallest free n >= 2."""
    if base not in taken:
        return base
    n = 2
    while f"{base}-{n}" in taken:
        n += 1
    return f"{base}-{n}"


def resolve_stage_id(level: int, existing_ids: Iterable[str] = ()) -> str:
    """Stage id for a level: stage-<level>, suffixed when already taken."""
    return _mint(f"stage-{level}", set(existing_ids))


def resolve_agent_id(name: str, existing_agents: Iterable[_Named] = ()) -> str:
    """Agent id for a name.

    Returns the id of an existing agent with the same name. Otherwise mints
    agent-<slug>, or agent-<slug>-<n> when a different agent already owns
    that slug.
    """
    agents = list(existing_agents)
    for agent in agents:
        if names_match(agent.name, name):
            return agent.id

    return _mint(f"agent-{slugify(name)}", {agent.id for agent in agents})
