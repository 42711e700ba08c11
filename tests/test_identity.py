"""Tests for the Identity Resolver."""
import pytest

from pipeline_engine.engine.identity import (
    names_match,
    resolve_agent_id,
    resolve_stage_id,
    slugify,
)
from pipeline_engine.models.graph import Agent


def _agent(agent_id, name):
    return Agent(id=agent_id, name=name, color="from-sky-300 to-blue-400")


@pytest.mark.parametrize(
    "name,expected",
    [
        ("Lead Qualification", "lead-qualification"),
        ("  Lead   Qualification  ", "lead-qualification"),
        ("Demo / Proposal!!", "demo-proposal"),
        ("SDR_Bot v2", "sdr-bot-v2"),
        ("---", "unnamed"),
    ],
)
def test_slugify(name, expected):
    """Names reduce to lowercase hyphen-joined slugs."""
    assert slugify(name) == expected


def test_names_match_ignores_case_and_whitespace():
    """Case and spacing differences still match; punctuation does not."""
    assert names_match("New  Bot", " new bot ")
    assert not names_match("New Bot", "New-Bot")


class TestResolveStageId:
    """Test suite for resolve_stage_id."""

    def test_stage_id_from_level(self):
        """A free level gives stage-<level>."""
        assert resolve_stage_id(3) == "stage-3"

    def test_taken_level_gets_smallest_free_suffix(self):
        """Collisions take the smallest unused suffix from 2 up."""
        assert resolve_stage_id(1, ["stage-1"]) == "stage-1-2"
        assert resolve_stage_id(1, ["stage-1", "stage-1-2", "stage-1-4"]) == "stage-1-3"


class TestResolveAgentId:
    """Test suite for resolve_agent_id."""

    def test_new_agent_gets_slug_id(self):
        """A new name gives agent-<slug>."""
        assert resolve_agent_id("Sales Closer", []) == "agent-sales-closer"

    def test_same_name_returns_existing_id(self):
        """An existing agent with the same name keeps its id."""
        existing = [_agent("agent-sales-closer", "Sales Closer")]

        assert resolve_agent_id("sales closer", existing) == "agent-sales-closer"

    def test_slug_collision_with_different_name_is_suffixed(self):
        """'Sales-Closer' and 'Sales Closer' share a slug but are different agents."""
        existing = [_agent("agent-sales-closer", "Sales Closer")]

        assert resolve_agent_id("Sales-Closer", existing) == "agent-sales-closer-2"

    def test_suffix_uses_smallest_unused_integer(self):
        """Gaps in the suffixes are filled first."""
        existing = [
            _agent("agent-bot", "Bot"),
            _agent("agent-bot-3", "BOT!"),
        ]

        assert resolve_agent_id("bot?", existing) == "agent-bot-2"
