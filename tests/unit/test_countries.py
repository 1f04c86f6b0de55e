"""Unit tests for agent country matching"""

from dataclasses import dataclass

import pytest
from tradehub.domain.countries import filter_agents_by_country, matches_country


@dataclass
class FakeAgent:
    name: str
    country: str
    rating: float


@pytest.mark.parametrize(
    "agent_country, user_country",
    [
        ("Morocco", "MA"),
        ("ma", "Morocco"),
        ("  MOROCCO ", "morocco"),
        ("المغرب", "Morocco"),
        ("UAE", "ae"),
        ("Saudi Arabia", "KSA"),
    ],
)
def test_matches_aliases_both_ways(agent_country, user_country):
    assert matches_country(agent_country, user_country)
    assert matches_country(user_country, agent_country)


def test_missing_or_unknown_country_matches_everything():
    assert matches_country("Morocco", None)
    assert matches_country(None, "Morocco")
    assert matches_country("", "Egypt")
    assert matches_country("Egypt", "Unknown")


def test_different_countries_do_not_match():
    assert not matches_country("Morocco", "Egypt")
    assert not matches_country("lb", "jo")


def test_filter_keeps_serving_agents_sorted_by_rating():
    agents = [
        FakeAgent("Cairo Money", "Egypt", 4.9),
        FakeAgent("Rabat Cash", "MA", 4.1),
        FakeAgent("Casa Cash", "Morocco", 4.7),
    ]

    result = filter_agents_by_country(agents, "morocco")

    assert [a.name for a in result] == ["Casa Cash", "Rabat Cash"]


def test_filter_without_country_returns_all_by_rating():
    agents = [FakeAgent("A", "Egypt", 3.0), FakeAgent("B", "Morocco", 5.0)]

    assert [a.name for a in filter_agents_by_country(agents, "Unknown")] == ["B", "A"]
    assert [a.name for a in filter_agents_by_country(agents, None)] == ["B", "A"]
