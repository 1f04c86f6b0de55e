"""Country matching for the cash agent network"""

from typing import Dict, Iterable, List, Protocol

# Each key maps to the other spellings it should match
COUNTRY_ALIASES: Dict[str, List[str]] = {
    "ma": ["morocco", "maroc", "المغرب"],
    "morocco": ["ma", "maroc", "المغرب"],
    "lb": ["lebanon", "liban", "لبنان"],
    "lebanon": ["lb", "liban", "لبنان"],
    "sa": ["saudi arabia", "saudi", "ksa", "السعودية"],
    "saudi arabia": ["sa", "saudi", "ksa", "السعودية"],
    "ae": ["uae", "emirates", "الإمارات"],
    "uae": ["ae", "emirates", "الإمارات"],
    "eg": ["egypt", "مصر"],
    "egypt": ["eg", "مصر"],
    "jo": ["jordan", "الأردن"],
    "jordan": ["jo", "الأردن"],
    "qa": ["qatar", "قطر"],
    "qatar": ["qa", "قطر"],
    "kw": ["kuwait", "الكويت"],
    "kuwait": ["kw", "الكويت"],
    "bh": ["bahrain", "البحرين"],
    "bahrain": ["bh", "البحرين"],
    "om": ["oman", "عمان"],
    "oman": ["om", "عمان"],
}


class _RatedAgent(Protocol):
    country: str
    rating: float


def _normalize(value: str) -> str:
    return value.strip().lower()


def matches_country(agent_country: str | None, user_country: str | None) -> bool:
    """
    Decide whether an agent registered in agent_country serves user_country.

    A missing country on either side, or a user country of "Unknown",
    matches everything.
    """
    if not agent_country or not user_country or user_country == "Unknown":
        return True

    agent = _normalize(agent_country)
    user = _normalize(user_country)

    if agent == user:
        return True
    if agent in COUNTRY_ALIASES.get(user, []):
        return True
    return user in COUNTRY_ALIASES.get(agent, [])


def filter_agents_by_country(agents: Iterable[_RatedAgent], country: str | None) -> List[_RatedAgent]:
    """Keep agents serving the country, best rated first"""
    selected = list(agents)
    if country and country != "Unknown":
        selected = [a for a in selected if matches_country(a.country, country)]
    return sorted(selected, key=lambda a: a.rating or 0, reverse=True)
