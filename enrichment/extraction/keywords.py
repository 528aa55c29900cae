"""
Keyword vocabularies shared by the extractors and the link ranker.
"""

VENUE_KEYWORDS = ["venue", "location", "field", "complex", "park", "facility"]

RATE_KEYWORDS = ["rate", "pay", "comp", "fee", "officials", "referee"]

# Words that put a dollar amount in a referee context
REFEREE_CONTEXT_KEYWORDS = ["referee", "referees", "official", "officials", "assignor", "refs"]

# Team/player money that is not referee pay
FEE_NEGATIVE_KEYWORDS = [
    "team fee",
    "entry fee",
    "registration fee",
    "registration",
    "deposit",
    "tournament fee",
    "club fee",
    "per team",
    "per player",
    "player fee",
    "gate fee",
    "spectator fee",
    "parking fee",
    "vendor fee",
    "hotel fee",
    "lodging fee",
    "payment plan",
    "late fee",
    "refund",
]

TRAVEL_KEYWORDS = [
    "hotel",
    "housing",
    "lodging",
    "accommodations",
    "travel",
    "mileage",
    "per diem",
    "meals",
    "reimbursement",
    "stipend",
    "airfare",
]

ASSIGNING_PLATFORMS = ["arbiter", "arbitersports", "assignr", "gameofficials", "zebraweb"]

ASSIGNOR_CUES = [
    "referee assignor",
    "referee coordinator",
    "officials coordinator",
    "assignor",
]

DIRECTOR_CUES = ["tournament director", "event director", "director"]

CONTACT_KEYWORDS = ["contact", "contact us", "referee", "referees", "officials", "assignor", "director"]

# Union used to prioritise links while crawling
LINK_KEYWORDS = sorted(
    set(
        VENUE_KEYWORDS
        + RATE_KEYWORDS
        + REFEREE_CONTEXT_KEYWORDS
        + TRAVEL_KEYWORDS
        + ASSIGNOR_CUES
        + DIRECTOR_CUES
        + CONTACT_KEYWORDS
        + ["coordinator", "about", "schedule", "directions", "info"]
    )
)


def contains_any(text: str, keywords) -> bool:
    """Case-sensitive substring check; callers pass lowercased text."""
    return any(keyword in text for keyword in keywords)
