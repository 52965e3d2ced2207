"""Client resolution by contact email"""

from typing import Iterable, List
from roi_gateway.domain.models import Client, ClientMatch, MatchOutcome

MULTIPLE_EXACT_MESSAGE = "Multiple clients found with this email"
FUZZY_MESSAGE = "Multiple similar clients found"
NOT_FOUND_MESSAGE = "No client found with this email"
UNIQUE_MESSAGE = "Client found"


def _emails(client: Client) -> List[str]:
    return [e.strip().lower() for e in client.contact_emails if e and e.strip()]


def classify_client_matches(email: str, clients: Iterable[Client]) -> ClientMatch:
    """
    Classify platform search results for an email query.

    Rules:
    - Exactly one case-insensitive exact contact match -> unique
    - Several exact matches -> ambiguous, callers must not guess
    - No exact match but a substring match in either direction -> ambiguous,
      even for a single candidate (partial emails are not trusted)
    - Otherwise -> not found
    """
    query = email.strip().lower()
    candidates = list(clients)

    exact = [c for c in candidates if query in _emails(c)]
    if len(exact) == 1:
        return ClientMatch(outcome=MatchOutcome.UNIQUE, message=UNIQUE_MESSAGE, client=exact[0])
    if len(exact) > 1:
        return ClientMatch(
            outcome=MatchOutcome.AMBIGUOUS,
            message=MULTIPLE_EXACT_MESSAGE,
            candidates=tuple(exact),
        )

    fuzzy = [
        c for c in candidates
        if query and any(query in e or e in query for e in _emails(c))
    ]
    if fuzzy:
        return ClientMatch(
            outcome=MatchOutcome.AMBIGUOUS,
            message=FUZZY_MESSAGE,
            candidates=tuple(fuzzy),
        )

    return ClientMatch(outcome=MatchOutcome.NOT_FOUND, message=NOT_FOUND_MESSAGE)
