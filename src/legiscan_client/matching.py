"""
Pure predicates applied to records that have already been fetched:
current-session selection, legislator name matching, sponsorship
classification and bill-number normalization.
"""
import re
from enum import IntEnum
from typing import List, Optional

from .models import Person, Session, Sponsor


class SponsorType(IntEnum):
    SPONSOR = 0
    PRIMARY_SPONSOR = 1
    CO_SPONSOR = 2
    JOINT_SPONSOR = 3


SPONSOR_TYPE_LABELS = {
    SponsorType.SPONSOR: "Sponsor",
    SponsorType.PRIMARY_SPONSOR: "Primary Sponsor",
    SponsorType.CO_SPONSOR: "Co-Sponsor",
    SponsorType.JOINT_SPONSOR: "Joint Sponsor",
}

_BILL_NUMBER_SEPARATORS = re.compile(r"[\s.\-]")
_BILL_NUMBER_LEADING_ZEROS = re.compile(r"^([A-Z]+)0+(\d)")


def get_current_session(sessions: List[Session], state: Optional[str] = None) -> Session:
    """
    Pick the "current" session out of a state's session list.

    Sessions still open (``sine_die == 0``) win, latest ``year_end`` first.
    When every session has adjourned, the latest ``year_end`` overall is used.
    Equal ``year_end`` values keep whatever order the upstream list had.

    Raises:
        ValueError: if ``sessions`` is empty.
    """
    if not sessions:
        raise ValueError(f'No sessions found for state "{state}"')

    active = sorted((s for s in sessions if s.sine_die == 0), key=lambda s: s.year_end, reverse=True)
    if active:
        return active[0]
    return sorted(sessions, key=lambda s: s.year_end, reverse=True)[0]


def matches_name(person: Person, query: str) -> bool:
    """
    Case-insensitive name match. The whole query as a substring of the full
    name matches outright; otherwise every whitespace token must appear in the
    first, last, full or nick name.
    """
    q = query.lower().strip()
    tokens = q.split()

    full_name = person.name.lower()
    first_name = (person.first_name or "").lower()
    last_name = (person.last_name or "").lower()
    nickname = (person.nickname or "").lower()

    if q in full_name:
        return True

    return all(
        token in first_name
        or token in last_name
        or token in full_name
        or token in nickname
        for token in tokens
    )


def is_primary_author(sponsor: Sponsor) -> bool:
    """Either a Primary Sponsor type or first in sponsor order."""
    return sponsor.sponsor_type_id == SponsorType.PRIMARY_SPONSOR or sponsor.sponsor_order == 1


def sponsor_type_label(sponsor_type_id: int) -> str:
    try:
        return SPONSOR_TYPE_LABELS[SponsorType(sponsor_type_id)]
    except ValueError:
        return "Unknown"


def normalize_bill_number(bill_number: str) -> str:
    """
    Canonical form for comparing bill numbers: "ab 858", "AB-858", "AB.858"
    and "AB0858" all become "AB858".
    """
    compact = _BILL_NUMBER_SEPARATORS.sub("", bill_number.upper())
    return _BILL_NUMBER_LEADING_ZEROS.sub(r"\1\2", compact)
