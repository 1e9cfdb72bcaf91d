"""
Research operations that fan out over many LegiScan calls and fold the
results into one answer. Fetch failures inside a batch are collected in an
``errors`` list instead of failing the whole operation; problems found before
any batch starts (bad session, empty session list) raise.
"""
from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from .batching import DEFAULT_BATCH_SIZE, format_error, process_batched
from .legiscan_client import AsyncLegiScanClient
from .matching import (get_current_session, is_primary_author, matches_name,
                       sponsor_type_label)
from .models import Bill, Session
from .utils import logger_setup

Chamber = Literal["H", "S", "A"]
CHAMBERS = ("H", "S", "A")

# vote_id codes used by LegiScan roll calls
VOTE_YEA = 1
VOTE_NAY = 2
VOTE_NV = 3
VOTE_ABSENT = 4

logger = logger_setup(logger_name="LegiScan Composite")


async def resolve_current_session(client: AsyncLegiScanClient, state: str) -> Session:
    sessions = await client.get_session_list(state)
    return get_current_session(sessions, state)


def _legislator(people_id: int, name: str) -> Dict[str, Any]:
    return {"people_id": people_id, "name": name or f"Legislator {people_id}"}


def _sponsor_name(bill: Bill, people_id: int) -> str:
    for sponsor in bill.sponsors:
        if sponsor.people_id == people_id:
            return sponsor.name
    return ""


def _with_errors(result: Dict[str, Any], errors: List[str]) -> Dict[str, Any]:
    if errors:
        result["errors"] = errors
    return result


# ------------- legislator votes -------------
async def get_legislator_votes(
    client: AsyncLegiScanClient,
    people_id: int,
    bill_ids: List[int],
    chamber: Optional[Chamber] = None,
    *,
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> Dict[str, Any]:
    """
    How one legislator voted on every roll call of the given bills.

    Bills are fetched in batches, then each bill's roll calls (optionally
    limited to one chamber). Only roll calls in which ``people_id`` cast a
    vote produce a record.
    """
    logger.info(f"Collecting votes for legislator {people_id} across {len(bill_ids)} bills")
    votes: List[Dict[str, Any]] = []
    errors: List[str] = []
    legislator_name = ""

    bill_results = await process_batched(bill_ids, client.get_bill, batch_size)

    for bill_id, result in zip(bill_ids, bill_results):
        if not result.ok:
            logger.warning(f"Bill {bill_id} could not be fetched: {format_error(result.error)}")
            errors.append(f"Bill {bill_id}: {format_error(result.error)}")
            continue

        bill = result.value
        vote_refs = bill.votes
        if chamber:
            vote_refs = [v for v in vote_refs if v.chamber == chamber]

        roll_call_results = await process_batched(
            vote_refs, lambda ref: client.get_roll_call(ref.roll_call_id), batch_size
        )

        for vote_ref, rc_result in zip(vote_refs, roll_call_results):
            if not rc_result.ok:
                logger.warning(f"Roll call {vote_ref.roll_call_id} could not be fetched: {format_error(rc_result.error)}")
                errors.append(f"Roll call {vote_ref.roll_call_id}: {format_error(rc_result.error)}")
                continue

            roll_call = rc_result.value
            individual = next((v for v in roll_call.votes if v.people_id == people_id), None)
            if individual is None:
                continue

            if not legislator_name:
                legislator_name = _sponsor_name(bill, people_id)

            votes.append({
                "bill_id": bill.bill_id,
                "bill_number": bill.bill_number,
                "title": bill.title,
                "roll_call_id": roll_call.roll_call_id,
                "date": roll_call.date,
                "description": roll_call.desc,
                "chamber": roll_call.chamber,
                "passed": roll_call.passed == 1,
                "vote": individual.vote_text,
                "vote_id": individual.vote_id,
            })

    summary = {
        "total_votes": len(votes),
        "yea": sum(1 for v in votes if v["vote_id"] == VOTE_YEA),
        "nay": sum(1 for v in votes if v["vote_id"] == VOTE_NAY),
        "nv": sum(1 for v in votes if v["vote_id"] == VOTE_NV),
        "absent": sum(1 for v in votes if v["vote_id"] == VOTE_ABSENT),
    }

    return _with_errors({
        "legislator": _legislator(people_id, legislator_name),
        "votes": votes,
        "summary": summary,
    }, errors)


# ------------- primary authored bills -------------
async def get_primary_authored(
    client: AsyncLegiScanClient,
    people_id: int,
    session_id: Optional[int] = None,
    state: Optional[str] = None,
    *,
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> Dict[str, Any]:
    """
    Bills a legislator primarily authored (Primary Sponsor type, or first in
    sponsor order). ``session_id`` restricts to one session; ``state`` alone
    restricts to that state's current session.
    """
    sponsored = await client.get_sponsored_list(people_id)

    filtered = sponsored
    if session_id:
        filtered = [b for b in sponsored if b.session_id == session_id]
    elif state:
        current = await resolve_current_session(client, state)
        filtered = [b for b in sponsored if b.session_id == current.session_id]
    logger.info(f"Legislator {people_id} sponsored {len(sponsored)} bills, checking {len(filtered)}")

    primary_authored: List[Dict[str, Any]] = []
    errors: List[str] = []
    legislator_name = ""

    bill_results = await process_batched(filtered, lambda b: client.get_bill(b.bill_id), batch_size)

    for info, result in zip(filtered, bill_results):
        if not result.ok:
            logger.warning(f"Bill {info.bill_id} could not be fetched: {format_error(result.error)}")
            errors.append(f"Bill {info.bill_id}: {format_error(result.error)}")
            continue

        bill = result.value
        sponsor = next((s for s in bill.sponsors if s.people_id == people_id), None)
        if sponsor is None or not is_primary_author(sponsor):
            continue

        if not legislator_name:
            legislator_name = sponsor.name

        primary_authored.append({
            "bill_id": bill.bill_id,
            "bill_number": bill.bill_number,
            "title": bill.title,
            "description": bill.description,
            "session_id": bill.session_id,
            "status": str(bill.status),
            "status_date": bill.status_date,
            "sponsor_order": sponsor.sponsor_order,
            "sponsor_type": sponsor_type_label(sponsor.sponsor_type_id),
        })

    return _with_errors({
        "legislator": _legislator(people_id, legislator_name),
        "total_sponsored": len(sponsored),
        "primary_count": len(primary_authored),
        "primary_authored": primary_authored,
    }, errors)


# ------------- find legislator -------------
async def find_legislator(
    client: AsyncLegiScanClient,
    name: str,
    state: str,
    session_id: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Search a session's roster by name. Defaults to the state's current session.

    Raises:
        ValueError: if ``session_id`` is not one of the state's sessions, or
            the state has no sessions at all.
    """
    if session_id:
        sessions = await client.get_session_list(state)
        session = next((s for s in sessions if s.session_id == session_id), None)
        if session is None:
            raise ValueError(f"Session {session_id} not found for {state}")
    else:
        session = await resolve_current_session(client, state)

    roster = await client.get_session_people(session.session_id)
    matches = [p for p in roster.people if matches_name(p, name)]
    logger.info(f"Name query {name!r} matched {len(matches)} of {len(roster.people)} legislators in session {session.session_id}")

    return {
        "query": name,
        "session": {
            "session_id": session.session_id,
            "session_name": session.session_name,
            "state": state,
        },
        "matches": [
            {
                "people_id": p.people_id,
                "name": p.name,
                "first_name": p.first_name,
                "last_name": p.last_name,
                "party": p.party,
                "role": p.role,
                "district": p.district,
                "ballotpedia": p.ballotpedia,
            }
            for p in matches
        ],
        "match_count": len(matches),
    }
