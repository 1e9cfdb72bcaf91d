from .batching import Settled, format_error, process_batched
from .composite import (find_legislator, get_legislator_votes,
                        get_primary_authored, resolve_current_session)
from .legiscan_client import (AsyncLegiScanClient, LegiScanAPIError,
                              LegiScanClient, LegiScanResponseError)
from .matching import (SponsorType, get_current_session, is_primary_author,
                       matches_name, normalize_bill_number, sponsor_type_label)
from .models import (Bill, BillText, BillTextDocument, IndividualVote,
                     MasterListEntry, Person, RollCall, Session,
                     SessionPeople, Sponsor, SponsoredBill, VoteReference)
from .tools import ToolDispatcher, error_response, json_response

__all__ = [
    "AsyncLegiScanClient",
    "LegiScanAPIError",
    "LegiScanClient",
    "LegiScanResponseError",
    "ToolDispatcher",
    "Settled",
    "SponsorType",
    "find_legislator",
    "format_error",
    "get_current_session",
    "get_legislator_votes",
    "get_primary_authored",
    "is_primary_author",
    "matches_name",
    "normalize_bill_number",
    "process_batched",
    "resolve_current_session",
    "sponsor_type_label",
    "error_response",
    "json_response",
    "Bill",
    "BillText",
    "BillTextDocument",
    "IndividualVote",
    "MasterListEntry",
    "Person",
    "RollCall",
    "Session",
    "SessionPeople",
    "Sponsor",
    "SponsoredBill",
    "VoteReference",
]
