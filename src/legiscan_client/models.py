from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class Session:
    session_id: int
    year_start: int
    year_end: int
    sine_die: int                              # 1 once the session is formally adjourned
    session_name: Optional[str] = None
    state_id: Optional[int] = None
    session_title: Optional[str] = None
    session_tag: Optional[str] = None
    special: Optional[int] = None
    prior: Optional[int] = None
    prefile: Optional[int] = None
    raw: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Person:
    people_id: int
    name: str
    first_name: str
    last_name: str
    middle_name: Optional[str] = None
    suffix: Optional[str] = None
    nickname: Optional[str] = None
    party: Optional[str] = None
    party_id: Optional[int] = None
    role: Optional[str] = None
    role_id: Optional[int] = None
    district: Optional[str] = None
    state_id: Optional[int] = None

    # External site identifiers
    ballotpedia: Optional[str] = None
    votesmart_id: Optional[int] = None
    opensecrets_id: Optional[str] = None
    ftm_eid: Optional[int] = None
    knowipedia_id: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Sponsor:
    people_id: int
    name: str
    sponsor_order: int                         # 1-based rank among sponsors
    sponsor_type_id: int                       # 0=Sponsor, 1=Primary, 2=Co, 3=Joint
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    party: Optional[str] = None
    role: Optional[str] = None
    district: Optional[str] = None
    committee_sponsor: Optional[int] = None
    committee_id: Optional[int] = None
    raw: Dict[str, Any] = field(default_factory=dict)


@dataclass
class VoteReference:
    roll_call_id: int
    chamber: str                               # "H", "S" or "A"
    date: Optional[str] = None
    desc: Optional[str] = None
    yea: Optional[int] = None
    nay: Optional[int] = None
    nv: Optional[int] = None
    absent: Optional[int] = None
    total: Optional[int] = None
    passed: Optional[int] = None
    raw: Dict[str, Any] = field(default_factory=dict)


@dataclass
class BillText:
    doc_id: int
    date: Optional[str] = None
    type: Optional[str] = None                 # "Introduced", "Amended", "Enrolled", ...
    mime: Optional[str] = None
    url: Optional[str] = None
    state_link: Optional[str] = None
    text_size: Optional[int] = None
    raw: Dict[str, Any] = field(default_factory=dict)


@dataclass
class BillTextDocument:
    doc_id: int
    bill_id: Optional[int] = None
    date: Optional[str] = None
    type: Optional[str] = None
    mime: Optional[str] = None
    doc: bytes = b""                           # decoded from the base64 payload
    raw: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Bill:
    bill_id: int
    bill_number: str
    title: str
    session_id: int
    description: Optional[str] = None
    status: Optional[int] = None
    status_date: Optional[str] = None
    state: Optional[str] = None
    body: Optional[str] = None                 # originating chamber code
    url: Optional[str] = None
    state_link: Optional[str] = None

    sponsors: List[Sponsor] = field(default_factory=list)  # upstream order preserved
    votes: List[VoteReference] = field(default_factory=list)
    texts: List[BillText] = field(default_factory=list)
    history: List[Dict[str, Any]] = field(default_factory=list)
    subjects: List[Dict[str, Any]] = field(default_factory=list)
    raw: Dict[str, Any] = field(default_factory=dict)


@dataclass
class IndividualVote:
    people_id: int
    vote_id: int                               # 1=Yea, 2=Nay, 3=NV, 4=Absent
    vote_text: Optional[str] = None


@dataclass
class RollCall:
    roll_call_id: int
    bill_id: Optional[int] = None
    date: Optional[str] = None
    desc: Optional[str] = None
    chamber: Optional[str] = None
    yea: int = 0
    nay: int = 0
    nv: int = 0
    absent: int = 0
    total: int = 0
    passed: int = 0
    votes: List[IndividualVote] = field(default_factory=list)
    raw: Dict[str, Any] = field(default_factory=dict)


@dataclass
class SponsoredBill:
    bill_id: int
    session_id: int
    number: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)


@dataclass
class SessionPeople:
    session: Session
    people: List[Person] = field(default_factory=list)


@dataclass
class MasterListEntry:
    bill_id: int
    number: str
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[int] = None
    status_date: Optional[str] = None
    last_action: Optional[str] = None
    last_action_date: Optional[str] = None
    url: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)
