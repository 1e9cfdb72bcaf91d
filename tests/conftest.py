import asyncio

import pytest

from legiscan_client import (Bill, IndividualVote, LegiScanAPIError, Person,
                             RollCall, Session, SessionPeople, Sponsor,
                             SponsoredBill, VoteReference)


class FakeLegiScan:
    """
    In-memory stand-in for AsyncLegiScanClient. Ids listed in ``failing``
    raise LegiScanAPIError; every call is recorded in ``calls``.
    """

    def __init__(self):
        self.sessions = {}
        self.bills = {}
        self.roll_calls = {}
        self.people = {}
        self.rosters = {}
        self.sponsored = {}
        self.failing = set()
        self.calls = []
        self.in_flight = 0
        self.peak_in_flight = 0

    async def _fetch(self, op, key, store):
        self.calls.append((op, key))
        self.in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            if (op, key) in self.failing:
                raise LegiScanAPIError(f"{op} {key} unavailable")
            if key not in store:
                raise LegiScanAPIError(f"Unknown id {key}")
            return store[key]
        finally:
            self.in_flight -= 1

    async def get_session_list(self, state):
        return await self._fetch("getSessionList", state, self.sessions)

    async def get_session_people(self, session_id):
        return await self._fetch("getSessionPeople", session_id, self.rosters)

    async def get_bill(self, bill_id):
        return await self._fetch("getBill", bill_id, self.bills)

    async def get_roll_call(self, roll_call_id):
        return await self._fetch("getRollCall", roll_call_id, self.roll_calls)

    async def get_person(self, people_id):
        return await self._fetch("getPerson", people_id, self.people)

    async def get_sponsored_list(self, people_id):
        return await self._fetch("getSponsoredList", people_id, self.sponsored)


def make_session(session_id, year_end, sine_die=0, name=None):
    return Session(session_id=session_id, year_start=year_end - 1, year_end=year_end,
                   sine_die=sine_die, session_name=name or f"{year_end - 1}-{year_end} Regular Session")


def make_person(people_id, name, first_name, last_name, nickname=None, **kw):
    return Person(people_id=people_id, name=name, first_name=first_name,
                  last_name=last_name, nickname=nickname, **kw)


def make_bill(bill_id, session_id=2041, sponsors=(), votes=(), number=None):
    return Bill(bill_id=bill_id, bill_number=number or f"AB{bill_id}", title=f"Bill {bill_id}",
                session_id=session_id, description=f"Description {bill_id}", status=1,
                status_date="2023-02-15", sponsors=list(sponsors), votes=list(votes))


def make_sponsor(people_id, name, order, type_id):
    return Sponsor(people_id=people_id, name=name, sponsor_order=order, sponsor_type_id=type_id)


def make_roll_call(roll_call_id, chamber, votes, passed=1):
    return RollCall(roll_call_id=roll_call_id, date="2023-05-01", desc=f"Roll call {roll_call_id}",
                    chamber=chamber, passed=passed,
                    votes=[IndividualVote(people_id=p, vote_id=v, vote_text={1: "Yea", 2: "Nay", 3: "NV", 4: "Absent"}[v])
                           for p, v in votes])


@pytest.fixture
def fake_client():
    return FakeLegiScan()


@pytest.fixture
def ca_legislature(fake_client):
    """California-shaped data set: two sessions, three bills, a small roster."""
    fake_client.sessions["CA"] = [
        make_session(1911, 2022, sine_die=1),
        make_session(2041, 2024),
    ]
    smith = make_sponsor(42, "Jane Smith", 1, 0)
    fake_client.bills[100] = make_bill(100, sponsors=[smith, make_sponsor(43, "Bob Jones", 2, 2)],
                                       votes=[VoteReference(roll_call_id=9001, chamber="A"),
                                              VoteReference(roll_call_id=9002, chamber="S")])
    fake_client.bills[300] = make_bill(300, sponsors=[make_sponsor(43, "Bob Jones", 1, 1),
                                                      make_sponsor(42, "Jane Smith", 2, 0)],
                                       votes=[VoteReference(roll_call_id=9003, chamber="A")])
    fake_client.roll_calls[9001] = make_roll_call(9001, "A", [(42, 1), (43, 2)])
    fake_client.roll_calls[9002] = make_roll_call(9002, "S", [(43, 1)], passed=0)
    fake_client.roll_calls[9003] = make_roll_call(9003, "A", [(42, 2), (43, 1)])
    fake_client.rosters[2041] = SessionPeople(
        session=fake_client.sessions["CA"][1],
        people=[
            make_person(42, "Jane Smith", "Jane", "Smith", party="D", role="Asm", district="AD-012"),
            make_person(43, "Bob Jones", "Robert", "Jones", nickname="Bob", party="R", role="Sen", district="SD-004"),
            make_person(44, "Smith, Alan", "Alan", "Smith", party="D", role="Asm", district="AD-033"),
        ],
    )
    fake_client.rosters[1911] = SessionPeople(
        session=fake_client.sessions["CA"][0],
        people=[make_person(50, "Maria Lopez", "Maria", "Lopez", party="D", role="Asm", district="AD-050")],
    )
    fake_client.sponsored[42] = [
        SponsoredBill(bill_id=100, session_id=2041),
        SponsoredBill(bill_id=300, session_id=2041),
        SponsoredBill(bill_id=77, session_id=1911),
    ]
    return fake_client
