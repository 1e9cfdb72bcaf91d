#%%
from __future__ import annotations

import asyncio
import base64
import email.utils as eut
import json
import logging
import os
import random
import threading
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import requests
from requests import RequestException

from .matching import normalize_bill_number
from .models import (Bill, BillText, BillTextDocument, IndividualVote,
                     MasterListEntry, Person, RollCall, Session,
                     SessionPeople, Sponsor, SponsoredBill, VoteReference)
from .utils import logger_setup

#%%
# ----------------------------------- Errors --------------------------------------#

class LegiScanAPIError(RuntimeError):
    """LegiScan answered with ``status: ERROR``."""


class LegiScanResponseError(LegiScanAPIError):
    """A LegiScan payload is missing data the client cannot do without."""


def _require(d: Dict[str, Any], key: str, entity: str) -> Any:
    if not isinstance(d, dict) or d.get(key) is None:
        raise LegiScanResponseError(f"{entity} record is missing required field '{key}'")
    return d[key]


class LegiScanClient:
    """
    Typed wrapper for the LegiScan pull API with retries/backoff and a politeness throttle.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = "https://api.legiscan.com/",
        timeout: int = 60,
        min_interval: float = 0.0,  # politeness throttle
        max_tries: int = 5,
        backoff_base: float = 0.75,
        backoff_cap: float = 30.0,
        log_level: int = logging.INFO,
    ):
        self.api_key = api_key or os.getenv("LEGISCAN_API_KEY")
        if not self.api_key:
            raise ValueError("LegiScan API key not provided. Set LEGISCAN_API_KEY env var or pass api_key=...")

        self.base_url = base_url.rstrip("/") + "/"
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({"Accept": "application/json"})

        self.min_interval = float(min_interval)
        self.max_tries = int(max_tries)
        self.backoff_base = float(backoff_base)
        self.backoff_cap = float(backoff_cap)
        self.logger = logger_setup(logger_name="LegiScan API Client", log_level=log_level)

        # shared by worker threads when driven through AsyncLegiScanClient
        self._gate_lock = threading.Lock()
        self._last_call = 0.0


    # ------------- throttling -------------
    def _gate(self) -> None:
        if self.min_interval <= 0.0:
            return
        with self._gate_lock:
            now_m = time.monotonic()
            wait = self.min_interval - (now_m - self._last_call)
            if wait > 0:
                time.sleep(wait)
                now_m = time.monotonic()
            self._last_call = now_m


    # ------------- backoff helpers -------------
    @staticmethod
    def _parse_retry_after(value: str) -> float:
        """Return seconds to sleep from a Retry-After header (seconds or HTTP-date)."""
        if not value:
            return 0.0
        try:
            return float(value)
        except ValueError:
            try:
                dt = eut.parsedate_to_datetime(value)
            except (TypeError, ValueError):
                return 0.0
            if dt.tzinfo is None:
                dt = dt.replace(tzinfo=timezone.utc)
            return max(0.0, (dt - datetime.now(timezone.utc)).total_seconds())

    @staticmethod
    def _parse_payload(resp: requests.Response) -> Dict[str, Any]:
        """
        Parse a LegiScan envelope and raise on ``status: ERROR``.
        """
        try:
            data = resp.json()
        except (ValueError, json.JSONDecodeError) as e:
            raise LegiScanResponseError(f"LegiScan returned a non-JSON payload: {resp.text[:200]}") from e

        if not isinstance(data, dict):
            raise LegiScanResponseError(f"Unexpected LegiScan payload type: {type(data).__name__}")

        if data.get("status") == "ERROR":
            alert = data.get("alert") or {}
            message = alert.get("message") if isinstance(alert, dict) else None
            raise LegiScanAPIError(message or "LegiScan API returned an error")
        return data

    def _sleep_backoff(self, attempt: int) -> None:
        # Full jitter: sleep in [0, min(cap, base * 2**attempt)]
        upper = min(self.backoff_cap, self.backoff_base * (2 ** attempt))
        sleep_time = random.uniform(0, upper)
        self.logger.info(f"Backoff: sleeping for {sleep_time:.2f} seconds on attempt {attempt+1} (max {self.max_tries})")
        time.sleep(sleep_time)

    def _request_with_backoff(self, method: str, url: str, *, params: dict | None = None) -> requests.Response:
        last_exc: Optional[Exception] = None
        for attempt in range(self.max_tries):
            try:
                self._gate()
                resp = self.session.request(method, url, params=params, timeout=self.timeout)
                if 200 <= resp.status_code < 300:
                    return resp
                if resp.status_code in (429, 500, 502, 503, 504):
                    self.logger.warning(f"LegiScan request failed with status {resp.status_code}: {resp.text[:200]}")
                    ra = self._parse_retry_after(resp.headers.get("Retry-After", ""))
                    if ra > 0:
                        self.logger.info(f"Sleeping for {ra:.2f} seconds.")
                        time.sleep(ra)
                    else:
                        self._sleep_backoff(attempt)
                    last_exc = requests.HTTPError(f"{resp.status_code} for {url}", response=resp)
                    continue
                resp.raise_for_status()
                return resp
            except requests.HTTPError:
                raise
            except (requests.ConnectionError, requests.Timeout, RequestException) as e:
                last_exc = e
                self.logger.warning(f"Request error on attempt {attempt+1}/{self.max_tries}: {type(e).__name__}: {e}")
                self._sleep_backoff(attempt)
                continue
        if isinstance(last_exc, requests.HTTPError):
            raise last_exc
        raise requests.RequestException(f"Failed after {self.max_tries} attempts: {url}")

    # ------------- core request helpers -------------
    def _get(self, op: str, data_key: str, **params: Any) -> Any:
        p = {"key": self.api_key, "op": op}
        p.update({k: v for k, v in params.items() if v is not None})
        self.logger.debug(f"LegiScan {op} {params}")
        resp = self._request_with_backoff("GET", self.base_url, params=p)
        data = self._parse_payload(resp)
        if data_key not in data:
            raise LegiScanResponseError(f"LegiScan {op} response is missing '{data_key}'")
        return data[data_key]

    @staticmethod
    def _as_list(block) -> list:
        """LegiScan sends empty collections as [] or {} and numbered maps as dicts."""
        if block is None:
            return []
        if isinstance(block, list):
            return block
        if isinstance(block, dict):
            return [v for v in block.values() if isinstance(v, dict)]
        return []

    # ------------- record conversion -------------
    def _dict_to_session(self, s: Dict[str, Any]) -> Session:
        return Session(
            session_id=_require(s, "session_id", "Session"),
            year_start=_require(s, "year_start", "Session"),
            year_end=_require(s, "year_end", "Session"),
            sine_die=_require(s, "sine_die", "Session"),
            session_name=s.get("session_name"),
            state_id=s.get("state_id"),
            session_title=s.get("session_title"),
            session_tag=s.get("session_tag"),
            special=s.get("special"),
            prior=s.get("prior"),
            prefile=s.get("prefile"),
            raw=s,
        )

    def _dict_to_person(self, p: Dict[str, Any]) -> Person:
        return Person(
            people_id=_require(p, "people_id", "Person"),
            name=_require(p, "name", "Person"),
            first_name=p.get("first_name") or "",
            last_name=p.get("last_name") or "",
            middle_name=p.get("middle_name") or None,
            suffix=p.get("suffix") or None,
            nickname=p.get("nickname") or None,
            party=p.get("party"),
            party_id=p.get("party_id"),
            role=p.get("role"),
            role_id=p.get("role_id"),
            district=p.get("district"),
            state_id=p.get("state_id"),
            ballotpedia=p.get("ballotpedia") or None,
            votesmart_id=p.get("votesmart_id") or None,
            opensecrets_id=p.get("opensecrets_id") or None,
            ftm_eid=p.get("ftm_eid") or None,
            knowipedia_id=p.get("knowipedia_id") or None,
            raw=p,
        )

    def _dict_to_sponsor(self, s: Dict[str, Any]) -> Sponsor:
        return Sponsor(
            people_id=_require(s, "people_id", "Sponsor"),
            name=s.get("name") or "",
            sponsor_order=_require(s, "sponsor_order", "Sponsor"),
            sponsor_type_id=_require(s, "sponsor_type_id", "Sponsor"),
            first_name=s.get("first_name"),
            last_name=s.get("last_name"),
            party=s.get("party"),
            role=s.get("role"),
            district=s.get("district"),
            committee_sponsor=s.get("committee_sponsor"),
            committee_id=s.get("committee_id"),
            raw=s,
        )

    def _dict_to_vote_reference(self, v: Dict[str, Any]) -> VoteReference:
        return VoteReference(
            roll_call_id=_require(v, "roll_call_id", "Vote reference"),
            chamber=_require(v, "chamber", "Vote reference"),
            date=v.get("date"),
            desc=v.get("desc"),
            yea=v.get("yea"),
            nay=v.get("nay"),
            nv=v.get("nv"),
            absent=v.get("absent"),
            total=v.get("total"),
            passed=v.get("passed"),
            raw=v,
        )

    def _dict_to_text(self, t: Dict[str, Any]) -> BillText:
        return BillText(
            doc_id=_require(t, "doc_id", "Bill text"),
            date=t.get("date"),
            type=t.get("type"),
            mime=t.get("mime"),
            url=t.get("url"),
            state_link=t.get("state_link"),
            text_size=t.get("text_size"),
            raw=t,
        )

    def _dict_to_bill(self, b: Dict[str, Any]) -> Bill:
        return Bill(
            bill_id=_require(b, "bill_id", "Bill"),
            bill_number=_require(b, "bill_number", "Bill"),
            title=b.get("title") or "",
            session_id=_require(b, "session_id", "Bill"),
            description=b.get("description"),
            status=b.get("status"),
            status_date=b.get("status_date"),
            state=b.get("state"),
            body=b.get("body"),
            url=b.get("url"),
            state_link=b.get("state_link"),
            sponsors=[self._dict_to_sponsor(s) for s in self._as_list(b.get("sponsors"))],
            votes=[self._dict_to_vote_reference(v) for v in self._as_list(b.get("votes"))],
            texts=[self._dict_to_text(t) for t in self._as_list(b.get("texts"))],
            history=self._as_list(b.get("history")),
            subjects=self._as_list(b.get("subjects")),
            raw=b,
        )

    def _dict_to_roll_call(self, r: Dict[str, Any]) -> RollCall:
        votes = [
            IndividualVote(
                people_id=_require(v, "people_id", "Individual vote"),
                vote_id=_require(v, "vote_id", "Individual vote"),
                vote_text=v.get("vote_text"),
            )
            for v in self._as_list(r.get("votes"))
        ]
        return RollCall(
            roll_call_id=_require(r, "roll_call_id", "Roll call"),
            bill_id=r.get("bill_id"),
            date=r.get("date"),
            desc=r.get("desc"),
            chamber=r.get("chamber"),
            yea=r.get("yea") or 0,
            nay=r.get("nay") or 0,
            nv=r.get("nv") or 0,
            absent=r.get("absent") or 0,
            total=r.get("total") or 0,
            passed=r.get("passed") or 0,
            votes=votes,
            raw=r,
        )

    def _dict_to_master_entry(self, m: Dict[str, Any]) -> MasterListEntry:
        return MasterListEntry(
            bill_id=_require(m, "bill_id", "Master list entry"),
            number=_require(m, "number", "Master list entry"),
            title=m.get("title"),
            description=m.get("description"),
            status=m.get("status"),
            status_date=m.get("status_date"),
            last_action=m.get("last_action"),
            last_action_date=m.get("last_action_date"),
            url=m.get("url"),
            raw=m,
        )

    # ------------- sessions -------------
    def get_session_list(self, state: str) -> List[Session]:
        sessions = self._get("getSessionList", "sessions", state=state)
        return [self._dict_to_session(s) for s in self._as_list(sessions)]

    def get_session_people(self, session_id: int) -> SessionPeople:
        block = self._get("getSessionPeople", "sessionpeople", id=session_id)
        return SessionPeople(
            session=self._dict_to_session(_require(block, "session", "Session roster")),
            people=[self._dict_to_person(p) for p in self._as_list(block.get("people"))],
        )

    # ------------- bills -------------
    def get_bill(self, bill_id: int) -> Bill:
        return self._dict_to_bill(self._get("getBill", "bill", id=bill_id))

    def get_bill_text(self, doc_id: int) -> BillTextDocument:
        t = self._get("getBillText", "text", id=doc_id)
        encoded = t.get("doc") or ""
        return BillTextDocument(
            doc_id=_require(t, "doc_id", "Bill text"),
            bill_id=t.get("bill_id"),
            date=t.get("date"),
            type=t.get("type"),
            mime=t.get("mime"),
            doc=base64.b64decode(encoded) if encoded else b"",
            raw={k: v for k, v in t.items() if k != "doc"},
        )

    def get_master_list(self, session_id: Optional[int] = None, state: Optional[str] = None) -> List[MasterListEntry]:
        """
        Summary rows for every bill in a session. With only ``state``, LegiScan
        answers for that state's current session.
        """
        if session_id is None and not state:
            raise ValueError("Either session_id or state is required")
        block = self._get("getMasterList", "masterlist", id=session_id, state=None if session_id else state)
        rows = [v for k, v in block.items() if k != "session"] if isinstance(block, dict) else self._as_list(block)
        return [self._dict_to_master_entry(m) for m in rows if isinstance(m, dict)]

    def _find_in_master_list(self, entries: List[MasterListEntry], bill_number: str) -> Optional[MasterListEntry]:
        target = normalize_bill_number(bill_number)
        for entry in entries:
            if normalize_bill_number(entry.number) == target:
                return entry
        return None

    def find_bill_by_number(self, state: str, bill_number: str) -> Optional[MasterListEntry]:
        return self._find_in_master_list(self.get_master_list(state=state), bill_number)

    def find_bill_by_number_in_session(self, session_id: int, bill_number: str) -> Optional[MasterListEntry]:
        return self._find_in_master_list(self.get_master_list(session_id=session_id), bill_number)

    # ------------- votes -------------
    def get_roll_call(self, roll_call_id: int) -> RollCall:
        return self._dict_to_roll_call(self._get("getRollCall", "roll_call", id=roll_call_id))

    # ------------- people -------------
    def get_person(self, people_id: int) -> Person:
        return self._dict_to_person(self._get("getPerson", "person", id=people_id))

    def get_sponsored_list(self, people_id: int) -> List[SponsoredBill]:
        block = self._get("getSponsoredList", "sponsoredbills", id=people_id)
        bills = self._as_list(block.get("bills")) if isinstance(block, dict) else []
        return [
            SponsoredBill(
                bill_id=_require(b, "bill_id", "Sponsored bill"),
                session_id=_require(b, "session_id", "Sponsored bill"),
                number=b.get("number"),
                raw=b,
            )
            for b in bills
        ]


class AsyncLegiScanClient:
    """
    Coroutine facade over :class:`LegiScanClient`. Each call runs the blocking
    request in a worker thread so several fetches can be awaited together.
    """

    def __init__(self, client: Optional[LegiScanClient] = None, **client_kwargs: Any):
        self.client = client or LegiScanClient(**client_kwargs)

    async def _call(self, method: str, *args: Any, **kwargs: Any) -> Any:
        return await asyncio.to_thread(getattr(self.client, method), *args, **kwargs)

    async def get_session_list(self, state: str) -> List[Session]:
        return await self._call("get_session_list", state)

    async def get_session_people(self, session_id: int) -> SessionPeople:
        return await self._call("get_session_people", session_id)

    async def get_bill(self, bill_id: int) -> Bill:
        return await self._call("get_bill", bill_id)

    async def get_bill_text(self, doc_id: int) -> BillTextDocument:
        return await self._call("get_bill_text", doc_id)

    async def get_master_list(self, session_id: Optional[int] = None, state: Optional[str] = None) -> List[MasterListEntry]:
        return await self._call("get_master_list", session_id=session_id, state=state)

    async def find_bill_by_number(self, state: str, bill_number: str) -> Optional[MasterListEntry]:
        return await self._call("find_bill_by_number", state, bill_number)

    async def find_bill_by_number_in_session(self, session_id: int, bill_number: str) -> Optional[MasterListEntry]:
        return await self._call("find_bill_by_number_in_session", session_id, bill_number)

    async def get_roll_call(self, roll_call_id: int) -> RollCall:
        return await self._call("get_roll_call", roll_call_id)

    async def get_person(self, people_id: int) -> Person:
        return await self._call("get_person", people_id)

    async def get_sponsored_list(self, people_id: int) -> List[SponsoredBill]:
        return await self._call("get_sponsored_list", people_id)
