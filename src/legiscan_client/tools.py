"""
Tool dispatch: validates caller arguments against a fixed schema, runs the
matching operation and renders the result as a text payload. Exceptions never
leave ``call_tool``; they come back as an error-tagged payload.
"""
from __future__ import annotations

import dataclasses
import json
from dataclasses import dataclass, field
from typing import (Any, Awaitable, Callable, Dict, List, Optional, Tuple,
                    Union)

from .batching import DEFAULT_BATCH_SIZE
from .composite import (CHAMBERS, find_legislator, get_legislator_votes,
                        get_primary_authored)
from .legiscan_client import AsyncLegiScanClient
from .utils import logger_setup

logger = logger_setup(logger_name="LegiScan Tools")


def json_response(data: Any) -> Dict[str, Any]:
    return {"content": [{"type": "text", "text": json.dumps(data, indent=2, default=str)}]}


def error_response(error: Union[BaseException, str]) -> Dict[str, Any]:
    message = str(error) if isinstance(error, BaseException) else error
    return {"content": [{"type": "text", "text": f"Error: {message}"}], "isError": True}


def to_plain(record: Any) -> Any:
    """Dataclass record(s) as JSON-ready dicts, without the raw upstream payload."""
    if isinstance(record, list):
        return [to_plain(r) for r in record]
    if dataclasses.is_dataclass(record) and not isinstance(record, type):
        return _drop_raw(dataclasses.asdict(record))
    return record


def _drop_raw(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _drop_raw(v) for k, v in value.items() if k != "raw"}
    if isinstance(value, list):
        return [_drop_raw(v) for v in value]
    return value


# ------------- argument schema -------------
@dataclass
class Arg:
    type: str                                  # "integer", "string" or "integer[]"
    description: str
    required: bool = True
    enum: Optional[Tuple[str, ...]] = None

    def check(self, name: str, value: Any) -> Optional[str]:
        if self.type == "integer" and not _is_int(value):
            return f"'{name}' must be an integer"
        if self.type == "string" and not isinstance(value, str):
            return f"'{name}' must be a string"
        if self.type == "integer[]" and not (isinstance(value, list) and all(_is_int(v) for v in value)):
            return f"'{name}' must be a list of integers"
        if self.enum is not None and value not in self.enum:
            return f"'{name}' must be one of {', '.join(self.enum)}"
        return None

    def to_schema(self) -> Dict[str, Any]:
        if self.type == "integer[]":
            schema: Dict[str, Any] = {"type": "array", "items": {"type": "integer"}}
        else:
            schema = {"type": self.type}
        if self.enum is not None:
            schema["enum"] = list(self.enum)
        schema["description"] = self.description
        return schema


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass
class Tool:
    name: str
    description: str
    handler: Callable[..., Awaitable[Any]]
    args: Dict[str, Arg] = field(default_factory=dict)

    def validate(self, arguments: Dict[str, Any]) -> List[str]:
        problems = [f"Unknown argument '{k}'" for k in arguments if k not in self.args]
        for name, spec in self.args.items():
            value = arguments.get(name)
            if value is None:
                if spec.required:
                    problems.append(f"Missing required argument '{name}'")
                continue
            problem = spec.check(name, value)
            if problem:
                problems.append(problem)
        return problems

    def input_schema(self) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {name: spec.to_schema() for name, spec in self.args.items()},
            "required": [name for name, spec in self.args.items() if spec.required],
        }


class ToolDispatcher:
    """
    Fixed registry of LegiScan tools bound to one async client.
    """

    def __init__(self, client: AsyncLegiScanClient, *, batch_size: int = DEFAULT_BATCH_SIZE):
        self.client = client
        self.batch_size = batch_size
        self.tools: Dict[str, Tool] = {t.name: t for t in self._build_tools()}

    def list_tools(self) -> List[Dict[str, Any]]:
        return [
            {"name": t.name, "description": t.description, "inputSchema": t.input_schema()}
            for t in self.tools.values()
        ]

    async def call_tool(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        arguments = arguments or {}
        tool = self.tools.get(name)
        if tool is None:
            return error_response(f"Unknown tool '{name}'")

        problems = tool.validate(arguments)
        if problems:
            return error_response("; ".join(problems))

        try:
            result = await tool.handler(**{k: v for k, v in arguments.items() if v is not None})
        except Exception as e:
            logger.error(f"Tool {name} failed: {type(e).__name__}: {e}")
            return error_response(e)
        return json_response(result)

    # ------------- handlers -------------
    async def _legislator_votes(self, people_id: int, bill_ids: List[int], chamber: Optional[str] = None):
        return await get_legislator_votes(self.client, people_id, bill_ids, chamber, batch_size=self.batch_size)

    async def _primary_authored(self, people_id: int, session_id: Optional[int] = None, state: Optional[str] = None):
        return await get_primary_authored(self.client, people_id, session_id, state, batch_size=self.batch_size)

    async def _find_legislator(self, name: str, state: str, session_id: Optional[int] = None):
        return await find_legislator(self.client, name, state, session_id)

    async def _get_bill(self, bill_id: int):
        return to_plain(await self.client.get_bill(bill_id))

    async def _get_roll_call(self, roll_call_id: int):
        return to_plain(await self.client.get_roll_call(roll_call_id))

    async def _get_person(self, people_id: int):
        return to_plain(await self.client.get_person(people_id))

    async def _get_session_list(self, state: str):
        return to_plain(await self.client.get_session_list(state))

    async def _get_session_people(self, session_id: int):
        return to_plain(await self.client.get_session_people(session_id))

    async def _find_bill_by_number(self, bill_number: str, state: Optional[str] = None, session_id: Optional[int] = None):
        if not session_id and not state:
            raise ValueError("Either session_id or state is required")

        if session_id:
            found = await self.client.find_bill_by_number_in_session(session_id, bill_number)
        else:
            found = await self.client.find_bill_by_number(state, bill_number)

        if found is not None:
            return to_plain(found)
        where = f"session {session_id}" if session_id else f"{state} current session"
        return {"found": False, "message": f"Bill '{bill_number}' not found in {where}"}

    def _build_tools(self) -> List[Tool]:
        return [
            Tool(
                name="legiscan_get_legislator_votes",
                description=(
                    "Get how a legislator voted on specific bills. Returns vote positions "
                    "(Yea/Nay/NV/Absent) for each bill with roll call details."
                ),
                handler=self._legislator_votes,
                args={
                    "people_id": Arg("integer", "Legislator people_id to look up votes for"),
                    "bill_ids": Arg("integer[]", "Bill ids to check votes on"),
                    "chamber": Arg("string", "Optional chamber filter (H=House, S=Senate, A=Assembly)",
                                   required=False, enum=CHAMBERS),
                },
            ),
            Tool(
                name="legiscan_get_primary_authored",
                description=(
                    "Get only bills where a legislator is the primary author "
                    "(Primary Sponsor or first in sponsor order)."
                ),
                handler=self._primary_authored,
                args={
                    "people_id": Arg("integer", "Legislator people_id"),
                    "session_id": Arg("integer", "Optional session_id to filter results", required=False),
                    "state": Arg("string", "Optional state abbreviation; without session_id, uses the current session",
                                 required=False),
                },
            ),
            Tool(
                name="legiscan_find_legislator",
                description="Find a legislator's people_id by full or partial name.",
                handler=self._find_legislator,
                args={
                    "name": Arg("string", "Full or partial name (e.g. 'Smith', 'Jane Smith')"),
                    "state": Arg("string", "Two-letter state abbreviation (e.g. 'CA')"),
                    "session_id": Arg("integer", "Optional session_id (default: current session)", required=False),
                },
            ),
            Tool(
                name="legiscan_get_bill",
                description="Get bill detail including sponsors, history, votes and texts.",
                handler=self._get_bill,
                args={"bill_id": Arg("integer", "Bill id")},
            ),
            Tool(
                name="legiscan_get_roll_call",
                description="Get roll call detail including individual legislator votes.",
                handler=self._get_roll_call,
                args={"roll_call_id": Arg("integer", "Roll call id from a bill's votes")},
            ),
            Tool(
                name="legiscan_get_person",
                description="Get a legislator's record.",
                handler=self._get_person,
                args={"people_id": Arg("integer", "Legislator people_id")},
            ),
            Tool(
                name="legiscan_get_session_list",
                description="List the legislative sessions of a state.",
                handler=self._get_session_list,
                args={"state": Arg("string", "Two-letter state abbreviation")},
            ),
            Tool(
                name="legiscan_get_session_people",
                description="List every legislator active in a session.",
                handler=self._get_session_people,
                args={"session_id": Arg("integer", "Session id")},
            ),
            Tool(
                name="legiscan_find_bill_by_number",
                description=(
                    "Find a bill by number in a state's current session or a specific session. "
                    "Accepts format variations (AB 858, AB858, AB-858)."
                ),
                handler=self._find_bill_by_number,
                args={
                    "bill_number": Arg("string", "Bill number in any common format"),
                    "state": Arg("string", "Two-letter state abbreviation; searches the current session",
                                 required=False),
                    "session_id": Arg("integer", "Session id; takes precedence over state", required=False),
                },
            ),
        ]
