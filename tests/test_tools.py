import asyncio
import json

import pytest

from legiscan_client import (MasterListEntry, ToolDispatcher, error_response,
                             json_response)


def call(dispatcher, name, arguments=None):
    return asyncio.run(dispatcher.call_tool(name, arguments))


def payload(response):
    assert not response.get("isError"), response["content"][0]["text"]
    return json.loads(response["content"][0]["text"])


@pytest.fixture
def dispatcher(ca_legislature):
    async def find_bill_by_number(state, bill_number):
        ca_legislature.calls.append(("findBill", state))
        return MasterListEntry(bill_id=100, number="AB100") if bill_number == "AB 100" else None

    async def find_bill_by_number_in_session(session_id, bill_number):
        ca_legislature.calls.append(("findBillInSession", session_id))
        return None

    ca_legislature.find_bill_by_number = find_bill_by_number
    ca_legislature.find_bill_by_number_in_session = find_bill_by_number_in_session
    return ToolDispatcher(ca_legislature, batch_size=2)


def test_response_helpers():
    ok = json_response({"a": 1})
    assert ok == {"content": [{"type": "text", "text": '{\n  "a": 1\n}'}]}
    err = error_response(ValueError("bad"))
    assert err["isError"] is True
    assert err["content"][0]["text"] == "Error: bad"


def test_list_tools(dispatcher):
    tools = {t["name"]: t for t in dispatcher.list_tools()}
    assert {"legiscan_get_legislator_votes", "legiscan_get_primary_authored",
            "legiscan_find_legislator", "legiscan_get_bill", "legiscan_find_bill_by_number"} <= set(tools)

    schema = tools["legiscan_get_legislator_votes"]["inputSchema"]
    assert schema["required"] == ["people_id", "bill_ids"]
    assert schema["properties"]["chamber"]["enum"] == ["H", "S", "A"]
    assert schema["properties"]["bill_ids"]["type"] == "array"


def test_legislator_votes_tool(dispatcher):
    data = payload(call(dispatcher, "legiscan_get_legislator_votes", {"people_id": 42, "bill_ids": [100, 300]}))
    assert data["summary"]["total_votes"] == 2
    assert "errors" not in data


def test_partial_failures_stay_in_payload(dispatcher, ca_legislature):
    ca_legislature.failing.add(("getBill", 300))
    data = payload(call(dispatcher, "legiscan_get_legislator_votes", {"people_id": 42, "bill_ids": [100, 300]}))
    assert data["errors"] == ["Bill 300: getBill 300 unavailable"]


def test_find_legislator_tool(dispatcher):
    data = payload(call(dispatcher, "legiscan_find_legislator", {"name": "Jones", "state": "CA"}))
    assert data["match_count"] == 1


def test_operation_error_becomes_error_payload(dispatcher):
    response = call(dispatcher, "legiscan_find_legislator", {"name": "Jones", "state": "CA", "session_id": 1})
    assert response["isError"] is True
    assert response["content"][0]["text"] == "Error: Session 1 not found for CA"


@pytest.mark.parametrize("arguments, message", [
    ({"bill_ids": [1]}, "Missing required argument 'people_id'"),
    ({"people_id": "42", "bill_ids": [1]}, "'people_id' must be an integer"),
    ({"people_id": True, "bill_ids": [1]}, "'people_id' must be an integer"),
    ({"people_id": 42, "bill_ids": [1, "2"]}, "'bill_ids' must be a list of integers"),
    ({"people_id": 42, "bill_ids": [1], "chamber": "X"}, "'chamber' must be one of H, S, A"),
    ({"people_id": 42, "bill_ids": [1], "extra": 1}, "Unknown argument 'extra'"),
])
def test_argument_validation(dispatcher, ca_legislature, arguments, message):
    response = call(dispatcher, "legiscan_get_legislator_votes", arguments)
    assert response["isError"] is True
    assert message in response["content"][0]["text"]
    assert ca_legislature.calls == []


def test_unknown_tool(dispatcher):
    response = call(dispatcher, "legiscan_nope", {})
    assert response["isError"] is True
    assert "Unknown tool" in response["content"][0]["text"]


def test_get_bill_passthrough_drops_raw(dispatcher):
    data = payload(call(dispatcher, "legiscan_get_bill", {"bill_id": 100}))
    assert data["bill_id"] == 100
    assert "raw" not in data
    assert "raw" not in data["sponsors"][0]
    assert data["votes"][0]["roll_call_id"] == 9001


def test_session_list_passthrough(dispatcher):
    data = payload(call(dispatcher, "legiscan_get_session_list", {"state": "CA"}))
    assert [s["session_id"] for s in data] == [1911, 2041]


def test_find_bill_by_number_requires_scope(dispatcher):
    response = call(dispatcher, "legiscan_find_bill_by_number", {"bill_number": "AB 100"})
    assert response["isError"] is True
    assert "Either session_id or state is required" in response["content"][0]["text"]


def test_find_bill_by_number_found(dispatcher):
    data = payload(call(dispatcher, "legiscan_find_bill_by_number", {"bill_number": "AB 100", "state": "CA"}))
    assert data["bill_id"] == 100


def test_find_bill_by_number_session_precedence(dispatcher, ca_legislature):
    data = payload(call(dispatcher, "legiscan_find_bill_by_number",
                        {"bill_number": "AB 100", "state": "CA", "session_id": 2041}))
    assert data == {"found": False, "message": "Bill 'AB 100' not found in session 2041"}
    assert ca_legislature.calls == [("findBillInSession", 2041)]
