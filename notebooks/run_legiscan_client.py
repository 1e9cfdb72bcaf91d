#%%
import asyncio
import os

from dotenv import load_dotenv
from tqdm import tqdm

from legiscan_client import (AsyncLegiScanClient, LegiScanClient,
                             ToolDispatcher, get_current_session)

load_dotenv()

LEGISCAN_API_KEY = os.getenv("LEGISCAN_API_KEY")

#%%

client = LegiScanClient(
    api_key=LEGISCAN_API_KEY,
    timeout=60,
    min_interval=0.2,   # ~5 rps
    max_tries=5,        # retry attempts for 429/5xx/timeouts
    backoff_base=0.75,  # base backoff seconds
    backoff_cap=30.0,   # max backoff sleep
)

#%%

session = get_current_session(client.get_session_list("CA"), "CA")
print(session.session_id, session.session_name)

master = client.get_master_list(session_id=session.session_id)

#%%
bills_with_votes = []
for entry in tqdm(master[:25]):
    bill = client.get_bill(entry.bill_id)
    if bill.votes:
        bills_with_votes.append(bill)
        print(bill.bill_number, len(bill.votes), bill.title)

#%%
dispatcher = ToolDispatcher(AsyncLegiScanClient(client))

found = asyncio.run(dispatcher.call_tool("legiscan_find_legislator", {"name": "Smith", "state": "CA"}))
print(found["content"][0]["text"])

# %%
if bills_with_votes and bills_with_votes[0].sponsors:
    people_id = bills_with_votes[0].sponsors[0].people_id
    votes = asyncio.run(dispatcher.call_tool(
        "legiscan_get_legislator_votes",
        {"people_id": people_id, "bill_ids": [b.bill_id for b in bills_with_votes]},
    ))
    print(votes["content"][0]["text"])
# %%
