import pytest
from fastapi.testclient import TestClient

from votingledger.config import VOTE_FEE_WEI
from votingledger.events import EventLog
from votingledger.main import create_app
from votingledger.state import VotingLedger
from votingledger.transfer import InMemoryTransfer

OWNER = "0x1111111111111111111111111111111111111111"
VOTER1 = "0x2222222222222222222222222222222222222222"
VOTER2 = "0x3333333333333333333333333333333333333333"
FEE = VOTE_FEE_WEI


@pytest.fixture
def transfer() -> InMemoryTransfer:
    return InMemoryTransfer()


@pytest.fixture
def events() -> EventLog:
    return EventLog()


@pytest.fixture
def ledger(transfer: InMemoryTransfer, events: EventLog) -> VotingLedger:
    """A fresh ledger owned by OWNER"""
    return VotingLedger(owner=OWNER, transfer=transfer, events=events)


@pytest.fixture
def client(transfer: InMemoryTransfer) -> TestClient:
    """HTTP client against a fresh node, no event subscribers"""
    app = create_app(owner=OWNER, transfer=transfer, subscribers=[])
    with TestClient(app) as c:
        yield c
