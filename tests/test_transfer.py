import json

import httpx
import pytest

from votingledger.errors import TransferFailed
from votingledger.state import VotingLedger
from votingledger.transfer import HttpTransfer, ValueTransfer

from .conftest import FEE, OWNER, VOTER1


def _gateway(status_code: int = 200):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append((request.url.path, request.read()))
        return httpx.Response(status_code, json={"ok": status_code < 400})

    client = httpx.Client(transport=httpx.MockTransport(handler))
    return HttpTransfer("http://gateway/", client=client), calls


def test_http_transfer_posts_to_gateway() -> None:
    transfer, calls = _gateway()
    transfer.receive(VOTER1, FEE)
    transfer.send(OWNER, FEE)

    assert [path for path, _ in calls] == ["/receive", "/send"]
    assert json.loads(calls[0][1]) == {"from": VOTER1, "amount": FEE}
    assert json.loads(calls[1][1]) == {"to": OWNER, "amount": FEE}


def test_http_transfer_error_status() -> None:
    transfer, _ = _gateway(status_code=500)
    with pytest.raises(TransferFailed):
        transfer.send(OWNER, FEE)


def test_http_transfer_connection_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("gateway down", request=request)

    transfer = HttpTransfer("http://gateway", client=httpx.Client(transport=httpx.MockTransport(handler)))
    with pytest.raises(TransferFailed):
        transfer.receive(VOTER1, FEE)


def test_ledger_with_rejecting_gateway_keeps_state() -> None:
    transfer, calls = _gateway(status_code=402)
    ledger = VotingLedger(owner=OWNER, transfer=transfer)
    ledger.create_topic(OWNER, "T", ["A", "B"])

    with pytest.raises(TransferFailed):
        ledger.vote(VOTER1, 0, 0, FEE)

    assert len(calls) == 1
    assert ledger.get_topic(0).total_votes == 0
    assert ledger.balance == 0


def test_incomplete_transfer_cannot_be_constructed() -> None:
    class ReceiveOnly(ValueTransfer):
        def receive(self, sender: str, amount: int) -> None:
            pass

    with pytest.raises(TypeError):
        ReceiveOnly()
