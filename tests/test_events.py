import asyncio

import httpx

from votingledger import events as events_mod
from votingledger.events import EventLog, publish_to_subscribers
from votingledger.models import TopicCreated, VoteCast

from .conftest import FEE, VOTER1


def test_event_log_sequence_and_since() -> None:
    log = EventLog()
    log.append(TopicCreated(topic_id=0, title="T", creator=VOTER1))
    log.append(VoteCast(topic_id=0, option_index=1, voter=VOTER1, amount=FEE))
    log.append(TopicCreated(topic_id=1, title="U", creator=VOTER1))

    assert [r.seq for r in log.since(0)] == [0, 1, 2]
    assert [r.kind for r in log.since(1)] == ["VoteCast", "TopicCreated"]
    assert log.since(3) == []
    assert len(log) == 3


def test_event_log_listeners() -> None:
    log = EventLog()
    seen = []
    log.subscribe(seen.append)
    rec = log.append(TopicCreated(topic_id=0, title="T", creator=VOTER1))
    log.unsubscribe(seen.append)
    log.append(TopicCreated(topic_id=1, title="U", creator=VOTER1))

    assert seen == [rec]


def test_publish_tolerates_failing_subscriber(monkeypatch) -> None:
    received = []

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "down":
            raise httpx.ConnectError("down", request=request)
        received.append(request.url.host)
        return httpx.Response(200)

    real_client = httpx.AsyncClient

    def fake_client(**kwargs):
        return real_client(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(events_mod.httpx, "AsyncClient", fake_client)

    log = EventLog()
    rec = log.append(TopicCreated(topic_id=0, title="T", creator=VOTER1))
    asyncio.run(publish_to_subscribers(rec, ["http://down/hook", "http://up/hook"]))

    assert received == ["up"]


def test_failing_listener_does_not_break_append() -> None:
    log = EventLog()
    seen = []

    def broken(rec) -> None:
        raise RuntimeError("loop closed")

    log.subscribe(broken)
    log.subscribe(seen.append)

    rec = log.append(TopicCreated(topic_id=0, title="T", creator=VOTER1))

    assert rec.seq == 0
    assert seen == [rec]
    assert log.since(0) == [rec]
