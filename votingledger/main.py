import asyncio
import logging
from contextlib import asynccontextmanager, suppress
from typing import List, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from .config import (
    EVENT_SUBSCRIBERS,
    LOG_LEVEL,
    NODE_ID,
    OWNER_ADDRESS,
    PAYMENT_GATEWAY_URL,
    POLL_INTERVAL,
    PORT,
)
from .errors import LedgerError
from .events import EventLog, notify_loop
from .models import EventRecord, LedgerInfo, Topic, TopicIn, TopicResults, VoteIn
from .state import VotingLedger
from .transfer import HttpTransfer, InMemoryTransfer, ValueTransfer

logger = logging.getLogger(__name__)


def get_ledger(request: Request) -> VotingLedger:
    return request.app.state.ledger


def get_caller(x_caller: Optional[str] = Header(default=None)) -> str:
    """Identity of the account making the call, authenticated upstream."""
    if not x_caller or not x_caller.strip():
        raise HTTPException(status_code=401, detail="Missing X-Caller header")
    return x_caller


def default_transfer() -> ValueTransfer:
    if PAYMENT_GATEWAY_URL:
        return HttpTransfer(PAYMENT_GATEWAY_URL)
    return InMemoryTransfer()


def create_app(
    owner: Optional[str] = None,
    transfer: Optional[ValueTransfer] = None,
    subscribers: Optional[List[str]] = None,
) -> FastAPI:
    ledger = VotingLedger(
        owner=owner or OWNER_ADDRESS,
        transfer=transfer if transfer is not None else default_transfer(),
        events=EventLog(),
    )
    subscribers = EVENT_SUBSCRIBERS if subscribers is None else subscribers

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup: push new events to subscribers in the background
        task = None
        listener = None
        if subscribers:
            loop = asyncio.get_running_loop()
            queue: asyncio.Queue = asyncio.Queue()

            def listener(rec: EventRecord) -> None:
                loop.call_soon_threadsafe(queue.put_nowait, rec)

            ledger.events.subscribe(listener)
            task = asyncio.create_task(notify_loop(queue, subscribers))
        yield
        # Shutdown
        if task is not None:
            ledger.events.unsubscribe(listener)
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task
        if isinstance(ledger.transfer, HttpTransfer):
            ledger.transfer.close()

    app = FastAPI(title=f"Voting Ledger ({NODE_ID})", lifespan=lifespan)
    app.state.ledger = ledger

    @app.exception_handler(LedgerError)
    async def ledger_error_handler(request: Request, exc: LedgerError):
        logger.info("%s %s rejected: %s (%s)", request.method, request.url.path, exc.kind, exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message, "error": exc.kind},
        )

    @app.get("/")
    def root(ledger: VotingLedger = Depends(get_ledger)) -> LedgerInfo:
        return ledger.info()

    @app.get("/status")
    def status(ledger: VotingLedger = Depends(get_ledger)):
        return {
            "node": NODE_ID,
            "poll_interval": POLL_INTERVAL,
            "events": len(ledger.events),
            "subscribers": len(subscribers),
        }

    # ----------- topics -----------

    @app.post("/topics", status_code=201)
    def create_topic(
        t: TopicIn,
        caller: str = Depends(get_caller),
        ledger: VotingLedger = Depends(get_ledger),
    ):
        topic_id = ledger.create_topic(caller, t.title, t.options)
        return {"ok": True, "topic_id": topic_id}

    @app.get("/topics")
    def list_topics(
        offset: int = Query(0, ge=0),
        limit: int = Query(50, ge=1, le=500),
        ledger: VotingLedger = Depends(get_ledger),
    ) -> List[Topic]:
        return ledger.list_topics(offset, limit)

    @app.get("/topics/count")
    def topic_count(ledger: VotingLedger = Depends(get_ledger)):
        return {"count": ledger.get_topic_count()}

    @app.get("/topics/{topic_id}")
    def get_topic(topic_id: int, ledger: VotingLedger = Depends(get_ledger)) -> Topic:
        return ledger.get_topic(topic_id)

    @app.get("/topics/{topic_id}/results")
    def get_results(topic_id: int, ledger: VotingLedger = Depends(get_ledger)) -> TopicResults:
        return ledger.get_results(topic_id)

    @app.get("/topics/{topic_id}/voters/{address}")
    def has_voted(topic_id: int, address: str, ledger: VotingLedger = Depends(get_ledger)):
        return {
            "topic_id": topic_id,
            "address": address,
            "has_voted": ledger.check_has_voted(topic_id, address),
        }

    # ----------- votes + funds -----------

    @app.post("/topics/{topic_id}/votes")
    def vote(
        topic_id: int,
        v: VoteIn,
        caller: str = Depends(get_caller),
        ledger: VotingLedger = Depends(get_ledger),
    ):
        ledger.vote(caller, topic_id, v.option_index, v.amount)
        return {"ok": True, "topic_id": topic_id, "option_index": v.option_index}

    @app.post("/withdraw")
    def withdraw(caller: str = Depends(get_caller), ledger: VotingLedger = Depends(get_ledger)):
        amount = ledger.withdraw(caller)
        return {"ok": True, "to": ledger.owner, "amount": amount}

    @app.get("/events")
    def events(
        since: int = Query(0, ge=0),
        ledger: VotingLedger = Depends(get_ledger),
    ) -> List[EventRecord]:
        return ledger.events.since(since)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(level=LOG_LEVEL.upper())
    uvicorn.run("votingledger.main:app", host="0.0.0.0", port=PORT, log_level=LOG_LEVEL)
