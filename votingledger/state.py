# in-memory ledger state + transitions
import logging
import re
import threading
from typing import List, Optional, Set, Tuple

from .config import MAX_OPTIONS, MIN_OPTIONS, VOTE_FEE_WEI
from .errors import (
    AlreadyVoted,
    InvalidArgument,
    InvalidPayment,
    LedgerError,
    NotFound,
    Unauthorized,
)
from .events import EventLog
from .models import (
    FundsWithdrawn,
    LedgerInfo,
    OptionResult,
    Topic,
    TopicCreated,
    TopicResults,
    VoteCast,
)
from .transfer import InMemoryTransfer, ValueTransfer

logger = logging.getLogger(__name__)

_HEX_ADDRESS = re.compile(r"^0x[0-9a-fA-F]{40}$")


def normalize_identity(identity: str) -> str:
    """
    Hex account addresses are case-insensitive (checksum casing is only
    presentation), so they are stored lower-cased.
    """
    ident = (identity or "").strip()
    if not ident:
        raise InvalidArgument("Caller identity cannot be empty")
    if _HEX_ADDRESS.match(ident):
        return ident.lower()
    return ident


class VotingLedger:
    """
    Topics, vote tallies, per-voter flags and the fee balance of one ledger.

    Every mutation runs under a single lock and validates everything before
    touching state, so a call is either fully applied or has no effect.
    Queries take the same lock and hand out copies.
    """

    def __init__(
        self,
        owner: str,
        transfer: Optional[ValueTransfer] = None,
        events: Optional[EventLog] = None,
    ):
        self.owner = normalize_identity(owner)
        self.transfer = transfer if transfer is not None else InMemoryTransfer()
        self.events = events if events is not None else EventLog()
        self.fee = VOTE_FEE_WEI

        self._topics: List[Topic] = []
        self._voted: Set[Tuple[int, str]] = set()
        self._balance = 0
        self._lock = threading.Lock()

    # ----------- mutations -----------

    def create_topic(self, caller: str, title: str, options: List[str]) -> int:
        creator = normalize_identity(caller)
        if not title or not title.strip():
            raise InvalidArgument("Title cannot be empty")
        if len(options) < MIN_OPTIONS:
            raise InvalidArgument(f"Must have at least {MIN_OPTIONS} options")
        if len(options) > MAX_OPTIONS:
            raise InvalidArgument(f"Cannot have more than {MAX_OPTIONS} options")

        with self._lock:
            topic_id = len(self._topics)
            self._topics.append(
                Topic(
                    id=topic_id,
                    title=title,
                    options=list(options),
                    vote_counts=[0] * len(options),
                    creator=creator,
                    total_votes=0,
                )
            )
            self.events.append(TopicCreated(topic_id=topic_id, title=title, creator=creator))

        logger.info("topic %d created by %s (%d options)", topic_id, creator, len(options))
        return topic_id

    def vote(self, caller: str, topic_id: int, option_index: int, paid_amount: int) -> None:
        voter = normalize_identity(caller)
        with self._lock:
            topic = self._get(topic_id)
            if (topic_id, voter) in self._voted:
                raise AlreadyVoted("Already voted on this topic")
            # exact integer match, no tolerance
            if type(paid_amount) is not int or paid_amount != self.fee:
                raise InvalidPayment(f"Must send exactly {self.fee} wei (0.001) to vote")
            if type(option_index) is not int or not 0 <= option_index < len(topic.options):
                raise InvalidArgument("Invalid option")

            # payment is taken before any state change; a failure leaves nothing behind
            self.transfer.receive(voter, paid_amount)

            topic.vote_counts[option_index] += 1
            topic.total_votes += 1
            self._voted.add((topic_id, voter))
            self._balance += paid_amount
            self.events.append(
                VoteCast(
                    topic_id=topic_id,
                    option_index=option_index,
                    voter=voter,
                    amount=paid_amount,
                )
            )

        logger.info("vote on topic %d option %d by %s", topic_id, option_index, voter)

    def withdraw(self, caller: str) -> int:
        """
        Pay the whole fee balance out to the owner and return the amount.

        Withdrawing an empty balance is allowed and does nothing. The balance
        is reset only once the outbound transfer has succeeded.
        """
        if normalize_identity(caller) != self.owner:
            raise Unauthorized("Not the Owner")

        with self._lock:
            amount = self._balance
            if amount == 0:
                logger.info("withdraw with empty balance, nothing to send")
                return 0
            self.transfer.send(self.owner, amount)
            self._balance = 0
            self.events.append(FundsWithdrawn(to=self.owner, amount=amount))

        logger.info("withdrew %d wei to %s", amount, self.owner)
        return amount

    # ----------- queries -----------

    def get_topic_count(self) -> int:
        with self._lock:
            return len(self._topics)

    def get_topic(self, topic_id: int) -> Topic:
        with self._lock:
            return self._get(topic_id).model_copy(deep=True)

    def check_has_voted(self, topic_id: int, identity: str) -> bool:
        """Unknown topics (and unknown voters) simply report False."""
        try:
            voter = normalize_identity(identity)
        except LedgerError:
            return False
        with self._lock:
            return (topic_id, voter) in self._voted

    def list_topics(self, offset: int = 0, limit: int = 50) -> List[Topic]:
        with self._lock:
            page = self._topics[max(offset, 0):max(offset, 0) + max(limit, 0)]
            return [t.model_copy(deep=True) for t in page]

    def get_results(self, topic_id: int) -> TopicResults:
        topic = self.get_topic(topic_id)
        total = topic.total_votes
        results = [
            OptionResult(
                option=opt,
                votes=count,
                percentage=round(count * 100 / total, 1) if total > 0 else 0.0,
            )
            for opt, count in zip(topic.options, topic.vote_counts)
        ]
        return TopicResults(
            topic_id=topic.id, title=topic.title, total_votes=total, results=results
        )

    @property
    def balance(self) -> int:
        with self._lock:
            return self._balance

    def info(self) -> LedgerInfo:
        with self._lock:
            return LedgerInfo(
                owner=self.owner,
                balance=self._balance,
                topic_count=len(self._topics),
                vote_fee=self.fee,
            )

    def _get(self, topic_id: int) -> Topic:
        # caller holds the lock
        if type(topic_id) is not int or not 0 <= topic_id < len(self._topics):
            raise NotFound("Topic does not exist")
        return self._topics[topic_id]

