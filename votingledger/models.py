from typing import Any, Dict, List, Literal
from pydantic import BaseModel, Field


class TopicIn(BaseModel):
    title: str = Field(..., examples=["Test Topic"])
    options: List[str] = Field(..., examples=[["Option A", "Option B"]])


class VoteIn(BaseModel):
    option_index: int = Field(..., strict=True, examples=[0])
    # wei; omitted means nothing was paid
    amount: int = Field(0, strict=True, examples=[10**15])


class Topic(BaseModel):
    id: int
    title: str
    options: List[str]
    vote_counts: List[int]
    creator: str
    total_votes: int


class OptionResult(BaseModel):
    option: str
    votes: int
    percentage: float


class TopicResults(BaseModel):
    """
    Per-option tally of one topic; percentage is the share of total_votes,
    rounded to one decimal (0.0 while nobody has voted).
    """
    topic_id: int
    title: str
    total_votes: int
    results: List[OptionResult]


class TopicCreated(BaseModel):
    topic_id: int
    title: str
    creator: str


class VoteCast(BaseModel):
    topic_id: int
    option_index: int
    voter: str
    amount: int


class FundsWithdrawn(BaseModel):
    to: str
    amount: int


EventKind = Literal["TopicCreated", "VoteCast", "FundsWithdrawn"]


class EventRecord(BaseModel):
    """
    One entry of the append-only event log. seq is the position in the log,
    starting at 0 and without gaps.
    """
    seq: int
    kind: EventKind
    payload: Dict[str, Any]


class LedgerInfo(BaseModel):
    owner: str
    balance: int
    topic_count: int
    vote_fee: int
