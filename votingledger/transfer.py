# value movement in/out of the ledger
import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional

import httpx

from .config import TRANSFER_TIMEOUT
from .errors import TransferFailed

logger = logging.getLogger(__name__)


class ValueTransfer(ABC):
    """
    Capability the ledger uses to move value.

    receive() accepts the payment attached to a vote, send() pays out to an
    account. Both raise TransferFailed when the movement did not happen.
    """

    @abstractmethod
    def receive(self, sender: str, amount: int) -> None:
        ...

    @abstractmethod
    def send(self, to: str, amount: int) -> None:
        ...


class InMemoryTransfer(ValueTransfer):
    """Bookkeeping-only transfer: records what came in and what went out."""

    def __init__(self) -> None:
        self.received: Dict[str, int] = {}
        self.paid_out: Dict[str, int] = {}

    def receive(self, sender: str, amount: int) -> None:
        self.received[sender] = self.received.get(sender, 0) + amount

    def send(self, to: str, amount: int) -> None:
        self.paid_out[to] = self.paid_out.get(to, 0) + amount

    @property
    def held(self) -> int:
        return sum(self.received.values()) - sum(self.paid_out.values())


class HttpTransfer(ValueTransfer):
    """
    Delegates value movement to an external payment gateway:
      POST {base}/receive {"from": ..., "amount": ...}
      POST {base}/send    {"to": ..., "amount": ...}
    Any transport error or non-2xx answer means the movement failed.
    """

    def __init__(self, base_url: str, client: Optional[httpx.Client] = None):
        self.base_url = base_url.rstrip("/")
        self.client = client or httpx.Client(timeout=TRANSFER_TIMEOUT)

    def _post(self, path: str, body: dict) -> None:
        url = f"{self.base_url}{path}"
        try:
            resp = self.client.post(url, json=body)
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("payment gateway call %s failed: %s", url, exc)
            raise TransferFailed(f"Payment gateway error: {exc}") from exc

    def receive(self, sender: str, amount: int) -> None:
        self._post("/receive", {"from": sender, "amount": amount})

    def send(self, to: str, amount: int) -> None:
        self._post("/send", {"to": to, "amount": amount})

    def close(self) -> None:
        self.client.close()
