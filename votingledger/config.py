# env vars + constants
import os

NODE_ID = os.getenv("NODE_ID", "ledger0")
PORT = int(os.getenv("PORT", "8000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "info")

OWNER_ADDRESS = os.getenv("OWNER_ADDRESS", "0x0000000000000000000000000000000000000000")
PAYMENT_GATEWAY_URL = os.getenv("PAYMENT_GATEWAY_URL", "").rstrip("/")
EVENT_SUBSCRIBERS = [
    s.strip() for s in os.getenv("EVENT_SUBSCRIBERS", "").split(",") if s.strip()
]

TRANSFER_TIMEOUT = float(os.getenv("TRANSFER_TIMEOUT", "2.0"))
NOTIFY_TIMEOUT = float(os.getenv("NOTIFY_TIMEOUT", "1.5"))
POLL_INTERVAL = float(os.getenv("POLL_INTERVAL", "5.0"))

BALANCE_NODE_URL = os.getenv("BALANCE_NODE_URL", f"http://localhost:{PORT}")

WEI_PER_UNIT = 10**18
# 0.001 native units
VOTE_FEE_WEI = WEI_PER_UNIT // 1000

MIN_OPTIONS = 2
MAX_OPTIONS = 10
