# check the fee balance held by a running ledger node
import argparse
import sys
from decimal import Decimal
from typing import List, Optional

import httpx

from .config import BALANCE_NODE_URL, WEI_PER_UNIT


def format_units(wei: int) -> str:
    value = Decimal(wei) / Decimal(WEI_PER_UNIT)
    text = format(value.normalize(), "f")
    return text if "." in text else f"{text}.0"


def fetch_info(node_url: str, client: Optional[httpx.Client] = None) -> dict:
    own_client = client is None
    client = client or httpx.Client(timeout=2.0)
    try:
        resp = client.get(f"{node_url.rstrip('/')}/")
        resp.raise_for_status()
        return resp.json()
    finally:
        if own_client:
            client.close()


def main(argv: Optional[List[str]] = None, client: Optional[httpx.Client] = None) -> int:
    parser = argparse.ArgumentParser(description="Show the fee balance held by a voting ledger node.")
    parser.add_argument("address", nargs="?", help="account to compare with the ledger owner")
    parser.add_argument("--node", default=BALANCE_NODE_URL, help="ledger node base URL")
    args = parser.parse_args(argv)

    try:
        info = fetch_info(args.node, client)
    except httpx.HTTPError as exc:
        print(f"Error checking balance on {args.node}: {exc}", file=sys.stderr)
        return 1

    balance = int(info["balance"])
    print(f"Node: {args.node}")
    print(f"Owner: {info['owner']}")
    print(f"Balance: {format_units(balance)}")
    print(f"Balance (wei): {balance}")
    print(f"Topics: {info['topic_count']}")

    if args.address:
        is_owner = args.address.strip().lower() == str(info["owner"]).lower()
        print(f"{args.address} {'is' if is_owner else 'is not'} the owner")
    if balance == 0:
        print("Nothing to withdraw yet.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
