"""Order-book parsing and ask/bid deal matching."""

import logging
from typing import List, Optional, Sequence, Tuple, Type, TypeVar

from pydantic import BaseModel, ValidationError

from ledger_netsim.errors import (
    EmptyOrderBookError,
    NoMatchError,
    NoWalletBidsError,
    OrderBookError,
)
from ledger_netsim.models import Ask, Bid, Deal

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)


def _split_records(raw: str, what: str) -> List[str]:
    lines = raw.strip("\n").split("\n")
    # A listing with a single line carries no records yet
    if len(lines) <= 1:
        raise EmptyOrderBookError(f"no {what} yet")
    return lines


def _parse_records(lines: Sequence[str], model: Type[RecordT]) -> List[RecordT]:
    records = []
    for line in lines:
        try:
            records.append(model.model_validate_json(line))
        except ValidationError as exc:
            raise OrderBookError(
                f"malformed {model.__name__.lower()} record {line!r}: {exc.error_count()} errors"
            ) from exc
    return records


def extract_asks(raw: str) -> List[Ask]:
    """Parse a newline-delimited JSON ask listing."""
    return _parse_records(_split_records(raw, "asks"), Ask)


def extract_unused_bids(raw: str) -> List[Bid]:
    """Parse a newline-delimited JSON bid listing, dropping bids already used by a deal."""
    bids = _parse_records(_split_records(raw, "bids"), Bid)
    return [bid for bid in bids if not bid.used]


def extract_deals(raw: str) -> List[Deal]:
    """Parse a newline-delimited JSON deal listing. An empty listing yields no deals."""
    lines = [line for line in raw.strip("\n").split("\n") if line]
    return _parse_records(lines, Deal)


def find_deal_pair(
    asks: Sequence[Ask], bids: Sequence[Bid], wallet: str
) -> Tuple[Ask, Bid]:
    """
    Select a compatible ask for one of the wallet's bids.

    Bids are considered oldest first (ascending id) and asks cheapest first.
    The first ask that can hold the bid (bid.size <= ask.size) at no more
    than the bid's price (bid.price >= ask.price) wins. This is first-fit,
    not best-fit across all pairs, and is deterministic for a given input.

    Args:
        asks: Asks from the order book.
        bids: Unused bids from the order book.
        wallet: Wallet address whose bids may be matched.

    Returns:
        The matched (ask, bid) pair.

    Raises:
        NoWalletBidsError: If the wallet owns none of the bids.
        NoMatchError: If none of the wallet's bids fit any ask.
    """
    # Stable sorts keep input order among equal keys
    sorted_bids = sorted(bids, key=lambda b: b.id)
    sorted_asks = sorted(asks, key=lambda a: a.price)

    wallet_bids = [bid for bid in sorted_bids if bid.owner == wallet]
    if not wallet_bids:
        raise NoWalletBidsError(f"no bids for wallet {wallet}")

    for bid in wallet_bids:
        match: Optional[Ask] = next(
            (ask for ask in sorted_asks if bid.size <= ask.size and bid.price >= ask.price),
            None,
        )
        if match is not None:
            logger.debug(
                "bid %d (price %d, size %d) fits ask %d (price %d, size %d)",
                bid.id, bid.price, bid.size, match.id, match.price, match.size,
            )
            return match, bid

    raise NoMatchError(f"no matching ask/bid for wallet {wallet}")
