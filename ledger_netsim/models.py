from enum import Enum
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class NodeType(str, Enum):
    """Role of a node in the network. ANY is only used as a query wildcard."""

    MINER = "MINER"
    CLIENT = "CLIENT"
    ANY = "ANY"


class Action(str, Enum):
    """Randomized economic actions the scheduler can inject."""

    PAYMENT = "PAYMENT"
    ASK = "ASK"
    BID = "BID"
    DEAL = "DEAL"
    SEND_FILE = "SEND_FILE"


class EventKind(str, Enum):
    """Kinds of events reported by the engine's periodic processes."""

    PAYMENT = "PAYMENT"
    ASK = "ASK"
    BID = "BID"
    DEAL = "DEAL"
    MINE = "MINE"
    ADD_NODE = "ADD_NODE"
    CONNECT = "CONNECT"


class Ask(BaseModel):
    """A miner's storage offer as listed in the order book."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int = Field(validation_alias=AliasChoices("id", "ID"))
    price: int = Field(validation_alias=AliasChoices("price", "Price"))
    size: int = Field(validation_alias=AliasChoices("size", "Size"))
    owner: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("owner", "Owner")
    )


class Bid(BaseModel):
    """A client's storage request as listed in the order book."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int = Field(validation_alias=AliasChoices("id", "ID"))
    price: int = Field(validation_alias=AliasChoices("price", "Price"))
    size: int = Field(validation_alias=AliasChoices("size", "Size"))
    owner: str = Field(validation_alias=AliasChoices("owner", "Owner"))
    used: bool = Field(default=False, validation_alias=AliasChoices("used", "Used"))


class Deal(BaseModel):
    """A proposed pairing of an ask and a bid over imported content."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    ask_id: int = Field(validation_alias=AliasChoices("ask_id", "askId", "AskID"))
    bid_id: int = Field(validation_alias=AliasChoices("bid_id", "bidId", "BidID"))
    content_id: str = Field(
        validation_alias=AliasChoices("content_id", "dataRef", "DataRef")
    )


class SimulationEvent(BaseModel):
    """Completion record of one unit of work inside a periodic process."""

    model_config = ConfigDict(frozen=True)

    kind: EventKind
    success: bool
    detail: str = ""
    timestamp: float = 0.0  # seconds since start, stamped on receipt
    epoch: Optional[int] = None
