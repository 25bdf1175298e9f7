"""
Review adapter type definitions.

This module defines the data structures that flow through the adapter:
- BotStatus: lifecycle states of a listed bot
- ResolvedBot: full candidate data used for the first insert
- BotReference: an inbound review action's target bot
- ActionResult: what a review action did to the store
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List


class BotStatus(str, Enum):
    """Lifecycle status stored in the bots "type" column."""
    PENDING = "pending"
    CLAIMED = "claimed"
    APPROVED = "approved"
    DENIED = "denied"


@dataclass(frozen=True)
class ResolvedBot:
    """
    Full bot metadata as resolved from a review queue entry.

    Empty strings mean "not provided"; the record synthesizer fills
    defaults for prefix and invite only.
    """
    bot_id: str
    username: str = ""
    owner: str = ""
    description: str = ""
    long_description: str = ""
    tags: List[str] = field(default_factory=list)
    prefix: str = ""
    invite: str = ""
    library: str = ""
    website: str = ""
    support: str = ""
    donate: str = ""
    banner: str = ""
    cross_add: bool = False
    review_note: str = ""
    list_source: str = ""


@dataclass(frozen=True)
class BotReference:
    """
    The bot a review action targets.

    resolve is only called when no record exists yet for bot_id.
    """
    bot_id: str
    reviewer: str
    can_add: bool
    resolve: Callable[[], ResolvedBot]


@dataclass(frozen=True)
class ActionResult:
    """
    Outcome of a review action.

    applied is False when a conditional status update matched no row
    (claim on a non-pending bot, unclaim on a non-claimed bot).
    """
    bot_id: str
    action: str
    status: BotStatus
    applied: bool
    created: bool = False
