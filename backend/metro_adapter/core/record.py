"""
Record synthesis for first-time bot inserts.

Turns a resolved candidate into the full bots row: fills the prefix and
invite defaults, generates the vanity slug and token, validates the extra
links and produces a single insert operation with a fixed column order.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from metro_adapter.config import BotRecordConfig
from metro_adapter.core.links import Link, validate_extra_links
from metro_adapter.core.tokens import rand_string
from metro_adapter.core.types import ResolvedBot

logger = logging.getLogger(__name__)


# Insert column order. BotRecord.to_row() must produce exactly these.
BOT_COLUMNS: Tuple[str, ...] = (
    "bot_id",
    "queue_name",
    "client_id",
    "tags",
    "prefix",
    "owner",
    "short",
    "long",
    "invite",
    "library",
    "extra_links",
    "vanity",
    "banner",
    "cross_add",
    "note",
    "token",
    "list_source",
    "external_source",
)

EXTRA_LINK_NAMES = ("Website", "Support", "Donate")


@dataclass(frozen=True)
class BotRecord:
    """A fully populated bots row, ready to insert."""
    bot_id: str
    queue_name: str
    client_id: str
    tags: List[str]
    prefix: str
    owner: str
    short: str
    long: str
    invite: str
    library: str
    extra_links: List[Link]
    vanity: str
    banner: Optional[str]
    cross_add: bool
    note: str
    token: str
    list_source: str
    external_source: str

    def to_row(self) -> Tuple[Tuple[str, Any], ...]:
        """Column/value pairs in BOT_COLUMNS order."""
        return (
            ("bot_id", self.bot_id),
            ("queue_name", self.queue_name),
            ("client_id", self.client_id),
            ("tags", list(self.tags)),
            ("prefix", self.prefix),
            ("owner", self.owner),
            ("short", self.short),
            ("long", self.long),
            ("invite", self.invite),
            ("library", self.library),
            ("extra_links", [link.to_dict() for link in self.extra_links]),
            ("vanity", self.vanity),
            ("banner", self.banner),
            ("cross_add", self.cross_add),
            ("note", self.note),
            ("token", self.token),
            ("list_source", self.list_source),
            ("external_source", self.external_source),
        )

    def __repr__(self):
        # token is a credential
        return f"<BotRecord(bot_id='{self.bot_id}', vanity='{self.vanity}')>"


@dataclass(frozen=True)
class InsertOperation:
    """A single-statement insert of one complete bots row."""
    table: str
    columns: Tuple[str, ...]
    values: Tuple[Any, ...]

    def params(self) -> Dict[str, Any]:
        return dict(zip(self.columns, self.values))

    def to_sql(self) -> str:
        """Parameterised SQL text (named parameters) for this insert."""
        placeholders = ", ".join(f":{column}" for column in self.columns)
        return f"INSERT INTO {self.table} ({', '.join(self.columns)}) VALUES ({placeholders})"


def build_insert(record: BotRecord, table: str = "bots") -> InsertOperation:
    """
    Build the insert operation for a record.

    Raises:
        ValueError: If the record's row does not match BOT_COLUMNS
    """
    row = record.to_row()
    columns = tuple(column for column, _ in row)
    if columns != BOT_COLUMNS:
        raise ValueError(f"Bot record columns out of order: {columns}")
    return InsertOperation(table=table, columns=columns, values=tuple(value for _, value in row))


class RecordSynthesizer:
    """
    Builds the first-time bots row for a resolved candidate.

    Vanity and token are generated fresh on every call; uniqueness of the
    vanity is left to the store's unique constraint.
    """

    def __init__(
        self,
        config: Optional[BotRecordConfig] = None,
        generate: Callable[[int], str] = rand_string,
    ):
        self.config = config or BotRecordConfig()
        self.generate = generate

    def default_invite(self, bot_id: str) -> str:
        return self.config.INVITE_TEMPLATE.format(bot_id=bot_id)

    def extra_links(self, candidate: ResolvedBot) -> List[Link]:
        # Always all three, even when blank (see DESIGN.md)
        values = (candidate.website, candidate.support, candidate.donate)
        return [Link(name=name, value=value) for name, value in zip(EXTRA_LINK_NAMES, values)]

    def build_record(self, candidate: ResolvedBot) -> BotRecord:
        """
        Build and validate the record for a candidate.

        Args:
            candidate: Resolved bot data

        Returns:
            Fully populated BotRecord

        Raises:
            LinkValidationError: If any extra link is invalid
        """
        extra_links = self.extra_links(candidate)
        validate_extra_links(extra_links)

        return BotRecord(
            bot_id=candidate.bot_id,
            queue_name=candidate.username,
            client_id=candidate.bot_id,  # Updated separately if it ever differs
            tags=list(candidate.tags),
            prefix=candidate.prefix or self.config.DEFAULT_PREFIX,
            owner=candidate.owner,
            short=candidate.description,
            long=candidate.long_description,
            invite=candidate.invite or self.default_invite(candidate.bot_id),
            library=candidate.library,
            extra_links=extra_links,
            vanity=self.generate(self.config.VANITY_LENGTH),
            banner=candidate.banner or None,
            cross_add=candidate.cross_add,
            note=candidate.review_note,
            token=self.generate(self.config.TOKEN_LENGTH),
            list_source=candidate.list_source,
            external_source=self.config.EXTERNAL_SOURCE,
        )

    def synthesize(self, candidate: ResolvedBot) -> InsertOperation:
        """
        Synthesize the insert operation for a candidate.

        Raises:
            LinkValidationError: If any extra link is invalid; no operation is produced
        """
        record = self.build_record(candidate)
        logger.debug(f"Synthesized record for bot {record.bot_id}")
        return build_insert(record)
