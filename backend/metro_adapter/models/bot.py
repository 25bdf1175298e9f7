"""
Bot model for the listing's bots table.

Rows are created once on the first review action that references an
unknown bot and afterwards only have their claim owner and status mutated.
"""

from sqlalchemy import Column, String, Text, Boolean, DateTime, JSON

from metro_adapter.database import Base


class Bot(Base):
    """
    Bot model for persisted bot listings.

    Attributes:
        bot_id: Primary key, immutable once created
        queue_name: Display name used in the review queue
        client_id: OAuth client id (initially equal to bot_id)
        tags: Ordered list of tag strings
        prefix: Command prefix
        owner: Owner user id
        short: Short description
        long: Long description
        invite: Invite URL
        library: Library name
        extra_links: List of {"name", "value"} links
        vanity: Unique public slug, generated once
        banner: Optional banner URL
        cross_add: Added through cross-listing
        note: Moderation note
        token: API token, generated once; never displayed again
        list_source: Originating list id
        external_source: Marker for the integration that created the row
        status: Lifecycle status (stored in the "type" column)
        claimed_by: Reviewer who last touched the record
        last_claimed: When the bot was last claimed
    """
    __tablename__ = "bots"

    bot_id = Column(String(64), primary_key=True)
    queue_name = Column(String(256), nullable=False, default="")
    client_id = Column(String(64), nullable=False)
    tags = Column(JSON, nullable=False, default=list)
    prefix = Column(String(64), nullable=False, default="/")
    owner = Column(String(64), nullable=False, default="")
    short = Column(Text, nullable=False, default="")
    long = Column(Text, nullable=False, default="")
    invite = Column(Text, nullable=False, default="")
    library = Column(String(64), nullable=False, default="")
    extra_links = Column(JSON, nullable=False, default=list)
    vanity = Column(String(32), unique=True, nullable=False)
    banner = Column(Text, nullable=True)
    cross_add = Column(Boolean, nullable=False, default=False)
    note = Column(Text, nullable=False, default="")
    token = Column(String(101), nullable=False)
    list_source = Column(String(64), nullable=False, default="")
    external_source = Column(String(64), nullable=False, default="")
    status = Column("type", String(16), nullable=False, default="pending", server_default="pending")
    claimed_by = Column(String(64), nullable=True)
    last_claimed = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<Bot(bot_id='{self.bot_id}', queue_name='{self.queue_name}', status='{self.status}')>"
