"""
Bot store service layer.

Executes the adapter's insert and update operations against the bots
table. Every method is one statement followed by its own commit; any
SQLAlchemy failure rolls the session back and is raised as StoreError.
"""

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import exists as sql_exists, insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from metro_adapter.core.errors import StoreError
from metro_adapter.core.record import InsertOperation
from metro_adapter.core.types import BotStatus
from metro_adapter.models.bot import Bot

logger = logging.getLogger(__name__)


class BotStore:
    """Persistence gateway for the bots table."""

    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _statement(self, description: str):
        try:
            yield
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Store error during {description}: {str(e)}")
            raise StoreError(f"{description} failed: {str(e)}") from e

    def exists(self, bot_id: str) -> bool:
        """
        Check whether a bot record exists.

        Args:
            bot_id: Bot ID to check

        Returns:
            True if a row with this bot_id exists
        """
        try:
            return bool(self.db.execute(select(sql_exists().where(Bot.bot_id == bot_id))).scalar())
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Store error checking bot {bot_id}: {str(e)}")
            raise StoreError(f"existence check failed: {str(e)}") from e

    def get(self, bot_id: str) -> Optional[Bot]:
        """Get a bot record by ID, or None if absent."""
        try:
            return self.db.get(Bot, bot_id)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreError(f"lookup failed: {str(e)}") from e

    def insert(self, operation: InsertOperation) -> None:
        """
        Insert one complete bots row.

        Raises:
            StoreError: On any failure, including a duplicate bot_id or vanity
        """
        params = operation.params()
        with self._statement(f"insert of bot {params.get('bot_id')}"):
            self.db.execute(insert(Bot.__table__).values(**params))

    def update_claim_owner(self, bot_id: str, reviewer: str) -> int:
        """Record the reviewer who last touched a bot. Returns rows affected."""
        with self._statement(f"claim owner update of bot {bot_id}"):
            result = self.db.execute(
                update(Bot.__table__)
                .where(Bot.__table__.c.bot_id == bot_id)
                .values(claimed_by=reviewer)
            )
        return result.rowcount

    def update_status(
        self,
        bot_id: str,
        new_status: BotStatus,
        required_current: Optional[BotStatus] = None,
        stamp_claim: bool = False,
    ) -> int:
        """
        Set a bot's lifecycle status.

        Args:
            bot_id: Bot ID to update
            new_status: Status to set
            required_current: Only update if the current status is this one
            stamp_claim: Also set last_claimed to now

        Returns:
            Number of rows affected (0 when the status precondition fails)
        """
        table = Bot.__table__
        values = {"type": new_status.value}
        if stamp_claim:
            values["last_claimed"] = datetime.now(timezone.utc)

        statement = update(table).where(table.c.bot_id == bot_id)
        if required_current is not None:
            statement = statement.where(table.c["type"] == required_current.value)

        with self._statement(f"status update of bot {bot_id} to {new_status.value}"):
            result = self.db.execute(statement.values(**values))
        return result.rowcount
