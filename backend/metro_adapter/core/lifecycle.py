"""
Bot lifecycle controller for review actions.

This module applies approve/deny/claim/unclaim actions from the review
framework to the bots store. Each action first makes sure a record
exists (inserting it on first touch, if allowed) and then runs its own
status update as a second, separate store operation.

States:
    pending -> claimed (claim), claimed -> pending (unclaim),
    pending/claimed -> approved (approve), pending/claimed -> denied (deny).
"""

import logging
from typing import Optional

from metro_adapter.config import ListConfig
from metro_adapter.core.errors import (
    AddPermissionError,
    AdapterError,
    CandidateResolutionError,
    LinkValidationError,
)
from metro_adapter.core.record import RecordSynthesizer
from metro_adapter.core.types import ActionResult, BotReference, BotStatus, ResolvedBot

logger = logging.getLogger(__name__)


class LifecycleController:
    """
    Applies review actions to bot records.

    Responsibilities:
    - Check whether the bot record exists
    - Insert the full record on first touch when can_add is set
    - Record the reviewer as claim owner on existing records
    - Apply the action's status transition
    """

    def __init__(
        self,
        store,
        list_config: ListConfig,
        synthesizer: Optional[RecordSynthesizer] = None,
    ):
        """
        Initialize the controller.

        Args:
            store: Persistence gateway (see services.bot_store.BotStore)
            list_config: List configuration for this adapter
            synthesizer: Record synthesizer for first-time inserts
        """
        self.store = store
        self.list_config = list_config
        self.synthesizer = synthesizer or RecordSynthesizer()

    def _resolve(self, ref: BotReference) -> ResolvedBot:
        try:
            candidate = ref.resolve()
        except AdapterError:
            raise
        except Exception as e:
            raise CandidateResolutionError(f"could not resolve bot {ref.bot_id}: {str(e)}") from e

        if candidate is None:
            raise CandidateResolutionError(f"could not resolve bot {ref.bot_id}")
        if candidate.bot_id != ref.bot_id:
            raise CandidateResolutionError(
                f"resolved bot {candidate.bot_id} does not match requested bot {ref.bot_id}"
            )
        return candidate

    def ensure_record(self, ref: BotReference) -> bool:
        """
        Make sure a record exists for the referenced bot.

        Args:
            ref: Bot reference from the review action

        Returns:
            True if the record was inserted by this call

        Raises:
            AddPermissionError: If the bot is unknown and can_add is false
            CandidateResolutionError: If the candidate cannot be resolved
            LinkValidationError: If the candidate's extra links are invalid
            StoreError: If any store operation fails
        """
        if self.store.exists(ref.bot_id):
            self.store.update_claim_owner(ref.bot_id, ref.reviewer)
            return False

        if not ref.can_add:
            logger.warning(f"Refusing to add bot {ref.bot_id}: can_add is false")
            raise AddPermissionError("cannot add this bot due to can_add being false")

        candidate = self._resolve(ref)

        try:
            operation = self.synthesizer.synthesize(candidate)
        except LinkValidationError as e:
            logger.warning(f"Rejected bot {ref.bot_id}: {str(e)}")
            raise

        self.store.insert(operation)
        logger.info(f"Added bot {ref.bot_id} to the bots table for list {self.list_config.LIST_ID}")
        return True

    def _apply(
        self,
        action: str,
        ref: BotReference,
        new_status: BotStatus,
        required_current: Optional[BotStatus] = None,
        stamp_claim: bool = False,
    ) -> ActionResult:
        logger.info(f"/{action} => {ref.bot_id}")

        created = self.ensure_record(ref)
        rows = self.store.update_status(
            ref.bot_id,
            new_status,
            required_current=required_current,
            stamp_claim=stamp_claim,
        )

        if rows == 0:
            logger.info(f"/{action} => {ref.bot_id}: no-op, status precondition not met")

        return ActionResult(
            bot_id=ref.bot_id,
            action=action,
            status=new_status,
            applied=rows > 0,
            created=created,
        )

    def approve(self, ref: BotReference) -> ActionResult:
        """Approve a bot."""
        return self._apply("approve", ref, BotStatus.APPROVED)

    def deny(self, ref: BotReference) -> ActionResult:
        """Deny a bot."""
        return self._apply("deny", ref, BotStatus.DENIED)

    def claim(self, ref: BotReference) -> ActionResult:
        """
        Claim a pending bot for review.

        A bot that is not pending is left untouched; the result has
        applied=False rather than raising.
        """
        return self._apply(
            "claim",
            ref,
            BotStatus.CLAIMED,
            required_current=BotStatus.PENDING,
            stamp_claim=True,
        )

    def unclaim(self, ref: BotReference) -> ActionResult:
        """
        Return a claimed bot to the pending queue.

        A bot that is not claimed is left untouched (applied=False).
        """
        return self._apply(
            "unclaim",
            ref,
            BotStatus.PENDING,
            required_current=BotStatus.CLAIMED,
        )
