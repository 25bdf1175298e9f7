"""
Review action endpoints.

The review framework calls these with the target bot; the adapter adds
the bot on first touch and applies the action's status change.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from metro_adapter.api.auth import verify_secret_key
from metro_adapter.config import get_settings
from metro_adapter.core.errors import (
    AddPermissionError,
    CandidateResolutionError,
    LinkValidationError,
    StoreError,
)
from metro_adapter.core.lifecycle import LifecycleController
from metro_adapter.core.record import RecordSynthesizer
from metro_adapter.core.types import ActionResult, BotReference, ResolvedBot
from metro_adapter.database import get_db
from metro_adapter.services.bot_store import BotStore


router = APIRouter(tags=["actions"], dependencies=[Depends(verify_secret_key)])


# Request/Response models
class BotPayload(BaseModel):
    """Bot sent by the review framework with an action."""
    bot_id: str = Field(..., min_length=1, max_length=64, description="Bot ID")
    reviewer: str = Field(..., min_length=1, max_length=64, description="Reviewer user ID")
    can_add: bool = Field(False, description="Whether the bot may be added if unknown")

    # Candidate data, only used when the bot is not yet listed
    username: str = ""
    owner: str = ""
    description: str = ""
    long_description: str = ""
    tags: List[str] = Field(default_factory=list)
    prefix: str = ""
    invite: str = ""
    library: str = ""
    website: str = ""
    support: str = ""
    donate: str = ""
    banner: Optional[str] = None
    cross_add: bool = False
    review_note: str = ""
    list_source: str = ""

    def resolve(self) -> ResolvedBot:
        return ResolvedBot(
            bot_id=self.bot_id,
            username=self.username,
            owner=self.owner,
            description=self.description,
            long_description=self.long_description,
            tags=list(self.tags),
            prefix=self.prefix,
            invite=self.invite,
            library=self.library,
            website=self.website,
            support=self.support,
            donate=self.donate,
            banner=self.banner or "",
            cross_add=self.cross_add,
            review_note=self.review_note,
            list_source=self.list_source,
        )

    def to_reference(self) -> BotReference:
        return BotReference(
            bot_id=self.bot_id,
            reviewer=self.reviewer,
            can_add=self.can_add,
            resolve=self.resolve,
        )


class ActionResponse(BaseModel):
    """Response model for a review action."""
    bot_id: str
    action: str
    status: str
    applied: bool
    created: bool


def get_controller(db: Session = Depends(get_db)) -> LifecycleController:
    """Dependency building a lifecycle controller over the request's session."""
    settings = get_settings()
    return LifecycleController(
        BotStore(db),
        settings.listing,
        synthesizer=RecordSynthesizer(settings.record),
    )


def _run(action, payload: BotPayload) -> ActionResponse:
    try:
        result: ActionResult = action(payload.to_reference())
    except LinkValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except AddPermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except CandidateResolutionError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except StoreError as e:
        raise HTTPException(status_code=500, detail=f"Internal server error: {str(e)}")

    return ActionResponse(
        bot_id=result.bot_id,
        action=result.action,
        status=result.status.value,
        applied=result.applied,
        created=result.created,
    )


@router.post("/approve", response_model=ActionResponse)
async def approve_bot(
    payload: BotPayload,
    controller: LifecycleController = Depends(get_controller)
):
    """
    Approve a bot, adding it first if it is not listed yet.

    Raises:
        400: Invalid extra links
        403: Bot unknown and can_add is false
        500: Database error
    """
    return _run(controller.approve, payload)


@router.post("/deny", response_model=ActionResponse)
async def deny_bot(
    payload: BotPayload,
    controller: LifecycleController = Depends(get_controller)
):
    """Deny a bot, adding it first if it is not listed yet."""
    return _run(controller.deny, payload)


@router.post("/claim", response_model=ActionResponse)
async def claim_bot(
    payload: BotPayload,
    controller: LifecycleController = Depends(get_controller)
):
    """
    Claim a pending bot.

    Returns applied=false when the bot was not pending.
    """
    return _run(controller.claim, payload)


@router.post("/unclaim", response_model=ActionResponse)
async def unclaim_bot(
    payload: BotPayload,
    controller: LifecycleController = Depends(get_controller)
):
    """
    Unclaim a claimed bot.

    Returns applied=false when the bot was not claimed.
    """
    return _run(controller.unclaim, payload)
