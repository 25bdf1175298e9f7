"""
Tests for the bot lifecycle controller.

Runs the controller against a real BotStore on in-memory SQLite and
records every store write to check ordering and counts.
"""

import itertools

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from metro_adapter.config import ListConfig
from metro_adapter.core.errors import (
    AddPermissionError,
    CandidateResolutionError,
    LinkValidationError,
    StoreError,
)
from metro_adapter.core.lifecycle import LifecycleController
from metro_adapter.core.record import RecordSynthesizer
from metro_adapter.core.types import BotReference, BotStatus, ResolvedBot
from metro_adapter.database import Base
from metro_adapter.models.bot import Bot
from metro_adapter.services.bot_store import BotStore


# Test database setup
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class RecordingStore(BotStore):
    """BotStore that records writes in call order."""

    def __init__(self, db):
        super().__init__(db)
        self.writes = []

    def insert(self, operation):
        self.writes.append(("insert", operation.params()["bot_id"]))
        return super().insert(operation)

    def update_claim_owner(self, bot_id, reviewer):
        self.writes.append(("claim_owner", bot_id, reviewer))
        return super().update_claim_owner(bot_id, reviewer)

    def update_status(self, bot_id, new_status, **kwargs):
        self.writes.append(("status", bot_id, new_status))
        return super().update_status(bot_id, new_status, **kwargs)


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database and session for each test."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def store(db_session):
    return RecordingStore(db_session)


@pytest.fixture
def controller(store):
    return LifecycleController(store, ListConfig(SECRET_KEY="s", LIST_ID="list-1"))


def make_candidate(bot_id="B1", **overrides) -> ResolvedBot:
    data = dict(
        bot_id=bot_id,
        username="TestBot",
        owner="U1",
        description="A test bot",
        tags=["fun"],
        website="https://x.example",
        support="https://y.example",
        donate="https://z.example",
    )
    data.update(overrides)
    return ResolvedBot(**data)


def make_ref(bot_id="B1", reviewer="R1", can_add=True, candidate=None, calls=None) -> BotReference:
    """Create a reference whose resolver counts its calls."""
    candidate = candidate or make_candidate(bot_id)

    def resolve():
        if calls is not None:
            calls.append(bot_id)
        return candidate

    return BotReference(bot_id=bot_id, reviewer=reviewer, can_add=can_add, resolve=resolve)


def add_listed_bot(db, bot_id="B1", status=BotStatus.PENDING) -> None:
    """Insert an existing bot record directly."""
    db.add(Bot(
        bot_id=bot_id,
        client_id=bot_id,
        vanity=f"vanity-{bot_id}",
        token="t" * 101,
        status=status.value,
    ))
    db.commit()


class TestFirstTouch:
    """Actions on bots with no record yet."""

    @pytest.mark.parametrize("action", ["approve", "deny", "claim", "unclaim"])
    def test_cannot_add_without_permission(self, controller, store, action):
        """Test PermissionError and zero writes when can_add is false."""
        calls = []
        with pytest.raises(AddPermissionError):
            getattr(controller, action)(make_ref(can_add=False, calls=calls))

        assert store.writes == []
        assert calls == []
        assert store.get("B1") is None

    @pytest.mark.parametrize("action,expected", [
        ("approve", BotStatus.APPROVED),
        ("deny", BotStatus.DENIED),
    ])
    def test_insert_then_status(self, controller, store, action, expected):
        """Test exactly one insert followed by one status update."""
        result = getattr(controller, action)(make_ref())

        assert store.writes == [("insert", "B1"), ("status", "B1", expected)]
        assert result.created is True
        assert result.applied is True
        assert result.status == expected

        bot = store.get("B1")
        assert bot.status == expected.value
        assert bot.prefix == "/"
        assert bot.invite == (
            "https://discord.com/oauth2/authorize?client_id=B1"
            "&permissions=0&scope=bot%20applications.commands"
        )
        assert bot.client_id == "B1"
        assert bot.queue_name == "TestBot"
        assert bot.tags == ["fun"]
        assert [link["name"] for link in bot.extra_links] == ["Website", "Support", "Donate"]
        assert len(bot.vanity) == 32
        assert len(bot.token) == 101
        assert bot.external_source == "metro"
        # Copied from the candidate, never from the configured LIST_ID
        assert bot.list_source == ""
        assert bot.banner is None
        # Claim owner is only recorded on existing records
        assert bot.claimed_by is None

    def test_list_source_from_candidate(self, controller, store):
        """Test the inserted list source is the candidate's, not the adapter's list."""
        controller.approve(make_ref(candidate=make_candidate(list_source="other-list")))

        assert store.get("B1").list_source == "other-list"

    def test_claim_on_first_touch(self, controller, store):
        """Test a new bot starts pending, so claim applies."""
        result = controller.claim(make_ref())

        assert result.created is True
        assert result.applied is True
        bot = store.get("B1")
        assert bot.status == "claimed"
        assert bot.last_claimed is not None

    def test_unclaim_on_first_touch_is_noop(self, controller, store):
        """Test a new pending bot is not affected by unclaim."""
        result = controller.unclaim(make_ref())

        assert result.created is True
        assert result.applied is False
        assert store.get("B1").status == "pending"

    def test_invalid_links_abort_before_insert(self, controller, store):
        """Test validation failure performs no writes."""
        ref = make_ref(candidate=make_candidate(support="not-https"))
        with pytest.raises(LinkValidationError) as exc_info:
            controller.approve(ref)

        assert exc_info.value.link_name == "Support"
        assert store.writes == []
        assert store.get("B1") is None

    def test_resolver_called_once(self, controller):
        """Test the candidate is resolved only when the record is absent."""
        calls = []
        controller.claim(make_ref(calls=calls))
        controller.unclaim(make_ref(calls=calls))
        controller.approve(make_ref(calls=calls))

        assert calls == ["B1"]

    def test_resolver_failure(self, controller, store):
        """Test resolver exceptions surface as CandidateResolutionError."""
        def resolve():
            raise RuntimeError("queue entry vanished")

        ref = BotReference(bot_id="B1", reviewer="R1", can_add=True, resolve=resolve)
        with pytest.raises(CandidateResolutionError, match="queue entry vanished"):
            controller.approve(ref)

        assert store.writes == []

    def test_resolver_returns_wrong_bot(self, controller, store):
        """Test a mismatched candidate is rejected."""
        ref = make_ref(bot_id="B1", candidate=make_candidate("B2"))
        with pytest.raises(CandidateResolutionError):
            controller.approve(ref)

        assert store.writes == []


class TestExistingRecord:
    """Actions on bots that are already listed."""

    def test_claim_pending(self, db_session, controller, store):
        """Test claim moves pending to claimed and stamps the time."""
        add_listed_bot(db_session, status=BotStatus.PENDING)

        result = controller.claim(make_ref(reviewer="R2"))

        assert store.writes == [
            ("claim_owner", "B1", "R2"),
            ("status", "B1", BotStatus.CLAIMED),
        ]
        assert result.created is False
        assert result.applied is True
        bot = store.get("B1")
        assert bot.status == "claimed"
        assert bot.claimed_by == "R2"
        assert bot.last_claimed is not None

    @pytest.mark.parametrize("status", [BotStatus.CLAIMED, BotStatus.APPROVED, BotStatus.DENIED])
    def test_claim_non_pending_is_noop(self, db_session, controller, store, status):
        """Test claim on a non-pending bot changes no status and does not raise."""
        add_listed_bot(db_session, status=status)

        result = controller.claim(make_ref(reviewer="R2"))

        assert result.applied is False
        bot = store.get("B1")
        assert bot.status == status.value
        assert bot.last_claimed is None
        # The pre-step still records who touched it
        assert bot.claimed_by == "R2"

    def test_unclaim_claimed(self, db_session, controller, store):
        """Test unclaim returns a claimed bot to pending."""
        add_listed_bot(db_session, status=BotStatus.CLAIMED)

        result = controller.unclaim(make_ref())

        assert result.applied is True
        assert store.get("B1").status == "pending"

    @pytest.mark.parametrize("status", [BotStatus.PENDING, BotStatus.APPROVED, BotStatus.DENIED])
    def test_unclaim_not_claimed_is_noop(self, db_session, controller, store, status):
        """Test unclaim on a bot that is not claimed is a no-op."""
        add_listed_bot(db_session, status=status)

        result = controller.unclaim(make_ref())

        assert result.applied is False
        assert store.get("B1").status == status.value

    @pytest.mark.parametrize("status", [BotStatus.PENDING, BotStatus.CLAIMED])
    def test_approve_and_deny(self, db_session, controller, store, status):
        """Test approve from pending/claimed, then deny overrides it."""
        add_listed_bot(db_session, status=status)

        assert controller.approve(make_ref()).applied is True
        assert store.get("B1").status == "approved"

        assert controller.deny(make_ref()).applied is True
        assert store.get("B1").status == "denied"

    def test_can_add_ignored_when_listed(self, db_session, controller, store):
        """Test can_add=false does not block actions on listed bots."""
        add_listed_bot(db_session)

        result = controller.approve(make_ref(can_add=False))

        assert result.applied is True
        assert ("insert", "B1") not in store.writes

    def test_claim_unclaim_cycle(self, db_session, controller, store):
        """Test pending -> claimed -> pending -> claimed."""
        add_listed_bot(db_session)

        assert controller.claim(make_ref()).applied is True
        assert controller.claim(make_ref()).applied is False
        assert controller.unclaim(make_ref()).applied is True
        assert controller.unclaim(make_ref()).applied is False
        assert controller.claim(make_ref()).applied is True
        assert store.get("B1").status == "claimed"


class TestStoreFailures:
    """Test store errors are propagated without follow-up writes."""

    def test_failed_insert_skips_status_update(self, db_session, store):
        """Test a vanity collision fails the action before the status update."""
        controller = LifecycleController(
            store,
            ListConfig(),
            synthesizer=RecordSynthesizer(generate=lambda length: "x" * length),
        )
        controller.approve(make_ref("B1"))
        store.writes.clear()

        with pytest.raises(StoreError):
            controller.approve(make_ref("B2"))

        assert store.writes == [("insert", "B2")]
        assert store.get("B2") is None
        assert store.get("B1").status == "approved"

    def test_existence_check_failure(self, controller, store):
        """Test a failing existence check raises StoreError."""
        Base.metadata.drop_all(bind=engine)

        with pytest.raises(StoreError):
            controller.approve(make_ref())

        assert store.writes == []
        Base.metadata.create_all(bind=engine)

    def test_distinct_bots_get_distinct_secrets(self, controller, store):
        """Test two inserted bots never share vanity or token."""
        generator = itertools.count()
        controller.synthesizer = RecordSynthesizer(
            generate=lambda length: str(next(generator)).rjust(length, "v")
        )
        controller.approve(make_ref("B1"))
        controller.approve(make_ref("B2"))

        first, second = store.get("B1"), store.get("B2")
        assert first.vanity != second.vanity
        assert first.token != second.token
