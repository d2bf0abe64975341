"""
Concurrent Lifecycle Tests
==========================
Racing calls against one request on a file-backed SQLite database.

Each call checks out its own pooled connection, so reads and writes of
concurrent calls really interleave.
"""

import asyncio

import pytest
import pytest_asyncio

from verifly_core.errors import (
    AlreadyVerified,
    DuplicateActiveRequest,
    InvalidToken,
    MaxAttemptsExceeded,
    MaxResendExceeded,
)
from verifly_core.lifecycle import GenerateItem, ResendItem, ResendResult, VerifyItem, VerifyResult
from verifly_core.models import RequestState
from verifly_core.storage import create_engine, create_schema, create_sql_store

PHONE = "+15551234567"


@pytest_asyncio.fixture
async def store(tmp_path):
    engine = create_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'verifly.db'}",
        connect_args={"timeout": 30},
    )
    await create_schema(engine)
    yield create_sql_store(engine)
    await engine.dispose()


def wrong_token(token):
    return "0" * len(token) if token != "0" * len(token) else "1" * len(token)


def by_type(outcomes):
    grouped = {}
    for outcome in outcomes:
        grouped.setdefault(type(outcome), []).append(outcome)
    return grouped


class TestConcurrentGenerate:
    """Racing generates for one identity."""

    @pytest.mark.asyncio
    async def test_one_active_request(self, core, app_id, store):
        outcomes = await asyncio.gather(
            *(core.engine.generate_one(app_id, GenerateItem("authMO", PHONE)) for _ in range(5)),
            return_exceptions=True,
        )

        successes = [o for o in outcomes if not isinstance(o, Exception)]
        failures = [o for o in outcomes if isinstance(o, Exception)]
        assert len(successes) == 1
        assert all(isinstance(f, DuplicateActiveRequest) for f in failures)

        active = await store.requests.find_all(user_identity=PHONE, state=RequestState.ACTIVE)
        assert [r.id for r in active] == [successes[0].request_id]


class TestConcurrentVerify:
    """Racing verifies against one request."""

    @pytest.mark.asyncio
    async def test_wrong_guesses_each_consume_an_attempt(self, core, app_id, store):
        result = await core.engine.generate_one(app_id, GenerateItem("authMO", PHONE))
        guess = VerifyItem(result.request_id, wrong_token(result.token))

        outcomes = await asyncio.gather(
            *(core.engine.verify_one(app_id, guess) for _ in range(10)),
            return_exceptions=True,
        )

        grouped = by_type(outcomes)
        assert len(grouped.get(InvalidToken, [])) == 3
        assert len(grouped.get(MaxAttemptsExceeded, [])) == 7
        assert sorted(e.attempts_remaining for e in grouped[InvalidToken]) == [0, 1, 2]

        stored = await store.requests.find_one(id=result.request_id)
        assert stored.attempt_count == 3
        assert stored.state is RequestState.ACTIVE

    @pytest.mark.asyncio
    async def test_correct_token_verifies_once(self, core, app_id, store):
        result = await core.engine.generate_one(app_id, GenerateItem("authMO", PHONE))
        item = VerifyItem(result.request_id, result.token)

        outcomes = await asyncio.gather(
            *(core.engine.verify_one(app_id, item) for _ in range(3)),
            return_exceptions=True,
        )

        grouped = by_type(outcomes)
        assert len(grouped.get(VerifyResult, [])) == 1
        assert len(grouped.get(AlreadyVerified, [])) == 2

        stored = await store.requests.find_one(id=result.request_id)
        assert stored.state is RequestState.VERIFIED
        assert stored.attempt_count == 0


class TestConcurrentResend:
    """Racing resends against one request."""

    @pytest.mark.asyncio
    async def test_resend_limit_holds(self, core, app_id, store):
        result = await core.engine.generate_one(app_id, GenerateItem("authMO", PHONE))
        item = ResendItem(result.request_id)

        outcomes = await asyncio.gather(
            *(core.engine.resend_one(app_id, item) for _ in range(8)),
            return_exceptions=True,
        )

        grouped = by_type(outcomes)
        assert len(grouped.get(ResendResult, [])) == 3
        assert len(grouped.get(MaxResendExceeded, [])) == 5
        assert sorted(r.resend_count for r in grouped[ResendResult]) == [1, 2, 3]

        stored = await store.requests.find_one(id=result.request_id)
        assert stored.resend_count == 3
        assert stored.version == 4
