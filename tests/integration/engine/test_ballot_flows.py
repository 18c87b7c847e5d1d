"""End-to-end ballot gate scenarios through the wired engine."""

from __future__ import annotations

import asyncio

import pytest

from electoral_engine.application.dtos.requests import CastBallotRequest
from electoral_engine.application.dtos.results import BallotReceipt
from electoral_engine.bootstrap import EngineContainer
from electoral_engine.domain.errors import AlreadyVotedError
from tests.helpers.builders import ELECTION_ID, SLATE_A, SLATE_B

pytestmark = pytest.mark.integration


@pytest.mark.asyncio
async def test_fifty_concurrent_ballots_store_one(engine: EngineContainer) -> None:
    gate = engine.ballot_gate

    results = await asyncio.gather(
        *(
            gate.cast_ballot(
                CastBallotRequest(
                    election_id=ELECTION_ID,
                    voter_id=42,
                    slate_id=SLATE_A if i % 2 else SLATE_B,
                )
            )
            for i in range(50)
        ),
        return_exceptions=True,
    )

    receipts = [r for r in results if isinstance(r, BallotReceipt)]
    rejections = [r for r in results if isinstance(r, AlreadyVotedError)]
    assert len(receipts) == 1
    assert len(rejections) == 49
    assert {r.existing_ballot_id for r in rejections} == {receipts[0].ballot_id}

    status = await gate.get_voting_status(ELECTION_ID, 42)
    assert status.ballot_id == receipts[0].ballot_id
    registry = engine.metrics.registry
    assert registry.get_sample_value("ballots_cast_total") == 1.0
    assert (
        registry.get_sample_value("ballots_rejected_total", {"reason": "already_voted"})
        == 49.0
    )


@pytest.mark.asyncio
async def test_fifty_identical_requests_store_one(engine: EngineContainer) -> None:
    gate = engine.ballot_gate
    request = CastBallotRequest(election_id=ELECTION_ID, voter_id=43, slate_id=SLATE_A)

    results = await asyncio.gather(
        *(gate.cast_ballot(request) for _ in range(50)),
        return_exceptions=True,
    )

    receipts = [r for r in results if isinstance(r, BallotReceipt)]
    rejections = [r for r in results if isinstance(r, AlreadyVotedError)]
    assert len(receipts) == 1
    assert len(rejections) == 49
    assert {r.cast_at for r in rejections} == {receipts[0].cast_at}
    status = await gate.get_voting_status(ELECTION_ID, 43)
    assert status.ballot_id == receipts[0].ballot_id


@pytest.mark.asyncio
async def test_distinct_voters_do_not_block_each_other(engine: EngineContainer) -> None:
    gate = engine.ballot_gate

    receipts = await asyncio.gather(
        *(
            gate.cast_ballot(
                CastBallotRequest(election_id=ELECTION_ID, voter_id=v, slate_id=SLATE_A)
            )
            for v in range(1, 21)
        )
    )

    assert len({r.ballot_id for r in receipts}) == 20
