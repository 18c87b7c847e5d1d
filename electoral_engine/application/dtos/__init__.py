"""Request and result objects for the application services."""

from electoral_engine.application.dtos.requests import (
    ArchiveChallengeRequest,
    AttachDocumentRequest,
    BeginJudgmentRequest,
    CastBallotRequest,
    ChallengeListOptions,
    DocumentPayload,
    ExtendDeadlineRequest,
    FileAppealRequest,
    FileChallengeRequest,
    RemoveDocumentRequest,
    RenderRulingRequest,
    SubmitDefenseRequest,
)
from electoral_engine.application.dtos.results import (
    BallotReceipt,
    ChallengeStatistics,
    DeadlineSweepResult,
    EligibilityResult,
    TallyResult,
    VotingStatus,
)

__all__: list[str] = [
    "ArchiveChallengeRequest",
    "AttachDocumentRequest",
    "BallotReceipt",
    "BeginJudgmentRequest",
    "CastBallotRequest",
    "ChallengeListOptions",
    "ChallengeStatistics",
    "DeadlineSweepResult",
    "DocumentPayload",
    "EligibilityResult",
    "ExtendDeadlineRequest",
    "FileAppealRequest",
    "FileChallengeRequest",
    "RemoveDocumentRequest",
    "RenderRulingRequest",
    "SubmitDefenseRequest",
    "TallyResult",
    "VotingStatus",
]
