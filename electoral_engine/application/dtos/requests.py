"""Request models for challenge, deadline and ballot operations.

Pydantic models validate the shape of every incoming request before any
service logic runs. Unknown fields are rejected.

Every mutating challenge request accepts an optional `idempotency_key`.
A replayed key returns the current challenge without side effects.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from electoral_engine.domain.models.challenge import (
    ChallengeStatus,
    ChallengeType,
    DocumentKind,
    PartyKind,
    RulingOutcome,
)

# Upper bound for list queries
MAX_LIST_LIMIT: int = 500
DEFAULT_LIST_LIMIT: int = 50


def _not_blank(value: str) -> str:
    if not value.strip():
        raise ValueError("must not be empty or whitespace only")
    return value


class _Request(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class _ChallengeCommand(_Request):
    """Base for commands against an existing challenge."""

    challenge_id: int = Field(..., ge=1, description="Target challenge id")
    idempotency_key: str | None = Field(
        default=None,
        min_length=1,
        max_length=128,
        description="Client-supplied key; a replay returns the current state",
    )


class DocumentPayload(_Request):
    """Reference to a document already held by the document store.

    Attributes:
        kind: Role of the document in the case file. When omitted the
            operation picks it (initial at filing, defense with a defense).
        name: Display name.
        storage_handle: Opaque handle issued by the document store.
        size_bytes: Size of the stored file.
        mime_type: Media type of the stored file.
    """

    kind: DocumentKind | None = Field(default=None)
    name: str = Field(..., min_length=1, max_length=255)
    storage_handle: str = Field(..., min_length=1, max_length=512)
    size_bytes: int = Field(..., ge=0)
    mime_type: str = Field(default="application/pdf", min_length=1, max_length=127)


class FileChallengeRequest(_Request):
    """Request to file a new challenge (impugnação).

    Attributes:
        election_id: Election the challenge belongs to.
        type: Kind of challenged entity.
        target_id: Id of the challenged slate, member or document.
        filer_id: Id of the filing party.
        filer_name: Name of the filing party.
        filer_kind: Whether the filer is a professional, the commission or
            a third party.
        grounds: Motive for the challenge.
        reasoning: Legal reasoning for the challenge.
        documents: Initial documents attached at filing.
        idempotency_key: Optional client key for safe retries.
    """

    election_id: int = Field(..., ge=1)
    type: ChallengeType
    target_id: int = Field(..., ge=1)
    filer_id: int = Field(..., ge=1)
    filer_name: str = Field(..., min_length=1, max_length=255)
    filer_kind: PartyKind = Field(default=PartyKind.PROFESSIONAL)
    grounds: str = Field(..., min_length=1, max_length=5000)
    reasoning: str = Field(..., min_length=1, max_length=20000)
    documents: tuple[DocumentPayload, ...] = Field(default=())
    idempotency_key: str | None = Field(default=None, min_length=1, max_length=128)

    @field_validator("filer_name", "grounds", "reasoning")
    @classmethod
    def validate_text_not_blank(cls, v: str) -> str:
        """Validate text fields are not only whitespace."""
        return _not_blank(v)


class SubmitDefenseRequest(_ChallengeCommand):
    """Request to record the challenged party's defense."""

    responder_id: int = Field(..., ge=1)
    defense: str = Field(..., min_length=1, max_length=20000)
    documents: tuple[DocumentPayload, ...] = Field(default=())

    @field_validator("defense")
    @classmethod
    def validate_defense_not_blank(cls, v: str) -> str:
        """Validate defense is not only whitespace."""
        return _not_blank(v)


class BeginJudgmentRequest(_ChallengeCommand):
    """Request to assign a rapporteur and start judgment."""

    rapporteur_id: int = Field(..., ge=1)


class RenderRulingRequest(_ChallengeCommand):
    """Request to render the ruling of the current instance.

    `appealable` is a request; the service forces it to False at the last
    instance.
    """

    judge_id: int = Field(..., ge=1)
    outcome: RulingOutcome
    reasoning: str = Field(..., min_length=1, max_length=20000)
    appealable: bool = Field(default=True)
    penalty: str | None = Field(default=None, max_length=2000)

    @field_validator("reasoning")
    @classmethod
    def validate_reasoning_not_blank(cls, v: str) -> str:
        """Validate reasoning is not only whitespace."""
        return _not_blank(v)


class FileAppealRequest(_ChallengeCommand):
    """Request to appeal the current ruling to the next instance."""

    appellant_id: int = Field(..., ge=1)
    reasoning: str = Field(..., min_length=1, max_length=20000)

    @field_validator("reasoning")
    @classmethod
    def validate_reasoning_not_blank(cls, v: str) -> str:
        """Validate reasoning is not only whitespace."""
        return _not_blank(v)


class ArchiveChallengeRequest(_ChallengeCommand):
    """Request to archive a ruled challenge."""

    actor_id: int = Field(..., ge=1)


class AttachDocumentRequest(_ChallengeCommand):
    """Request to add a document reference to the case file."""

    actor_id: int = Field(..., ge=1)
    document: DocumentPayload


class RemoveDocumentRequest(_ChallengeCommand):
    """Request to tombstone a document reference."""

    actor_id: int = Field(..., ge=1)
    document_id: int = Field(..., ge=1)


class ExtendDeadlineRequest(_ChallengeCommand):
    """Request to use the single extension of a deadline."""

    deadline_id: int = Field(..., ge=1)
    actor_id: int = Field(..., ge=1)


class CastBallotRequest(_Request):
    """Request to cast a ballot for a slate."""

    election_id: int = Field(..., ge=1)
    voter_id: int = Field(..., ge=1)
    slate_id: int = Field(..., ge=1)


class ChallengeListOptions(_Request):
    """Closed set of filters for listing challenges.

    Results are ordered newest first.

    Attributes:
        election_id: Only challenges of this election.
        status: Only challenges in this status.
        type: Only challenges of this type.
        filer_id: Only challenges filed by this party.
        target_kind: Only challenges whose target is of this kind.
        protocol_number: Exact protocol number match.
        filed_from: Filed at or after this instant.
        filed_to: Filed at or before this instant.
        limit: Page size (1-500).
        offset: Number of matches to skip.
    """

    election_id: int | None = Field(default=None, ge=1)
    status: ChallengeStatus | None = None
    type: ChallengeType | None = None
    filer_id: int | None = Field(default=None, ge=1)
    target_kind: ChallengeType | None = None
    protocol_number: str | None = Field(default=None, min_length=1, max_length=32)
    filed_from: datetime | None = None
    filed_to: datetime | None = None
    limit: int = Field(default=DEFAULT_LIST_LIMIT, ge=1, le=MAX_LIST_LIMIT)
    offset: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def validate_filed_range(self) -> "ChallengeListOptions":
        """Validate the filing date range is ordered."""
        if (
            self.filed_from is not None
            and self.filed_to is not None
            and self.filed_to < self.filed_from
        ):
            raise ValueError("filed_to must not precede filed_from")
        return self
