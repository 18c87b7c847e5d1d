"""Challenge (impugnação) domain model and state machine.

A Challenge is a formal objection to a slate, a slate member or a document
in an election. It moves from filing through defense, judgment and an
optional appeal to a second instance.

State Machine:
    FILED -> AWAITING_DEFENSE          (open defense window, on filing)
    AWAITING_DEFENSE -> DEFENSE_SUBMITTED
                                       (submit defense, or defense deadline
                                        expired: defense waived)
    DEFENSE_SUBMITTED -> UNDER_JUDGMENT
                                       (begin judgment: rapporteur assigned)
    DEFENSE_SUBMITTED -> UPHELD|DENIED (render ruling)
    UNDER_JUDGMENT -> UPHELD|DENIED    (render ruling)
    UPHELD|DENIED -> UNDER_JUDGMENT    (file appeal: instance + 1)
    UPHELD|DENIED -> ARCHIVED          (appeal window elapsed or not appealable)

An appeal is recorded in `appeals` and the case re-enters UNDER_JUDGMENT in
the same write, so the intermediate "appealed" step is never persisted.

Invariants:
- At most one active deadline per phase.
- At most one ruling per instance; instance only grows.
- The defense is immutable once any ruling exists.
- Documents are append-only; removal is a tombstone.
- Every transition bumps `version` by exactly one.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import NoReturn

from electoral_engine.domain.errors.deadline import (
    DeadlineExpiredError,
    NotExtendableError,
)
from electoral_engine.domain.errors.not_found import (
    DeadlineNotFoundError,
    DocumentNotFoundError,
)
from electoral_engine.domain.errors.state_transition import InvalidTransitionError
from electoral_engine.domain.models.deadline import (
    Deadline,
    DeadlinePhase,
    DeadlineStatus,
)


class ChallengeType(str, Enum):
    """What kind of entity is being challenged."""

    CHAPA = "chapa"
    MEMBER = "member"
    DOCUMENT = "document"


class ChallengeStatus(str, Enum):
    """Lifecycle status of a challenge."""

    FILED = "filed"
    AWAITING_DEFENSE = "awaiting_defense"
    DEFENSE_SUBMITTED = "defense_submitted"
    UNDER_JUDGMENT = "under_judgment"
    UPHELD = "upheld"
    DENIED = "denied"
    ARCHIVED = "archived"

    def is_ruled(self) -> bool:
        """Whether a ruling for the current instance has been rendered."""
        return self in (ChallengeStatus.UPHELD, ChallengeStatus.DENIED)

    def valid_events(self) -> frozenset[ChallengeEvent]:
        """Get the events accepted in this status.

        Returns:
            Frozenset of events. Empty for ARCHIVED.
        """
        return frozenset(TRANSITION_MATRIX.get(self, {}).keys())


class ChallengeEvent(str, Enum):
    """Events that drive challenge transitions."""

    OPEN_DEFENSE_WINDOW = "open_defense_window"
    SUBMIT_DEFENSE = "submit_defense"
    WAIVE_DEFENSE = "defense_deadline_expired"
    BEGIN_JUDGMENT = "begin_judgment"
    RENDER_RULING = "render_ruling"
    FILE_APPEAL = "file_appeal"
    ARCHIVE = "archive"

    # Document custody events; allowed in every status except ARCHIVED
    ATTACH_DOCUMENT = "attach_document"
    REMOVE_DOCUMENT = "remove_document"
    EXTEND_DEADLINE = "extend_deadline"


_RULED: frozenset[ChallengeStatus] = frozenset(
    {ChallengeStatus.UPHELD, ChallengeStatus.DENIED}
)

# Maps each status to the events it accepts and their possible targets
TRANSITION_MATRIX: dict[
    ChallengeStatus, dict[ChallengeEvent, frozenset[ChallengeStatus]]
] = {
    ChallengeStatus.FILED: {
        ChallengeEvent.OPEN_DEFENSE_WINDOW: frozenset(
            {ChallengeStatus.AWAITING_DEFENSE}
        ),
    },
    ChallengeStatus.AWAITING_DEFENSE: {
        ChallengeEvent.SUBMIT_DEFENSE: frozenset({ChallengeStatus.DEFENSE_SUBMITTED}),
        ChallengeEvent.WAIVE_DEFENSE: frozenset({ChallengeStatus.DEFENSE_SUBMITTED}),
    },
    ChallengeStatus.DEFENSE_SUBMITTED: {
        ChallengeEvent.BEGIN_JUDGMENT: frozenset({ChallengeStatus.UNDER_JUDGMENT}),
        ChallengeEvent.RENDER_RULING: _RULED,
    },
    ChallengeStatus.UNDER_JUDGMENT: {
        ChallengeEvent.RENDER_RULING: _RULED,
    },
    ChallengeStatus.UPHELD: {
        ChallengeEvent.FILE_APPEAL: frozenset({ChallengeStatus.UNDER_JUDGMENT}),
        ChallengeEvent.ARCHIVE: frozenset({ChallengeStatus.ARCHIVED}),
    },
    ChallengeStatus.DENIED: {
        ChallengeEvent.FILE_APPEAL: frozenset({ChallengeStatus.UNDER_JUDGMENT}),
        ChallengeEvent.ARCHIVE: frozenset({ChallengeStatus.ARCHIVED}),
    },
    ChallengeStatus.ARCHIVED: {},
}

_CUSTODY_EVENTS: frozenset[ChallengeEvent] = frozenset(
    {
        ChallengeEvent.ATTACH_DOCUMENT,
        ChallengeEvent.REMOVE_DOCUMENT,
        ChallengeEvent.EXTEND_DEADLINE,
    }
)


class RulingOutcome(str, Enum):
    """Outcome of a ruling: the challenge is upheld (deferida) or denied."""

    UPHELD = "upheld"
    DENIED = "denied"

    def to_status(self) -> ChallengeStatus:
        """Status the challenge takes when this outcome is rendered."""
        return ChallengeStatus(self.value)


class PartyKind(str, Enum):
    """Who filed the challenge."""

    PROFESSIONAL = "professional"
    COMMISSION = "commission"
    THIRD_PARTY = "third_party"


class AppellantRole(str, Enum):
    """Which side of the case an appellant stands on."""

    FILER = "filer"
    RESPONDENT = "respondent"


class DocumentKind(str, Enum):
    """Role a document plays in the case file."""

    INITIAL = "initial"
    DEFENSE = "defense"
    RULING = "ruling"
    APPEAL = "appeal"
    OTHER = "other"


@dataclass(frozen=True, eq=True)
class Party:
    """Identity of a person or body acting in a case."""

    id: int
    name: str
    kind: PartyKind = field(default=PartyKind.PROFESSIONAL)


@dataclass(frozen=True, eq=True)
class TargetRef:
    """Tagged reference to the challenged entity.

    The kind selects which external directory resolves the id.
    """

    kind: ChallengeType
    id: int


@dataclass(frozen=True, eq=True)
class Ruling:
    """A decision rendered at one adjudication instance.

    Attributes:
        instance: Tier that rendered the ruling (1 or 2).
        outcome: UPHELD or DENIED.
        reasoning: Legal reasoning (fundamentação).
        judge_ref: Identifier of the judge or rapporteur.
        judged_at: When the ruling was rendered (UTC).
        appealable: Whether an appeal window opens after this ruling.
        penalty: Optional penalty imposed.
        late: True if rendered after the judgment window closed.
    """

    instance: int
    outcome: RulingOutcome
    reasoning: str
    judge_ref: int
    judged_at: datetime
    appealable: bool
    penalty: str | None = field(default=None)
    late: bool = field(default=False)


@dataclass(frozen=True, eq=True)
class Appeal:
    """An appeal (recurso) against the ruling of `from_instance`."""

    from_instance: int
    appellant_id: int
    appellant_role: AppellantRole
    reasoning: str
    filed_at: datetime


@dataclass(frozen=True, eq=True)
class DocumentRef:
    """Reference to a document held by the external document store.

    Only the opaque storage handle is kept here. Removal sets the
    tombstone fields; the reference itself is never dropped.
    """

    id: int
    kind: DocumentKind
    name: str
    storage_handle: str
    size_bytes: int
    mime_type: str
    added_at: datetime
    added_by: int
    removed_at: datetime | None = field(default=None)
    removed_by: int | None = field(default=None)

    def __post_init__(self) -> None:
        if self.size_bytes < 0:
            raise ValueError("size_bytes must be non-negative")
        if not self.storage_handle:
            raise ValueError("storage_handle is required")

    @property
    def is_removed(self) -> bool:
        return self.removed_at is not None


def format_protocol_number(challenge_id: int, filed_at: datetime) -> str:
    """Build the human-readable protocol number for a challenge.

    Args:
        challenge_id: Repository-assigned numeric id.
        filed_at: Filing timestamp; its year prefixes the sequence.

    Returns:
        Protocol number such as ``IMP-2026-000042``.
    """
    return f"IMP-{filed_at.year}-{challenge_id:06d}"


@dataclass(frozen=True, eq=True)
class Challenge:
    """A challenge (impugnação) aggregate.

    The aggregate owns its deadlines, rulings, appeals and documents. All
    mutation goes through the transition methods below, each of which
    validates its guards and returns a new instance with `version + 1`.

    Attributes:
        id: Numeric identifier (repository-assigned).
        protocol_number: Unique, immutable human-readable number.
        election_id: Election the challenge belongs to.
        type: Kind of challenged entity.
        target: Tagged reference to the challenged entity.
        filer: Who filed the challenge.
        grounds: Motive for the challenge (motivo).
        reasoning: Legal reasoning for the challenge (fundamentação).
        created_at: Filing timestamp (UTC).
        updated_at: Last modification (UTC, never moves backwards).
        status: Current lifecycle status.
        defense: Defense text (None until submitted, None if waived).
        defense_submitted_at: When the defense was recorded.
        instance: Current adjudication tier.
        rulings: Ruling history, at most one per instance.
        appeals: Appeal history.
        rapporteur_id: Judge leading the current instance (nullable).
        documents: Append-only document references.
        deadlines: All deadlines ever opened on the challenge.
        applied_requests: Idempotency keys of applied requests.
        version: Optimistic concurrency version.
        archived_at: When the challenge was archived.
    """

    id: int
    protocol_number: str
    election_id: int
    type: ChallengeType
    target: TargetRef
    filer: Party
    grounds: str
    reasoning: str
    created_at: datetime
    updated_at: datetime
    status: ChallengeStatus = field(default=ChallengeStatus.FILED)
    defense: str | None = field(default=None)
    defense_submitted_at: datetime | None = field(default=None)
    instance: int = field(default=1)
    rulings: tuple[Ruling, ...] = field(default=())
    appeals: tuple[Appeal, ...] = field(default=())
    rapporteur_id: int | None = field(default=None)
    documents: tuple[DocumentRef, ...] = field(default=())
    deadlines: tuple[Deadline, ...] = field(default=())
    applied_requests: frozenset[str] = field(default=frozenset())
    version: int = field(default=1)
    archived_at: datetime | None = field(default=None)

    def __post_init__(self) -> None:
        """Validate aggregate invariants.

        Raises:
            ValueError: If any invariant is violated.
        """
        if self.target.kind != self.type:
            raise ValueError(
                f"target kind {self.target.kind.value} does not match "
                f"challenge type {self.type.value}"
            )
        if not self.grounds.strip():
            raise ValueError("grounds are required")
        if not self.reasoning.strip():
            raise ValueError("reasoning is required")
        if self.created_at.tzinfo is None or self.updated_at.tzinfo is None:
            raise ValueError("timestamps must be timezone-aware (UTC)")
        if self.updated_at < self.created_at:
            raise ValueError("updated_at must not precede created_at")

        ruling_instances = [r.instance for r in self.rulings]
        if len(ruling_instances) != len(set(ruling_instances)):
            raise ValueError("at most one ruling per instance")
        if ruling_instances != sorted(ruling_instances):
            raise ValueError("rulings must be ordered by instance")
        if any(i > self.instance for i in ruling_instances):
            raise ValueError("ruling instance exceeds current instance")

        active_phases = [d.phase for d in self.deadlines if d.is_active]
        if len(active_phases) != len(set(active_phases)):
            raise ValueError("at most one active deadline per phase")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def ruling(self) -> Ruling | None:
        """Ruling of the current instance, if rendered."""
        for ruling in reversed(self.rulings):
            if ruling.instance == self.instance:
                return ruling
        return None

    @property
    def is_terminal(self) -> bool:
        """Whether no further transition is legally available.

        ARCHIVED is always terminal. A ruled case is terminal when its
        ruling cannot be appealed; it may still be archived for filing.
        """
        if self.status == ChallengeStatus.ARCHIVED:
            return True
        ruling = self.ruling
        return self.status.is_ruled() and ruling is not None and not ruling.appealable

    def deadline_by_id(self, deadline_id: int) -> Deadline | None:
        for deadline in self.deadlines:
            if deadline.id == deadline_id:
                return deadline
        return None

    def active_deadline(self, phase: DeadlinePhase) -> Deadline | None:
        """The active deadline of a phase, if the phase is open."""
        for deadline in self.deadlines:
            if deadline.phase == phase and deadline.is_active:
                return deadline
        return None

    def current_deadline(self, phase: DeadlinePhase) -> Deadline | None:
        """Most recent deadline of a phase for the current instance."""
        for deadline in reversed(self.deadlines):
            if deadline.phase == phase and deadline.instance == self.instance:
                return deadline
        return None

    def visible_documents(self) -> tuple[DocumentRef, ...]:
        """Documents that have not been tombstoned."""
        return tuple(d for d in self.documents if not d.is_removed)

    def has_applied(self, request_key: str) -> bool:
        return request_key in self.applied_requests

    def pending_expiry_followups(self) -> tuple[Deadline, ...]:
        """Expired deadlines whose system transition has not happened yet.

        A defense deadline that expired while the case still awaits the
        defense, or an appeal deadline that expired while the ruling is
        still open to archive, needs the lifecycle to act on it.
        """
        pending: list[Deadline] = []
        if self.status == ChallengeStatus.AWAITING_DEFENSE:
            defense = self.current_deadline(DeadlinePhase.DEFENSE)
            if defense is not None and defense.status == DeadlineStatus.EXPIRED:
                pending.append(defense)
        elif self.status.is_ruled():
            appeal = self.current_deadline(DeadlinePhase.APPEAL)
            if appeal is not None and appeal.status == DeadlineStatus.EXPIRED:
                pending.append(appeal)
        return tuple(pending)

    def ensure_can(self, event: ChallengeEvent) -> None:
        """Check that the current status accepts the event.

        Raises:
            InvalidTransitionError: If the event is not accepted.
        """
        if event in _CUSTODY_EVENTS:
            if self.status == ChallengeStatus.ARCHIVED:
                self._reject(event, "challenge_not_archived")
            return
        if event not in self.status.valid_events():
            self._reject(event, "status_accepts_event")

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def open_defense_window(self, defense_deadline: Deadline, now: datetime) -> Challenge:
        """FILED -> AWAITING_DEFENSE, opening the defense deadline."""
        event = ChallengeEvent.OPEN_DEFENSE_WINDOW
        self.ensure_can(event)
        if defense_deadline.phase != DeadlinePhase.DEFENSE:
            raise ValueError("defense window requires a defense deadline")
        if self.active_deadline(DeadlinePhase.DEFENSE) is not None:
            self._reject(event, "single_active_defense_deadline")
        return self._evolve(
            now,
            status=ChallengeStatus.AWAITING_DEFENSE,
            deadlines=self.deadlines + (defense_deadline,),
        )

    def submit_defense(
        self,
        defense: str,
        now: datetime,
        judgment_deadline: Deadline,
        documents: tuple[DocumentRef, ...] = (),
    ) -> Challenge:
        """AWAITING_DEFENSE -> DEFENSE_SUBMITTED.

        Documents submitted with the defense are appended in the same write.

        Raises:
            InvalidTransitionError: Wrong status, defense already set, or
                no active defense deadline.
            DeadlineExpiredError: `now` is after the defense window.
        """
        event = ChallengeEvent.SUBMIT_DEFENSE
        self.ensure_defense_not_expired(now)
        self.ensure_can(event)
        if self.defense is not None or self.rulings:
            self._reject(event, "defense_not_already_set")
        if not defense.strip():
            self._reject(event, "defense_text_present")
        deadline = self.active_deadline(DeadlinePhase.DEFENSE)
        if deadline is None:
            self._reject(event, "active_defense_deadline")
        if not deadline.is_open_at(now):
            raise DeadlineExpiredError(
                challenge_id=self.id,
                phase=DeadlinePhase.DEFENSE.value,
                window_end=deadline.window_end,
                attempted_at=now,
            )
        self._check_judgment_deadline(judgment_deadline)
        self._check_new_documents(documents)
        deadlines = self._replace_deadline(deadline.mark_met(now))
        return self._evolve(
            now,
            status=ChallengeStatus.DEFENSE_SUBMITTED,
            defense=defense,
            defense_submitted_at=now,
            deadlines=deadlines + (judgment_deadline,),
            documents=self.documents + documents,
        )

    def ensure_defense_not_expired(self, now: datetime) -> None:
        """Reject a defense whose window the sweep already closed.

        Covers both the expired-but-not-yet-waived state and the waived
        state (DEFENSE_SUBMITTED with no defense).

        Raises:
            DeadlineExpiredError: No defense was recorded and the defense
                deadline of the current instance is EXPIRED.
        """
        if self.defense is not None or self.rulings:
            return
        deadline = self.current_deadline(DeadlinePhase.DEFENSE)
        if deadline is not None and deadline.status == DeadlineStatus.EXPIRED:
            raise DeadlineExpiredError(
                challenge_id=self.id,
                phase=DeadlinePhase.DEFENSE.value,
                window_end=deadline.window_end,
                attempted_at=now,
            )

    def waive_defense(
        self,
        deadline_id: int,
        now: datetime,
        judgment_deadline: Deadline,
    ) -> Challenge:
        """AWAITING_DEFENSE -> DEFENSE_SUBMITTED after the defense expired.

        The defense stays None; the case proceeds to judgment on the
        filing alone.

        Raises:
            InvalidTransitionError: Wrong status or the deadline is not the
                expired defense deadline.
        """
        event = ChallengeEvent.WAIVE_DEFENSE
        self.ensure_can(event)
        deadline = self.deadline_by_id(deadline_id)
        if (
            deadline is None
            or deadline.phase != DeadlinePhase.DEFENSE
            or deadline.status != DeadlineStatus.EXPIRED
        ):
            self._reject(event, "defense_deadline_expired")
        if self.defense is not None:
            self._reject(event, "defense_not_recorded")
        self._check_judgment_deadline(judgment_deadline)
        return self._evolve(
            now,
            status=ChallengeStatus.DEFENSE_SUBMITTED,
            deadlines=self.deadlines + (judgment_deadline,),
        )

    def begin_judgment(self, rapporteur_id: int, now: datetime) -> Challenge:
        """DEFENSE_SUBMITTED -> UNDER_JUDGMENT with a rapporteur assigned."""
        self.ensure_can(ChallengeEvent.BEGIN_JUDGMENT)
        return self._evolve(
            now,
            status=ChallengeStatus.UNDER_JUDGMENT,
            rapporteur_id=rapporteur_id,
        )

    def render_ruling(
        self,
        *,
        outcome: RulingOutcome,
        reasoning: str,
        judge_ref: int,
        appealable: bool,
        now: datetime,
        appeal_deadline: Deadline | None,
        penalty: str | None = None,
    ) -> Challenge:
        """DEFENSE_SUBMITTED|UNDER_JUDGMENT -> UPHELD|DENIED.

        The judgment deadline of the current instance is marked MET when
        the ruling arrives inside its window. A ruling after the window is
        still accepted (the commission cannot lose jurisdiction by its own
        delay) and is recorded with `late=True`.

        Raises:
            InvalidTransitionError: Wrong status, a ruling already exists for
                this instance, or no judgment deadline was opened.
        """
        event = ChallengeEvent.RENDER_RULING
        self.ensure_can(event)
        if self.ruling is not None:
            self._reject(event, "single_ruling_per_instance")
        if not reasoning.strip():
            self._reject(event, "ruling_reasoning_present")
        if appealable != (appeal_deadline is not None):
            raise ValueError("appealable rulings require exactly one appeal deadline")
        if appeal_deadline is not None and (
            appeal_deadline.phase != DeadlinePhase.APPEAL
            or appeal_deadline.instance != self.instance
        ):
            raise ValueError("appeal deadline must be for the current instance")

        judgment = self.current_deadline(DeadlinePhase.JUDGMENT)
        if judgment is None:
            self._reject(event, "judgment_deadline_opened")

        late = False
        deadlines = self.deadlines
        if judgment.is_open_at(now):
            deadlines = self._replace_deadline(judgment.mark_met(now))
        elif judgment.is_overdue(now):
            deadlines = self._replace_deadline(judgment.mark_expired(now))
            late = True
        elif judgment.status == DeadlineStatus.EXPIRED:
            late = True

        ruling = Ruling(
            instance=self.instance,
            outcome=outcome,
            reasoning=reasoning,
            judge_ref=judge_ref,
            judged_at=now,
            appealable=appealable,
            penalty=penalty,
            late=late,
        )
        if appeal_deadline is not None:
            deadlines = deadlines + (appeal_deadline,)
        return self._evolve(
            now,
            status=outcome.to_status(),
            rulings=self.rulings + (ruling,),
            deadlines=deadlines,
        )

    def file_appeal(
        self,
        *,
        appellant_id: int,
        appellant_role: AppellantRole,
        reasoning: str,
        now: datetime,
        judgment_deadline: Deadline,
    ) -> Challenge:
        """UPHELD|DENIED -> UNDER_JUDGMENT at the next instance.

        The previous ruling stays in `rulings`; the appeal deadline is
        marked MET and a judgment deadline for the new instance opens.

        Raises:
            InvalidTransitionError: Wrong status or the ruling is not
                appealable.
            DeadlineExpiredError: The appeal window has closed.
        """
        event = ChallengeEvent.FILE_APPEAL
        self.ensure_can(event)
        ruling = self.ruling
        if ruling is None or not ruling.appealable:
            self._reject(event, "ruling_appealable")
        if not reasoning.strip():
            self._reject(event, "appeal_reasoning_present")
        appeal_deadline = self.current_deadline(DeadlinePhase.APPEAL)
        if appeal_deadline is None:
            self._reject(event, "appeal_window_opened")
        if appeal_deadline.status == DeadlineStatus.MET:
            self._reject(event, "appeal_not_already_filed")
        if not appeal_deadline.is_open_at(now):
            raise DeadlineExpiredError(
                challenge_id=self.id,
                phase=DeadlinePhase.APPEAL.value,
                window_end=appeal_deadline.window_end,
                attempted_at=now,
            )
        next_instance = self.instance + 1
        if (
            judgment_deadline.phase != DeadlinePhase.JUDGMENT
            or judgment_deadline.instance != next_instance
        ):
            raise ValueError("appeal requires a judgment deadline for the next instance")

        appeal = Appeal(
            from_instance=self.instance,
            appellant_id=appellant_id,
            appellant_role=appellant_role,
            reasoning=reasoning,
            filed_at=now,
        )
        deadlines = self._replace_deadline(appeal_deadline.mark_met(now))
        return self._evolve(
            now,
            status=ChallengeStatus.UNDER_JUDGMENT,
            instance=next_instance,
            rapporteur_id=None,
            appeals=self.appeals + (appeal,),
            deadlines=deadlines + (judgment_deadline,),
        )

    def archive(self, now: datetime) -> Challenge:
        """UPHELD|DENIED -> ARCHIVED.

        Allowed when the ruling is not appealable, or when its appeal window
        has elapsed. An appeal deadline still marked active but already past
        its window is expired as part of the archive.

        Raises:
            InvalidTransitionError: Wrong status or the appeal window is open.
        """
        event = ChallengeEvent.ARCHIVE
        self.ensure_can(event)
        ruling = self.ruling
        deadlines = self.deadlines
        if ruling is not None and ruling.appealable:
            appeal_deadline = self.current_deadline(DeadlinePhase.APPEAL)
            if appeal_deadline is not None and appeal_deadline.is_overdue(now):
                deadlines = self._replace_deadline(appeal_deadline.mark_expired(now))
            elif (
                appeal_deadline is None
                or appeal_deadline.status != DeadlineStatus.EXPIRED
            ):
                self._reject(event, "appeal_window_elapsed")
        return self._evolve(
            now,
            status=ChallengeStatus.ARCHIVED,
            deadlines=deadlines,
            archived_at=now,
        )

    def expire_deadline(self, deadline_id: int, now: datetime) -> Challenge:
        """Mark an overdue active deadline EXPIRED.

        Raises:
            DeadlineNotFoundError: Unknown deadline.
            ValueError: The deadline is not active or not yet overdue.
        """
        deadline = self.deadline_by_id(deadline_id)
        if deadline is None:
            raise DeadlineNotFoundError(deadline_id)
        if not deadline.is_overdue(now):
            raise ValueError(f"deadline {deadline_id} is not overdue")
        return self._evolve(
            now, deadlines=self._replace_deadline(deadline.mark_expired(now))
        )

    def extend_deadline(
        self, deadline_id: int, new_window_end: datetime, now: datetime
    ) -> Challenge:
        """Extend an active deadline once.

        Raises:
            DeadlineNotFoundError: Unknown deadline.
            NotExtendableError: Phase not extendable, already extended, or
                not active.
            DeadlineExpiredError: The window has already passed.
        """
        deadline = self.check_extendable(deadline_id, now)
        return self._evolve(
            now,
            deadlines=self._replace_deadline(deadline.with_extension(new_window_end)),
        )

    def check_extendable(self, deadline_id: int, now: datetime) -> Deadline:
        """Return the deadline if it may be extended at `now`.

        Raises:
            InvalidTransitionError: The challenge is archived.
            DeadlineNotFoundError: Unknown deadline.
            NotExtendableError: Phase not extendable, already extended, or
                not active.
            DeadlineExpiredError: The window has already passed.
        """
        self.ensure_can(ChallengeEvent.EXTEND_DEADLINE)
        deadline = self.deadline_by_id(deadline_id)
        if deadline is None:
            raise DeadlineNotFoundError(deadline_id)
        if not deadline.extendable:
            raise NotExtendableError(deadline_id, "phase_not_extendable")
        if deadline.extended:
            raise NotExtendableError(deadline_id, "already_extended")
        if not deadline.is_active:
            raise NotExtendableError(deadline_id, f"deadline_{deadline.status.value}")
        if deadline.is_overdue(now):
            raise DeadlineExpiredError(
                challenge_id=self.id,
                phase=deadline.phase.value,
                window_end=deadline.window_end,
                attempted_at=now,
            )
        return deadline

    def attach_document(self, document: DocumentRef, now: datetime) -> Challenge:
        """Append a document reference to the case file."""
        self.ensure_can(ChallengeEvent.ATTACH_DOCUMENT)
        self._check_new_documents((document,))
        return self._evolve(now, documents=self.documents + (document,))

    def remove_document(
        self, document_id: int, removed_by: int, now: datetime
    ) -> Challenge:
        """Tombstone a document. Removing a removed document is a no-op.

        Raises:
            DocumentNotFoundError: Unknown document.
        """
        self.ensure_can(ChallengeEvent.REMOVE_DOCUMENT)
        for index, document in enumerate(self.documents):
            if document.id == document_id:
                if document.is_removed:
                    return self
                tombstoned = replace(document, removed_at=now, removed_by=removed_by)
                documents = (
                    self.documents[:index] + (tombstoned,) + self.documents[index + 1 :]
                )
                return self._evolve(now, documents=documents)
        raise DocumentNotFoundError(self.id, document_id)

    def next_document_id(self) -> int:
        return len(self.documents) + 1

    def record_request(self, request_key: str | None) -> Challenge:
        """Remember an idempotency key within the same write.

        Does not bump the version: it is always applied to a challenge that
        a transition has just produced.
        """
        if request_key is None:
            return self
        return replace(self, applied_requests=self.applied_requests | {request_key})

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _check_judgment_deadline(self, judgment_deadline: Deadline) -> None:
        if (
            judgment_deadline.phase != DeadlinePhase.JUDGMENT
            or judgment_deadline.instance != self.instance
        ):
            raise ValueError("judgment deadline must be for the current instance")

    def _check_new_documents(self, documents: tuple[DocumentRef, ...]) -> None:
        expected = self.next_document_id()
        for offset, document in enumerate(documents):
            if document.id != expected + offset:
                raise ValueError(
                    f"document id must be {expected + offset}, got {document.id}"
                )

    def _replace_deadline(self, updated: Deadline) -> tuple[Deadline, ...]:
        return tuple(updated if d.id == updated.id else d for d in self.deadlines)

    def _evolve(self, now: datetime, **changes: object) -> Challenge:
        return replace(
            self,
            updated_at=max(self.updated_at, now),
            version=self.version + 1,
            **changes,
        )

    def _reject(self, event: ChallengeEvent, guard: str) -> NoReturn:
        raise InvalidTransitionError(
            challenge_id=self.id,
            current_status=self.status,
            event=event,
            guard=guard,
        )
