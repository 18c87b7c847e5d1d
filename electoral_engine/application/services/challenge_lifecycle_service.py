"""Challenge lifecycle service: files challenges and applies transitions.

Every transition follows the same read-decide-write cycle:

1. Load the challenge.
2. If the request's idempotency key was already applied, return the
   challenge as stored.
3. Decide the new state through the domain model (guards raise).
4. Commit with `save(challenge, expected_version)`.
5. On ConcurrencyConflictError, start over, up to
   `transition_max_retries` attempts.
6. After the commit, publish events.

System transitions triggered by expired deadlines arrive through
`on_deadline_expired`, which is safe to call any number of times for the
same event.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime

import structlog

from electoral_engine.application.dtos.requests import (
    ArchiveChallengeRequest,
    AttachDocumentRequest,
    BeginJudgmentRequest,
    DocumentPayload,
    FileAppealRequest,
    FileChallengeRequest,
    RemoveDocumentRequest,
    RenderRulingRequest,
    SubmitDefenseRequest,
)
from electoral_engine.application.ports.challenge_repository import (
    ChallengeRepositoryProtocol,
)
from electoral_engine.application.ports.election_registry import (
    ElectionRegistryProtocol,
)
from electoral_engine.application.ports.event_publisher import EventPublisherProtocol
from electoral_engine.application.ports.target_directory import (
    TargetDirectoryProtocol,
)
from electoral_engine.application.ports.time_authority import TimeAuthorityProtocol
from electoral_engine.application.services.base import LoggingMixin, call_dependency
from electoral_engine.application.services.deadline_engine_service import (
    DeadlineEngineService,
)
from electoral_engine.config.engine_config import (
    DEFAULT_LIFECYCLE_CONFIG,
    LifecycleConfig,
)
from electoral_engine.domain.errors import (
    ChallengeNotFoundError,
    ChallengeValidationError,
    ConcurrencyConflictError,
    DeadlineExpiredError,
    ElectionNotFoundError,
    InvalidTransitionError,
    TargetNotFoundError,
)
from electoral_engine.domain.events import (
    ChallengeFiledEvent,
    ChallengeTransitionedEvent,
    DeadlineExpiredEvent,
    DocumentAttachedEvent,
    DocumentRemovedEvent,
    DomainEvent,
)
from electoral_engine.domain.exceptions import ElectoralEngineError
from electoral_engine.domain.models.challenge import (
    AppellantRole,
    Challenge,
    ChallengeEvent,
    ChallengeStatus,
    DocumentKind,
    DocumentRef,
    Party,
    TargetRef,
    format_protocol_number,
)
from electoral_engine.domain.models.deadline import (
    Deadline,
    DeadlinePhase,
    DeadlineStatus,
)
from electoral_engine.domain.models.election import ElectionView, TargetView
from electoral_engine.infrastructure.monitoring.metrics import EngineMetrics

Decision = Callable[[Challenge, datetime], Awaitable[Challenge]]

FILE_OPERATION = "file_challenge"


def _request_key(operation: str, idempotency_key: str | None) -> str | None:
    """Namespace a client idempotency key by operation."""
    if idempotency_key is None:
        return None
    return f"{operation}:{idempotency_key}"


@dataclass(frozen=True)
class TransitionOutcome:
    """What a transition attempt produced.

    Attributes:
        previous: The challenge as read before deciding.
        challenge: The challenge after the attempt.
        applied: False for replays and no-ops (nothing was written).
        occurred_at: When the transition was decided.
    """

    previous: Challenge
    challenge: Challenge
    applied: bool
    occurred_at: datetime


class ChallengeLifecycleService(LoggingMixin):
    """Owns every state change of a challenge.

    Example:
        >>> challenge = await lifecycle.file_challenge(request)
        >>> challenge.status
        <ChallengeStatus.AWAITING_DEFENSE: 'awaiting_defense'>
    """

    def __init__(
        self,
        repository: ChallengeRepositoryProtocol,
        deadline_engine: DeadlineEngineService,
        election_registry: ElectionRegistryProtocol,
        target_directory: TargetDirectoryProtocol,
        publisher: EventPublisherProtocol,
        time_authority: TimeAuthorityProtocol,
        config: LifecycleConfig = DEFAULT_LIFECYCLE_CONFIG,
        metrics: EngineMetrics | None = None,
    ) -> None:
        """Initialize the lifecycle service.

        Args:
            repository: Challenge store.
            deadline_engine: Opens deadline windows.
            election_registry: Read-only election lookups.
            target_directory: Resolves challenged entities.
            publisher: Outbound event publisher.
            time_authority: Source of "now".
            config: Max instance and retry bound.
            metrics: Optional metrics collector.
        """
        self._repository = repository
        self._engine = deadline_engine
        self._elections = election_registry
        self._targets = target_directory
        self._publisher = publisher
        self._time = time_authority
        self._config = config
        self._metrics = metrics if metrics is not None else EngineMetrics()
        self._init_logger()

    # ------------------------------------------------------------------
    # Filing
    # ------------------------------------------------------------------

    async def file_challenge(self, request: FileChallengeRequest) -> Challenge:
        """File a challenge and open its defense window.

        The challenge is stored once, already AWAITING_DEFENSE, with a met
        filing deadline and an active defense deadline.

        Raises:
            ElectionNotFoundError: Unknown election.
            DeadlineExpiredError: The election's filing window has closed.
            ChallengeValidationError: Filing window not yet open, or the
                target belongs to another election.
            TargetNotFoundError: The challenged entity does not exist.
            DependencyUnavailableError: A collaborator failed.
        """
        log = self._log_operation(
            FILE_OPERATION,
            election_id=request.election_id,
            challenge_type=request.type.value,
            target_id=request.target_id,
            filer_id=request.filer_id,
        )
        request_key = _request_key(FILE_OPERATION, request.idempotency_key)
        if request_key is not None:
            existing = await self._repository.find_by_request_key(request_key)
            if existing is not None:
                log.info("request_replayed", challenge_id=existing.id)
                return existing

        target_ref = TargetRef(kind=request.type, id=request.target_id)
        try:
            election = await self._require_election(request.election_id)
            now = self._time.now()
            self._check_filing_window(election, now)
            target = await self._require_target(target_ref)
            if target.election_id != election.id:
                raise ChallengeValidationError(
                    f"{target_ref.kind.value} {target_ref.id} does not belong to "
                    f"election {election.id}",
                    field="target_id",
                )
            defense_deadline = await self._engine.open_deadline(
                DeadlinePhase.DEFENSE, now, instance=1
            )
        except ElectoralEngineError as e:
            self._record_rejection(log, FILE_OPERATION, e)
            raise

        challenge_id = await self._repository.next_challenge_id()
        filing_deadline = Deadline(
            id=await self._repository.next_deadline_id(),
            phase=DeadlinePhase.FILING,
            window_start=election.challenge_filing_starts_at or now,
            window_end=election.challenge_filing_ends_at or now,
            status=DeadlineStatus.MET,
            closed_at=now,
        )
        filed = Challenge(
            id=challenge_id,
            protocol_number=format_protocol_number(challenge_id, now),
            election_id=election.id,
            type=request.type,
            target=target_ref,
            filer=Party(
                id=request.filer_id,
                name=request.filer_name,
                kind=request.filer_kind,
            ),
            grounds=request.grounds,
            reasoning=request.reasoning,
            created_at=now,
            updated_at=now,
            documents=self._document_refs(
                request.documents, 1, DocumentKind.INITIAL, request.filer_id, now
            ),
            deadlines=(filing_deadline,),
            version=0,
        )
        challenge = filed.open_defense_window(defense_deadline, now).record_request(
            request_key
        )

        stored = await self._repository.add(challenge)
        if stored.id != challenge.id:
            log.info("request_replayed", challenge_id=stored.id)
            return stored

        self._metrics.record_transition(ChallengeEvent.OPEN_DEFENSE_WINDOW.value)
        log.info(
            "challenge_filed",
            challenge_id=stored.id,
            protocol_number=stored.protocol_number,
            defense_window_end=defense_deadline.window_end.isoformat(),
        )
        await self._publish(
            ChallengeFiledEvent(
                challenge_id=stored.id,
                protocol_number=stored.protocol_number,
                election_id=stored.election_id,
                challenge_type=stored.type.value,
                target_id=stored.target.id,
                filer_id=stored.filer.id,
                filed_at=now,
            )
        )
        await self._publish(
            self._transitioned_event(
                ChallengeEvent.OPEN_DEFENSE_WINDOW, filed, stored, now, request.filer_id
            )
        )
        return stored

    # ------------------------------------------------------------------
    # Transitions requested by parties
    # ------------------------------------------------------------------

    async def submit_defense(self, request: SubmitDefenseRequest) -> Challenge:
        """Record the defense and open the judgment window.

        Re-submitting the same text after it was recorded returns the
        challenge unchanged.

        Raises:
            InvalidTransitionError: Not awaiting a defense.
            DeadlineExpiredError: The defense window has closed.
        """
        event = ChallengeEvent.SUBMIT_DEFENSE

        async def decide(current: Challenge, now: datetime) -> Challenge:
            if (
                current.status != ChallengeStatus.AWAITING_DEFENSE
                and current.defense == request.defense
            ):
                return current
            current.ensure_defense_not_expired(now)
            current.ensure_can(event)
            judgment = await self._engine.open_deadline(
                DeadlinePhase.JUDGMENT, now, instance=current.instance
            )
            documents = self._document_refs(
                request.documents,
                current.next_document_id(),
                DocumentKind.DEFENSE,
                request.responder_id,
                now,
            )
            return current.submit_defense(request.defense, now, judgment, documents)

        outcome = await self._transition(
            request.challenge_id,
            event,
            request.idempotency_key,
            request.responder_id,
            decide,
        )
        if outcome.applied:
            await self._publish_attachments(outcome, request.responder_id)
        return outcome.challenge

    async def begin_judgment(self, request: BeginJudgmentRequest) -> Challenge:
        """Assign the rapporteur and move to UNDER_JUDGMENT."""

        async def decide(current: Challenge, now: datetime) -> Challenge:
            return current.begin_judgment(request.rapporteur_id, now)

        outcome = await self._transition(
            request.challenge_id,
            ChallengeEvent.BEGIN_JUDGMENT,
            request.idempotency_key,
            request.rapporteur_id,
            decide,
        )
        return outcome.challenge

    async def render_ruling(self, request: RenderRulingRequest) -> Challenge:
        """Render the ruling of the current instance.

        The ruling is appealable only if requested and the current instance
        is below `max_instance`; an appeal window opens for it.

        Raises:
            InvalidTransitionError: Not awaiting a ruling, or already ruled.
        """
        event = ChallengeEvent.RENDER_RULING

        async def decide(current: Challenge, now: datetime) -> Challenge:
            current.ensure_can(event)
            appealable = request.appealable and current.instance < self._config.max_instance
            appeal_deadline = (
                await self._engine.open_deadline(
                    DeadlinePhase.APPEAL, now, instance=current.instance
                )
                if appealable
                else None
            )
            return current.render_ruling(
                outcome=request.outcome,
                reasoning=request.reasoning,
                judge_ref=request.judge_id,
                appealable=appealable,
                now=now,
                appeal_deadline=appeal_deadline,
                penalty=request.penalty,
            )

        outcome = await self._transition(
            request.challenge_id,
            event,
            request.idempotency_key,
            request.judge_id,
            decide,
        )
        if outcome.applied:
            ruling = outcome.challenge.ruling
            if ruling is not None and ruling.late:
                self._log_operation(
                    event.value, challenge_id=request.challenge_id
                ).warning("ruling_rendered_late", instance=ruling.instance)
        return outcome.challenge

    async def file_appeal(self, request: FileAppealRequest) -> Challenge:
        """Appeal the current ruling to the next instance.

        Only the filer or the target's responsible party may appeal.

        Raises:
            InvalidTransitionError: Not ruled, not appealable, or the
                appellant is not a party to the case.
            DeadlineExpiredError: The appeal window has closed.
        """
        event = ChallengeEvent.FILE_APPEAL

        async def decide(current: Challenge, now: datetime) -> Challenge:
            current.ensure_can(event)
            role = await self._appellant_role(current, request.appellant_id)
            judgment = await self._engine.open_deadline(
                DeadlinePhase.JUDGMENT, now, instance=current.instance + 1
            )
            return current.file_appeal(
                appellant_id=request.appellant_id,
                appellant_role=role,
                reasoning=request.reasoning,
                now=now,
                judgment_deadline=judgment,
            )

        outcome = await self._transition(
            request.challenge_id,
            event,
            request.idempotency_key,
            request.appellant_id,
            decide,
        )
        return outcome.challenge

    async def archive_challenge(self, request: ArchiveChallengeRequest) -> Challenge:
        """Archive a ruled challenge whose appeal window is closed."""

        async def decide(current: Challenge, now: datetime) -> Challenge:
            return current.archive(now)

        outcome = await self._transition(
            request.challenge_id,
            ChallengeEvent.ARCHIVE,
            request.idempotency_key,
            request.actor_id,
            decide,
        )
        return outcome.challenge

    async def attach_document(self, request: AttachDocumentRequest) -> Challenge:
        """Append a document reference to the case file."""

        async def decide(current: Challenge, now: datetime) -> Challenge:
            (document,) = self._document_refs(
                (request.document,),
                current.next_document_id(),
                DocumentKind.OTHER,
                request.actor_id,
                now,
            )
            return current.attach_document(document, now)

        outcome = await self._transition(
            request.challenge_id,
            ChallengeEvent.ATTACH_DOCUMENT,
            request.idempotency_key,
            request.actor_id,
            decide,
        )
        if outcome.applied:
            await self._publish_attachments(outcome, request.actor_id)
        return outcome.challenge

    async def remove_document(self, request: RemoveDocumentRequest) -> Challenge:
        """Tombstone a document reference. Removing twice is a no-op."""

        async def decide(current: Challenge, now: datetime) -> Challenge:
            return current.remove_document(request.document_id, request.actor_id, now)

        outcome = await self._transition(
            request.challenge_id,
            ChallengeEvent.REMOVE_DOCUMENT,
            request.idempotency_key,
            request.actor_id,
            decide,
        )
        if outcome.applied:
            await self._publish(
                DocumentRemovedEvent(
                    challenge_id=outcome.challenge.id,
                    document_id=request.document_id,
                    removed_by=request.actor_id,
                    occurred_at=outcome.occurred_at,
                )
            )
        return outcome.challenge

    # ------------------------------------------------------------------
    # System transitions
    # ------------------------------------------------------------------

    async def on_deadline_expired(self, event: DeadlineExpiredEvent) -> None:
        """Apply the system transition for an expired deadline.

        - defense: the defense is waived and the judgment window opens.
        - appeal: the challenge is archived.
        - judgment: nothing changes; the overdue case is logged.

        Calling this again for an event already acted on is a no-op.
        """
        log = self._log_operation(
            "on_deadline_expired",
            challenge_id=event.challenge_id,
            deadline_id=event.deadline_id,
            phase=event.phase,
        )
        phase = DeadlinePhase(event.phase)

        if phase == DeadlinePhase.DEFENSE:

            async def waive(current: Challenge, now: datetime) -> Challenge:
                deadline = current.deadline_by_id(event.deadline_id)
                if (
                    current.status != ChallengeStatus.AWAITING_DEFENSE
                    or deadline is None
                    or deadline.status != DeadlineStatus.EXPIRED
                ):
                    return current
                judgment = await self._engine.open_deadline(
                    DeadlinePhase.JUDGMENT, now, instance=current.instance
                )
                return current.waive_defense(event.deadline_id, now, judgment)

            await self._transition(
                event.challenge_id, ChallengeEvent.WAIVE_DEFENSE, None, None, waive
            )
        elif phase == DeadlinePhase.APPEAL:

            async def archive(current: Challenge, now: datetime) -> Challenge:
                deadline = current.current_deadline(DeadlinePhase.APPEAL)
                if (
                    not current.status.is_ruled()
                    or deadline is None
                    or deadline.id != event.deadline_id
                    or deadline.status != DeadlineStatus.EXPIRED
                ):
                    return current
                return current.archive(now)

            await self._transition(
                event.challenge_id, ChallengeEvent.ARCHIVE, None, None, archive
            )
        elif phase == DeadlinePhase.JUDGMENT:
            log.warning(
                "judgment_deadline_overdue",
                instance=event.instance,
                window_end=event.window_end.isoformat(),
            )
        else:
            log.debug("deadline_expiry_ignored")

    # ------------------------------------------------------------------
    # Read-decide-write
    # ------------------------------------------------------------------

    async def _transition(
        self,
        challenge_id: int,
        event: ChallengeEvent,
        idempotency_key: str | None,
        actor_id: int | None,
        decide: Decision,
    ) -> TransitionOutcome:
        log = self._log_operation(
            event.value, challenge_id=challenge_id, actor_id=actor_id
        )
        request_key = _request_key(event.value, idempotency_key)
        conflict: ConcurrencyConflictError | None = None

        for attempt in range(1, self._config.transition_max_retries + 1):
            current = await self._load(challenge_id)
            if request_key is not None and current.has_applied(request_key):
                log.info("request_replayed", version=current.version)
                return TransitionOutcome(current, current, False, current.updated_at)

            now = self._time.now()
            try:
                updated = await decide(current, now)
            except ElectoralEngineError as e:
                self._record_rejection(log, event.value, e, status=current.status.value)
                raise
            if updated is current:
                log.info("transition_noop", status=current.status.value)
                return TransitionOutcome(current, current, False, now)

            try:
                saved = await self._repository.save(
                    updated.record_request(request_key),
                    expected_version=current.version,
                )
            except ConcurrencyConflictError as e:
                conflict = e
                self._metrics.record_conflict(event.value)
                log.info(
                    "transition_conflict",
                    attempt=attempt,
                    expected_version=current.version,
                )
                continue

            self._metrics.record_transition(event.value)
            log.info(
                "transition_applied",
                from_status=current.status.value,
                to_status=saved.status.value,
                instance=saved.instance,
                version=saved.version,
            )
            if saved.status != current.status or saved.instance != current.instance:
                await self._publish(
                    self._transitioned_event(event, current, saved, now, actor_id)
                )
            return TransitionOutcome(current, saved, True, now)

        if conflict is None:
            raise ValueError("transition_max_retries must be at least 1")
        self._record_rejection(log, event.value, conflict)
        raise conflict

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _load(self, challenge_id: int) -> Challenge:
        challenge = await self._repository.get(challenge_id)
        if challenge is None:
            raise ChallengeNotFoundError(challenge_id=challenge_id)
        return challenge

    async def _require_election(self, election_id: int) -> ElectionView:
        election = await call_dependency(
            "election_registry",
            "get_election",
            self._elections.get_election(election_id),
        )
        if election is None:
            raise ElectionNotFoundError(election_id)
        return election

    async def _require_target(self, ref: TargetRef) -> TargetView:
        target = await call_dependency(
            "target_directory", "resolve", self._targets.resolve(ref)
        )
        if target is None:
            raise TargetNotFoundError(ref.kind.value, ref.id)
        return target

    @staticmethod
    def _check_filing_window(election: ElectionView, now: datetime) -> None:
        starts_at = election.challenge_filing_starts_at
        ends_at = election.challenge_filing_ends_at
        if starts_at is not None and now < starts_at:
            raise ChallengeValidationError(
                f"challenge filing for election {election.id} opens at "
                f"{starts_at.isoformat()}",
                field="election_id",
            )
        if ends_at is not None and now > ends_at:
            raise DeadlineExpiredError(
                challenge_id=None,
                phase=DeadlinePhase.FILING.value,
                window_end=ends_at,
                attempted_at=now,
            )

    async def _appellant_role(
        self, challenge: Challenge, appellant_id: int
    ) -> AppellantRole:
        if appellant_id == challenge.filer.id:
            return AppellantRole.FILER
        target = await self._require_target(challenge.target)
        if appellant_id == target.responsible_party_id:
            return AppellantRole.RESPONDENT
        raise InvalidTransitionError(
            challenge_id=challenge.id,
            current_status=challenge.status,
            event=ChallengeEvent.FILE_APPEAL,
            guard="appellant_is_party",
        )

    @staticmethod
    def _document_refs(
        payloads: tuple[DocumentPayload, ...],
        first_id: int,
        default_kind: DocumentKind,
        added_by: int,
        now: datetime,
    ) -> tuple[DocumentRef, ...]:
        return tuple(
            DocumentRef(
                id=first_id + offset,
                kind=payload.kind or default_kind,
                name=payload.name,
                storage_handle=payload.storage_handle,
                size_bytes=payload.size_bytes,
                mime_type=payload.mime_type,
                added_at=now,
                added_by=added_by,
            )
            for offset, payload in enumerate(payloads)
        )

    async def _publish_attachments(
        self, outcome: TransitionOutcome, actor_id: int
    ) -> None:
        known = {d.id for d in outcome.previous.documents}
        for document in outcome.challenge.documents:
            if document.id in known:
                continue
            await self._publish(
                DocumentAttachedEvent(
                    challenge_id=outcome.challenge.id,
                    document_id=document.id,
                    kind=document.kind.value,
                    storage_handle=document.storage_handle,
                    added_by=actor_id,
                    occurred_at=outcome.occurred_at,
                )
            )

    @staticmethod
    def _transitioned_event(
        event: ChallengeEvent,
        before: Challenge,
        after: Challenge,
        now: datetime,
        actor_id: int | None,
    ) -> ChallengeTransitionedEvent:
        return ChallengeTransitionedEvent(
            challenge_id=after.id,
            event=event.value,
            from_status=before.status.value,
            to_status=after.status.value,
            instance=after.instance,
            version=after.version,
            occurred_at=now,
            actor_id=actor_id,
        )

    async def _publish(self, event: DomainEvent) -> None:
        await call_dependency("event_publisher", "publish", self._publisher.publish(event))

    def _record_rejection(
        self,
        log: structlog.BoundLogger,
        operation: str,
        error: ElectoralEngineError,
        **context: object,
    ) -> None:
        self._metrics.record_rejection(operation, type(error).__name__)
        log.warning(
            "operation_rejected",
            error=type(error).__name__,
            detail=str(error),
            **context,
        )
