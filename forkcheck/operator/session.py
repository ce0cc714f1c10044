"""
One operator's checklist, from badge entry to a successful submit.

The session object replaces the ambient UI state of a device: it holds the
selected forklift, the questions that apply to it, the answers collected so far
and the badge lookup. It is not meant to be shared between devices.
"""
import uuid
from typing import List, Optional

import structlog

from ..errors import (
    BadgeNotAuthorizedError,
    ChecklistValidationError,
    SubmissionInProgressError,
)
from ..schemas.checklist import (
    BadgeGate,
    ChecklistConfigResponse,
    ChecklistSubmitResponse,
    ForkliftOption,
    QuestionItem,
)
from ..services.responses import ResponseAccumulator
from .badge_watcher import BadgeState, BadgeWatcher
from .client import ChecklistClient


logger = structlog.get_logger(__name__)


class ChecklistSession:
    def __init__(self, client: ChecklistClient, badge_delay: Optional[float] = None):
        self.client = client
        self.config: Optional[ChecklistConfigResponse] = None
        self.forklifts: List[ForkliftOption] = []
        self.forklift: Optional[ForkliftOption] = None
        self.questions: List[QuestionItem] = []
        self.responses = ResponseAccumulator()
        self.badge_watcher = BadgeWatcher(client.validate_badge, delay=badge_delay)
        self._badge_delay = badge_delay
        self._submitting = False

    @property
    def question_ids(self) -> List[uuid.UUID]:
        return [q.id for q in self.questions]

    @property
    def badge(self) -> str:
        return self.badge_watcher.badge

    @property
    def submitting(self) -> bool:
        return self._submitting

    async def load(self) -> None:
        """Fetch behaviour switches and forklifts, then pre-select the default unit"""
        self.config = await self.client.get_config()
        self.responses = ResponseAccumulator(self.config.response_variant)
        delay = self._badge_delay
        if delay is None:
            delay = self.config.badge_debounce_ms / 1000.0
        self.badge_watcher = BadgeWatcher(
            self.client.validate_badge,
            delay=delay,
            min_length=self.config.badge_min_length,
        )

        self.forklifts = await self.client.list_forklifts()
        default = next((f for f in self.forklifts if f.is_default), None)
        if default is None and self.forklifts:
            default = self.forklifts[0]
        if default is not None:
            await self.select_equipment(default.id)
        else:
            self.forklift = None
            self.questions = []

    async def select_equipment(self, forklift_id: uuid.UUID) -> None:
        """
        Switching units discards answers, since the question set may differ.

        Nothing changes until the new unit's questions have loaded.
        """
        unit = next((f for f in self.forklifts if f.id == forklift_id), None)
        if unit is None:
            raise ValueError(f"Unknown forklift {forklift_id}")
        questions = await self.client.list_questions(unit.id)
        self.forklift = unit
        self.questions = questions
        self.responses.reset()

    def set_badge(self, badge: str) -> None:
        self.badge_watcher.update(badge)

    def _badge_required(self) -> bool:
        return self.config is None or self.config.badge_gate == BadgeGate.required

    def validation_error(self) -> Optional[str]:
        """First reason the checklist cannot be submitted yet, or None"""
        if not self.badge.strip():
            return "Please enter your badge number"
        if self.forklift is None:
            return "Please select a forklift"
        if not self.questions:
            return "No checklist items are configured for this forklift"
        if not self.responses.all_answered(self.question_ids):
            return "Please answer all checklist items"
        if not self.responses.all_failed_have_comments(self.question_ids):
            return "Please provide comments for all failed items"
        return None

    @property
    def can_submit(self) -> bool:
        if self._submitting or self.validation_error():
            return False
        if self._badge_required():
            return self.badge_watcher.state == BadgeState.valid
        return True

    async def submit(self) -> ChecklistSubmitResponse:
        """
        Submit the current answers.

        Only one submit may be in flight. Answers and badge are cleared after
        success only; on any error the operator keeps what they entered.
        """
        if self._submitting:
            raise SubmissionInProgressError("A submission is already in progress")
        self._submitting = True
        try:
            error = self.validation_error()
            if error:
                raise ChecklistValidationError(error)
            if self.badge_watcher.state == BadgeState.checking:
                await self.badge_watcher.wait()
            if self._badge_required() and self.badge_watcher.state != BadgeState.valid:
                raise BadgeNotAuthorizedError("Badge number not authorized")

            payload = {
                "badge_number": self.badge,
                "forklift_id": str(self.forklift.id),
                "responses": self.responses.to_payload(self.question_ids),
            }
            result = await self.client.submit(payload)
        finally:
            self._submitting = False

        logger.info(
            "checklist_session_submitted",
            submission_id=str(result.submission.id),
            has_failures=result.submission.has_failures,
        )
        self.responses.reset()
        self.badge_watcher.update("")
        return result
