"""
In-progress checklist answers for one operator session.

Keyed by question id. Two interaction variants exist:

* ``three_state``: tapping cycles pass -> fail -> cleared, comments optional.
* ``toggle_comment``: same cycle, but entering fail reveals a comment that must
  be filled before the checklist can be submitted.

In both variants a comment only ever belongs to a failed item; any other status
clears it.
"""
import uuid
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Union

from ..schemas.checklist import ResponseStatus, ResponseVariant


QuestionKey = Union[uuid.UUID, str]

# Tap order for a single-button checklist item
_CYCLE = {
    None: ResponseStatus.pass_status,
    ResponseStatus.pass_status: ResponseStatus.fail,
    ResponseStatus.fail: None,
    ResponseStatus.na: None,
}


@dataclass
class ResponseState:
    status: Optional[ResponseStatus] = None
    comment: str = ""

    @property
    def answered(self) -> bool:
        return self.status is not None


def _key(question_id: QuestionKey) -> str:
    return str(question_id)


class ResponseAccumulator:
    def __init__(self, variant: Union[ResponseVariant, str] = ResponseVariant.toggle_comment):
        self.variant = ResponseVariant(variant)
        self._responses: Dict[str, ResponseState] = {}

    @property
    def comments_required(self) -> bool:
        return self.variant == ResponseVariant.toggle_comment

    def get(self, question_id: QuestionKey) -> ResponseState:
        state = self._responses.get(_key(question_id))
        return ResponseState(state.status, state.comment) if state else ResponseState()

    def status_of(self, question_id: QuestionKey) -> Optional[ResponseStatus]:
        return self.get(question_id).status

    def set_status(self, question_id: QuestionKey, status: Optional[Union[ResponseStatus, str]]) -> ResponseState:
        key = _key(question_id)
        if status is None:
            self._responses.pop(key, None)
            return ResponseState()
        status = ResponseStatus(status)
        previous = self._responses.get(key)
        comment = previous.comment if previous and status == ResponseStatus.fail else ""
        state = ResponseState(status, comment)
        self._responses[key] = state
        return ResponseState(state.status, state.comment)

    def advance(self, question_id: QuestionKey) -> ResponseState:
        """Single-tap transition: unanswered -> pass -> fail -> unanswered."""
        return self.set_status(question_id, _CYCLE[self.status_of(question_id)])

    def toggle(self, question_id: QuestionKey, status: Union[ResponseStatus, str]) -> ResponseState:
        """Three-button item: picking the current status again clears it."""
        status = ResponseStatus(status)
        if self.status_of(question_id) == status:
            return self.set_status(question_id, None)
        return self.set_status(question_id, status)

    def set_comment(self, question_id: QuestionKey, comment: str) -> ResponseState:
        state = self._responses.get(_key(question_id))
        if state is None or state.status != ResponseStatus.fail:
            raise ValueError("Comments can only be attached to failed items")
        state.comment = comment or ""
        return ResponseState(state.status, state.comment)

    def reset(self) -> None:
        self._responses.clear()

    # Validation predicates
    def missing(self, question_ids: Iterable[QuestionKey]) -> List[str]:
        return [_key(q) for q in question_ids if not self.get(q).answered]

    def failed(self, question_ids: Iterable[QuestionKey]) -> List[str]:
        return [_key(q) for q in question_ids if self.status_of(q) == ResponseStatus.fail]

    def failed_without_comment(self, question_ids: Iterable[QuestionKey]) -> List[str]:
        if not self.comments_required:
            return []
        return [q for q in self.failed(question_ids) if not self.get(q).comment.strip()]

    def all_answered(self, question_ids: Iterable[QuestionKey]) -> bool:
        return not self.missing(question_ids)

    def all_failed_have_comments(self, question_ids: Iterable[QuestionKey]) -> bool:
        return not self.failed_without_comment(question_ids)

    def is_complete(self, question_ids: Iterable[QuestionKey]) -> bool:
        question_ids = list(question_ids)
        return self.all_answered(question_ids) and self.all_failed_have_comments(question_ids)

    @property
    def answered_count(self) -> int:
        return len(self._responses)

    @property
    def failed_count(self) -> int:
        return sum(1 for s in self._responses.values() if s.status == ResponseStatus.fail)

    def to_payload(self, question_ids: Iterable[QuestionKey]) -> List[dict]:
        payload = []
        for q in question_ids:
            state = self.get(q)
            payload.append({
                "question_id": _key(q),
                "status": state.status.value if state.status else None,
                "comment": state.comment.strip() or None,
            })
        return payload
