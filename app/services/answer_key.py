# app/services/answer_key.py
import logging
from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Sequence, Tuple

from ..schemas.test_schemas import QuestionType, is_choice_bearing

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VersionQuestionView:
    """One question of a persisted version, with its choice ids in version order."""
    question_id: int
    question_order: int
    question_type: QuestionType
    choice_ids: Tuple[Optional[int], ...] = ()  # None marks a deleted choice


@dataclass(frozen=True)
class CorrectAnswerLink:
    question_id: int
    answer_choice_id: Optional[int] = None
    answer_text: Optional[str] = None
    choice_text: Optional[str] = None  # content of the linked choice, if any

    @property
    def is_empty(self) -> bool:
        return self.answer_choice_id is None and self.answer_text is None


@dataclass(frozen=True)
class KeyEntry:
    question_order: int
    question_id: int
    correct_letter: Optional[str] = None
    correct_text: Optional[str] = None


@dataclass
class AnswerKey:
    entries: List[KeyEntry] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def position_to_letter(index: int) -> str:
    """0 -> A, 25 -> Z, 26 -> AA."""
    if index < 0:
        raise ValueError("position must be non-negative")
    letters = ""
    n = index + 1
    while n:
        n, rem = divmod(n - 1, 26)
        letters = chr(ord("A") + rem) + letters
    return letters


def build_answer_key(
    version_questions: Sequence[VersionQuestionView],
    correct_answers: Mapping[int, CorrectAnswerLink],
) -> AnswerKey:
    """Compute the answer key of one version against the canonical answers.

    Questions without a recorded answer are left out silently. Questions whose
    answer cannot be located in the version's choice order are left out with a
    warning; neither case fails the whole key.
    """
    key = AnswerKey()

    for vq in sorted(version_questions, key=lambda q: q.question_order):
        link = correct_answers.get(vq.question_id)
        if link is None or link.is_empty:
            continue

        if not is_choice_bearing(vq.question_type):
            text = link.answer_text if link.answer_text is not None else link.choice_text
            if text is None:
                key.warnings.append(
                    f"Question {vq.question_order} (id {vq.question_id}): linked answer choice no longer exists"
                )
                continue
            key.entries.append(KeyEntry(vq.question_order, vq.question_id, correct_text=text))
            continue

        if link.answer_choice_id is None or link.answer_choice_id not in vq.choice_ids:
            key.warnings.append(
                f"Question {vq.question_order} (id {vq.question_id}): correct choice not found in this version"
            )
            continue
        position = vq.choice_ids.index(link.answer_choice_id)
        key.entries.append(KeyEntry(vq.question_order, vq.question_id, correct_letter=position_to_letter(position)))

    for warning in key.warnings:
        logger.warning(warning)
    return key
