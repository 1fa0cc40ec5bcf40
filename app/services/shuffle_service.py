# app/services/shuffle_service.py
"""Randomization of test versions.

Everything here is a pure function of its inputs plus a random source. Callers
may pass a ``random.Random`` instance as ``rng`` to get reproducible trials;
otherwise the ``random`` module's shared generator is used.
"""
import random
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple, TypeVar, Union

from ..schemas.test_schemas import QuestionType, is_choice_bearing
from .errors import PreconditionError

T = TypeVar("T")


@dataclass(frozen=True)
class BankChoice:
    id: int
    text: str = ""
    image_url: Optional[str] = None


@dataclass(frozen=True)
class BankQuestion:
    id: int
    question_type: QuestionType
    part: Optional[int] = None
    choices: Tuple[BankChoice, ...] = ()
    text: str = ""


@dataclass(frozen=True)
class OrderedChoice:
    choice: BankChoice
    choice_order: int


@dataclass(frozen=True)
class OrderedQuestion:
    question: BankQuestion
    question_order: int


@dataclass
class MaterializedVersion:
    questions: List[OrderedQuestion]
    choices_by_question: Dict[int, List[OrderedChoice]] = field(default_factory=dict)

    def choices_for(self, question_id: int) -> List[OrderedChoice]:
        return self.choices_by_question.get(question_id, [])


def fisher_yates_shuffle(items: Sequence[T], rng: Optional[random.Random] = None) -> List[T]:
    """Return a uniformly shuffled copy of ``items``. The input is never mutated."""
    randint = (rng or random).randint
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def random_subset(items: Sequence[T], k: int, rng: Optional[random.Random] = None) -> List[T]:
    """Draw a uniformly random ``k``-subset of ``items`` (in random order).

    Partial Fisher-Yates: only the first ``k`` slots are randomized, so large
    banks don't pay for a full shuffle just to take a prefix.
    """
    if k < 0:
        raise ValueError("k must be non-negative")
    pool = list(items)
    n = len(pool)
    if k >= n:
        return fisher_yates_shuffle(pool, rng)
    randint = (rng or random).randint
    for i in range(k):
        j = randint(i, n - 1)
        pool[i], pool[j] = pool[j], pool[i]
    return pool[:k]


@dataclass(frozen=True)
class Ungrouped:
    questions: Tuple[BankQuestion, ...]

    def groups(self) -> List[List[BankQuestion]]:
        return [list(self.questions)]


@dataclass(frozen=True)
class GroupedByPart:
    # (part label, members) pairs, already in presentation order
    parts: Tuple[Tuple[Optional[int], Tuple[BankQuestion, ...]], ...]

    def groups(self) -> List[List[BankQuestion]]:
        return [list(members) for _, members in self.parts]


Partitioning = Union[Ungrouped, GroupedByPart]


def _part_sort_key(part: Optional[int]):
    return (part is None, part if part is not None else 0)


def partition_questions(questions: Sequence[BankQuestion]) -> Partitioning:
    """Split questions by part label; unlabelled questions form a trailing group."""
    if all(q.part is None for q in questions):
        return Ungrouped(tuple(questions))

    by_part: Dict[Optional[int], List[BankQuestion]] = {}
    for q in questions:
        by_part.setdefault(q.part, []).append(q)

    keys = sorted(by_part, key=_part_sort_key)
    return GroupedByPart(tuple((key, tuple(by_part[key])) for key in keys))


def shuffle_questions(questions: Sequence[BankQuestion], rng: Optional[random.Random] = None) -> List[OrderedQuestion]:
    """Shuffle within each part, keep parts contiguous and in label order, number 1..N."""
    ordered: List[BankQuestion] = []
    for group in partition_questions(questions).groups():
        ordered.extend(fisher_yates_shuffle(group, rng))
    return [OrderedQuestion(question=q, question_order=i) for i, q in enumerate(ordered, 1)]


def shuffle_choices(question: BankQuestion, rng: Optional[random.Random] = None) -> List[OrderedChoice]:
    """Order a question's choices for one version.

    Only choice-bearing types are permuted. Free-response and matching
    questions keep insertion order but still get explicit 1-based orders.
    """
    choices = list(question.choices)
    if is_choice_bearing(question.question_type):
        choices = fisher_yates_shuffle(choices, rng)
    return [OrderedChoice(choice=c, choice_order=i) for i, c in enumerate(choices, 1)]


def materialize_version(
    question_bank: Sequence[BankQuestion],
    questions_per_version: Optional[int] = None,
    rng: Optional[random.Random] = None,
) -> MaterializedVersion:
    """Produce one fully ordered version of a test from its canonical bank."""
    bank = list(question_bank)
    if not bank:
        raise PreconditionError("Test has no questions. Please add questions before generating versions.")
    if questions_per_version is not None and questions_per_version < 1:
        raise PreconditionError("Questions per version must be at least 1")

    selected = bank
    if questions_per_version is not None and questions_per_version < len(bank):
        selected = random_subset(bank, questions_per_version, rng)

    ordered = shuffle_questions(selected, rng)
    choices_by_question = {oq.question.id: shuffle_choices(oq.question, rng) for oq in ordered}
    return MaterializedVersion(questions=ordered, choices_by_question=choices_by_question)
