# app/services/version_service.py
from typing import Dict, List, Optional
import logging
import random
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from ..core.config import MAX_VERSIONS_PER_BATCH
from ..schemas.test_schemas import (
    AnswerKeyEntry,
    AnswerKeyResponse,
    QuestionType,
    VersionChoice,
    VersionDetail,
    VersionQuestion,
    VersionSummary,
)
from ..models.tests_models import (
    DBCorrectAnswer,
    DBTest,
    DBTestVersion,
    DBTestVersionAnswerChoice,
    DBTestVersionQuestion,
)
from .answer_key import CorrectAnswerLink, VersionQuestionView, build_answer_key, position_to_letter
from .errors import NotFoundError, PreconditionError
from .numbering import numbering_lock
from .shuffle_service import MaterializedVersion, materialize_version
from .test_service import TestService

logger = logging.getLogger(__name__)


class VersionService:
    def __init__(self, db: Session, rng: Optional[random.Random] = None):
        self.db = db
        self.rng = rng

    def _get_version_row(self, version_id: int) -> DBTestVersion:
        db_version = self.db.get(DBTestVersion, version_id)
        if not db_version:
            raise NotFoundError("Version not found")
        return db_version

    def _summary(self, db_version: DBTestVersion) -> VersionSummary:
        return VersionSummary(
            id=db_version.id,
            version_number=db_version.version_number,
            created_at=db_version.created_at,
            question_count=len(db_version.questions),
        )

    def next_version_number(self, test_id: int) -> int:
        current = self.db.query(func.max(DBTestVersion.version_number)).filter(DBTestVersion.test_id == test_id).scalar()
        return (current or 0) + 1

    def _persist_version(self, test_id: int, version_number: int, materialized: MaterializedVersion) -> DBTestVersion:
        db_version = DBTestVersion(test_id=test_id, version_number=version_number)
        for oq in materialized.questions:
            db_version.questions.append(
                DBTestVersionQuestion(
                    question_id=oq.question.id,
                    question_order=oq.question_order,
                    choices=[
                        DBTestVersionAnswerChoice(answer_choice_id=oc.choice.id, choice_order=oc.choice_order)
                        for oc in materialized.choices_for(oq.question.id)
                    ],
                )
            )
        self.db.add(db_version)
        self.db.flush()
        return db_version

    def generate_versions(
        self, test_id: int, version_count: int, questions_per_version: Optional[int] = None
    ) -> List[VersionSummary]:
        """Generate and persist ``version_count`` independently shuffled versions of a test.

        Numbering continues from the highest existing version number. A trial
        that fails to persist is rolled back as a unit and skipped, so the
        result may hold fewer versions than requested.
        """
        if version_count < 1 or version_count > MAX_VERSIONS_PER_BATCH:
            raise PreconditionError(f"Version count must be between 1 and {MAX_VERSIONS_PER_BATCH}")
        if questions_per_version is not None and questions_per_version < 1:
            raise PreconditionError("Questions per version must be at least 1")

        bank = TestService(self.db).get_question_bank(test_id)
        if not bank:
            raise PreconditionError("Test has no questions. Please add questions before generating versions.")

        trials = [materialize_version(bank, questions_per_version, self.rng) for _ in range(version_count)]

        created: List[VersionSummary] = []
        with numbering_lock(test_id):
            next_number = self.next_version_number(test_id)
            for trial in trials:
                savepoint = self.db.begin_nested()
                try:
                    db_version = self._persist_version(test_id, next_number, trial)
                    savepoint.commit()
                except SQLAlchemyError as e:
                    logger.error(f"Skipping version {next_number} of test {test_id}: {str(e)}")
                    savepoint.rollback()
                    # another writer may have taken the number
                    next_number = max(next_number, self.next_version_number(test_id))
                    continue
                created.append(self._summary(db_version))
                next_number += 1
            self.db.commit()

        logger.info(f"Generated {len(created)} of {version_count} version(s) for test {test_id}")
        return created

    def list_versions(self, test_id: int) -> List[VersionSummary]:
        if not self.db.get(DBTest, test_id):
            raise NotFoundError("Test not found")
        rows = (
            self.db.query(DBTestVersion)
            .filter(DBTestVersion.test_id == test_id)
            .order_by(DBTestVersion.version_number)
            .all()
        )
        return [self._summary(v) for v in rows]

    def get_version(self, version_id: int) -> VersionDetail:
        db_version = self._get_version_row(version_id)
        questions = []
        for vq in db_version.questions:
            choices = [
                VersionChoice(
                    id=vc.answer_choice.id,
                    text=vc.answer_choice.text,
                    image_url=vc.answer_choice.image_url,
                    order=vc.choice_order,
                    letter=position_to_letter(index),
                )
                for index, vc in enumerate(vq.choices)
            ]
            questions.append(
                VersionQuestion(
                    question_number=vq.question_order,
                    question_id=vq.question.id,
                    question_text=vq.question.question_text,
                    question_type=vq.question.question_type,
                    part=vq.question.part,
                    answer_choices=choices,
                )
            )
        return VersionDetail(
            id=db_version.id,
            version_number=db_version.version_number,
            created_at=db_version.created_at,
            test_id=db_version.test_id,
            test_title=db_version.test.title,
            questions=questions,
        )

    def delete_version(self, version_id: int) -> None:
        """Delete a version together with its question and choice orderings."""
        self.db.delete(self._get_version_row(version_id))
        try:
            self.db.commit()
        except Exception as e:
            logger.error(f"Error deleting version {version_id}: {str(e)}")
            self.db.rollback()
            raise
        logger.info(f"Deleted version {version_id}")

    def get_answer_key(self, version_id: int) -> AnswerKeyResponse:
        db_version = self._get_version_row(version_id)

        views = [
            VersionQuestionView(
                question_id=vq.question_id,
                question_order=vq.question_order,
                question_type=QuestionType(vq.question.question_type),
                # deleted choices keep their slot so later letters do not shift
                choice_ids=tuple(None if vc.answer_choice.is_deleted else vc.answer_choice_id for vc in vq.choices),
            )
            for vq in db_version.questions
        ]

        question_ids = [v.question_id for v in views]
        links: Dict[int, CorrectAnswerLink] = {}
        if question_ids:
            rows = self.db.query(DBCorrectAnswer).filter(DBCorrectAnswer.question_id.in_(question_ids)).all()
            for row in rows:
                linked = row.answer_choice
                links[row.question_id] = CorrectAnswerLink(
                    question_id=row.question_id,
                    answer_choice_id=row.answer_choice_id,
                    answer_text=row.answer_text,
                    choice_text=linked.text if linked is not None and not linked.is_deleted else None,
                )

        key = build_answer_key(views, links)
        return AnswerKeyResponse(
            version_id=db_version.id,
            version_number=db_version.version_number,
            entries=[
                AnswerKeyEntry(
                    question_order=e.question_order,
                    question_id=e.question_id,
                    correct_letter=e.correct_letter,
                    correct_text=e.correct_text,
                )
                for e in key.entries
            ],
            warnings=key.warnings,
        )
