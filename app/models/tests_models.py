# app/models/tests_models.py
from datetime import datetime, timezone
from sqlalchemy import Boolean, Column, Integer, String, Text, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def _utcnow():
    return datetime.now(timezone.utc)


class DBTest(Base):
    __tablename__ = "tests"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    questions = relationship(
        "DBQuestion", back_populates="test", cascade="all, delete-orphan", order_by="DBQuestion.id"
    )
    versions = relationship(
        "DBTestVersion", back_populates="test", cascade="all, delete-orphan", order_by="DBTestVersion.version_number"
    )

    @property
    def active_questions(self):
        return [q for q in self.questions if not q.is_deleted]


class DBQuestion(Base):
    __tablename__ = "questions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    test_id = Column(Integer, ForeignKey("tests.id", ondelete="CASCADE"), nullable=False, index=True)
    question_text = Column(Text, nullable=False)
    question_type = Column(String, nullable=False)
    part = Column(Integer, nullable=True)  # None means ungrouped
    # Generated versions keep referencing deleted questions, so rows are only flagged
    is_deleted = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    test = relationship("DBTest", back_populates="questions")
    # Insertion order is the canonical order for unshuffled types
    choices = relationship(
        "DBAnswerChoice", back_populates="question", cascade="all, delete-orphan", order_by="DBAnswerChoice.id"
    )
    correct_answer = relationship(
        "DBCorrectAnswer", back_populates="question", cascade="all, delete-orphan", uselist=False
    )

    @property
    def active_choices(self):
        return [c for c in self.choices if not c.is_deleted]


class DBAnswerChoice(Base):
    __tablename__ = "answer_choices"

    id = Column(Integer, primary_key=True, autoincrement=True)
    question_id = Column(Integer, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False, index=True)
    text = Column(Text, nullable=False, default="")
    image_url = Column(String, nullable=True)
    is_deleted = Column(Boolean, nullable=False, default=False)

    question = relationship("DBQuestion", back_populates="choices")


class DBCorrectAnswer(Base):
    __tablename__ = "answers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    question_id = Column(Integer, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False, unique=True)
    # Kept as-is when the choice is deleted; answer keys then report it missing
    answer_choice_id = Column(Integer, ForeignKey("answer_choices.id"), nullable=True)
    answer_text = Column(Text, nullable=True)  # free-response answers stored without a choice
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    question = relationship("DBQuestion", back_populates="correct_answer")
    answer_choice = relationship("DBAnswerChoice")


class DBTestVersion(Base):
    __tablename__ = "test_versions"
    __table_args__ = (UniqueConstraint("test_id", "version_number", name="uq_test_versions_number"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    test_id = Column(Integer, ForeignKey("tests.id", ondelete="CASCADE"), nullable=False, index=True)
    version_number = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    test = relationship("DBTest", back_populates="versions")
    questions = relationship(
        "DBTestVersionQuestion",
        back_populates="version",
        cascade="all, delete-orphan",
        order_by="DBTestVersionQuestion.question_order",
    )


class DBTestVersionQuestion(Base):
    __tablename__ = "test_version_questions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    test_version_id = Column(Integer, ForeignKey("test_versions.id", ondelete="CASCADE"), nullable=False, index=True)
    question_id = Column(Integer, ForeignKey("questions.id"), nullable=False)
    question_order = Column(Integer, nullable=False)

    version = relationship("DBTestVersion", back_populates="questions")
    question = relationship("DBQuestion")
    choices = relationship(
        "DBTestVersionAnswerChoice",
        back_populates="version_question",
        cascade="all, delete-orphan",
        order_by="DBTestVersionAnswerChoice.choice_order",
    )


class DBTestVersionAnswerChoice(Base):
    __tablename__ = "test_versions_answer_choices"

    id = Column(Integer, primary_key=True, autoincrement=True)
    test_version_question_id = Column(
        Integer, ForeignKey("test_version_questions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    answer_choice_id = Column(Integer, ForeignKey("answer_choices.id"), nullable=False)
    choice_order = Column(Integer, nullable=False)

    version_question = relationship("DBTestVersionQuestion", back_populates="choices")
    answer_choice = relationship("DBAnswerChoice")
