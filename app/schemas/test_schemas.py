# app/schemas/test_schemas.py
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import List, Optional
from datetime import datetime
from enum import Enum


class QuestionType(str, Enum):
    MULTIPLE_CHOICE = "multiple_choice"
    TRUE_OR_FALSE = "true_or_false"
    IDENTIFICATION = "identification"
    FILL_IN_THE_BLANK = "fill_in_the_blank"
    ESSAY = "essay"
    MATCHING = "matching"


# Types that present several selectable options; only these get their choices shuffled
CHOICE_BEARING_TYPES = frozenset({QuestionType.MULTIPLE_CHOICE, QuestionType.TRUE_OR_FALSE})


def is_choice_bearing(question_type) -> bool:
    return QuestionType(question_type) in CHOICE_BEARING_TYPES


def _strip_required(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("must not be blank")
    return v


class TestCreate(BaseModel):
    title: str
    description: Optional[str] = None

    @field_validator("title")
    def title_not_blank(cls, v):
        return _strip_required(v)


class TestUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None

    @field_validator("title")
    def title_not_blank(cls, v):
        return None if v is None else _strip_required(v)

    @field_validator("description")
    def blank_description_clears(cls, v):
        if v is None:
            return None
        return v.strip() or None


class TestResponse(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    question_count: int = 0


class ChoiceCreate(BaseModel):
    text: str = ""
    image_url: Optional[str] = None

    @model_validator(mode="after")
    def has_content(self):
        self.text = self.text.strip()
        if not self.text and not self.image_url:
            raise ValueError("Answer choice needs text or an image")
        return self


class Choice(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    text: str
    image_url: Optional[str] = None


class CorrectAnswer(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    answer_choice_id: Optional[int] = None
    answer_text: Optional[str] = None


class TestAnswer(BaseModel):
    """A question's stored correct answer, as listed for a whole test."""
    id: int
    question_id: int
    question_text: str
    answer_choice_id: Optional[int] = None
    answer_text: Optional[str] = None
    choice_text: Optional[str] = None
    created_at: Optional[datetime] = None


class CorrectAnswerSet(BaseModel):
    answer_choice_id: Optional[int] = None
    answer_text: Optional[str] = None

    @model_validator(mode="after")
    def exactly_one(self):
        if (self.answer_choice_id is None) == (self.answer_text is None):
            raise ValueError("Provide exactly one of answer_choice_id or answer_text")
        if self.answer_text is not None:
            self.answer_text = _strip_required(self.answer_text)
        return self


class QuestionCreate(BaseModel):
    question_text: str
    question_type: QuestionType = QuestionType.MULTIPLE_CHOICE
    part: Optional[int] = None
    choices: List[ChoiceCreate] = Field(default_factory=list)
    correct_choice_index: Optional[int] = Field(default=None, ge=0)
    answer_text: Optional[str] = None

    @field_validator("question_text")
    def text_not_blank(cls, v):
        return _strip_required(v)

    @model_validator(mode="after")
    def check_choices(self):
        if self.question_type == QuestionType.TRUE_OR_FALSE and len(self.choices) != 2:
            raise ValueError("True or False questions must have exactly 2 choices")
        if self.question_type in CHOICE_BEARING_TYPES and len(self.choices) < 2:
            raise ValueError("Choice-based questions need at least 2 choices")
        if self.correct_choice_index is not None and self.correct_choice_index >= len(self.choices):
            raise ValueError("correct_choice_index is out of range")
        if self.correct_choice_index is not None and self.answer_text is not None:
            raise ValueError("Provide either correct_choice_index or answer_text, not both")
        if self.answer_text is not None and self.question_type in CHOICE_BEARING_TYPES:
            raise ValueError("Choice-based questions take correct_choice_index, not answer_text")
        return self


class QuestionUpdate(BaseModel):
    question_text: Optional[str] = None
    question_type: Optional[QuestionType] = None
    part: Optional[int] = None

    @field_validator("question_text")
    def text_not_blank(cls, v):
        return None if v is None else _strip_required(v)


class Question(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    test_id: int
    question_text: str
    question_type: QuestionType
    part: Optional[int] = None
    choices: List[Choice] = Field(default_factory=list)
    correct_answer: Optional[CorrectAnswer] = None


class VersionGenerateRequest(BaseModel):
    testId: int
    versionCount: int = Field(ge=1)
    questionsPerVersion: Optional[int] = Field(default=None, ge=1)


class VersionSummary(BaseModel):
    id: int
    version_number: int
    created_at: Optional[datetime] = None
    question_count: int


class GenerateVersionsResponse(BaseModel):
    success: bool
    message: str
    data: List[VersionSummary]


class VersionChoice(BaseModel):
    id: int
    text: str
    image_url: Optional[str] = None
    order: int
    letter: str


class VersionQuestion(BaseModel):
    question_number: int
    question_id: int
    question_text: str
    question_type: QuestionType
    part: Optional[int] = None
    answer_choices: List[VersionChoice]


class VersionDetail(BaseModel):
    id: int
    version_number: int
    created_at: Optional[datetime] = None
    test_id: int
    test_title: str
    questions: List[VersionQuestion]


class AnswerKeyEntry(BaseModel):
    question_order: int
    question_id: int
    correct_letter: Optional[str] = None
    correct_text: Optional[str] = None


class AnswerKeyResponse(BaseModel):
    version_id: int
    version_number: int
    entries: List[AnswerKeyEntry]
    warnings: List[str] = Field(default_factory=list)
