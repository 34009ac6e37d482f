"""
Question model — answer grades and the question descriptors the engine asks.

QuestionDescriptor is a union discriminated on `kind`:
- ExploreTag: a single tag, or a summary grouping (summary_id set)
- SoftConfirm: a derived tag aimed at the top candidate
- HardConfirm: the top candidate's title initial or author
"""

from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from ..errors import InvalidAnswerGradeError, UnknownQuestionKindError


class AnswerGrade(str, Enum):
    YES = "YES"
    PROBABLY_YES = "PROBABLY_YES"
    UNKNOWN = "UNKNOWN"
    DONT_CARE = "DONT_CARE"
    PROBABLY_NO = "PROBABLY_NO"
    NO = "NO"


class HardConfirmType(str, Enum):
    TITLE_INITIAL = "TITLE_INITIAL"
    AUTHOR = "AUTHOR"


# Hard confirms are consumed in this order.
HARD_CONFIRM_ORDER = (HardConfirmType.TITLE_INITIAL, HardConfirmType.AUTHOR)


class ExploreTag(BaseModel):
    kind: Literal["EXPLORE_TAG"] = "EXPLORE_TAG"
    tag_key: str
    summary_id: Optional[str] = None
    summary_tag_keys: List[str] = Field(default_factory=list)

    @property
    def is_summary(self) -> bool:
        return self.summary_id is not None


class SoftConfirm(BaseModel):
    kind: Literal["SOFT_CONFIRM"] = "SOFT_CONFIRM"
    tag_key: str


class HardConfirm(BaseModel):
    kind: Literal["HARD_CONFIRM"] = "HARD_CONFIRM"
    confirm_type: HardConfirmType
    value: str


QuestionDescriptor = Annotated[
    Union[ExploreTag, SoftConfirm, HardConfirm],
    Field(discriminator="kind"),
]

_descriptor_adapter = TypeAdapter(QuestionDescriptor)


def parse_question(data: Union[Dict[str, Any], BaseModel]) -> Union[ExploreTag, SoftConfirm, HardConfirm]:
    """Build a descriptor from a dict; unknown or malformed kinds raise UnknownQuestionKindError."""
    if isinstance(data, (ExploreTag, SoftConfirm, HardConfirm)):
        return data
    try:
        return _descriptor_adapter.validate_python(data)
    except ValidationError as exc:
        raise UnknownQuestionKindError(f"Malformed question descriptor: {data!r}") from exc


def parse_grade(value: Union[str, AnswerGrade]) -> AnswerGrade:
    """Coerce a string to AnswerGrade; anything outside the enumeration raises."""
    if isinstance(value, AnswerGrade):
        return value
    try:
        return AnswerGrade(str(value).strip().upper())
    except ValueError as exc:
        raise InvalidAnswerGradeError(f"Unknown answer grade: {value!r}") from exc


class QuestionHistoryEntry(BaseModel):
    """One asked question; answer stays None while it is pending."""

    q_index: int
    question: QuestionDescriptor
    display_text: str = ""
    answer: Optional[AnswerGrade] = None
