"""
Question phrasing — display text for a question descriptor.

Tags use their own question_text when set, otherwise a template by tag type.
The text is stored in the session history so a rollback re-shows it verbatim.
"""

from typing import Dict, List, Optional

from ..models.item import SummaryGroup, Tag, TagType
from ..models.question import ExploreTag, HardConfirm, HardConfirmType, SoftConfirm, parse_question

DEFAULT_TEMPLATE = "Does it feature {label}?"
STRUCTURAL_TEMPLATE = "Does it have a character who is {label}?"
TITLE_INITIAL_TEMPLATE = 'Does the title start with "{value}"?'
AUTHOR_TEMPLATE = 'Is the author "{value}"?'


def tag_question_text(tag_key: str, tag: Optional[Tag]) -> str:
    if tag is not None and tag.question_text and tag.question_text.strip():
        return tag.question_text.strip()
    label = tag.label if tag is not None else tag_key
    if tag is not None and tag.tag_type == TagType.STRUCTURAL:
        return STRUCTURAL_TEMPLATE.format(label=label)
    return DEFAULT_TEMPLATE.format(label=label)


def question_text(
    question,
    tags: Dict[str, Tag],
    summary_groups: List[SummaryGroup],
) -> str:
    """Human-readable text for any question kind."""
    question = parse_question(question)
    if isinstance(question, HardConfirm):
        if question.confirm_type == HardConfirmType.TITLE_INITIAL:
            return TITLE_INITIAL_TEMPLATE.format(value=question.value)
        return AUTHOR_TEMPLATE.format(value=question.value)
    if isinstance(question, ExploreTag) and question.is_summary:
        group = next((g for g in summary_groups if g.id == question.summary_id), None)
        if group is not None and group.question_text:
            return group.question_text
        label = group.label if group is not None and group.label else question.summary_id
        return DEFAULT_TEMPLATE.format(label=label)
    if isinstance(question, (ExploreTag, SoftConfirm)):
        return tag_question_text(question.tag_key, tags.get(question.tag_key))
    return ""
