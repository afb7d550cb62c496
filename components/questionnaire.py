# components/questionnaire.py
"""
Turns guided questionnaire answers into the free-text requirements block sent to the model.
Unanswered questions and sections are left out entirely so partial forms add no noise.
"""

from typing import Dict, Iterable, List, Mapping, Union

from components.questionnaire_data import Question, QuestionKind, Section

Answer = Union[str, Iterable[str]]

REQUIREMENTS_PREAMBLE = "Generate a Bill of Quantities for an AV installation based on the following requirements:"


def is_answered(value) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (int, float)):
        return True
    return any(str(v).strip() for v in value)


def _label_for(question: Question, value: str) -> str:
    for option in question.options:
        if option.value == value:
            return option.label
    return value


def _ordered_selection(question: Question, values) -> List[str]:
    """Selected values in option-list order, blanks dropped; values not in the list keep their given order at the end."""
    selected = list(dict.fromkeys(str(v) for v in values if str(v).strip()))
    option_values = [option.value for option in question.options]
    known = [v for v in option_values if v in selected]
    unknown = [v for v in selected if v not in option_values]
    return known + unknown


def render_answer(question: Question, value) -> str:
    if question.kind is QuestionKind.MULTI_SELECT or not isinstance(value, (str, int, float)):
        values = [value] if isinstance(value, str) else value
        return ", ".join(_label_for(question, v) for v in _ordered_selection(question, values))
    if question.kind is QuestionKind.SELECT:
        return _label_for(question, str(value))
    return str(value).strip()


def compile_answers(definition: Iterable[Section], answers: Mapping[str, Answer]) -> str:
    """Render answered questions, grouped by section, in definition order."""
    lines = []
    for section in definition:
        answered = [q for q in section.questions if is_answered(answers.get(q.id))]
        if not answered:
            continue
        lines.append(f"- Section: {section.title}")
        for question in answered:
            lines.append(f"  - {question.text}: {render_answer(question, answers[question.id])}")
    return "\n".join(lines)


def build_questionnaire_requirements(definition: Iterable[Section], answers: Mapping[str, Answer]) -> str:
    """Full requirements text for the generation client, or "" when nothing was answered."""
    block = compile_answers(definition, answers)
    if not block:
        return ""
    return f"{REQUIREMENTS_PREAMBLE}\n\n{block}\n"


def answered_count(definition: Iterable[Section], answers: Dict[str, Answer]) -> int:
    return sum(1 for section in definition for q in section.questions if is_answered(answers.get(q.id)))
