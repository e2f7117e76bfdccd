from typing import Optional

from formapi.engine.markup import RenderedText, render_text
from formapi.engine.navigator import SectionNavigator
from formapi.engine.scorer import review
from formapi.engine.state import SessionState, SessionStatus
from formapi.models.form import FormDefinition, Question, Section
from formapi.models.session import (
    PublicForm,
    RenderedOption,
    RenderedQuestion,
    RenderedSection,
    SessionView,
)


def _optional(text: Optional[str]) -> Optional[RenderedText]:
    return render_text(text) if text else None


def render_question(question: Question) -> RenderedQuestion:
    return RenderedQuestion(
        id=question.id,
        kind=question.kind,
        title=render_text(question.title),
        description=_optional(question.description),
        required=question.required,
        options=[
            RenderedOption(value=option, label=render_text(option))
            for option in (question.options if question.kind.is_choice else ())
        ],
    )


def render_section(section: Section) -> RenderedSection:
    return RenderedSection(
        id=section.id,
        title=render_text(section.title),
        description=_optional(section.description),
        questions=[render_question(q) for q in section.questions],
    )


def render_form(form: FormDefinition) -> PublicForm:
    return PublicForm(
        id=form.id,
        title=render_text(form.title),
        description=render_text(form.description),
        is_test_mode=form.is_test_mode,
        theme=form.theme,
        sections=[render_section(s) for s in form.sections],
    )


def session_view(navigator: SectionNavigator, state: SessionState) -> SessionView:
    form = navigator.form
    submitted = state.status is SessionStatus.SUBMITTED
    return SessionView(
        session_id=state.id,
        form_id=form.id,
        title=render_text(form.title),
        is_test_mode=form.is_test_mode,
        theme=form.theme,
        status=state.status,
        section_index=state.section_index,
        section_count=len(form.sections),
        is_last_section=state.section_index == navigator.last_index,
        section=render_section(form.sections[state.section_index]),
        answers=state.answers.snapshot(form),
        errors=state.errors,
        response=state.response,
        review=review(form, state.answers) if submitted else [],
    )
