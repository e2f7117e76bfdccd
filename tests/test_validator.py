import pytest

from formapi.engine.answers import AnswerSet, MultiValue, Scalar
from formapi.engine.validator import (
    INVALID_EMAIL,
    INVALID_NUMBER,
    REQUIRED,
    section_errors,
    validate,
    validate_section,
)
from formapi.models.form import Question


def question(kind="short-text", required=False, **kw) -> Question:
    return Question(id="q", kind=kind, title="<b>Your</b> answer", required=required, **kw)


class TestRequired:
    @pytest.mark.parametrize("value", [None, Scalar(value=""), MultiValue(values=frozenset())])
    def test_empty_required_fails(self, value):
        error = validate(question(required=True), value)
        assert error.code == REQUIRED
        assert error.question_id == "q"
        assert error.message == "Your answer is required"

    @pytest.mark.parametrize("value", [None, Scalar(value=""), MultiValue(values=frozenset())])
    def test_empty_optional_passes(self, value):
        assert validate(question(), value) is None

    def test_present_required_passes(self):
        assert validate(question(required=True), Scalar(value="hi")) is None

    def test_multi_choice_with_selection_passes(self):
        q = question(kind="multi-choice", required=True, options=["a", "b"])
        assert validate(q, MultiValue(values=frozenset({"a"}))) is None


class TestEmail:
    @pytest.mark.parametrize("value", ["a@b.co", "first.last+tag@mail.example.org"])
    def test_valid(self, value):
        assert validate(question(kind="email"), Scalar(value=value)) is None

    @pytest.mark.parametrize("value", ["plain", "a@b", "@b.co", "a b@c.de", "a@@b.co", "a@b."])
    def test_invalid(self, value):
        assert validate(question(kind="email"), Scalar(value=value)).code == INVALID_EMAIL

    def test_empty_optional_email_passes(self):
        assert validate(question(kind="email"), Scalar(value="")) is None


class TestNumeric:
    @pytest.mark.parametrize("value", ["42", "-3.5", "+.5", "1e3", " 7 "])
    def test_valid(self, value):
        assert validate(question(kind="numeric"), Scalar(value=value)) is None

    @pytest.mark.parametrize("value", ["abc", "1,5", "--1", "nan", "1e"])
    def test_invalid(self, value):
        assert validate(question(kind="numeric"), Scalar(value=value)).code == INVALID_NUMBER


def test_no_rules_for_other_kinds():
    assert validate(question(kind="long-text"), Scalar(value="@@@")) is None


class TestSection:
    def test_maps_every_question(self, survey_form):
        section = survey_form.sections[0]
        answers = AnswerSet()
        answers.set(section.questions[1], "not-an-email")
        result = validate_section(section, answers)
        assert set(result) == {"name", "email"}
        assert result["name"].code == REQUIRED
        assert result["email"].code == INVALID_EMAIL

    def test_section_errors_drops_passing(self, survey_form):
        section = survey_form.sections[0]
        answers = AnswerSet()
        answers.set(section.questions[0], "Ada")
        assert validate_section(section, answers) == {"name": None, "email": None}
        assert section_errors(section, answers) == {}
