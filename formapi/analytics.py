import csv
import io
from collections import Counter
from typing import List

from formapi.engine.markup import plain_text
from formapi.engine.scorer import percentage
from formapi.models.analytics import DailyCount, FormAnalytics, QuestionStats, ScoreBucket
from formapi.models.form import FormDefinition, Question
from formapi.models.response import Response

TITLE_LIMIT = 30


def _short_title(question: Question) -> str:
    title = plain_text(question.title)
    return title[:TITLE_LIMIT] + "..." if len(title) > TITLE_LIMIT else title


def _answered(value) -> bool:
    return value is not None and value != "" and value != []


def _question_stats(question: Question, responses: List[Response]) -> QuestionStats:
    values = [r.answers.get(question.id) for r in responses]
    answered = sum(1 for v in values if _answered(v))

    option_counts = None
    if question.kind.is_choice:
        picked = Counter()
        for value in values:
            if isinstance(value, list):
                picked.update(value)
            elif _answered(value):
                picked[value] += 1
        option_counts = {option: picked.get(option, 0) for option in question.options}

    return QuestionStats(
        question_id=question.id,
        question=_short_title(question),
        answered=answered,
        percentage=percentage(answered, len(responses)),
        option_counts=option_counts,
    )


def _score_buckets(scores: List[int]) -> List[ScoreBucket]:
    buckets = Counter((score // 10) * 10 for score in scores)
    return [
        ScoreBucket(range=f"{low}-{low + 9}%", count=count)
        for low, count in sorted(buckets.items())
    ]


def analyze(form: FormDefinition, responses: List[Response]) -> FormAnalytics:
    per_day = Counter(r.submitted_at.date().isoformat() for r in responses)
    timeline = [DailyCount(date=day, responses=count) for day, count in sorted(per_day.items())]
    questions = [_question_stats(q, responses) for q in form.questions()]

    analytics = FormAnalytics(
        form_id=form.id,
        total_responses=len(responses),
        timeline=timeline,
        questions=questions,
    )
    if form.is_test_mode:
        scores = [r.score for r in responses if r.score is not None]
        analytics.score_distribution = _score_buckets(scores)
        analytics.average_score = (2 * sum(scores) + len(scores)) // (2 * len(scores)) if scores else 0
    return analytics


def responses_csv(form: FormDefinition, responses: List[Response]) -> str:
    questions = list(form.questions())
    header = ["response_id", "submitted_at"]
    if form.is_test_mode:
        header.append("score")
    header.extend(plain_text(q.title) for q in questions)

    out = io.StringIO()
    writer = csv.writer(out)
    writer.writerow(header)
    for response in responses:
        row = [response.id, response.submitted_at.isoformat()]
        if form.is_test_mode:
            row.append("" if response.score is None else response.score)
        for question in questions:
            value = response.answers.get(question.id, "")
            row.append("; ".join(value) if isinstance(value, list) else value)
        writer.writerow(row)
    return out.getvalue()
