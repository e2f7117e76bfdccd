from typing import Dict, List, Optional

from pydantic import BaseModel


class DailyCount(BaseModel):
    date: str
    responses: int


class QuestionStats(BaseModel):
    question_id: str
    question: str
    answered: int
    percentage: int
    # choice questions only: how often each option was picked
    option_counts: Optional[Dict[str, int]] = None


class ScoreBucket(BaseModel):
    range: str
    count: int


class FormAnalytics(BaseModel):
    form_id: str
    total_responses: int
    timeline: List[DailyCount]
    questions: List[QuestionStats]
    score_distribution: List[ScoreBucket] = []
    average_score: Optional[int] = None
