from pydantic import AliasChoices, BaseModel, Field, field_validator, ConfigDict
from typing import List, Optional, Dict, Any, Union, Generic, TypeVar
from datetime import datetime
from enum import Enum

from .models import SurveyStatus, Sentiment


class QuestionType(str, Enum):
    NPS = "nps"
    RATING = "rating"
    MULTIPLE_CHOICE = "multiple_choice"
    TEXT = "text"
    SCALE = "scale"
    SLIDER = "slider"
    YES_NO = "yes_no"
    MATRIX = "matrix"


# --- Schemas for the survey definition ---


class Question(BaseModel):
    id: Optional[Union[str, int]] = None  # client-side identifier, kept as-is
    type: QuestionType
    question: str = Field(..., min_length=1)
    required: bool = False
    options: List[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="allow")


class SurveySettings(BaseModel):
    collect_email: bool = False
    anonymous_responses: bool = True
    one_response_per_person: bool = True
    show_progress_bar: bool = True


class SurveyCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=1000)
    category: str = Field(..., min_length=1, max_length=100)
    estimated_time: Optional[str] = Field(default=None, max_length=50)
    questions: List[Question] = Field(..., min_length=1)
    settings: Optional[SurveySettings] = None


class SurveyUpdate(BaseModel):
    """Partial update. Only fields present in the request body are applied."""

    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=1000)
    category: Optional[str] = Field(default=None, min_length=1, max_length=100)
    estimated_time: Optional[str] = Field(default=None, max_length=50)
    questions: Optional[List[Question]] = Field(default=None, min_length=1)
    settings: Optional[SurveySettings] = None

    @field_validator("title", "category", "questions")
    @classmethod
    def not_null_when_given(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name} may not be null")
        return v


class SurveyListParams(BaseModel):
    status: Optional[str] = None
    category: Optional[str] = None
    search: Optional[str] = None
    sort_by: str = "created_at"
    sort_order: str = "desc"
    page: int = 1
    per_page: Optional[int] = None


# --- Read schemas ---


class SentimentBreakdown(BaseModel):
    positive: int = 0
    neutral: int = 0
    negative: int = 0


class SurveyAnalytics(BaseModel):
    total_responses: int = 0
    completion_rate: float = 0
    average_time: int = 0
    nps_score: Optional[int] = None
    sentiment_breakdown: SentimentBreakdown = Field(default_factory=SentimentBreakdown)
    last_updated: Optional[datetime] = None

    model_config = ConfigDict(extra="allow")


class Creator(BaseModel):
    id: int
    name: str
    email: str

    model_config = ConfigDict(from_attributes=True)


class SurveySummary(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    category: str
    status: SurveyStatus
    question_count: int
    estimated_time: Optional[str] = None
    url: str
    share_url: str
    analytics: SurveyAnalytics
    creator: Optional[Creator] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    published_at: Optional[datetime] = None


class SurveyDetail(SurveySummary):
    questions: List[Dict[str, Any]] = []
    settings: SurveySettings


class SurveyStatusView(BaseModel):
    id: int
    status: SurveyStatus
    published_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    url: str
    share_url: str


class PaginatedSurveys(BaseModel):
    items: List[SurveySummary]
    total: int
    page: int
    per_page: int
    last_page: int


# --- Response envelopes ---

T = TypeVar("T")


class Envelope(BaseModel, Generic[T]):
    success: bool = True
    message: str
    data: Optional[T] = None


class SurveyData(BaseModel):
    survey: SurveyDetail


class SurveyStatusData(BaseModel):
    survey: SurveyStatusView


# --- Schemas for respondent submissions ---


class ResponseCreate(BaseModel):
    user_id: Optional[str] = Field(default=None, max_length=255)
    session_id: Optional[str] = Field(default=None, max_length=255)
    responses: Dict[str, Any]
    nps_score: Optional[int] = Field(default=None, ge=0, le=10)
    sentiment: Optional[Sentiment] = None
    completion_time: Optional[int] = Field(default=None, ge=0)
    metadata: Dict[str, Any] = Field(default_factory=dict)


class ResponseRead(BaseModel):
    id: int
    survey_id: int
    user_id: Optional[str] = None
    session_id: Optional[str] = None
    responses: Dict[str, Any]
    nps_score: Optional[int] = None
    sentiment: Optional[Sentiment] = None
    completion_time: Optional[int] = None
    metadata: Optional[Dict[str, Any]] = Field(
        default=None, validation_alias=AliasChoices("meta", "metadata")
    )
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ResponseData(BaseModel):
    response: ResponseRead
