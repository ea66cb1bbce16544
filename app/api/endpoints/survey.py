from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app import config
from app.api.deps import get_current_user
from app.clock import Clock, get_clock
from app.crud import crud_survey
from app.database import get_db_session
from app.models import Survey, User
from app.schemas import (
    Creator,
    Envelope,
    PaginatedSurveys,
    SurveyAnalytics,
    SurveyCreate,
    SurveyData,
    SurveyDetail,
    SurveyListParams,
    SurveySettings,
    SurveyStatusData,
    SurveyStatusView,
    SurveySummary,
    SurveyUpdate,
)

router = APIRouter()


def survey_url(survey_id: int) -> str:
    return f"{config.FRONTEND_URL}/survey/{survey_id}"


def share_url(survey_id: int) -> str:
    return survey_url(survey_id) + "?ref=share"


def to_summary(survey: Survey, analytics: dict) -> SurveySummary:
    return SurveySummary(
        id=survey.id,
        title=survey.title,
        description=survey.description,
        category=survey.category,
        status=survey.status,
        question_count=survey.question_count,
        estimated_time=survey.estimated_time,
        url=survey_url(survey.id),
        share_url=share_url(survey.id),
        analytics=SurveyAnalytics(**analytics),
        creator=Creator.model_validate(survey.creator) if survey.creator else None,
        created_at=survey.created_at,
        updated_at=survey.updated_at,
        published_at=survey.published_at,
    )


def to_detail(survey: Survey, analytics: dict) -> SurveyDetail:
    return SurveyDetail(
        **to_summary(survey, analytics).model_dump(),
        questions=survey.questions or [],
        settings=SurveySettings(**(survey.settings or {})),
    )


def to_status_view(survey: Survey) -> SurveyStatusView:
    return SurveyStatusView(
        id=survey.id,
        status=survey.status,
        published_at=survey.published_at,
        updated_at=survey.updated_at,
        url=survey_url(survey.id),
        share_url=share_url(survey.id),
    )


async def _detail_envelope(
    db: AsyncSession, survey: Survey, clock: Clock, message: str
) -> Envelope[SurveyData]:
    analytics = await crud_survey.compute_survey_analytics(db, [survey], clock)
    return Envelope[SurveyData](
        message=message, data=SurveyData(survey=to_detail(survey, analytics[survey.id]))
    )


@router.get("", response_model=Envelope[PaginatedSurveys])
async def list_survey_items(
    status_filter: Optional[str] = Query(None, alias="status"),
    category: Optional[str] = None,
    search: Optional[str] = None,
    sort_by: str = "created_at",
    sort_order: str = "desc",
    page: int = 1,
    per_page: Optional[int] = None,
    db: AsyncSession = Depends(get_db_session),
    user: User = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
):
    params = SurveyListParams(
        status=status_filter,
        category=category,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        per_page=per_page,
    )
    surveys, total, page_size = await crud_survey.list_surveys(db, user.id, params)
    analytics = await crud_survey.compute_survey_analytics(db, surveys, clock)
    return Envelope[PaginatedSurveys](
        message="Surveys retrieved successfully",
        data=PaginatedSurveys(
            items=[to_summary(s, analytics[s.id]) for s in surveys],
            total=total,
            page=params.page,
            per_page=page_size,
            last_page=crud_survey.last_page(total, page_size),
        ),
    )


@router.post(
    "", response_model=Envelope[SurveyData], status_code=status.HTTP_201_CREATED
)
async def create_survey_item(
    survey_in: SurveyCreate,
    db: AsyncSession = Depends(get_db_session),
    user: User = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
):
    survey = await crud_survey.create_survey(db, user, survey_in, clock)
    return await _detail_envelope(db, survey, clock, "Survey created successfully")


@router.get("/{survey_id}", response_model=Envelope[SurveyData])
async def read_survey_item(
    survey_id: int,
    db: AsyncSession = Depends(get_db_session),
    user: User = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
):
    survey = await crud_survey.get_survey(db, survey_id, user.id)
    return await _detail_envelope(db, survey, clock, "Survey retrieved successfully")


@router.put("/{survey_id}", response_model=Envelope[SurveyData])
async def update_survey_item(
    survey_id: int,
    survey_in: SurveyUpdate,
    db: AsyncSession = Depends(get_db_session),
    user: User = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
):
    survey = await crud_survey.update_survey(db, survey_id, user.id, survey_in, clock)
    return await _detail_envelope(db, survey, clock, "Survey updated successfully")


@router.delete("/{survey_id}", response_model=Envelope[dict])
async def delete_survey_item(
    survey_id: int,
    db: AsyncSession = Depends(get_db_session),
    user: User = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
):
    await crud_survey.delete_survey(db, survey_id, user.id, clock)
    return Envelope[dict](message="Survey deleted successfully")


@router.post("/{survey_id}/publish", response_model=Envelope[SurveyStatusData])
async def publish_survey_item(
    survey_id: int,
    db: AsyncSession = Depends(get_db_session),
    user: User = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
):
    survey = await crud_survey.publish_survey(db, survey_id, user.id, clock)
    return Envelope[SurveyStatusData](
        message="Survey published successfully",
        data=SurveyStatusData(survey=to_status_view(survey)),
    )


@router.post("/{survey_id}/close", response_model=Envelope[SurveyStatusData])
async def close_survey_item(
    survey_id: int,
    db: AsyncSession = Depends(get_db_session),
    user: User = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
):
    survey = await crud_survey.close_survey(db, survey_id, user.id, clock)
    return Envelope[SurveyStatusData](
        message="Survey closed successfully",
        data=SurveyStatusData(survey=to_status_view(survey)),
    )


@router.post("/{survey_id}/pause", response_model=Envelope[SurveyStatusData])
async def pause_survey_item(
    survey_id: int,
    db: AsyncSession = Depends(get_db_session),
    user: User = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
):
    survey = await crud_survey.pause_survey(db, survey_id, user.id, clock)
    return Envelope[SurveyStatusData](
        message="Survey paused successfully",
        data=SurveyStatusData(survey=to_status_view(survey)),
    )


@router.post(
    "/{survey_id}/duplicate",
    response_model=Envelope[SurveyData],
    status_code=status.HTTP_201_CREATED,
)
async def duplicate_survey_item(
    survey_id: int,
    db: AsyncSession = Depends(get_db_session),
    user: User = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
):
    survey = await crud_survey.duplicate_survey(db, survey_id, user, clock)
    return await _detail_envelope(db, survey, clock, "Survey duplicated successfully")
