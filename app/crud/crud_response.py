import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.clock import Clock
from app.database import commit_session
from app.exceptions import (
    DuplicateResponseError,
    NotFoundError,
    SurveyNotAcceptingResponsesError,
    ValidationError,
)
from app.models import Response, Survey, SurveyStatus
from app.schemas import ResponseCreate, SurveySettings

logger = logging.getLogger(__name__)


def locked_survey_query(survey_id: int):
    """
    Exclusive row lock on the survey for the whole intake transaction.
    Concurrent submissions for the same survey queue up, so the duplicate
    respondent check and the insert cannot interleave; lifecycle changes
    (also FOR UPDATE) wait as well.
    """
    return (
        select(Survey)
        .where(Survey.id == survey_id, Survey.deleted_at.is_(None))
        .with_for_update(of=Survey)
    )


async def _respondent_exists(
    db: AsyncSession, survey_id: int, response_in: ResponseCreate
) -> bool:
    if response_in.user_id:
        condition = Response.user_id == response_in.user_id
    elif response_in.session_id:
        condition = Response.session_id == response_in.session_id
    else:
        return False
    result = await db.execute(
        select(Response.id).where(Response.survey_id == survey_id, condition).limit(1)
    )
    return result.scalar_one_or_none() is not None


async def create_response(
    db: AsyncSession,
    survey_id: int,
    response_in: ResponseCreate,
    clock: Clock,
    user_agent: Optional[str] = None,
    ip_address: Optional[str] = None,
) -> Response:
    """Append a respondent's submission to a published survey."""
    result = await db.execute(locked_survey_query(survey_id))
    survey = result.unique().scalar_one_or_none()
    if survey is None:
        raise NotFoundError("Survey")
    if survey.status != SurveyStatus.PUBLISHED:
        raise SurveyNotAcceptingResponsesError(survey.status.value)

    settings = SurveySettings(**(survey.settings or {}))
    if not settings.anonymous_responses and not (
        response_in.user_id or response_in.session_id
    ):
        raise ValidationError(
            "Survey does not accept anonymous responses",
            field_errors={"user_id": ["user_id or session_id is required"]},
        )
    if settings.one_response_per_person and await _respondent_exists(
        db, survey.id, response_in
    ):
        raise DuplicateResponseError()

    now = clock.now()
    db_response = Response(
        survey_id=survey.id,
        user_id=response_in.user_id,
        session_id=response_in.session_id,
        responses=response_in.responses,
        nps_score=response_in.nps_score,
        sentiment=response_in.sentiment,
        completion_time=response_in.completion_time,
        user_agent=user_agent,
        ip_address=ip_address,
        meta=response_in.metadata,
        created_at=now,
        updated_at=now,
    )
    db.add(db_response)
    await commit_session(db)
    logger.info("Response %s recorded for survey %s", db_response.id, survey.id)
    return db_response


async def get_responses_for_survey(db: AsyncSession, survey_id: int):
    result = await db.execute(
        select(Response)
        .where(Response.survey_id == survey_id)
        .order_by(Response.created_at, Response.id)
    )
    return result.scalars().all()
