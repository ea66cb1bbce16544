"""
Survey lifecycle: status transitions, ownership scoping and the mutation guard.

All functions run inside the caller's session. Mutating operations lock the
survey row, check their guard and write within that one transaction, then
commit. Any raised error leaves the session to be rolled back by the caller.
"""

import copy
import logging
import math
from collections import defaultdict
from typing import Dict, List, Sequence, Tuple

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app import config
from app.analytics import analytics_seed, compute_analytics
from app.clock import Clock
from app.database import commit_session
from app.exceptions import (
    AlreadyClosedError,
    AlreadyPublishedError,
    EmptyQuestionsError,
    NotFoundError,
    PublishedWithResponsesError,
    ValidationError,
)
from app.models import Response, Survey, SurveyStatus, User
from app.schemas import SurveyCreate, SurveyListParams, SurveySettings, SurveyUpdate

logger = logging.getLogger(__name__)

SORTABLE_COLUMNS = {
    "created_at": Survey.created_at,
    "updated_at": Survey.updated_at,
    "published_at": Survey.published_at,
    "title": Survey.title,
    "category": Survey.category,
    "status": Survey.status,
}

DEFAULT_ESTIMATED_TIME = "5-10 minutes"
COPY_SUFFIX = " (Copy)"


def _dump_questions(questions) -> List[dict]:
    return [q.model_dump(mode="json", exclude_none=True) for q in questions]


def _owned(owner_id: int):
    return (Survey.created_by == owner_id, Survey.deleted_at.is_(None))


# --- Reads ---


async def get_survey(
    db: AsyncSession, survey_id: int, owner_id: int, for_update: bool = False
) -> Survey:
    """Load a live survey of ``owner_id``; foreign or tombstoned ones do not exist."""
    stmt = select(Survey).where(Survey.id == survey_id, *_owned(owner_id))
    if for_update:
        stmt = stmt.with_for_update(of=Survey)
    result = await db.execute(stmt)
    survey = result.unique().scalar_one_or_none()
    if survey is None:
        raise NotFoundError("Survey")
    return survey


async def count_responses(db: AsyncSession, survey_id: int) -> int:
    result = await db.execute(
        select(func.count(Response.id)).where(Response.survey_id == survey_id)
    )
    return result.scalar_one()


async def compute_survey_analytics(
    db: AsyncSession, surveys: Sequence[Survey], clock: Clock
) -> Dict[int, dict]:
    """Fresh analytics for each survey, loading all response sets in one query."""
    if not surveys:
        return {}
    survey_ids = [s.id for s in surveys]
    result = await db.execute(
        select(
            Response.survey_id,
            Response.nps_score,
            Response.sentiment,
            Response.completion_time,
        ).where(Response.survey_id.in_(survey_ids))
    )
    by_survey = defaultdict(list)
    for row in result.all():
        by_survey[row.survey_id].append(row)

    now = clock.now()
    return {
        s.id: compute_analytics(by_survey[s.id], now, seed=s.analytics)
        for s in surveys
    }


async def list_surveys(
    db: AsyncSession, owner_id: int, params: SurveyListParams
) -> Tuple[List[Survey], int, int]:
    """Returns (surveys of the requested page, total count, page size)."""
    per_page = (
        params.per_page if params.per_page is not None else config.DEFAULT_PER_PAGE
    )
    field_errors = {}
    if not 1 <= per_page <= config.MAX_PER_PAGE:
        field_errors["per_page"] = [f"must be between 1 and {config.MAX_PER_PAGE}"]
    if params.page < 1:
        field_errors["page"] = ["must be at least 1"]
    if params.sort_by not in SORTABLE_COLUMNS:
        field_errors["sort_by"] = [f"must be one of {sorted(SORTABLE_COLUMNS)}"]
    sort_order = params.sort_order.lower()
    if sort_order not in ("asc", "desc"):
        field_errors["sort_order"] = ["must be 'asc' or 'desc'"]
    if params.status not in (None, "all") and params.status not in {
        s.value for s in SurveyStatus
    }:
        field_errors["status"] = ["unknown survey status"]
    if field_errors:
        raise ValidationError(field_errors=field_errors)

    conditions = list(_owned(owner_id))
    if params.status and params.status != "all":
        conditions.append(Survey.status == SurveyStatus(params.status))
    if params.category and params.category != "all":
        conditions.append(Survey.category == params.category)
    if params.search:
        conditions.append(
            Survey.title.icontains(params.search, autoescape=True)
            | Survey.description.icontains(params.search, autoescape=True)
        )

    total_result = await db.execute(select(func.count(Survey.id)).where(*conditions))
    total = total_result.scalar_one()

    column = SORTABLE_COLUMNS[params.sort_by]
    ordering = (
        (column.asc(), Survey.id.asc())
        if sort_order == "asc"
        else (column.desc(), Survey.id.desc())
    )
    result = await db.execute(
        select(Survey)
        .where(*conditions)
        .order_by(*ordering)
        .offset((params.page - 1) * per_page)
        .limit(per_page)
    )
    return list(result.unique().scalars().all()), total, per_page


def last_page(total: int, per_page: int) -> int:
    return max(1, math.ceil(total / per_page))


# --- Mutations ---


async def create_survey(
    db: AsyncSession, owner: User, survey_in: SurveyCreate, clock: Clock
) -> Survey:
    now = clock.now()
    settings = survey_in.settings or SurveySettings()
    survey = Survey(
        title=survey_in.title,
        description=survey_in.description,
        category=survey_in.category,
        estimated_time=survey_in.estimated_time or DEFAULT_ESTIMATED_TIME,
        questions=_dump_questions(survey_in.questions),
        settings=settings.model_dump(),
        status=SurveyStatus.DRAFT,
        created_by=owner.id,
        creator=owner,
        analytics=analytics_seed(),
        created_at=now,
        updated_at=now,
    )
    db.add(survey)
    await commit_session(db)
    logger.info("User %s created survey %s", owner.id, survey.id)
    return survey


async def _guard_mutation(db: AsyncSession, survey: Survey, action: str):
    if survey.status != SurveyStatus.PUBLISHED:
        return
    if await count_responses(db, survey.id) > 0:
        logger.warning(
            "Rejected %s of published survey %s with responses", action, survey.id
        )
        raise PublishedWithResponsesError(action)


async def update_survey(
    db: AsyncSession,
    survey_id: int,
    owner_id: int,
    survey_in: SurveyUpdate,
    clock: Clock,
) -> Survey:
    survey = await get_survey(db, survey_id, owner_id, for_update=True)
    await _guard_mutation(db, survey, "update")

    for field in survey_in.model_fields_set:
        value = getattr(survey_in, field)
        if field == "questions":
            value = _dump_questions(value)
        elif field == "settings":
            value = (value or SurveySettings()).model_dump()
        elif field == "estimated_time" and value is None:
            value = DEFAULT_ESTIMATED_TIME
        setattr(survey, field, value)
    survey.updated_at = clock.now()

    await commit_session(db)
    logger.info(
        "Survey %s updated (%s)",
        survey.id,
        ", ".join(sorted(survey_in.model_fields_set)),
    )
    return survey


async def delete_survey(
    db: AsyncSession, survey_id: int, owner_id: int, clock: Clock
) -> Survey:
    survey = await get_survey(db, survey_id, owner_id, for_update=True)
    await _guard_mutation(db, survey, "delete")

    now = clock.now()
    survey.deleted_at = now
    survey.updated_at = now
    await commit_session(db)
    logger.info("Survey %s tombstoned", survey.id)
    return survey


async def publish_survey(
    db: AsyncSession, survey_id: int, owner_id: int, clock: Clock
) -> Survey:
    survey = await get_survey(db, survey_id, owner_id, for_update=True)
    if survey.status == SurveyStatus.PUBLISHED:
        raise AlreadyPublishedError()
    if not survey.questions:
        raise EmptyQuestionsError()

    now = clock.now()
    previous = survey.status
    survey.status = SurveyStatus.PUBLISHED
    if survey.published_at is None:
        survey.published_at = now
    survey.updated_at = now
    await commit_session(db)
    logger.info("Survey %s published (was %s)", survey.id, previous.value)
    return survey


async def close_survey(
    db: AsyncSession, survey_id: int, owner_id: int, clock: Clock
) -> Survey:
    survey = await get_survey(db, survey_id, owner_id, for_update=True)
    if survey.status == SurveyStatus.CLOSED:
        raise AlreadyClosedError()

    survey.status = SurveyStatus.CLOSED
    survey.updated_at = clock.now()
    await commit_session(db)
    logger.info("Survey %s closed", survey.id)
    return survey


async def pause_survey(
    db: AsyncSession, survey_id: int, owner_id: int, clock: Clock
) -> Survey:
    survey = await get_survey(db, survey_id, owner_id, for_update=True)

    previous = survey.status
    survey.status = SurveyStatus.PAUSED
    survey.updated_at = clock.now()
    await commit_session(db)
    logger.info("Survey %s paused (was %s)", survey.id, previous.value)
    return survey


async def duplicate_survey(
    db: AsyncSession, survey_id: int, owner: User, clock: Clock
) -> Survey:
    original = await get_survey(db, survey_id, owner.id)

    now = clock.now()
    duplicate = Survey(
        title=original.title + COPY_SUFFIX,
        description=original.description,
        category=original.category,
        estimated_time=original.estimated_time,
        questions=copy.deepcopy(original.questions),
        settings=copy.deepcopy(original.settings),
        status=SurveyStatus.DRAFT,
        created_by=owner.id,
        creator=owner,
        analytics=analytics_seed(),
        published_at=None,
        created_at=now,
        updated_at=now,
    )
    db.add(duplicate)
    await commit_session(db)
    logger.info("Survey %s duplicated as %s", original.id, duplicate.id)
    return duplicate
