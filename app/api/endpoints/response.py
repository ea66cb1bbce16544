from typing import List

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.clock import Clock, get_clock
from app.crud import crud_response, crud_survey
from app.database import get_db_session
from app.models import User
from app.schemas import Envelope, ResponseCreate, ResponseData, ResponseRead

router = APIRouter()


@router.post(
    "/{survey_id}/responses",
    response_model=Envelope[ResponseData],
    status_code=status.HTTP_201_CREATED,
)
async def create_response_item(
    survey_id: int,
    response_in: ResponseCreate,
    request: Request,
    db: AsyncSession = Depends(get_db_session),
    clock: Clock = Depends(get_clock),
):
    """Public endpoint for respondents; no authentication required."""
    db_response = await crud_response.create_response(
        db,
        survey_id,
        response_in,
        clock,
        user_agent=request.headers.get("user-agent"),
        ip_address=request.client.host if request.client else None,
    )
    return Envelope[ResponseData](
        message="Response recorded successfully",
        data=ResponseData(response=ResponseRead.model_validate(db_response)),
    )


@router.get("/{survey_id}/responses", response_model=Envelope[List[ResponseRead]])
async def read_response_items(
    survey_id: int,
    db: AsyncSession = Depends(get_db_session),
    user: User = Depends(get_current_user),
):
    survey = await crud_survey.get_survey(db, survey_id, user.id)
    responses = await crud_response.get_responses_for_survey(db, survey.id)
    return Envelope[List[ResponseRead]](
        message="Responses retrieved successfully",
        data=[ResponseRead.model_validate(r) for r in responses],
    )
