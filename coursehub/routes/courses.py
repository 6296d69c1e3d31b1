from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, status
from fastapi.concurrency import run_in_threadpool

from coursehub.config import Settings, get_settings
from coursehub.courses.models import Course
from coursehub.courses.service import CourseQueryService, get_course_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["courses"])

INTERNAL_ERROR_DETAIL = "Internal server error while fetching courses"


@router.get("/courses", response_model=list[Course])
async def list_courses(
    institution_id: Optional[int] = Header(
        default=None, alias="ie_id", convert_underscores=False
    ),
    coupon_id: Optional[str] = Header(
        default=None, alias="couponId", convert_underscores=False
    ),
    settings: Settings = Depends(get_settings),
    service: CourseQueryService = Depends(get_course_service),
):
    if institution_id is None and settings.require_institution_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="ie_id header is required",
        )

    logger.info(
        "getting courses for institution: %s, coupon: %s", institution_id, coupon_id
    )
    try:
        courses = await run_in_threadpool(
            service.get_courses, institution_id, coupon_id
        )
    except Exception as exc:
        logger.error("error getting courses", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=INTERNAL_ERROR_DETAIL,
        ) from exc
    return list(courses)
