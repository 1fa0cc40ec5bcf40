# app/routers/version_router.py
from fastapi import APIRouter, HTTPException, Depends
import logging
from typing import Any, Dict, List
from sqlalchemy.orm import Session
from ..schemas.test_schemas import (
    AnswerKeyResponse,
    GenerateVersionsResponse,
    VersionDetail,
    VersionGenerateRequest,
    VersionSummary,
)
from ..services.version_service import VersionService
from ..services.errors import NotFoundError, PreconditionError
from ..database.database import get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/versions", tags=["versions"])


@router.post("/generate", response_model=GenerateVersionsResponse, status_code=201)
def generate_versions(payload: VersionGenerateRequest, db: Session = Depends(get_db)):
    """Generate randomized versions of a test."""
    try:
        logger.info(f"Received version request: {payload.model_dump()}")
        created = VersionService(db).generate_versions(
            payload.testId, payload.versionCount, payload.questionsPerVersion
        )
        return GenerateVersionsResponse(
            success=True,
            message=f"Generated {len(created)} version(s)",
            data=created,
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PreconditionError as e:
        logger.info(f"Rejected version request for test {payload.testId}: {str(e)}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Error in generate_versions: {str(e)}")
        db.rollback()
        raise HTTPException(status_code=500, detail="Failed to generate versions")


@router.get("/test/{test_id}", response_model=List[VersionSummary])
def get_test_versions(test_id: int, db: Session = Depends(get_db)):
    try:
        return VersionService(db).list_versions(test_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error(f"Error in get_test_versions: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to fetch versions")


@router.get("/{version_id}", response_model=VersionDetail)
def get_version(version_id: int, db: Session = Depends(get_db)):
    """Get a single version with its questions and answer choices in version order."""
    try:
        return VersionService(db).get_version(version_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error(f"Error in get_version: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to fetch version details")


@router.get("/{version_id}/answer-key", response_model=AnswerKeyResponse)
def get_answer_key(version_id: int, db: Session = Depends(get_db)):
    try:
        return VersionService(db).get_answer_key(version_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error(f"Error in get_answer_key: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to build answer key")


@router.delete("/{version_id}")
def delete_version(version_id: int, db: Session = Depends(get_db)) -> Dict[str, Any]:
    try:
        VersionService(db).delete_version(version_id)
        return {"success": True, "message": "Version deleted successfully"}
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error(f"Error in delete_version: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to delete version")
