from fastapi import APIRouter, Request, HTTPException, Depends, Query
from typing import List, Optional
import logging

from accounts.models.activity import ActivityEvent, ActivityStatus
from accounts.models.face import FaceDescriptorRequest
from accounts.models.person import AuthenticatedUser
from accounts.services.authenticator import authenticate_by_face
from accounts.utils.auth import verify_admin_token
from accounts.utils.config import settings
from accounts.utils.request_meta import get_request_meta

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/auth/face", response_model=AuthenticatedUser)
def face_login(request: Request, body: FaceDescriptorRequest):
    """Sign-in with a face descriptor captured by the login page."""
    outcome = authenticate_by_face(
        request.app.state.identity_store,
        body.descriptor,
        provider="face",
        meta=get_request_meta(request),
        threshold=settings.FACE_MATCH_THRESHOLD
    )
    if not outcome.authenticated:
        # The reason stays in the activity log only
        raise HTTPException(status_code=401, detail="Face not recognized")
    return outcome.user


@router.get("/logins", response_model=List[ActivityEvent], dependencies=[Depends(verify_admin_token)])
def list_logins(
    request: Request,
    status: Optional[ActivityStatus] = Query(None)
):
    try:
        return request.app.state.identity_store.list_activity(status)
    except Exception as e:
        logger.error(f"Activity retrieval error: {str(e)}")
        raise HTTPException(status_code=500, detail="Error loading activity")
