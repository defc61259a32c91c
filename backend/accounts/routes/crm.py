from fastapi import APIRouter, Request, HTTPException, Depends
from fastapi.responses import JSONResponse
from typing import Optional
import logging

from accounts.models.base import CamelModel
from accounts.models.face import FaceDescriptorRequest
from accounts.models.person import AuthenticatedUser, PersonView
from accounts.services import authenticator
from accounts.services.identity_store import normalize_email
from accounts.utils.auth import verify_crm_token
from accounts.utils.config import settings
from accounts.utils.request_meta import get_request_meta

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/crm", dependencies=[Depends(verify_crm_token)])

FAILURE_STATUS = {
    authenticator.DESCRIPTOR_EMPTY: 400,
    authenticator.NO_MATCH: 404,
    authenticator.NOT_FOUND: 404,
    authenticator.INACTIVE: 403,
}


class EmailRequest(CamelModel):
    email: str = ""


class CrmAuthResponse(CamelModel):
    authenticated: bool
    reason: Optional[str] = None
    user: Optional[AuthenticatedUser] = None


class CrmVerifyResponse(CamelModel):
    exists: bool
    active: bool
    user: Optional[PersonView] = None


def _auth_response(outcome: authenticator.AuthOutcome):
    if outcome.authenticated:
        return CrmAuthResponse(authenticated=True, user=outcome.user)
    body = CrmAuthResponse(authenticated=False, reason=outcome.reason)
    return JSONResponse(
        status_code=FAILURE_STATUS.get(outcome.reason, 401),
        content=body.model_dump(by_alias=True, exclude_none=True)
    )


@router.post("/auth", response_model=CrmAuthResponse, response_model_exclude_none=True)
def crm_auth_by_email(request: Request, body: EmailRequest):
    email = normalize_email(body.email)
    if not email:
        raise HTTPException(status_code=400, detail="email is required")

    try:
        outcome = authenticator.authenticate_by_email(
            request.app.state.identity_store,
            email,
            provider="crm",
            meta=get_request_meta(request)
        )
    except Exception as e:
        logger.error(f"CRM email authentication error: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Error authenticating user")
    return _auth_response(outcome)


@router.put("/auth", response_model=CrmAuthResponse, response_model_exclude_none=True)
def crm_auth_by_face(request: Request, body: FaceDescriptorRequest):
    if not body.descriptor:
        raise HTTPException(status_code=400, detail="descriptor is required")

    try:
        outcome = authenticator.authenticate_by_face(
            request.app.state.identity_store,
            body.descriptor,
            provider="crm_face",
            meta=get_request_meta(request),
            threshold=settings.FACE_MATCH_THRESHOLD
        )
    except Exception as e:
        logger.error(f"CRM face authentication error: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Error authenticating by face")
    return _auth_response(outcome)


@router.post("/verify", response_model=CrmVerifyResponse, response_model_exclude_none=True)
def crm_verify(request: Request, body: EmailRequest):
    """Report whether a user exists and is active, without logging them in."""
    email = normalize_email(body.email)
    if not email:
        raise HTTPException(status_code=400, detail="email is required")

    person = request.app.state.identity_store.get_person_by_email(email)
    if not person:
        return CrmVerifyResponse(exists=False, active=False)
    return CrmVerifyResponse(exists=True, active=person.active, user=PersonView.from_person(person))


@router.get("/user/{email}", response_model=PersonView)
def crm_get_user(request: Request, email: str):
    normalized = normalize_email(email)
    if not normalized:
        raise HTTPException(status_code=400, detail="email is required")

    person = request.app.state.identity_store.get_person_by_email(normalized)
    if not person:
        raise HTTPException(status_code=404, detail="User not found")
    return PersonView.from_person(person)
