from fastapi import APIRouter, Request, HTTPException, Depends
import logging

from accounts.models.face import FaceDescriptorRequest, FaceRegisterRequest, FaceRemoveRequest, FaceVerifyResponse
from accounts.models.person import PersonView
from accounts.services.face_matcher import match_identity
from accounts.utils.auth import verify_admin_token
from accounts.utils.config import settings

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/face", dependencies=[Depends(verify_admin_token)])


@router.post("/register", response_model=PersonView)
def register_face(request: Request, body: FaceRegisterRequest):
    person_id = body.person_id.strip()
    if not person_id or not body.descriptor:
        raise HTTPException(status_code=400, detail="personId and descriptor are required")

    store = request.app.state.identity_store
    person = store.save_face_descriptor(person_id, body.descriptor, body.image_url)
    if not person:
        raise HTTPException(status_code=404, detail="Person not found")
    return PersonView.from_person(person)


@router.post("/remove", response_model=PersonView)
def remove_face(request: Request, body: FaceRemoveRequest):
    person_id = body.person_id.strip()
    if not person_id:
        raise HTTPException(status_code=400, detail="personId is required")

    person = request.app.state.identity_store.clear_face_descriptor(person_id)
    if not person:
        raise HTTPException(status_code=404, detail="Person not found")
    return PersonView.from_person(person)


@router.post("/verify", response_model=FaceVerifyResponse)
def verify_face(request: Request, body: FaceDescriptorRequest):
    if not body.descriptor:
        raise HTTPException(status_code=400, detail="descriptor is required")

    persons = request.app.state.identity_store.list_persons()
    match = match_identity(body.descriptor, persons, settings.FACE_MATCH_THRESHOLD)
    if match is None:
        return FaceVerifyResponse(found=False)
    return FaceVerifyResponse(found=True, match=match)
