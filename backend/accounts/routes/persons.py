from fastapi import APIRouter, Request, HTTPException, Depends
from typing import List
import logging

from accounts.models.person import PersonCreate, PersonUpdate, PersonView
from accounts.services.identity_store import DuplicateRecordError
from accounts.utils.auth import verify_admin_token

logger = logging.getLogger(__name__)
router = APIRouter(dependencies=[Depends(verify_admin_token)])


@router.get("/persons", response_model=List[PersonView])
def list_persons(request: Request):
    store = request.app.state.identity_store
    return [PersonView.from_person(person) for person in store.list_persons()]


@router.post("/persons", response_model=PersonView, status_code=201)
def create_person(request: Request, body: PersonCreate):
    email = body.email.strip()
    name = body.name.strip()
    company = body.company.strip()

    if not email or not name or not company:
        raise HTTPException(status_code=400, detail="email, name and company are required")

    try:
        store = request.app.state.identity_store
        person = store.create_person(
            email=email,
            name=name,
            company=company,
            active=body.active,
            is_admin=body.is_admin
        )
        return PersonView.from_person(person)
    except DuplicateRecordError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        logger.error(f"Person creation error: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Person creation failed")


@router.get("/persons/{person_id}", response_model=PersonView)
def get_person(request: Request, person_id: str):
    person = request.app.state.identity_store.get_person(person_id)
    if not person:
        raise HTTPException(status_code=404, detail="Person not found")
    return PersonView.from_person(person)


@router.patch("/persons/{person_id}", response_model=PersonView)
def update_person(request: Request, person_id: str, body: PersonUpdate):
    try:
        person = request.app.state.identity_store.update_person(
            person_id,
            email=body.email or None,
            name=body.name or None,
            company=body.company or None,
            active=body.active,
            is_admin=body.is_admin
        )
    except DuplicateRecordError as e:
        raise HTTPException(status_code=409, detail=str(e))

    if not person:
        raise HTTPException(status_code=404, detail="Person not found")
    return PersonView.from_person(person)


@router.delete("/persons/{person_id}")
def delete_person(request: Request, person_id: str):
    if not request.app.state.identity_store.delete_person(person_id):
        raise HTTPException(status_code=404, detail="Person not found")
    return {"ok": True}
