from fastapi import APIRouter, Request, HTTPException, Depends
from fastapi.responses import JSONResponse
from typing import List, Optional
import asyncio
import logging

from accounts.models.base import CamelModel
from accounts.models.person import PersonView
from accounts.models.rfid import RfidAssociateRequest, RfidCard, RfidRead, RfidUidRequest
from accounts.services.identity_store import DuplicateRecordError, normalize_uid
from accounts.utils.auth import verify_admin_token

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/rfid", dependencies=[Depends(verify_admin_token)])


class RfidVerifyResponse(CamelModel):
    found: bool
    uid: str
    reason: Optional[str] = None
    card: Optional[RfidCard] = None
    person: Optional[PersonView] = None


class RfidLastReadResponse(CamelModel):
    card: Optional[RfidRead] = None


@router.post("/associate", response_model=RfidCard)
def associate_card(request: Request, body: RfidAssociateRequest):
    person_id = body.person_id.strip()
    uid = normalize_uid(body.uid)
    if not person_id or not uid:
        raise HTTPException(status_code=400, detail="personId and uid are required")

    store = request.app.state.identity_store
    if not store.get_person(person_id):
        raise HTTPException(status_code=404, detail="Person not found")

    existing = store.get_rfid_card_by_uid(uid)
    if existing:
        return JSONResponse(
            status_code=409,
            content={"error": "UID already associated", "card": existing.model_dump(by_alias=True)}
        )

    try:
        return store.create_rfid_card(person_id, uid)
    except DuplicateRecordError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        logger.error(f"RFID association error: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Error associating card")


@router.post("/verify", response_model=RfidVerifyResponse, response_model_exclude_none=True)
def verify_card(request: Request, body: RfidUidRequest):
    uid = normalize_uid(body.uid)
    if not uid:
        raise HTTPException(status_code=400, detail="uid is required")

    store = request.app.state.identity_store
    card = store.get_rfid_card_by_uid(uid)
    if not card:
        return RfidVerifyResponse(found=False, uid=uid)

    person = store.get_person(card.person_id)
    if not person or not person.active:
        return RfidVerifyResponse(found=False, uid=uid, reason="inactive")

    return RfidVerifyResponse(found=True, uid=uid, card=card, person=PersonView.from_person(person))


@router.get("/person/{person_id}", response_model=List[RfidCard])
def list_person_cards(request: Request, person_id: str):
    return request.app.state.identity_store.list_rfid_cards(person_id)


@router.post("/{card_id}/deactivate", response_model=RfidCard)
def deactivate_card(request: Request, card_id: str):
    card = request.app.state.identity_store.deactivate_rfid_card(card_id)
    if not card:
        raise HTTPException(status_code=404, detail="Card not found")
    return card


@router.delete("/{card_id}")
def delete_card(request: Request, card_id: str):
    deleted = request.app.state.identity_store.delete_rfid_card(card_id)
    return {"deleted": deleted}


@router.get("/status")
def rfid_status(request: Request):
    return {"available": request.app.state.identity_store.has_rfid_cards()}


@router.post("/last-read", response_model=RfidRead)
async def receive_read(request: Request, body: RfidRead):
    """Entry point for the reader bridge; fans the read out to websocket listeners."""
    uid = body.uid.strip()
    if not uid:
        raise HTTPException(status_code=400, detail="uid is required")

    read = await asyncio.to_thread(request.app.state.identity_store.set_last_rfid_read, uid, body.timestamp)
    logger.info(f"RFID read received: {read.uid}")

    try:
        await request.app.state.ws_manager.broadcast_read(read)
    except Exception as ws_error:
        logger.error(f"WebSocket broadcast error: {str(ws_error)}")
    return read


@router.get("/last-read", response_model=RfidLastReadResponse)
def last_read(request: Request):
    return RfidLastReadResponse(card=request.app.state.identity_store.get_last_rfid_read())
