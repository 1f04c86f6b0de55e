"""Saved recipients endpoints"""

from typing import List

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from tradehub.api.v1.schemas import RecipientCreate, RecipientResponse, RecipientUpdate
from tradehub.api.dependencies import get_current_user_id
from tradehub.domain.exceptions import RecipientNotFoundError
from tradehub.domain.transfers import TransferService
from tradehub.infrastructure.database.session import get_db
from tradehub.infrastructure.database.repositories import RecipientRepository

router = APIRouter()


@router.get("/recipients", response_model=List[RecipientResponse])
def list_recipients(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Most recently used first"""
    return RecipientRepository(db).list_by_user(user_id)


@router.post("/recipients", response_model=RecipientResponse, status_code=201)
def create_recipient(
    request_body: RecipientCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Save a recipient, reusing an existing contact with the same name"""
    return TransferService(db).save_recipient(user_id, request_body.model_dump())


def _get_owned(db: Session, user_id: str, recipient_id: str):
    recipient = RecipientRepository(db).get(user_id, recipient_id)
    if recipient is None:
        raise RecipientNotFoundError("Recipient not found")
    return recipient


@router.patch("/recipients/{recipient_id}", response_model=RecipientResponse)
def update_recipient(
    recipient_id: str,
    request_body: RecipientUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    recipient = _get_owned(db, user_id, recipient_id)
    RecipientRepository(db).update(recipient, request_body.model_dump(exclude_unset=True, exclude_none=True))
    db.commit()
    return recipient


@router.post("/recipients/{recipient_id}/touch", response_model=RecipientResponse)
def touch_recipient(
    recipient_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    recipient = _get_owned(db, user_id, recipient_id)
    RecipientRepository(db).touch_last_used(recipient)
    db.commit()
    return recipient


@router.delete("/recipients/{recipient_id}", status_code=204)
def delete_recipient(
    recipient_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    recipient = _get_owned(db, user_id, recipient_id)
    RecipientRepository(db).delete(recipient)
    db.commit()
    return Response(status_code=204)
