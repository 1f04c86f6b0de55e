"""Virtual card endpoints"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from tradehub.api.v1.schemas import CardCreate, CardResponse, CardSpendRequest, CardStatusUpdate
from tradehub.api.dependencies import get_current_user_id, require_kyc
from tradehub.domain.cards import check_spend, generate_card
from tradehub.domain.exceptions import CardNotFoundError
from tradehub.infrastructure.database.session import get_db
from tradehub.infrastructure.database.repositories import CardRepository, NotificationRepository
from tradehub.utils.money import format_amount

router = APIRouter()


def _get_owned(repo: CardRepository, user_id: str, card_id: str):
    card = repo.get(user_id, card_id)
    if card is None:
        raise CardNotFoundError("Card not found")
    return card


@router.get("/cards", response_model=List[CardResponse])
def list_cards(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    return CardRepository(db).list_by_user(user_id)


@router.post("/cards", response_model=CardResponse, status_code=201)
def create_card(
    request_body: CardCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(require_kyc),
):
    """Issue a card preloaded with its spending limit"""
    card = CardRepository(db).create(user_id, request_body.model_dump(), generate_card())
    NotificationRepository(db).create(
        user_id,
        type="success",
        title="Virtual card created",
        message=f"Your card {card.name} is ready to use",
        description=f"Limit {format_amount(card.spending_limit_cents)} {card.currency}",
    )
    db.commit()
    logging.info("Card issued", extra={"user_id": user_id, "card_id": str(card.id)})
    return card


@router.patch("/cards/{card_id}/status", response_model=CardResponse)
def update_card_status(
    card_id: str,
    request_body: CardStatusUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Freeze or unfreeze a card"""
    repo = CardRepository(db)
    card = _get_owned(repo, user_id, card_id)
    repo.update_status(card, request_body.status)
    db.commit()
    return card


@router.post("/cards/{card_id}/spend", response_model=CardResponse)
def spend_on_card(
    card_id: str,
    request_body: CardSpendRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Record a purchase against the card's remaining balance"""
    repo = CardRepository(db)
    card = _get_owned(repo, user_id, card_id)
    check_spend(card.status, card.balance_cents, request_body.amount_cents)
    repo.record_spending(card, request_body.amount_cents)
    db.commit()
    return card


@router.delete("/cards/{card_id}", status_code=204)
def delete_card(
    card_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    repo = CardRepository(db)
    card = _get_owned(repo, user_id, card_id)
    repo.delete(card)
    db.commit()
    return Response(status_code=204)
