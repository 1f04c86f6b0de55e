"""GET /v1/transactions - transaction history endpoints"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from tradehub.api.v1.schemas import TransactionResponse
from tradehub.api.dependencies import get_current_user_id
from tradehub.infrastructure.database.session import get_db
from tradehub.infrastructure.database.repositories import TransactionRepository

router = APIRouter()


@router.get("/transactions", response_model=List[TransactionResponse])
def list_transactions(
    limit: int | None = Query(None, ge=1, le=500),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Caller's transactions, newest first"""
    return TransactionRepository(db).list_by_user(user_id, limit=limit)


@router.get("/transactions/{transaction_id}", response_model=TransactionResponse)
def get_transaction(
    transaction_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    txn = TransactionRepository(db).get(transaction_id)
    if txn is None or txn.user_id != user_id:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return txn
