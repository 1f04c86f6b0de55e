"""POST /v1/transfers, /v1/withdrawals, /v1/topups - money movement endpoints"""

import time
import logging
from fastapi import APIRouter, Depends, HTTPException, BackgroundTasks, Request
from sqlalchemy.orm import Session

from tradehub.api.v1.schemas import (
    TopUpRequest,
    TransactionResponse,
    TransferRequest,
    TransferResponse,
    WithdrawalRequest,
    WithdrawalResponse,
)
from tradehub.api.dependencies import get_events_client, get_request_id, require_kyc
from tradehub.infrastructure.database.session import get_db
from tradehub.infrastructure.clients.events import EventsClient
from tradehub.domain.transfers import TransferService
from tradehub.domain.exceptions import DomainException
from tradehub.infrastructure.observability.metrics import record_transfer
from tradehub.infrastructure.observability.logging import log_transfer

router = APIRouter()


@router.post("/transfers", response_model=TransferResponse, status_code=201)
async def create_transfer(
    request_body: TransferRequest,
    background_tasks: BackgroundTasks,
    request: Request,
    db: Session = Depends(get_db),
    user_id: str = Depends(require_kyc),
    events_client: EventsClient = Depends(get_events_client),
):
    """
    Send money to a saved or new recipient.

    Flow:
    1. Check the sender's balance covers the amount
    2. Debit the sender, record the `sent` transaction and notify
    3. Credit the recipient account matching the IBAN, record `received` and notify
    4. Publish TRANSFER_COMPLETED to the events webhook
    5. Return the reference and whether the recipient was credited
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        result = TransferService(db).send(
            user_id,
            request_body.amount_cents,
            recipient_id=str(request_body.recipient_id) if request_body.recipient_id else None,
            new_recipient=request_body.new_recipient.model_dump() if request_body.new_recipient else None,
            save_recipient=request_body.save_recipient,
            purpose=request_body.purpose,
        )
    except DomainException:
        db.rollback()
        record_transfer("transfer", "rejected")
        raise
    except Exception as e:
        db.rollback()
        record_transfer("transfer", "failed")
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id, "user_id": user_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    background_tasks.add_task(
        events_client.send_event,
        {
            "event": "TRANSFER_COMPLETED",
            "reference": result.reference,
            "user_id": user_id,
            "amount_cents": result.amount_cents,
            "recipient_credited": result.recipient_credited,
        },
    )

    # Record metrics and logs
    duration_ms = (time.time() - start_time) * 1000
    record_transfer("transfer", "completed", result.amount_cents)
    log_transfer(request_id, user_id, result.reference, result.amount_cents, result.recipient_credited, duration_ms)

    return TransferResponse(
        reference=result.reference,
        amount_cents=result.amount_cents,
        new_balance_cents=result.new_balance_cents,
        sender_transaction_id=result.sender_transaction_id,
        recipient_credited=result.recipient_credited,
        recipient_transaction_id=result.recipient_transaction_id,
    )


@router.post("/withdrawals", response_model=WithdrawalResponse, status_code=201)
def create_withdrawal(
    request_body: WithdrawalRequest,
    request: Request,
    db: Session = Depends(get_db),
    user_id: str = Depends(require_kyc),
):
    """Submit a Western Union or agent cash withdrawal for processing"""
    try:
        result = TransferService(db).withdraw(
            user_id,
            request_body.amount_cents,
            request_body.method,
            agent_id=str(request_body.agent_id) if request_body.agent_id else None,
            recipient_name=request_body.recipient_name,
            pickup_location=request_body.pickup_location,
            notes=request_body.notes,
        )
    except DomainException:
        db.rollback()
        record_transfer("withdrawal", "rejected")
        raise

    record_transfer("withdrawal", "completed", result.amount_cents)
    logging.info(
        "Withdrawal requested",
        extra={"request_id": get_request_id(request), "user_id": user_id, "reference": result.reference},
    )
    return WithdrawalResponse(
        reference=result.reference,
        amount_cents=result.amount_cents,
        transaction_id=result.transaction_id,
        agent_transaction_id=result.agent_transaction_id,
        contact_link=result.contact_link,
    )


@router.post("/topups", response_model=TransactionResponse, status_code=201)
def create_topup(
    request_body: TopUpRequest,
    request: Request,
    db: Session = Depends(get_db),
    user_id: str = Depends(require_kyc),
):
    """Declare an incoming deposit; it stays pending until reviewed"""
    try:
        deposit = TransferService(db).top_up(
            user_id,
            request_body.amount_cents,
            request_body.method,
            mtcn=request_body.mtcn,
            sender_name=request_body.sender_name,
            receipt_url=request_body.receipt_url,
            agent_id=str(request_body.agent_id) if request_body.agent_id else None,
        )
    except DomainException:
        db.rollback()
        record_transfer("topup", "rejected")
        raise

    record_transfer("topup", "completed", deposit.amount_cents)
    logging.info(
        "Top-up submitted",
        extra={"request_id": get_request_id(request), "user_id": user_id, "reference": deposit.reference},
    )
    return deposit
