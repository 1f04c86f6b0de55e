"""Back-office endpoints, restricted to configured admin user ids"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from tradehub.api.v1.schemas import (
    AgentCreate,
    AgentLocationCreate,
    AgentLocationResponse,
    AgentResponse,
    AgentStatusUpdate,
    AgentTransactionResponse,
    AgentTransactionReview,
    KYCReview,
    KYCSubmissionResponse,
    TopUpReview,
    TransactionResponse,
)
from tradehub.api.dependencies import require_admin
from tradehub.api.v1.agents import to_agent_response
from tradehub.domain.exceptions import AgentNotFoundError, InvalidOperationError
from tradehub.domain.reviews import ReviewService
from tradehub.infrastructure.database.session import get_db
from tradehub.infrastructure.database.repositories import AgentRepository, KYCRepository, TransactionRepository

router = APIRouter(prefix="/admin")


@router.get("/topups", response_model=List[TransactionResponse])
def list_topups(
    status: str | None = Query("pending"),
    db: Session = Depends(get_db),
    admin_id: str = Depends(require_admin),
):
    return TransactionRepository(db).list_deposits(status)


@router.post("/topups/{transaction_id}/review", response_model=TransactionResponse)
def review_topup(
    transaction_id: str,
    request_body: TopUpReview,
    db: Session = Depends(get_db),
    admin_id: str = Depends(require_admin),
):
    """Approve (credit the balance) or reject a pending top-up"""
    return ReviewService(db).review_topup(
        transaction_id, request_body.status, admin_id, rejection_reason=request_body.rejection_reason
    )


@router.get("/agent-transactions", response_model=List[AgentTransactionResponse])
def list_agent_transactions(
    status: str | None = Query(None),
    db: Session = Depends(get_db),
    admin_id: str = Depends(require_admin),
):
    return AgentRepository(db).list_transactions(status)


@router.post("/agent-transactions/{transaction_id}/status", response_model=AgentTransactionResponse)
def update_agent_transaction(
    transaction_id: str,
    request_body: AgentTransactionReview,
    db: Session = Depends(get_db),
    admin_id: str = Depends(require_admin),
):
    """Settle an agent transaction; completion moves the user's balance"""
    return ReviewService(db).update_agent_transaction(
        transaction_id, request_body.status, admin_id, rejection_reason=request_body.rejection_reason
    )


@router.get("/kyc", response_model=List[KYCSubmissionResponse])
def list_kyc_submissions(
    status: str | None = Query("pending"),
    db: Session = Depends(get_db),
    admin_id: str = Depends(require_admin),
):
    return KYCRepository(db).list_by_status(status)


@router.post("/kyc/{submission_id}/review", response_model=KYCSubmissionResponse)
def review_kyc(
    submission_id: str,
    request_body: KYCReview,
    db: Session = Depends(get_db),
    admin_id: str = Depends(require_admin),
):
    return ReviewService(db).review_kyc(
        submission_id,
        request_body.status,
        admin_id,
        rejection_reason=request_body.rejection_reason,
        admin_notes=request_body.admin_notes,
    )


def _get_agent(repo: AgentRepository, agent_id: str):
    agent = repo.get(agent_id)
    if agent is None:
        raise AgentNotFoundError("Agent not found")
    return agent


@router.post("/agents", response_model=AgentResponse, status_code=201)
def create_agent(
    request_body: AgentCreate,
    db: Session = Depends(get_db),
    admin_id: str = Depends(require_admin),
):
    agent = AgentRepository(db).create(request_body.model_dump())
    db.commit()
    logging.info("Agent created", extra={"agent_id": str(agent.id), "code": agent.code, "admin_id": admin_id})
    return to_agent_response(agent)


@router.post("/agents/{agent_id}/locations", response_model=AgentLocationResponse, status_code=201)
def add_agent_location(
    agent_id: str,
    request_body: AgentLocationCreate,
    db: Session = Depends(get_db),
    admin_id: str = Depends(require_admin),
):
    repo = AgentRepository(db)
    location = repo.add_location(_get_agent(repo, agent_id), request_body.model_dump())
    db.commit()
    return location


@router.patch("/agents/{agent_id}/status", response_model=AgentResponse)
def change_agent_status(
    agent_id: str,
    request_body: AgentStatusUpdate,
    db: Session = Depends(get_db),
    admin_id: str = Depends(require_admin),
):
    """Inactive and suspended agents disappear from listings and refuse new bookings"""
    repo = AgentRepository(db)
    agent = repo.set_status(_get_agent(repo, agent_id), request_body.status)
    db.commit()
    logging.info("Agent status changed", extra={"agent_id": agent_id, "status": agent.status, "admin_id": admin_id})
    return to_agent_response(agent)


@router.delete("/agents/{agent_id}", status_code=204)
def delete_agent(
    agent_id: str,
    db: Session = Depends(get_db),
    admin_id: str = Depends(require_admin),
):
    repo = AgentRepository(db)
    agent = _get_agent(repo, agent_id)
    if repo.has_transactions(agent):
        raise InvalidOperationError("Agent has transaction history; deactivate it instead")
    repo.delete(agent)
    db.commit()
    logging.info("Agent deleted", extra={"agent_id": agent_id, "admin_id": admin_id})
    return Response(status_code=204)
