"""Cash agent network endpoints"""

from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from tradehub.api.v1.schemas import (
    AgentLocationResponse,
    AgentResponse,
    AgentTransactionCreate,
    AgentTransactionResponse,
)
from tradehub.api.dependencies import get_current_user_id, require_kyc
from tradehub.config import settings
from tradehub.domain.contact import build_whatsapp_link
from tradehub.domain.countries import filter_agents_by_country
from tradehub.domain.exceptions import AgentNotFoundError, InvalidOperationError
from tradehub.infrastructure.database.session import get_db
from tradehub.infrastructure.database.repositories import AgentRepository, ProfileRepository

router = APIRouter()


def _agents_for_user(db: Session, user_id: str, country: str | None):
    """Active agents serving country, defaulting to the caller's profile country"""
    if country is None:
        profile = ProfileRepository(db).get_by_user(user_id)
        country = profile.country if profile else None
    return filter_agents_by_country(AgentRepository(db).list_active(), country)


def to_agent_response(agent) -> AgentResponse:
    response = AgentResponse.model_validate(agent)
    response.contact_link = build_whatsapp_link(agent.phone)
    return response


@router.get("/agents", response_model=List[AgentResponse])
def list_agents(
    country: str | None = Query(None, description="Country name or ISO code; defaults to the profile country"),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Active agents in the caller's country, best rated first"""
    return [to_agent_response(agent) for agent in _agents_for_user(db, user_id, country)]


@router.get("/agents/locations", response_model=List[AgentLocationResponse])
def list_agent_locations(
    country: str | None = Query(None),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Active branch locations of the agents listed for the caller"""
    agent_ids = [agent.id for agent in _agents_for_user(db, user_id, country)]
    return AgentRepository(db).locations_for(agent_ids)


@router.get("/agent-transactions", response_model=List[AgentTransactionResponse])
def list_agent_transactions(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    return AgentRepository(db).list_transactions_by_user(user_id)


@router.post("/agent-transactions", response_model=AgentTransactionResponse, status_code=201)
def create_agent_transaction(
    request_body: AgentTransactionCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(require_kyc),
):
    """Book a deposit or withdrawal with an agent; commission is charged at the configured rate"""
    repo = AgentRepository(db)
    agent = repo.get(request_body.agent_id)
    if agent is None or agent.status != "active":
        raise AgentNotFoundError("Agent not found")

    amount = request_body.amount_cents
    if agent.min_transaction_cents and amount < agent.min_transaction_cents:
        raise InvalidOperationError("Amount below the agent's minimum")
    if agent.max_transaction_cents and amount > agent.max_transaction_cents:
        raise InvalidOperationError("Amount above the agent's maximum")

    data = request_body.model_dump()
    data["currency"] = settings.default_currency
    txn = repo.create_transaction(user_id, data)
    db.commit()
    return txn
