"""Documents and statements endpoints"""

import logging
from datetime import date
from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Response
from sqlalchemy.orm import Session

from tradehub.api.v1.schemas import (
    BalanceCertificateResponse,
    DocumentCreate,
    DocumentResponse,
    DocumentStatusUpdate,
    StatementResponse,
    TaxSummaryResponse,
)
from tradehub.api.dependencies import get_current_user_id
from tradehub.config import settings
from tradehub.domain.documents import (
    build_balance_certificate,
    build_statement,
    build_tax_summary,
    process_document,
)
from tradehub.domain.exceptions import AccountNotFoundError, DocumentNotFoundError
from tradehub.infrastructure.database.session import get_db, get_session_factory
from tradehub.infrastructure.database.repositories import (
    AccountRepository,
    DocumentRepository,
    ProfileRepository,
    TransactionRepository,
)

router = APIRouter()


@router.get("/documents", response_model=List[DocumentResponse])
def list_documents(
    type: str | None = Query(None),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    return DocumentRepository(db).list_by_user(user_id, doc_type=type)


@router.post("/documents", response_model=DocumentResponse, status_code=201)
def request_document(
    request_body: DocumentCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
    session_factory=Depends(get_session_factory),
):
    """Queue a document; it moves from processing to ready in the background"""
    document = DocumentRepository(db).create(user_id, request_body.model_dump())
    db.commit()

    background_tasks.add_task(
        process_document,
        session_factory,
        str(document.id),
        settings.document_processing_seconds,
        settings.document_ready_file_size,
    )
    logging.info("Document requested", extra={"user_id": user_id, "document_id": str(document.id)})
    return document


def _get_owned(repo: DocumentRepository, user_id: str, document_id: str):
    document = repo.get(document_id, user_id=user_id)
    if document is None:
        raise DocumentNotFoundError("Document not found")
    return document


@router.patch("/documents/{document_id}/status", response_model=DocumentResponse)
def update_document_status(
    document_id: str,
    request_body: DocumentStatusUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    repo = DocumentRepository(db)
    document = _get_owned(repo, user_id, document_id)
    repo.update_status(document, request_body.status)
    db.commit()
    return document


@router.delete("/documents/{document_id}", status_code=204)
def delete_document(
    document_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    repo = DocumentRepository(db)
    document = _get_owned(repo, user_id, document_id)
    repo.delete(document)
    db.commit()
    return Response(status_code=204)


def _account_and_holder(db: Session, user_id: str):
    account = AccountRepository(db).get_by_user(user_id)
    if account is None:
        raise AccountNotFoundError("No bank account found")
    profile = ProfileRepository(db).get_by_user(user_id)
    holder = (profile.full_name if profile else None) or "Account Holder"
    return account, holder


@router.get("/statements", response_model=StatementResponse)
def get_statement(
    period: str = Query(..., description="YYYY-MM or YYYY"),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Account statement with running balances for the period"""
    account, holder = _account_and_holder(db, user_id)
    transactions = TransactionRepository(db).list_by_user(user_id)
    return build_statement(account, holder, transactions, period)


@router.get("/statements/certificate", response_model=BalanceCertificateResponse)
def get_balance_certificate(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    account, holder = _account_and_holder(db, user_id)
    return build_balance_certificate(account, holder)


@router.get("/statements/tax", response_model=TaxSummaryResponse)
def get_tax_summary(
    year: str | None = Query(None, pattern=r"^\d{4}$"),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Deposits, withdrawals and average daily balance for a tax year"""
    year = year or str(date.today().year)
    account, holder = _account_and_holder(db, user_id)
    transactions = TransactionRepository(db).list_by_user(user_id)
    return build_tax_summary(account, holder, transactions, year)
