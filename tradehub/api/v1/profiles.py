"""Profile, bank account and settings endpoints"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from tradehub.api.v1.schemas import (
    AccountLookupResponse,
    AccountResponse,
    ProfileResponse,
    SettingsResponse,
    SettingsUpdate,
    SignupRequest,
    SignupResponse,
)
from tradehub.api.dependencies import get_current_user_id
from tradehub.domain.onboarding import OnboardingService
from tradehub.infrastructure.database.session import get_db
from tradehub.infrastructure.database.repositories import AccountRepository, ProfileRepository

router = APIRouter()


@router.post("/profiles", response_model=SignupResponse, status_code=201)
def sign_up(
    request_body: SignupRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Register the caller: profile, Pending bank account and default settings"""
    profile, account = OnboardingService(db).sign_up(user_id, request_body.model_dump())
    return SignupResponse(
        profile=ProfileResponse.model_validate(profile),
        account=AccountResponse.model_validate(account),
    )


@router.get("/profiles/me", response_model=ProfileResponse)
def get_my_profile(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    profile = ProfileRepository(db).get_by_user(user_id)
    if profile is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    return profile


@router.get("/account", response_model=AccountResponse)
def get_account(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    account = AccountRepository(db).get_by_user(user_id)
    if account is None:
        raise HTTPException(status_code=404, detail="No bank account found")
    return account


@router.get("/account/lookup", response_model=AccountLookupResponse)
def lookup_account(
    iban: str = Query(..., min_length=5),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Resolve an IBAN to its holder before sending money"""
    account = AccountRepository(db).find_by_iban(iban.replace(" ", ""))
    if account is None:
        raise HTTPException(status_code=404, detail="Account not found")
    holder = ProfileRepository(db).get_by_user(account.user_id)
    return AccountLookupResponse(
        iban=account.iban,
        bank_name=account.bank_name,
        swift_code=account.swift_code,
        holder_name=holder.full_name if holder else None,
    )


@router.get("/settings", response_model=SettingsResponse)
def get_settings(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Current settings; defaults are created on first read"""
    repo = ProfileRepository(db)
    user_settings = repo.get_settings(user_id)
    if user_settings is None:
        user_settings = repo.create_default_settings(user_id)
        db.commit()
    return user_settings


@router.patch("/settings", response_model=SettingsResponse)
def update_settings(
    request_body: SettingsUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    repo = ProfileRepository(db)
    user_settings = repo.get_settings(user_id) or repo.create_default_settings(user_id)
    repo.update_settings(user_settings, request_body.model_dump(exclude_unset=True, exclude_none=True))
    db.commit()
    return user_settings
