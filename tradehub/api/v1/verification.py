"""Phone verification and KYC submission endpoints"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from tradehub.api.v1.schemas import (
    KYCSubmissionResponse,
    KYCSubmitRequest,
    PhoneCodeRequest,
    PhoneCodeSent,
    PhoneVerifyRequest,
    ProfileResponse,
)
from tradehub.api.dependencies import get_current_user_id
from tradehub.domain.onboarding import OnboardingService
from tradehub.infrastructure.database.session import get_db
from tradehub.infrastructure.database.repositories import KYCRepository

router = APIRouter()


@router.post("/verification/phone/send", response_model=PhoneCodeSent, status_code=201)
def send_phone_code(
    request_body: PhoneCodeRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    record = OnboardingService(db).send_phone_code(user_id, request_body.phone)
    return PhoneCodeSent(phone=record.phone, expires_at=record.expires_at)


@router.post("/verification/phone/verify", response_model=ProfileResponse)
def verify_phone(
    request_body: PhoneVerifyRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Confirm the code; activates the bank account"""
    return OnboardingService(db).verify_phone(user_id, request_body.phone, request_body.code)


@router.post("/kyc", response_model=KYCSubmissionResponse, status_code=201)
def submit_kyc(
    request_body: KYCSubmitRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    return OnboardingService(db).submit_kyc(
        user_id,
        national_id_url=request_body.national_id_url,
        passport_url=request_body.passport_url,
        selfie_url=request_body.selfie_url,
    )


@router.get("/kyc/latest", response_model=KYCSubmissionResponse)
def latest_kyc(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    submission = KYCRepository(db).latest_for_user(user_id)
    if submission is None:
        raise HTTPException(status_code=404, detail="No KYC submission")
    return submission
