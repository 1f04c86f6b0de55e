"""Customer onboarding: signup, phone verification and KYC submission"""

import logging
from typing import Any, Dict, Tuple

from sqlalchemy.orm import Session

from tradehub.config import settings
from tradehub.domain.exceptions import (
    AccountNotFoundError,
    InvalidOperationError,
    InvalidVerificationCodeError,
    VerificationCodeExpiredError,
)
from tradehub.domain.references import generate_verification_code
from tradehub.infrastructure.database.models import BankAccount, KYCSubmission, UserProfile, VerificationCode
from tradehub.infrastructure.database.repositories import (
    AccountRepository,
    KYCRepository,
    NotificationRepository,
    ProfileRepository,
    VerificationCodeRepository,
)
from tradehub.utils.date_utils import as_utc, utcnow

logger = logging.getLogger(__name__)


class OnboardingService:
    """Takes a user from signup to an active, verified account"""

    def __init__(self, db: Session):
        self.db = db
        self.profiles = ProfileRepository(db)
        self.accounts = AccountRepository(db)
        self.codes = VerificationCodeRepository(db)
        self.notifications = NotificationRepository(db)
        self.kyc = KYCRepository(db)

    def sign_up(self, user_id: str, fields: Dict[str, Any]) -> Tuple[UserProfile, BankAccount]:
        """
        Create the profile, a Pending zero-balance account and default settings.

        Raises:
            InvalidOperationError: Profile already exists for user_id
        """
        if self.profiles.get_by_user(user_id) is not None:
            raise InvalidOperationError("Profile already exists")

        profile = self.profiles.create_profile(user_id, **fields)
        account = self.accounts.create_for_user(user_id)
        self.profiles.create_default_settings(user_id)
        self.notifications.create(
            user_id,
            type="info",
            title="Welcome to TradeHub",
            message="Verify your phone number to activate your account.",
        )
        self.db.commit()
        logger.info("Account opened", extra={"user_id": user_id, "iban": account.iban})
        return profile, account

    def send_phone_code(self, user_id: str, phone: str) -> VerificationCode:
        """Store a fresh code; there is no SMS gateway, delivery happens out of band"""
        if self.profiles.get_by_user(user_id) is None:
            raise AccountNotFoundError("Profile not found")

        code = generate_verification_code(settings.verification_code_length)
        record = self.codes.create(user_id, phone, code)
        self.db.commit()
        logger.debug("Verification code issued", extra={"user_id": user_id, "phone": phone})
        return record

    def verify_phone(self, user_id: str, phone: str, code: str) -> UserProfile:
        """
        Consume a code, then mark the phone verified and activate the account.

        Raises:
            InvalidVerificationCodeError: No unused code was issued for this phone
            VerificationCodeExpiredError: Code matched but expired
        """
        record = self.codes.find_unused(user_id, phone, code)
        if record is None:
            raise InvalidVerificationCodeError("Invalid verification code")
        if as_utc(record.expires_at) < utcnow():
            raise VerificationCodeExpiredError("Verification code expired")

        self.codes.mark_used(record)

        profile = self.profiles.get_by_user(user_id)
        if profile is None:
            self.db.rollback()
            raise AccountNotFoundError("Profile not found")
        profile.phone = record.phone
        profile.phone_verified = True
        profile.verification_step = "completed"

        account = self.accounts.get_by_user(user_id)
        if account is not None:
            self.accounts.set_status(account, "Active")

        self.notifications.create(
            user_id,
            type="success",
            title="Account activated",
            message="You can now use all TradeHub banking services.",
            description="Phone verified",
        )
        self.db.commit()
        return profile

    def submit_kyc(
        self, user_id: str, national_id_url: str | None, passport_url: str | None, selfie_url: str
    ) -> KYCSubmission:
        """Record identity documents for review; one ID document plus a selfie is required"""
        if not (national_id_url or passport_url):
            raise InvalidOperationError("A national ID or passport is required")

        profile = self.profiles.get_by_user(user_id)
        if profile is None:
            raise AccountNotFoundError("Profile not found")

        submission = self.kyc.create(user_id, national_id_url, passport_url, selfie_url)
        profile.kyc_status = "pending"
        self.notifications.create(
            user_id,
            type="info",
            title="Documents received",
            message="Your identity documents are being reviewed.",
        )
        self.db.commit()
        return submission
