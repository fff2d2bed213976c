"""Voter registrations: submission, duplicate checks, verification and eligibility."""

import random
import string
import threading
from datetime import date
from typing import Any, Callable, Dict, List, Mapping, Optional

import structlog

from .database import Database
from .errors import BadRequest, NotFoundError
from .schemas import VERIFICATION_STATUSES, Address, VoterRegistration, utcnow
from .validation import EMAIL, PHONE, WALLET_ADDRESS, FieldRule, raise_for_errors, strip_phone_punctuation, validate

logger = structlog.get_logger(__name__)

MINIMUM_AGE = 18
SUPPORTED_COUNTRY = "United States"
MUNICIPAL_STATES = ("NY", "CA", "TX", "FL")
NATIONAL_ELECTION = "national-2024"
PROVINCIAL_ELECTION = "provincial-2024"
MUNICIPAL_ELECTION = "municipal-2024"

REGISTRATION_RULES = [
    FieldRule("wallet_address", "wallet address", pattern=WALLET_ADDRESS,
              pattern_message="Invalid wallet address format"),
    FieldRule("first_name", "first name"),
    FieldRule("last_name", "last name"),
    FieldRule("date_of_birth", "date of birth"),
    FieldRule("national_id", "national id", min_length=5,
              min_message="National ID must be at least 5 characters"),
    FieldRule("email", "email", pattern=EMAIL, pattern_message="Invalid email format"),
    FieldRule("phone_number", "phone number", pattern=PHONE, normalize=strip_phone_punctuation,
              pattern_message="Invalid phone number format"),
    FieldRule("street", "street"),
    FieldRule("city", "city"),
    FieldRule("state", "state"),
    FieldRule("zip_code", "zip code"),
    FieldRule("country", "country"),
]


def calculate_age(birth: date, today: date) -> int:
    age = today.year - birth.year
    if (today.month, today.day) < (birth.month, birth.day):
        age -= 1
    return age


def determine_eligible_elections(address: Address) -> List[str]:
    eligible = [NATIONAL_ELECTION]
    if address.country == SUPPORTED_COUNTRY:
        eligible.append(PROVINCIAL_ELECTION)
        if address.state in MUNICIPAL_STATES:
            eligible.append(MUNICIPAL_ELECTION)
    return eligible


class RegistrationStore:
    collection = "voterregistration"

    def __init__(self, db: Database, clock: Callable = utcnow, rng: Optional[random.Random] = None) -> None:
        self.repo = db[self.collection]
        self.clock = clock
        self.rng = rng or random.Random()
        self._lock = threading.Lock()

    def _new_id(self) -> str:
        millis = int(self.clock().timestamp() * 1000)
        suffix = "".join(self.rng.choice(string.ascii_lowercase + string.digits) for _ in range(6))
        return f"voter-{millis}-{suffix}"

    def _age_errors(self, date_of_birth: Any) -> List[str]:
        if not date_of_birth or not str(date_of_birth).strip():
            return []
        try:
            birth = date.fromisoformat(str(date_of_birth).strip())
        except ValueError:
            return ["Invalid date of birth"]
        if calculate_age(birth, self.clock().date()) < MINIMUM_AGE:
            return [f"Must be at least {MINIMUM_AGE} years old to register"]
        return []

    def _duplicate_errors(self, data: Mapping[str, Any]) -> List[str]:
        errors = []
        wallet = (data.get("wallet_address") or "").strip().lower()
        national_id = (data.get("national_id") or "").strip()
        email = (data.get("email") or "").strip().lower()
        if wallet and self.repo.exists({"wallet_address": wallet}):
            errors.append("Wallet address already registered")
        if national_id and self.repo.exists({"national_id": national_id}):
            errors.append("National ID already registered")
        if email and self.repo.exists({"email": email}):
            errors.append("Email address already registered")
        return errors

    def create(self, data: Mapping[str, Any]) -> VoterRegistration:
        errors = validate(data, REGISTRATION_RULES)
        errors += self._age_errors(data.get("date_of_birth"))
        with self._lock:
            errors += self._duplicate_errors(data)
            raise_for_errors(errors)
            registration = self._insert(data)
        logger.info(
            "registration_submitted",
            registration_id=registration.id,
            name=f"{registration.first_name} {registration.last_name}",
        )
        return registration

    def _insert(self, data: Mapping[str, Any]) -> VoterRegistration:
        now = self.clock()
        registration = VoterRegistration(
            id=self._new_id(),
            wallet_address=data["wallet_address"].strip().lower(),
            first_name=data["first_name"].strip(),
            last_name=data["last_name"].strip(),
            date_of_birth=data["date_of_birth"].strip(),
            national_id=data["national_id"].strip(),
            email=data["email"].strip().lower(),
            phone_number=data["phone_number"].strip(),
            address=Address(
                street=data["street"].strip(),
                city=data["city"].strip(),
                state=data["state"].strip(),
                zip_code=data["zip_code"].strip(),
                country=data["country"].strip(),
            ),
            registration_date=now,
            verification_status="pending",
            eligible_elections=[],
            last_updated=now,
        )
        self.repo.create_document(registration.to_document())
        return registration

    def get_by_id(self, registration_id: str) -> VoterRegistration:
        doc = self.repo.get_document(registration_id)
        if doc is None:
            raise NotFoundError("Registration not found")
        return VoterRegistration.model_validate(doc)

    def get_by_wallet(self, wallet_address: str) -> Optional[VoterRegistration]:
        doc = self.repo.find_one({"wallet_address": wallet_address.lower()})
        return VoterRegistration.model_validate(doc) if doc else None

    def list_all(self) -> List[VoterRegistration]:
        return [VoterRegistration.model_validate(doc) for doc in self.repo.get_documents()]

    @staticmethod
    def stats(registrations: List[VoterRegistration]) -> Dict[str, int]:
        stats = {"total": len(registrations)}
        for status in VERIFICATION_STATUSES:
            stats[status] = sum(1 for r in registrations if r.verification_status == status)
        return stats

    def set_status(
        self,
        registration_id: Optional[str],
        status: Optional[str],
        notes: Optional[str] = None,
        admin_address: Optional[str] = None,
    ) -> VoterRegistration:
        if not registration_id or not status:
            raise BadRequest("Registration ID and verification status are required")
        if status not in VERIFICATION_STATUSES:
            raise BadRequest("Invalid verification status")

        registration = self.get_by_id(registration_id)
        eligible = determine_eligible_elections(registration.address) if status == "verified" else []
        doc = self.repo.update_document(registration_id, {
            "verification_status": status,
            "verification_notes": notes,
            "eligible_elections": eligible,
            "last_updated": self.clock(),
        })
        logger.info(
            "registration_status_changed",
            registration_id=registration_id,
            status=status,
            admin=admin_address or "system",
        )
        return VoterRegistration.model_validate(doc)

    def delete(self, registration_id: Optional[str] = None, wallet_address: Optional[str] = None) -> VoterRegistration:
        if not registration_id and not wallet_address:
            raise BadRequest("Registration ID or wallet address is required")

        doc = None
        if registration_id:
            doc = self.repo.get_document(registration_id)
        if doc is None and wallet_address:
            doc = self.repo.find_one({"wallet_address": wallet_address.lower()})
        if doc is None:
            raise NotFoundError("Registration not found")

        self.repo.delete_document(doc["id"])
        logger.info("registration_deleted", registration_id=doc["id"])
        return VoterRegistration.model_validate(doc)
