"""Candidate registrations, owner-only profile edits and admin verification."""

import threading
from typing import Any, Callable, List, Mapping, Optional

import structlog

from .database import Database
from .errors import AuthorizationError, BadRequest, NotFoundError
from .policy import AdminPolicy
from .schemas import Candidate, utcnow
from .validation import WALLET_ADDRESS, FieldRule, first_error, is_blank

logger = structlog.get_logger(__name__)

CANDIDATE_RULES = [
    FieldRule("name", "name"),
    FieldRule("party", "party"),
    FieldRule("position", "position"),
    FieldRule("bio", "bio"),
    FieldRule("experience", "experience"),
    FieldRule("platform", "platform"),
    FieldRule("election_id", "electionId"),
    FieldRule("wallet_address", "walletAddress", pattern=WALLET_ADDRESS,
              pattern_message="Invalid wallet address format"),
]

EDITABLE_FIELDS = ("name", "party", "position", "bio", "experience", "platform", "profile_image")


def _owns(candidate: Candidate, wallet_address: Optional[str]) -> bool:
    return bool(wallet_address) and candidate.wallet_address.lower() == wallet_address.lower()


class CandidateStore:
    collection = "candidate"

    def __init__(self, db: Database, admins: AdminPolicy, clock: Callable = utcnow) -> None:
        self.repo = db[self.collection]
        self.admins = admins
        self.clock = clock
        self._lock = threading.Lock()

    def _new_id(self) -> str:
        candidate_id = str(int(self.clock().timestamp() * 1000))
        while self.repo.get_document(candidate_id) is not None:
            candidate_id = str(int(candidate_id) + 1)
        return candidate_id

    def is_wallet_registered(self, wallet_address: str, exclude_id: Optional[str] = None) -> bool:
        return self.repo.exists(
            {"wallet_address": wallet_address.lower()},
            predicate=lambda doc: doc["id"] != exclude_id,
        )

    def create(self, data: Mapping[str, Any]) -> Candidate:
        error = first_error(data, CANDIDATE_RULES)
        if error:
            raise BadRequest(error)
        with self._lock:
            if self.is_wallet_registered(data["wallet_address"]):
                raise BadRequest("This wallet address is already registered as a candidate")

            candidate = Candidate(
                id=self._new_id(),
                name=data["name"].strip(),
                party=data["party"].strip(),
                position=data["position"].strip(),
                bio=data["bio"].strip(),
                experience=data["experience"].strip(),
                platform=data["platform"].strip(),
                wallet_address=data["wallet_address"].lower(),
                profile_image=data.get("profile_image") or None,
                verified=False,
                registration_date=self.clock(),
                election_id=data["election_id"],
            )
            self.repo.create_document(candidate.to_document())
        logger.info("candidate_registered", candidate_id=candidate.id, election_id=candidate.election_id)
        return candidate

    def get(self, candidate_id: str) -> Candidate:
        doc = self.repo.get_document(candidate_id)
        if doc is None:
            raise NotFoundError("Candidate not found")
        return Candidate.model_validate(doc)

    def list(
        self,
        election_id: Optional[str] = None,
        position: Optional[str] = None,
        verified: Optional[bool] = None,
    ) -> List[Candidate]:
        filters = {}
        if election_id:
            filters["election_id"] = election_id
        if position:
            filters["position"] = position
        if verified is not None:
            filters["verified"] = verified
        candidates = [Candidate.model_validate(doc) for doc in self.repo.get_documents(filters)]
        return sorted(candidates, key=lambda c: c.registration_date, reverse=True)

    def update(self, candidate_id: str, patch: Mapping[str, Any], requester_wallet: Optional[str]) -> Candidate:
        candidate = self.get(candidate_id)
        if not _owns(candidate, requester_wallet):
            raise AuthorizationError("Unauthorized: You can only update your own profile")

        changes = {key: patch[key] for key in EDITABLE_FIELDS if patch.get(key) is not None}
        if not changes:
            raise BadRequest("At least one field must be provided for update")
        for key, value in changes.items():
            if isinstance(value, str) and is_blank(value):
                raise BadRequest(f"{key} cannot be empty")

        doc = self.repo.update_document(candidate_id, changes)
        logger.info("candidate_updated", candidate_id=candidate_id, fields=sorted(changes))
        return Candidate.model_validate(doc)

    def delete(self, candidate_id: str, requester_wallet: Optional[str]) -> Candidate:
        candidate = self.get(candidate_id)
        if not _owns(candidate, requester_wallet):
            raise AuthorizationError("Unauthorized: You can only delete your own registration")
        self.repo.delete_document(candidate_id)
        logger.info("candidate_deleted", candidate_id=candidate_id)
        return candidate

    def verify(self, candidate_id: Optional[str], admin_address: Optional[str]) -> Candidate:
        if not candidate_id or not admin_address:
            raise BadRequest("Candidate ID and admin address are required")
        self.admins.require_admin(admin_address)

        with self._lock:
            candidate = self.get(candidate_id)
            if candidate.verified:
                raise BadRequest("Candidate is already verified")
            doc = self.repo.update_document(candidate_id, {"verified": True})
        logger.info("candidate_verified", candidate_id=candidate_id, name=candidate.name, admin=admin_address)
        return Candidate.model_validate(doc)

    def pending(self, admin_address: Optional[str]) -> List[Candidate]:
        self.admins.require_admin(admin_address)
        return self.list(verified=False)
