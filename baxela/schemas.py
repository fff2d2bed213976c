"""
Database Schemas for the Baxela election-integrity API

Each Pydantic model corresponds to a collection (lowercased class name).
Fields are snake_case in Python and camelCase on the wire.

Collections:
- IncidentReport: Election incidents reported by wallet holders, optionally pinned to IPFS.
- VoterRegistration: Off-chain voter registry with verification status and eligibility.
- Candidate: Candidate profiles owned by the registering wallet.
- Election: Elections managed by admins, with a restricted status lifecycle.
- Vote: One ballot per (voter address, election).
- PremiumAccess: Paid access to the analytics report.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

IncidentCategory = Literal["voter_intimidation", "technical_issues", "irregularities", "violence", "other"]
IncidentStatus = Literal["pending", "investigating", "resolved", "dismissed"]
Severity = Literal["low", "medium", "high", "critical"]
VerificationStatus = Literal["pending", "verified", "rejected"]
ElectionType = Literal["national", "provincial", "municipal"]
ElectionStatus = Literal["draft", "active", "completed", "cancelled"]

INCIDENT_CATEGORIES = ("voter_intimidation", "technical_issues", "irregularities", "violence", "other")
INCIDENT_STATUSES = ("pending", "investigating", "resolved", "dismissed")
SEVERITIES = ("low", "medium", "high", "critical")
VERIFICATION_STATUSES = ("pending", "verified", "rejected")
ELECTION_TYPES = ("national", "provincial", "municipal")
ELECTION_STATUSES = ("draft", "active", "completed", "cancelled")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> Dict[str, Any]:
        """JSON-ready dict with camelCase keys, as returned by the API."""
        return self.model_dump(mode="json", by_alias=True)

    def to_document(self) -> Dict[str, Any]:
        """Python-native dict with snake_case keys, as stored by a repository."""
        return self.model_dump()


class Coordinates(CamelModel):
    lat: float
    lng: float


class IncidentReport(CamelModel):
    id: str = Field(..., description="incident-<epoch ms>-<random suffix>")
    title: str
    category: IncidentCategory
    location: str
    coordinates: Optional[Coordinates] = None
    description: str
    reported_by: str = Field(..., description="Lower-cased reporter wallet address")
    timestamp: datetime
    status: IncidentStatus = "pending"
    severity: Severity
    verified: bool = False
    attachments: Optional[List[str]] = Field(None, description="Content ids of pinned attachments")
    verification_notes: Optional[str] = None
    assigned_to: Optional[str] = None
    last_updated: datetime
    ipfs_hash: Optional[str] = Field(None, description="Content id of the pinned incident payload")


class Address(CamelModel):
    street: str
    city: str
    state: str
    zip_code: str
    country: str


class RegistrationDocuments(CamelModel):
    id_document: str = ""
    proof_of_address: str = ""


class VoterRegistration(CamelModel):
    id: str
    wallet_address: str
    first_name: str
    last_name: str
    date_of_birth: str = Field(..., description="ISO date, YYYY-MM-DD")
    national_id: str
    email: str
    phone_number: str
    address: Address
    registration_date: datetime
    verification_status: VerificationStatus = "pending"
    eligible_elections: List[str] = Field(default_factory=list)
    documents: RegistrationDocuments = Field(default_factory=RegistrationDocuments)
    verification_notes: Optional[str] = None
    last_updated: datetime


class Candidate(CamelModel):
    id: str
    name: str
    party: str
    position: str
    bio: str
    experience: str
    platform: str
    wallet_address: str
    profile_image: Optional[str] = None
    verified: bool = False
    registration_date: datetime
    election_id: str


class Election(CamelModel):
    id: str
    title: str
    description: str
    type: ElectionType
    start_date: datetime
    end_date: datetime
    status: ElectionStatus = "draft"
    positions: List[str] = Field(default_factory=list)
    total_votes: int = 0
    eligible_voters: int
    created_by: str
    created_at: datetime


class Vote(CamelModel):
    id: str
    election_id: str
    candidate_id: str
    voter_address: str = Field(..., description="Lower-cased voter wallet address")
    timestamp: datetime
    transaction_hash: str
    verified: bool = True


class PremiumAccess(CamelModel):
    id: str = Field(..., description="Lower-cased wallet address")
    address: str
    transaction_id: str
    expires_at: datetime
