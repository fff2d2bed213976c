"""Sample records loaded into an empty database at startup (``SEED_DATA=true``)."""

from datetime import datetime, timezone
from typing import Iterable

import structlog

from .database import Database
from .schemas import (
    Address,
    Candidate,
    CamelModel,
    Coordinates,
    Election,
    IncidentReport,
    RegistrationDocuments,
    VoterRegistration,
)

logger = structlog.get_logger(__name__)

ADMIN_1 = "0x1234567890123456789012345678901234567890"
ADMIN_2 = "0x2345678901234567890123456789012345678901"


def _at(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> datetime:
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)


INCIDENTS = [
    IncidentReport(
        id="incident-001",
        title="Voting Machine Malfunction",
        category="technical_issues",
        location="Downtown Community Center, New York, NY",
        coordinates=Coordinates(lat=40.7128, lng=-74.0060),
        description="Multiple voting machines not working properly, causing long delays.",
        reported_by=ADMIN_1,
        timestamp=_at(2024, 11, 5, 10, 30),
        status="investigating",
        severity="high",
        verified=True,
        assigned_to="admin-001",
        last_updated=_at(2024, 11, 5, 11, 0),
        ipfs_hash="QmTestHash1234567890abcdefghijklmnopqrstuvwxyz123",
    ),
    IncidentReport(
        id="incident-002",
        title="Voter Intimidation Reported",
        category="voter_intimidation",
        location="Westside Polling Station, Los Angeles, CA",
        coordinates=Coordinates(lat=34.0522, lng=-118.2437),
        description="Reports of individuals intimidating voters outside polling location.",
        reported_by=ADMIN_2,
        timestamp=_at(2024, 11, 5, 9, 15),
        status="resolved",
        severity="critical",
        verified=True,
        verification_notes="Verified by local authorities. Security increased.",
        assigned_to="admin-002",
        last_updated=_at(2024, 11, 5, 15, 30),
        ipfs_hash="QmTestHash5678901234abcdefghijklmnopqrstuvwxyz567",
    ),
    IncidentReport(
        id="incident-003",
        title="Ballot Box Issues",
        category="irregularities",
        location="Central High School, Chicago, IL",
        coordinates=Coordinates(lat=41.8781, lng=-87.6298),
        description="Ballot box appeared to be tampered with.",
        reported_by="0x3456789012345678901234567890123456789012",
        timestamp=_at(2024, 11, 5, 14, 20),
        status="pending",
        severity="high",
        verified=False,
        last_updated=_at(2024, 11, 5, 14, 20),
    ),
    IncidentReport(
        id="incident-004",
        title="Power Outage at Polling Site",
        category="technical_issues",
        location="Riverside Community Hall, Miami, FL",
        coordinates=Coordinates(lat=25.7617, lng=-80.1918),
        description="Complete power outage affecting all voting equipment.",
        reported_by="0x4567890123456789012345678901234567890123",
        timestamp=_at(2024, 11, 5, 11, 45),
        status="resolved",
        severity="medium",
        verified=True,
        verification_notes="Power restored. Backup generators deployed.",
        assigned_to="admin-001",
        last_updated=_at(2024, 11, 5, 13, 15),
    ),
    IncidentReport(
        id="incident-005",
        title="Suspicious Activity",
        category="irregularities",
        location="North End Library, Boston, MA",
        coordinates=Coordinates(lat=42.3601, lng=-71.0589),
        description="Unusual activity observed around ballot collection area.",
        reported_by="0x5678901234567890123456789012345678901234",
        timestamp=_at(2024, 11, 5, 16, 10),
        status="investigating",
        severity="medium",
        verified=False,
        assigned_to="admin-003",
        last_updated=_at(2024, 11, 5, 16, 45),
    ),
]

REGISTRATIONS = [
    VoterRegistration(
        id="voter-001",
        wallet_address=ADMIN_1,
        first_name="John",
        last_name="Doe",
        date_of_birth="1990-05-15",
        national_id="SSN123456789",
        email="john.doe@example.com",
        phone_number="+1-555-0123",
        address=Address(street="123 Main St", city="New York", state="NY", zip_code="10001",
                        country="United States"),
        registration_date=_at(2024, 1, 15),
        verification_status="verified",
        eligible_elections=["national-2024", "provincial-2024"],
        documents=RegistrationDocuments(id_document="id-doc-001.pdf", proof_of_address="address-proof-001.pdf"),
        last_updated=_at(2024, 1, 20),
    ),
    VoterRegistration(
        id="voter-002",
        wallet_address=ADMIN_2,
        first_name="Jane",
        last_name="Smith",
        date_of_birth="1985-08-22",
        national_id="SSN987654321",
        email="jane.smith@example.com",
        phone_number="+1-555-0456",
        address=Address(street="456 Oak Ave", city="Los Angeles", state="CA", zip_code="90210",
                        country="United States"),
        registration_date=_at(2024, 2, 1),
        verification_status="pending",
        documents=RegistrationDocuments(id_document="id-doc-002.pdf", proof_of_address="address-proof-002.pdf"),
        last_updated=_at(2024, 2, 1),
    ),
]

CANDIDATES = [
    Candidate(
        id="1",
        name="Alice Johnson",
        party="Progressive Party",
        position="Mayor",
        bio="Community organizer with 10 years of experience in local government.",
        experience="Former city council member, community development coordinator.",
        platform="Focus on sustainable development, affordable housing, and public transportation.",
        wallet_address=ADMIN_1,
        verified=True,
        registration_date=_at(2024, 1, 15),
        election_id="municipal-2024",
    ),
    Candidate(
        id="2",
        name="Bob Smith",
        party="Citizens Alliance",
        position="Mayor",
        bio="Business owner and education advocate.",
        experience="Small business owner for 15 years, school board member.",
        platform="Economic growth, education reform, and fiscal responsibility.",
        wallet_address=ADMIN_2,
        verified=True,
        registration_date=_at(2024, 1, 20),
        election_id="municipal-2024",
    ),
    Candidate(
        id="3",
        name="Carol Davis",
        party="Democratic Reform",
        position="Governor",
        bio="Former state senator with expertise in healthcare policy.",
        experience="State senator for 8 years, healthcare policy advisor.",
        platform="Universal healthcare, climate action, and social justice.",
        wallet_address="0x3456789012345678901234567890123456789012",
        verified=False,
        registration_date=_at(2024, 2, 1),
        election_id="provincial-2024",
    ),
]

ELECTIONS = [
    Election(
        id="national-2024",
        title="National Presidential Election 2024",
        description="Presidential and parliamentary elections for the national government.",
        type="national",
        start_date=_at(2024, 11, 5, 8),
        end_date=_at(2024, 11, 5, 20),
        status="draft",
        positions=["President", "Vice President", "Senator", "Representative"],
        total_votes=0,
        eligible_voters=50_000_000,
        created_by=ADMIN_1,
        created_at=_at(2024, 1, 1),
    ),
    Election(
        id="provincial-2024",
        title="Provincial Election 2024",
        description="Provincial government elections for governors and provincial representatives.",
        type="provincial",
        start_date=_at(2024, 10, 15, 8),
        end_date=_at(2024, 10, 15, 20),
        status="active",
        positions=["Governor", "Provincial Representative"],
        total_votes=125_000,
        eligible_voters=5_000_000,
        created_by=ADMIN_1,
        created_at=_at(2024, 1, 15),
    ),
    Election(
        id="municipal-2024",
        title="Municipal Election 2024",
        description="Local municipal elections for mayors and city council members.",
        type="municipal",
        start_date=_at(2024, 9, 20, 8),
        end_date=_at(2024, 9, 20, 20),
        status="completed",
        positions=["Mayor", "City Council Member"],
        total_votes=75_000,
        eligible_voters=500_000,
        created_by=ADMIN_2,
        created_at=_at(2024, 2, 1),
    ),
]

SEED_COLLECTIONS = {
    "incidentreport": INCIDENTS,
    "voterregistration": REGISTRATIONS,
    "candidate": CANDIDATES,
    "election": ELECTIONS,
}


def _load(db: Database, name: str, records: Iterable[CamelModel]) -> int:
    repo = db[name]
    if repo.find_one() is not None:
        return 0
    count = 0
    for record in records:
        repo.create_document(record.to_document())
        count += 1
    return count


def seed_database(db: Database) -> None:
    """Load sample records into every collection that is still empty."""
    for name, records in SEED_COLLECTIONS.items():
        loaded = _load(db, name, records)
        if loaded:
            logger.info("collection_seeded", collection=name, records=loaded)
