"""Elections: admin-only creation with field/date validation and a guarded status lifecycle."""

import re
import threading
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional

import structlog

from .database import Database
from .errors import BadRequest, NotFoundError
from .policy import AdminPolicy
from .schemas import ELECTION_STATUSES, ELECTION_TYPES, Election, utcnow
from .validation import FieldRule, raise_for_errors, validate

logger = structlog.get_logger(__name__)

MIN_DURATION = timedelta(hours=1)
MAX_DURATION = timedelta(days=30)
MAX_POSITIONS = 10
MAX_ELIGIBLE_VOTERS = 100_000_000

ALLOWED_TRANSITIONS: Dict[str, tuple] = {
    "draft": ("active", "cancelled"),
    "active": ("completed", "cancelled"),
    "completed": (),
    "cancelled": ("draft",),
}

ELECTION_RULES = [
    FieldRule("title", "Title", min_length=3, max_length=100),
    FieldRule("description", "Description", min_length=10, max_length=500),
    FieldRule("type", "Election type", choices=ELECTION_TYPES,
              required_message="Invalid election type", choices_message="Invalid election type"),
]

CREATION_TEMPLATES = {
    "national": {
        "type": "national",
        "suggestedPositions": ["President", "Vice President", "Senator", "Representative"],
        "minEligibleVoters": 1_000_000,
        "maxDuration": "1 day",
        "description": "National-level elections for federal government positions",
    },
    "provincial": {
        "type": "provincial",
        "suggestedPositions": ["Governor", "Provincial Representative", "Provincial Senator"],
        "minEligibleVoters": 100_000,
        "maxDuration": "1 day",
        "description": "Provincial-level elections for regional government positions",
    },
    "municipal": {
        "type": "municipal",
        "suggestedPositions": ["Mayor", "City Council Member", "School Board Member"],
        "minEligibleVoters": 1_000,
        "maxDuration": "1 day",
        "description": "Municipal-level elections for local government positions",
    },
}

CREATION_GUIDELINES = {
    "title": {"minLength": 3, "maxLength": 100, "requirements": "Must be unique and descriptive"},
    "description": {
        "minLength": 10,
        "maxLength": 500,
        "requirements": "Should clearly explain the election purpose and scope",
    },
    "duration": {"minimum": "1 hour", "maximum": "30 days", "recommended": "12-24 hours for most elections"},
    "positions": {"minimum": 1, "maximum": MAX_POSITIONS, "requirements": "Each position should be clearly defined"},
    "eligibleVoters": {
        "minimum": 1,
        "maximum": MAX_ELIGIBLE_VOTERS,
        "note": "Should reflect actual eligible voter population",
    },
}


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse an ISO 8601 string (or pass a datetime through); naive values are UTC."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def slugify(title: str, max_length: int = 30) -> str:
    slug = re.sub(r"[^a-z0-9\s]", "", title.lower())
    return re.sub(r"\s+", "-", slug)[:max_length]


def is_valid_transition(current: str, new: str) -> bool:
    return new in ALLOWED_TRANSITIONS.get(current, ())


class ElectionStore:
    collection = "election"

    def __init__(self, db: Database, admins: AdminPolicy, clock: Callable = utcnow) -> None:
        self.repo = db[self.collection]
        self.admins = admins
        self.clock = clock
        self._lock = threading.Lock()

    def generate_id(self, title: str, election_type: str) -> str:
        now = self.clock()
        millis = str(int(now.timestamp() * 1000))
        return f"{election_type}-{slugify(title)}-{now.year}-{millis[-4:]}"

    def _date_errors(self, start: Optional[datetime], end: Optional[datetime]) -> List[str]:
        errors = []
        if start is None:
            errors.append("Invalid start date")
        elif start < self.clock():
            errors.append("Start date cannot be in the past")

        if end is None:
            errors.append("Invalid end date")
        elif start is not None and end <= start:
            errors.append("End date must be after start date")

        if start is not None and end is not None:
            duration = end - start
            if duration < MIN_DURATION:
                errors.append("Election must be at least 1 hour long")
            elif duration > MAX_DURATION:
                errors.append("Election cannot be longer than 30 days")
        return errors

    @staticmethod
    def _position_errors(positions: Any) -> List[str]:
        if not isinstance(positions, list) or not positions:
            return ["At least one position is required"]
        errors = []
        valid = [p for p in positions if isinstance(p, str) and p.strip()]
        if len(valid) != len(positions):
            errors.append("All positions must be non-empty strings")
        if len(valid) > MAX_POSITIONS:
            errors.append(f"Maximum {MAX_POSITIONS} positions allowed")
        return errors

    @staticmethod
    def _voter_errors(eligible_voters: Any) -> List[str]:
        is_integer = (
            isinstance(eligible_voters, int) and not isinstance(eligible_voters, bool)
        ) or (isinstance(eligible_voters, float) and eligible_voters.is_integer())
        if not is_integer or eligible_voters < 1:
            return ["Eligible voters must be a positive integer"]
        if eligible_voters > MAX_ELIGIBLE_VOTERS:
            return ["Eligible voters cannot exceed 100 million"]
        return []

    def _title_taken(self, title: Any) -> bool:
        if not isinstance(title, str):
            return False
        wanted = title.lower()
        return self.repo.exists(predicate=lambda doc: doc["title"].lower() == wanted)

    def create(self, data: Mapping[str, Any], admin_address: Optional[str]) -> Election:
        self.admins.require_admin(admin_address)

        start = parse_datetime(data.get("start_date"))
        end = parse_datetime(data.get("end_date"))
        errors = validate(data, ELECTION_RULES)
        errors += self._date_errors(start, end)
        errors += self._position_errors(data.get("positions"))
        errors += self._voter_errors(data.get("eligible_voters"))
        with self._lock:
            if self._title_taken(data.get("title")):
                errors.append("An election with this title already exists")
            raise_for_errors(errors)

            election = Election(
                id=self.generate_id(data["title"], data["type"]),
                title=data["title"].strip(),
                description=data["description"].strip(),
                type=data["type"],
                start_date=start,
                end_date=end,
                status="draft",
                positions=[p.strip() for p in data["positions"]],
                total_votes=0,
                eligible_voters=int(data["eligible_voters"]),
                created_by=admin_address,
                created_at=self.clock(),
            )
            self.repo.create_document(election.to_document())
        logger.info("election_created", election_id=election.id, title=election.title, admin=admin_address)
        return election

    def get(self, election_id: str) -> Election:
        doc = self.repo.get_document(election_id)
        if doc is None:
            raise NotFoundError("Election not found")
        return Election.model_validate(doc)

    def list(self, status: Optional[str] = None) -> List[Election]:
        filters = {"status": status} if status else None
        return [Election.model_validate(doc) for doc in self.repo.get_documents(filters)]

    def is_active(self, election_id: str) -> bool:
        return self.repo.exists({"id": election_id, "status": "active"})

    def record_vote(self, election_id: str) -> None:
        with self._lock:
            doc = self.repo.get_document(election_id)
            if doc is not None:
                self.repo.update_document(election_id, {"total_votes": doc.get("total_votes", 0) + 1})

    @staticmethod
    def status_summary(elections: List[Election]) -> Dict[str, int]:
        summary: Dict[str, int] = {}
        for election in elections:
            summary[election.status] = summary.get(election.status, 0) + 1
        return summary

    def set_status(self, election_id: Optional[str], status: Optional[str], admin_address: Optional[str]) -> Election:
        if not election_id or not status or not admin_address:
            raise BadRequest("Election ID, status, and admin address are required")
        if status not in ELECTION_STATUSES:
            raise BadRequest("Invalid status value")
        self.admins.require_admin(admin_address)

        with self._lock:
            election = self.get(election_id)
            if not is_valid_transition(election.status, status):
                raise BadRequest(f"Invalid status transition from '{election.status}' to '{status}'")

            if status == "active":
                now = self.clock()
                if election.start_date > now:
                    raise BadRequest("Cannot activate election before start date")
                if election.end_date < now:
                    raise BadRequest("Cannot activate election after end date")

            doc = self.repo.update_document(election_id, {"status": status})
        logger.info(
            "election_status_changed",
            election_id=election_id,
            previous=election.status,
            status=status,
            admin=admin_address,
        )
        return Election.model_validate(doc)
