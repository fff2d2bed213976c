"""Incident reports: validation, severity inference, mock geocoding, IPFS pinning."""

import asyncio
import random
import string
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

import structlog

from .database import Database
from .errors import BadRequest, BaxelaError, NotFoundError
from .ipfs import PinningClient
from .schemas import INCIDENT_CATEGORIES, SEVERITIES, Coordinates, IncidentReport, utcnow
from .validation import WALLET_ADDRESS, FieldRule, raise_for_errors, validate

logger = structlog.get_logger(__name__)

CRITICAL_KEYWORDS = ("violence", "threat", "weapon", "assault", "emergency")
HIGH_KEYWORDS = ("intimidation", "malfunction", "tampering", "fraud")
MEDIUM_KEYWORDS = ("delay", "confusion", "technical", "equipment")
CRITICAL_CATEGORIES = ("violence", "voter_intimidation")
CATEGORY_SEVERITY = {"technical_issues": "medium", "irregularities": "high"}

KNOWN_CITIES: Dict[str, Tuple[float, float]] = {
    "new york": (40.7128, -74.0060),
    "los angeles": (34.0522, -118.2437),
    "chicago": (41.8781, -87.6298),
    "miami": (25.7617, -80.1918),
    "boston": (42.3601, -71.0589),
    "washington": (38.9072, -77.0369),
    "philadelphia": (39.9526, -75.1652),
    "houston": (29.7604, -95.3698),
    "phoenix": (33.4484, -112.0740),
    "san antonio": (29.4241, -98.4936),
}
# Geographic centre of the contiguous US and the spread around it
US_CENTER = (39.8283, -98.5795)
US_SPREAD = (20.0, 40.0)

ATTACHMENT_KINDS = ("video", "image", "document")

INCIDENT_RULES = [
    FieldRule("title", "Title", min_length=5, max_length=100),
    FieldRule("description", "Description", min_length=10, max_length=1000),
    FieldRule("location", "Location", min_length=5),
    FieldRule(
        "reported_by",
        "Reporter wallet address",
        pattern=WALLET_ADDRESS,
        pattern_message="Invalid wallet address format",
    ),
    FieldRule(
        "category",
        "Category",
        choices=INCIDENT_CATEGORIES,
        required_message="Invalid category",
        choices_message="Invalid category",
    ),
    FieldRule(
        "severity",
        "Severity",
        required=False,
        choices=SEVERITIES,
        choices_message="Invalid severity level",
    ),
]

# Fields taken from the pinned payload in preference to the local record
PINNED_FIELDS = ("title", "description", "location", "coordinates", "category", "severity", "attachments")


def determine_severity(category: str, description: str) -> str:
    text = description.lower()
    if any(keyword in text for keyword in CRITICAL_KEYWORDS):
        return "critical"
    if category in CRITICAL_CATEGORIES:
        return "critical"
    if any(keyword in text for keyword in HIGH_KEYWORDS):
        return "high"
    if any(keyword in text for keyword in MEDIUM_KEYWORDS):
        return "medium"
    return CATEGORY_SEVERITY.get(category, "low")


def geocode_location(location: str, rng: Optional[random.Random] = None) -> Coordinates:
    """Mock geocoder: known city names win, anything else lands somewhere in the US."""
    lowered = location.lower()
    for city, (lat, lng) in KNOWN_CITIES.items():
        if city in lowered:
            return Coordinates(lat=lat, lng=lng)
    rng = rng or random
    return Coordinates(
        lat=US_CENTER[0] + (rng.random() - 0.5) * US_SPREAD[0],
        lng=US_CENTER[1] + (rng.random() - 0.5) * US_SPREAD[1],
    )


@dataclass
class Attachment:
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"
    kind: str = "document"


@dataclass
class IncidentCreated:
    incident: IncidentReport
    ipfs_hash: Optional[str]
    attachment_hashes: List[str] = field(default_factory=list)
    total_files: int = 0

    def attachment_summary(self) -> Dict[str, Any]:
        if self.total_files:
            uploaded = f"{len(self.attachment_hashes)}/{self.total_files} files uploaded successfully"
        else:
            uploaded = "No files uploaded"
        return {
            "total": len(self.attachment_hashes),
            "hashes": self.attachment_hashes,
            "uploaded": uploaded,
        }


@dataclass
class IncidentFilters:
    category: Optional[str] = None
    status: Optional[str] = None
    severity: Optional[str] = None
    reported_by: Optional[str] = None
    verified: Optional[bool] = None
    limit: int = 50
    offset: int = 0
    include_ipfs: bool = True

    def matches(self, record: Mapping[str, Any]) -> bool:
        for key, wanted in (("category", self.category), ("status", self.status), ("severity", self.severity)):
            if wanted and wanted != "all" and record.get(key) != wanted:
                return False
        if self.reported_by and record.get("reportedBy", "").lower() != self.reported_by.lower():
            return False
        if self.verified is not None and record.get("verified") != self.verified:
            return False
        return True


class IncidentStore:
    collection = "incidentreport"

    def __init__(
        self,
        db: Database,
        pinning: PinningClient,
        clock: Callable = utcnow,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.repo = db[self.collection]
        self.pinning = pinning
        self.clock = clock
        self.rng = rng or random.Random()

    def _new_id(self) -> str:
        millis = int(self.clock().timestamp() * 1000)
        suffix = "".join(self.rng.choice(string.ascii_lowercase + string.digits) for _ in range(6))
        return f"incident-{millis}-{suffix}"

    def get(self, incident_id: str) -> IncidentReport:
        doc = self.repo.get_document(incident_id)
        if doc is None:
            raise NotFoundError("Incident not found")
        return IncidentReport.model_validate(doc)

    def all(self) -> List[IncidentReport]:
        return [IncidentReport.model_validate(doc) for doc in self.repo.get_documents()]

    async def _pin_attachments(self, attachments: Sequence[Attachment]) -> List[str]:
        hashes = []
        for attachment in attachments:
            try:
                hashes.append(await self.pinning.pin_file(attachment.filename, attachment.content, attachment.content_type))
            except BaxelaError as e:
                logger.error("attachment_pin_failed", kind=attachment.kind, filename=attachment.filename, error=e.message)
        return hashes

    async def create(self, data: Mapping[str, Any], attachments: Sequence[Attachment] = ()) -> IncidentCreated:
        raise_for_errors(validate(data, INCIDENT_RULES))

        now = self.clock()
        category = data["category"]
        description = data["description"].strip()
        incident = IncidentReport(
            id=self._new_id(),
            title=data["title"].strip(),
            category=category,
            location=data["location"].strip(),
            coordinates=geocode_location(data["location"], self.rng),
            description=description,
            reported_by=data["reported_by"].lower(),
            timestamp=now,
            status="pending",
            severity=data.get("severity") or determine_severity(category, description),
            verified=False,
            last_updated=now,
        )

        attachment_hashes: List[str] = []
        if attachments:
            logger.info("attachments_uploading", count=len(attachments))
            attachment_hashes = await self._pin_attachments(attachments)
            incident.attachments = attachment_hashes

        ipfs_hash = None
        try:
            payload = incident.model_dump(
                mode="json",
                by_alias=True,
                include={"id", "title", "category", "location", "coordinates", "description",
                         "reported_by", "timestamp", "severity", "attachments"},
            )
            ipfs_hash = await self.pinning.pin_incident(payload)
            incident.ipfs_hash = ipfs_hash
        except BaxelaError as e:
            logger.error("incident_pin_failed", incident_id=incident.id, error=e.message)

        self.repo.create_document(incident.to_document())
        logger.info(
            "incident_created",
            incident_id=incident.id,
            reported_by=incident.reported_by,
            severity=incident.severity,
            ipfs_hash=ipfs_hash,
        )
        return IncidentCreated(incident, ipfs_hash, attachment_hashes, len(attachments))

    async def _enrich(self, incident: IncidentReport) -> Dict[str, Any]:
        record = incident.to_json()
        if not incident.ipfs_hash:
            record["dataSource"] = "local_only"
            return record
        try:
            pinned = await self.pinning.fetch_json(incident.ipfs_hash)
        except BaxelaError as e:
            logger.warning("incident_enrich_failed", incident_id=incident.id, error=e.message)
            record["dataSource"] = "local_only"
            record["ipfsError"] = "Failed to fetch from IPFS"
            return record

        if isinstance(pinned, dict):
            for key in PINNED_FIELDS:
                if pinned.get(key):
                    record[key] = pinned[key]
        record["ipfsData"] = pinned
        record["dataSource"] = "ipfs_enhanced"
        return record

    async def _records(self, incidents: List[IncidentReport], include_ipfs: bool) -> List[Dict[str, Any]]:
        if not include_ipfs:
            return [incident.to_json() for incident in incidents]

        results = await asyncio.gather(*(self._enrich(i) for i in incidents), return_exceptions=True)
        records = []
        for incident, result in zip(incidents, results):
            if isinstance(result, Exception):
                logger.warning("incident_processing_failed", incident_id=incident.id, error=str(result))
                record = incident.to_json()
                record["dataSource"] = "local_only"
                record["processingError"] = "Failed to enhance with IPFS data"
                records.append(record)
            else:
                records.append(result)
        return records

    async def list(self, filters: IncidentFilters) -> Dict[str, Any]:
        incidents = sorted(self.all(), key=lambda i: i.timestamp, reverse=True)
        records = [r for r in await self._records(incidents, filters.include_ipfs) if filters.matches(r)]

        def count(predicate) -> int:
            return sum(1 for r in records if predicate(r))

        stats = {"total": len(records)}
        for status in ("pending", "investigating", "resolved", "dismissed"):
            stats[status] = count(lambda r, s=status: r["status"] == s)
        for severity in ("critical", "high", "medium", "low"):
            stats[severity] = count(lambda r, s=severity: r["severity"] == s)
        stats["verified"] = count(lambda r: r["verified"])
        stats["unverified"] = count(lambda r: not r["verified"])
        stats["ipfsStored"] = count(lambda r: r.get("ipfsHash"))
        stats["ipfsEnhanced"] = count(lambda r: r.get("dataSource") == "ipfs_enhanced")

        page = records[filters.offset:filters.offset + filters.limit]
        return {
            "incidents": page,
            "stats": stats,
            "pagination": {
                "total": len(records),
                "limit": filters.limit,
                "offset": filters.offset,
                "hasMore": filters.offset + filters.limit < len(records),
            },
            "ipfsInfo": {
                "enabled": filters.include_ipfs,
                "totalWithIpfs": stats["ipfsStored"],
                "successfullyEnhanced": stats["ipfsEnhanced"],
            },
        }

    def update(
        self,
        incident_id: Optional[str],
        status: Optional[str] = None,
        verified: Optional[bool] = None,
        verification_notes: Optional[str] = None,
        assigned_to: Optional[str] = None,
        updated_by: Optional[str] = None,
    ) -> IncidentReport:
        if not incident_id:
            raise BadRequest("Incident ID is required")
        current = self.get(incident_id)

        changes: Dict[str, Any] = {"last_updated": self.clock()}
        if status:
            changes["status"] = status
        if verified is not None:
            changes["verified"] = verified
        if verification_notes:
            changes["verification_notes"] = verification_notes
        if assigned_to:
            changes["assigned_to"] = assigned_to

        doc = self.repo.update_document(incident_id, changes)
        logger.info("incident_updated", incident_id=incident_id, title=current.title, updated_by=updated_by or "system")
        return IncidentReport.model_validate(doc)

    def delete(self, incident_id: Optional[str]) -> IncidentReport:
        if not incident_id:
            raise BadRequest("Incident ID is required")
        doc = self.repo.delete_document(incident_id)
        if doc is None:
            raise NotFoundError("Incident not found")
        logger.info("incident_deleted", incident_id=incident_id)
        return IncidentReport.model_validate(doc)
