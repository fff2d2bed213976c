"""Premium analytics: paid 30-day access and a report computed from incident data."""

import math
import threading
from collections import Counter
from datetime import timedelta
from typing import Any, Callable, Dict, List, Optional

import structlog

from .database import Database
from .errors import AuthorizationError, BadRequest
from .incidents import IncidentStore
from .payments import Amount, PaymentGateway
from .schemas import INCIDENT_CATEGORIES, INCIDENT_STATUSES, SEVERITIES, IncidentReport, PremiumAccess, utcnow
from .validation import is_wallet_address

logger = structlog.get_logger(__name__)

PREMIUM_PERIOD = timedelta(days=30)
SEVERITY_SCORE = {"low": 1, "medium": 2, "high": 3, "critical": 4}
MAX_HOTSPOTS = 5


class PremiumRequired(AuthorizationError):
    def __init__(self) -> None:
        super().__init__("Premium access required")

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        body["premiumRequired"] = True
        body["detail"] = "Subscribe to premium analytics for detailed insights"
        return body


def _hotspots(incidents: List[IncidentReport]) -> List[Dict[str, Any]]:
    by_location: Dict[str, List[IncidentReport]] = {}
    for incident in incidents:
        by_location.setdefault(incident.location, []).append(incident)

    hotspots = []
    for location, group in by_location.items():
        worst = max(group, key=lambda i: SEVERITY_SCORE[i.severity])
        hotspots.append({
            "location": location,
            "coordinates": worst.coordinates.to_json() if worst.coordinates else None,
            "incidentCount": len(group),
            "riskLevel": worst.severity,
        })
    hotspots.sort(key=lambda h: (h["incidentCount"], SEVERITY_SCORE[h["riskLevel"]]), reverse=True)
    return hotspots[:MAX_HOTSPOTS]


def build_report(incidents: List[IncidentReport]) -> Dict[str, Any]:
    categories = Counter(i.category for i in incidents)
    severities = Counter(i.severity for i in incidents)
    statuses = Counter(i.status for i in incidents)
    average = (
        round(sum(SEVERITY_SCORE[i.severity] for i in incidents) / len(incidents), 2)
        if incidents else 0.0
    )
    return {
        "overview": {
            "totalIncidents": len(incidents),
            "verifiedIncidents": sum(1 for i in incidents if i.verified),
            "averageSeverity": average,
            "mostCommonCategory": categories.most_common(1)[0][0] if categories else None,
        },
        "severityBreakdown": {s: severities.get(s, 0) for s in SEVERITIES},
        "categoryBreakdown": {c: categories.get(c, 0) for c in INCIDENT_CATEGORIES},
        "statusBreakdown": {s: statuses.get(s, 0) for s in INCIDENT_STATUSES},
        "hotspots": _hotspots(incidents),
    }


class AnalyticsService:
    collection = "premiumaccess"

    def __init__(
        self,
        db: Database,
        incidents: IncidentStore,
        payments: PaymentGateway,
        clock: Callable = utcnow,
    ) -> None:
        self.repo = db[self.collection]
        self.incidents = incidents
        self.payments = payments
        self.clock = clock
        self._lock = threading.Lock()

    def grant(self, address: Optional[str], transaction_id: Optional[str]) -> PremiumAccess:
        if not address or not transaction_id:
            raise BadRequest("Address and transaction ID are required")

        access = PremiumAccess(
            id=address.lower(),
            address=address.lower(),
            transaction_id=transaction_id,
            expires_at=self.clock() + PREMIUM_PERIOD,
        )
        with self._lock:
            if self.repo.get_document(access.id) is None:
                self.repo.create_document(access.to_document())
            else:
                self.repo.update_document(access.id, access.to_document())
        logger.info("premium_granted", address=access.address, transaction_id=transaction_id)
        return access

    async def purchase(self, address: Optional[str], amount: Amount) -> PremiumAccess:
        if not is_wallet_address(address):
            raise BadRequest("Invalid wallet address format")
        transaction_id = await self.payments.submit_payment(amount)
        return self.grant(address, transaction_id)

    def current_access(self, address: Optional[str]) -> Optional[PremiumAccess]:
        if not address:
            raise BadRequest("Address parameter is required")
        doc = self.repo.get_document(address.lower())
        if doc is None:
            return None
        access = PremiumAccess.model_validate(doc)
        return access if access.expires_at > self.clock() else None

    def days_remaining(self, access: PremiumAccess) -> int:
        return math.ceil((access.expires_at - self.clock()) / timedelta(days=1))

    def premium_report(self, address: Optional[str]) -> Dict[str, Any]:
        access = self.current_access(address)
        if access is None:
            raise PremiumRequired()
        return {
            "data": build_report(self.incidents.all()),
            "premiumAccess": {
                "expiresAt": access.to_json()["expiresAt"],
                "daysRemaining": self.days_remaining(access),
            },
        }
