"""Service container stored on ``app.state`` and the FastAPI dependencies that read it."""

from dataclasses import dataclass
from typing import Any, Callable, Optional, Type, TypeVar

from fastapi import Request
from pydantic import BaseModel, ValidationError

from .analytics import AnalyticsService
from .candidates import CandidateStore
from .config import Settings
from .database import Database, create_database
from .elections import ElectionStore
from .errors import ValidationFailed
from .incidents import IncidentStore
from .ipfs import PinningClient
from .payments import PaymentGateway, create_payment_gateway
from .policy import AdminPolicy
from .registrations import RegistrationStore
from .schemas import utcnow
from .seeds import seed_database
from .votes import VoteStore

ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass
class Services:
    settings: Settings
    db: Database
    admins: AdminPolicy
    pinning: PinningClient
    payments: PaymentGateway
    incidents: IncidentStore
    registrations: RegistrationStore
    candidates: CandidateStore
    elections: ElectionStore
    votes: VoteStore
    analytics: AnalyticsService


def build_services(
    settings: Settings,
    db: Optional[Database] = None,
    pinning: Optional[PinningClient] = None,
    payments: Optional[PaymentGateway] = None,
    admins: Optional[AdminPolicy] = None,
    clock: Callable = utcnow,
) -> Services:
    db = db if db is not None else create_database(settings)
    if settings.seed_data:
        seed_database(db)

    admins = admins or AdminPolicy(settings.admin_address_list)
    pinning = pinning or PinningClient.from_settings(settings)
    payments = payments or create_payment_gateway(settings)

    incidents = IncidentStore(db, pinning, clock=clock)
    elections = ElectionStore(db, admins, clock=clock)
    return Services(
        settings=settings,
        db=db,
        admins=admins,
        pinning=pinning,
        payments=payments,
        incidents=incidents,
        registrations=RegistrationStore(db, clock=clock),
        candidates=CandidateStore(db, admins, clock=clock),
        elections=elections,
        votes=VoteStore(db, elections, clock=clock),
        analytics=AnalyticsService(db, incidents, payments, clock=clock),
    )


def get_services(request: Request) -> Services:
    return request.app.state.services


def parse_model(model: Type[ModelT], data: Any) -> ModelT:
    """Validate a raw payload (JSON body or form fields) into a request model."""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        errors = []
        for error in e.errors():
            loc = ".".join(str(part) for part in error.get("loc", ()))
            errors.append(f"{loc}: {error.get('msg', '')}" if loc else error.get("msg", ""))
        raise ValidationFailed(errors)
