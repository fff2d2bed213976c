from typing import Any, Optional

from fastapi import APIRouter, Depends

from ..dependencies import Services, get_services
from ..schemas import CamelModel

router = APIRouter(prefix="/elections", tags=["elections"])


class CreateElectionRequest(CamelModel):
    title: Optional[str] = None
    description: Optional[str] = None
    type: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    positions: Optional[Any] = None
    eligible_voters: Optional[Any] = None
    admin_address: Optional[str] = None
    created_by: Optional[str] = None

    @property
    def requester(self) -> Optional[str]:
        return self.admin_address or self.created_by


def create_election_response(payload: CreateElectionRequest, services: Services) -> dict:
    data = payload.model_dump(exclude={"admin_address", "created_by"})
    election = services.elections.create(data, payload.requester)
    return {"success": True, "message": "Election created successfully", "election": election.to_json()}


@router.get("")
def list_elections(status: Optional[str] = None, services: Services = Depends(get_services)):
    elections = services.elections.list(status=status)
    return {"success": True, "elections": [e.to_json() for e in elections], "total": len(elections)}


@router.post("", status_code=201)
def create_election(payload: CreateElectionRequest, services: Services = Depends(get_services)):
    return create_election_response(payload, services)
