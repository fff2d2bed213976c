from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..dependencies import Services, get_services
from ..elections import CREATION_GUIDELINES, CREATION_TEMPLATES
from ..schemas import CamelModel
from .elections import CreateElectionRequest, create_election_response

router = APIRouter(prefix="/admin", tags=["admin"])


class ElectionStatusRequest(CamelModel):
    election_id: Optional[str] = None
    status: Optional[str] = None
    admin_address: Optional[str] = None


class VerifyCandidateRequest(CamelModel):
    candidate_id: Optional[str] = None
    admin_address: Optional[str] = None


# --------- Elections ---------

@router.post("/create-election", status_code=201)
def create_election(payload: CreateElectionRequest, services: Services = Depends(get_services)):
    return create_election_response(payload, services)


@router.get("/create-election")
def election_creation_info(
    admin_address: Optional[str] = Query(None, alias="adminAddress"),
    services: Services = Depends(get_services),
):
    services.admins.require_admin(admin_address)
    return {
        "success": True,
        "templates": CREATION_TEMPLATES,
        "guidelines": CREATION_GUIDELINES,
        "existingElections": len(services.elections.list()),
        "adminInfo": {"address": admin_address, "canCreate": True},
    }


@router.put("/election-status")
def update_election_status(payload: ElectionStatusRequest, services: Services = Depends(get_services)):
    election = services.elections.set_status(payload.election_id, payload.status, payload.admin_address)
    return {
        "success": True,
        "message": f"Election status updated to '{election.status}' successfully",
        "election": election.to_json(),
    }


@router.get("/election-status")
def election_status(
    admin_address: Optional[str] = Query(None, alias="adminAddress"),
    election_id: Optional[str] = Query(None, alias="electionId"),
    services: Services = Depends(get_services),
):
    services.admins.require_admin(admin_address)
    if election_id:
        return {"success": True, "election": services.elections.get(election_id).to_json()}

    elections = services.elections.list()
    return {
        "success": True,
        "elections": [e.to_json() for e in elections],
        "statusSummary": services.elections.status_summary(elections),
        "total": len(elections),
    }


# --------- Candidates ---------

@router.post("/verify-candidate")
def verify_candidate(payload: VerifyCandidateRequest, services: Services = Depends(get_services)):
    candidate = services.candidates.verify(payload.candidate_id, payload.admin_address)
    return {"success": True, "message": "Candidate verified successfully", "candidate": candidate.to_json()}


@router.get("/verify-candidate")
def pending_candidates(
    admin_address: Optional[str] = Query(None, alias="adminAddress"),
    services: Services = Depends(get_services),
):
    pending = services.candidates.pending(admin_address)
    return {"success": True, "pendingCandidates": [c.to_json() for c in pending], "total": len(pending)}
