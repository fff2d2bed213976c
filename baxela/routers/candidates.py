from typing import Optional

from fastapi import APIRouter, Body, Depends, Query

from ..dependencies import Services, get_services
from ..schemas import CamelModel

router = APIRouter(prefix="/candidates", tags=["candidates"])


class CandidateRequest(CamelModel):
    name: Optional[str] = None
    party: Optional[str] = None
    position: Optional[str] = None
    bio: Optional[str] = None
    experience: Optional[str] = None
    platform: Optional[str] = None
    election_id: Optional[str] = None
    wallet_address: Optional[str] = None
    profile_image: Optional[str] = None


class CandidateUpdateRequest(CamelModel):
    """Profile changes plus the wallet making the request. Other fields are ignored."""

    wallet_address: Optional[str] = None
    name: Optional[str] = None
    party: Optional[str] = None
    position: Optional[str] = None
    bio: Optional[str] = None
    experience: Optional[str] = None
    platform: Optional[str] = None
    profile_image: Optional[str] = None


class CandidateOwner(CamelModel):
    wallet_address: Optional[str] = None


@router.get("")
def list_candidates(
    election_id: Optional[str] = Query(None, alias="electionId"),
    position: Optional[str] = None,
    verified: Optional[str] = None,
    services: Services = Depends(get_services),
):
    candidates = services.candidates.list(
        election_id=election_id,
        position=position,
        verified=None if verified is None else verified == "true",
    )
    return {"success": True, "candidates": [c.to_json() for c in candidates], "total": len(candidates)}


@router.post("", status_code=201)
def register_candidate(payload: CandidateRequest, services: Services = Depends(get_services)):
    candidate = services.candidates.create(payload.model_dump())
    return {"success": True, "message": "Candidate registered successfully", "candidate": candidate.to_json()}


@router.get("/{candidate_id}")
def get_candidate(candidate_id: str, services: Services = Depends(get_services)):
    return {"success": True, "candidate": services.candidates.get(candidate_id).to_json()}


@router.put("/{candidate_id}")
def update_candidate(
    candidate_id: str,
    payload: CandidateUpdateRequest,
    services: Services = Depends(get_services),
):
    patch = payload.model_dump(exclude={"wallet_address"}, exclude_unset=True)
    candidate = services.candidates.update(candidate_id, patch, payload.wallet_address)
    return {
        "success": True,
        "message": "Candidate profile updated successfully",
        "candidate": candidate.to_json(),
    }


@router.delete("/{candidate_id}")
def delete_candidate(
    candidate_id: str,
    payload: Optional[CandidateOwner] = Body(None),
    wallet_address: Optional[str] = Query(None, alias="walletAddress"),
    services: Services = Depends(get_services),
):
    requester = (payload.wallet_address if payload else None) or wallet_address
    services.candidates.delete(candidate_id, requester)
    return {"success": True, "message": "Candidate registration deleted successfully"}
