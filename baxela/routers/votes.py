from typing import Optional

from fastapi import APIRouter, Depends

from ..dependencies import Services, get_services
from ..schemas import CamelModel

router = APIRouter(prefix="/votes", tags=["votes"])


class CastVoteRequest(CamelModel):
    election_id: Optional[str] = None
    candidate_id: Optional[str] = None
    voter_address: Optional[str] = None


@router.get("")
def list_votes(address: Optional[str] = None, services: Services = Depends(get_services)):
    votes = services.votes.list_by_address(address)
    return {"success": True, "votes": [v.to_json() for v in votes]}


@router.post("")
def cast_vote(payload: CastVoteRequest, services: Services = Depends(get_services)):
    vote = services.votes.cast(payload.election_id, payload.candidate_id, payload.voter_address)
    return {"success": True, "vote": vote.to_json(), "message": "Vote cast successfully"}
