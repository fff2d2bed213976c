"""Ballots: one vote per (voter address, election), only while the election is active."""

import random
import string
import threading
from typing import Callable, List, Optional

import structlog

from .database import Database
from .elections import ElectionStore
from .errors import AuthorizationError, BadRequest
from .payments import new_transaction_hash
from .schemas import Vote, utcnow

logger = structlog.get_logger(__name__)

EligibilityCheck = Callable[[str, str], bool]


def everyone_eligible(voter_address: str, election_id: str) -> bool:
    return True


class VoteStore:
    collection = "vote"

    def __init__(
        self,
        db: Database,
        elections: ElectionStore,
        is_eligible: EligibilityCheck = everyone_eligible,
        clock: Callable = utcnow,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.repo = db[self.collection]
        self.elections = elections
        self.is_eligible = is_eligible
        self.clock = clock
        self.rng = rng or random.Random()
        self._lock = threading.Lock()

    def _new_id(self) -> str:
        millis = int(self.clock().timestamp() * 1000)
        suffix = "".join(self.rng.choice(string.ascii_lowercase + string.digits) for _ in range(9))
        return f"vote-{millis}-{suffix}"

    def has_voted(self, voter_address: str, election_id: str) -> bool:
        return self.repo.exists({"voter_address": voter_address.lower(), "election_id": election_id})

    def cast(self, election_id: Optional[str], candidate_id: Optional[str], voter_address: Optional[str]) -> Vote:
        if not election_id or not candidate_id or not voter_address:
            raise BadRequest("Missing required fields: electionId, candidateId, voterAddress")
        with self._lock:
            if not self.elections.is_active(election_id):
                raise BadRequest("Election is not currently active")
            if not self.is_eligible(voter_address, election_id):
                raise AuthorizationError("Voter is not eligible for this election")
            if self.has_voted(voter_address, election_id):
                raise BadRequest("You have already voted in this election")

            vote = Vote(
                id=self._new_id(),
                election_id=election_id,
                candidate_id=candidate_id,
                voter_address=voter_address.lower(),
                timestamp=self.clock(),
                transaction_hash=new_transaction_hash(),
                verified=True,
            )
            self.repo.create_document(vote.to_document())
            self.elections.record_vote(election_id)
        logger.info("vote_cast", vote_id=vote.id, election_id=election_id, transaction_hash=vote.transaction_hash)
        return vote

    def list_by_address(self, voter_address: Optional[str]) -> List[Vote]:
        if not voter_address:
            raise BadRequest("Address parameter is required")
        docs = self.repo.get_documents({"voter_address": voter_address.lower()})
        return sorted((Vote.model_validate(doc) for doc in docs), key=lambda v: v.timestamp)
