from concurrent.futures import ThreadPoolExecutor

import pytest

from baxela.candidates import CandidateStore
from baxela.errors import AuthorizationError, BadRequest

from .conftest import ADMIN, OTHER_ADMIN, STRANGER, SlowClock

OWNER = "0x00000000000000000000000000000000000000c1"


def candidate_payload(**overrides):
    payload = {
        "name": "Dana Whitfield",
        "party": "Independent",
        "position": "Governor",
        "bio": "Civil engineer and long-time volunteer.",
        "experience": "Transportation board, 6 years.",
        "platform": "Roads, schools and open budgets.",
        "electionId": "provincial-2024",
        "walletAddress": OWNER,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def candidate_id(client):
    response = client.post("/api/candidates", json=candidate_payload())
    assert response.status_code == 201
    return response.json()["candidate"]["id"]


class TestCandidateStore:
    def test_ids_are_unique_within_the_same_millisecond(self, services):
        store = services.candidates
        first = store.create(_snake(candidate_payload()))
        second = store.create(_snake(candidate_payload(walletAddress=STRANGER)))
        assert int(second.id) == int(first.id) + 1

    def test_verify_requires_admin(self, services):
        with pytest.raises(AuthorizationError):
            services.candidates.verify("3", STRANGER)
        with pytest.raises(BadRequest):
            services.candidates.verify("3", None)


def _snake(payload):
    return {
        "name": payload["name"],
        "party": payload["party"],
        "position": payload["position"],
        "bio": payload["bio"],
        "experience": payload["experience"],
        "platform": payload["platform"],
        "election_id": payload["electionId"],
        "wallet_address": payload["walletAddress"],
    }


class TestCandidatesApi:
    def test_register(self, client, candidate_id):
        candidate = client.get(f"/api/candidates/{candidate_id}").json()["candidate"]
        assert candidate["verified"] is False
        assert candidate["walletAddress"] == OWNER
        assert candidate["electionId"] == "provincial-2024"

    def test_first_validation_error_is_returned(self, client):
        response = client.post("/api/candidates", json=candidate_payload(party="", walletAddress="0x1"))
        assert response.status_code == 400
        assert response.json()["message"] == "party is required"

        response = client.post("/api/candidates", json=candidate_payload(walletAddress="0x1"))
        assert response.json()["message"] == "Invalid wallet address format"

    def test_wallet_is_unique_across_elections(self, client, candidate_id):
        response = client.post("/api/candidates", json=candidate_payload(
            electionId="national-2024",
            walletAddress=OWNER.upper().replace("0X", "0x"),
        ))
        assert response.status_code == 400
        assert response.json()["message"] == "This wallet address is already registered as a candidate"

    def test_list_filters(self, client):
        body = client.get("/api/candidates", params={"electionId": "municipal-2024"}).json()
        assert [c["id"] for c in body["candidates"]] == ["2", "1"]
        body = client.get("/api/candidates", params={"verified": "false"}).json()
        assert [c["id"] for c in body["candidates"]] == ["3"]
        body = client.get("/api/candidates", params={"position": "Governor"}).json()
        assert body["total"] == 1

    def test_unknown_candidate(self, client):
        response = client.get("/api/candidates/999")
        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Candidate not found"}

    def test_owner_can_update_profile(self, client, candidate_id):
        response = client.put(f"/api/candidates/{candidate_id}", json={
            "walletAddress": OWNER,
            "platform": "Transit first.",
            "profileImage": "https://example.com/dana.png",
        })
        assert response.status_code == 200
        candidate = response.json()["candidate"]
        assert candidate["platform"] == "Transit first."
        assert candidate["profileImage"] == "https://example.com/dana.png"

    def test_update_cannot_touch_protected_fields(self, client, candidate_id):
        response = client.put(f"/api/candidates/{candidate_id}", json={
            "walletAddress": OWNER,
            "name": "Dana W.",
            "verified": True,
            "electionId": "national-2024",
        })
        assert response.status_code == 200
        candidate = response.json()["candidate"]
        assert candidate["name"] == "Dana W."
        assert candidate["verified"] is False
        assert candidate["electionId"] == "provincial-2024"
        assert candidate["walletAddress"] == OWNER

    def test_only_the_owner_can_update(self, client, candidate_id):
        response = client.put(f"/api/candidates/{candidate_id}", json={"walletAddress": STRANGER, "name": "X"})
        assert response.status_code == 403
        assert response.json()["message"] == "Unauthorized: You can only update your own profile"

    def test_update_needs_a_non_blank_field(self, client, candidate_id):
        response = client.put(f"/api/candidates/{candidate_id}", json={"walletAddress": OWNER})
        assert response.json()["message"] == "At least one field must be provided for update"
        response = client.put(f"/api/candidates/{candidate_id}", json={"walletAddress": OWNER, "bio": "  "})
        assert response.status_code == 400
        assert response.json()["message"] == "bio cannot be empty"

    def test_delete_is_owner_only(self, client, candidate_id):
        response = client.delete(f"/api/candidates/{candidate_id}", params={"walletAddress": STRANGER})
        assert response.status_code == 403
        assert response.json()["message"] == "Unauthorized: You can only delete your own registration"

        response = client.request("DELETE", f"/api/candidates/{candidate_id}", json={"walletAddress": OWNER})
        assert response.status_code == 200
        assert client.get(f"/api/candidates/{candidate_id}").status_code == 404


class TestCandidateVerification:
    def test_pending_list_is_admin_only(self, client):
        response = client.get("/api/admin/verify-candidate", params={"adminAddress": STRANGER})
        assert response.status_code == 403
        assert response.json()["message"] == "Unauthorized: Admin access required"

        body = client.get("/api/admin/verify-candidate", params={"adminAddress": OTHER_ADMIN}).json()
        assert [c["id"] for c in body["pendingCandidates"]] == ["3"]

    def test_verify_once(self, client):
        response = client.post("/api/admin/verify-candidate", json={"candidateId": "3", "adminAddress": ADMIN})
        assert response.status_code == 200
        assert response.json()["candidate"]["verified"] is True

        response = client.post("/api/admin/verify-candidate", json={"candidateId": "3", "adminAddress": ADMIN})
        assert response.status_code == 400
        assert response.json()["message"] == "Candidate is already verified"

    def test_verify_unknown_candidate(self, client):
        response = client.post("/api/admin/verify-candidate", json={"candidateId": "42", "adminAddress": ADMIN})
        assert response.status_code == 404


def test_concurrent_registrations_keep_wallet_unique(services):
    store = CandidateStore(services.db, services.admins, clock=SlowClock())
    data = _snake(candidate_payload())

    def register(_):
        try:
            return store.create(data)
        except BadRequest:
            return None

    with ThreadPoolExecutor(max_workers=5) as pool:
        created = [c for c in pool.map(register, range(5)) if c is not None]

    assert len(created) == 1
    assert [c.id for c in store.list(election_id="provincial-2024") if c.wallet_address == OWNER] == [created[0].id]
