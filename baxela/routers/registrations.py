from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..dependencies import Services, get_services
from ..schemas import CamelModel

router = APIRouter(prefix="/voter-registration", tags=["voter-registration"])


class RegistrationRequest(CamelModel):
    wallet_address: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    date_of_birth: Optional[str] = None
    national_id: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None


class VerificationRequest(CamelModel):
    registration_id: Optional[str] = None
    verification_status: Optional[str] = None
    verification_notes: Optional[str] = None
    admin_address: Optional[str] = None


@router.get("")
def get_registrations(
    id: Optional[str] = None,
    wallet_address: Optional[str] = Query(None, alias="walletAddress"),
    services: Services = Depends(get_services),
):
    store = services.registrations
    if id:
        return {"success": True, "registration": store.get_by_id(id).to_json()}

    if wallet_address:
        registration = store.get_by_wallet(wallet_address)
        if registration is None:
            return {
                "success": True,
                "registration": None,
                "message": "No registration found for this wallet address",
            }
        return {"success": True, "registration": registration.to_json()}

    # TODO: require an admin address here once the registration dashboard sends one
    registrations = store.list_all()
    return {
        "success": True,
        "registrations": [r.to_json() for r in registrations],
        "stats": store.stats(registrations),
    }


@router.post("", status_code=201)
def create_registration(payload: RegistrationRequest, services: Services = Depends(get_services)):
    registration = services.registrations.create(payload.model_dump())
    return {
        "success": True,
        "message": "Registration submitted successfully",
        "registration": registration.to_json(),
    }


@router.put("")
def update_registration(payload: VerificationRequest, services: Services = Depends(get_services)):
    registration = services.registrations.set_status(
        payload.registration_id,
        payload.verification_status,
        notes=payload.verification_notes,
        admin_address=payload.admin_address,
    )
    return {
        "success": True,
        "message": f"Registration {registration.verification_status} successfully",
        "registration": registration.to_json(),
    }


@router.delete("")
def delete_registration(
    id: Optional[str] = None,
    wallet_address: Optional[str] = Query(None, alias="walletAddress"),
    services: Services = Depends(get_services),
):
    services.registrations.delete(registration_id=id, wallet_address=wallet_address)
    return {"success": True, "message": "Registration deleted successfully"}
