from typing import Optional, Union

from fastapi import APIRouter, Depends

from ..dependencies import Services, get_services
from ..schemas import CamelModel

router = APIRouter(prefix="/analytics", tags=["analytics"])


class PremiumGrantRequest(CamelModel):
    address: Optional[str] = None
    transaction_id: Optional[str] = None


class PremiumPurchaseRequest(CamelModel):
    address: Optional[str] = None
    amount: Union[str, float, None] = None


def _access_response(services: Services, access, message: str) -> dict:
    return {
        "success": True,
        "message": message,
        "transactionId": access.transaction_id,
        "expiresAt": access.to_json()["expiresAt"],
        "daysRemaining": services.analytics.days_remaining(access),
    }


@router.get("/premium")
def premium_analytics(address: Optional[str] = None, services: Services = Depends(get_services)):
    return {"success": True, **services.analytics.premium_report(address)}


@router.post("/premium")
def grant_premium(payload: PremiumGrantRequest, services: Services = Depends(get_services)):
    access = services.analytics.grant(payload.address, payload.transaction_id)
    return _access_response(services, access, "Premium access granted for 30 days")


@router.post("/premium/purchase")
async def purchase_premium(payload: PremiumPurchaseRequest, services: Services = Depends(get_services)):
    access = await services.analytics.purchase(payload.address, payload.amount)
    return _access_response(services, access, "Payment confirmed. Premium access granted for 30 days")
