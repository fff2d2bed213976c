from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..dependencies import Services, get_services
from ..errors import BaxelaError

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/ipfs", tags=["ipfs"])

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


@router.get("/test")
async def test_connection(services: Services = Depends(get_services)):
    pinning = services.pinning
    try:
        connected = await pinning.test_connectivity()
    except BaxelaError as e:
        logger.error("ipfs_test_failed", error=e.message)
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "message": "IPFS test failed",
                "error": e.message,
                "provider": pinning.provider,
                "status": "error",
            },
        )

    if not connected:
        return JSONResponse(
            status_code=503,
            content={
                "success": False,
                "message": "IPFS connection failed",
                "provider": pinning.provider,
                "status": "disconnected",
            },
        )
    return {
        "success": True,
        "message": "IPFS connection successful",
        "provider": pinning.provider,
        "status": "connected",
    }


@router.post("/test")
async def test_upload(services: Services = Depends(get_services)):
    now = datetime.now(timezone.utc)
    test_data = {
        "id": f"test-{int(now.timestamp() * 1000)}",
        "title": "IPFS Test Upload",
        "category": "technical_issues",
        "location": "Test Location",
        "description": "This is a test upload to verify IPFS functionality",
        "reportedBy": ZERO_ADDRESS,
        "timestamp": now.isoformat(),
        "severity": "low",
    }
    try:
        content_id = await services.pinning.pin_incident(test_data)
    except BaxelaError as e:
        logger.error("ipfs_upload_test_failed", error=e.message)
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": "IPFS upload test failed", "error": e.message},
        )
    return {
        "success": True,
        "message": "IPFS upload test successful",
        "ipfsHash": content_id,
        "testData": test_data,
        "gatewayUrl": services.pinning.gateway_link(content_id),
    }
