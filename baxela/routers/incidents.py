from datetime import datetime, timezone
from typing import List, Optional

import structlog
from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from starlette.datastructures import UploadFile

from ..dependencies import Services, get_services, parse_model
from ..errors import BadRequest, BaxelaError
from ..incidents import ATTACHMENT_KINDS, Attachment, IncidentFilters
from ..schemas import CamelModel, IncidentStatus
from ..validation import CONTENT_ID

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/incidents", tags=["incidents"])

FORM_FIELDS = ("title", "description", "location", "category", "reportedBy", "severity")


class CreateIncidentRequest(CamelModel):
    title: Optional[str] = None
    category: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    reported_by: Optional[str] = None
    severity: Optional[str] = None


class UpdateIncidentRequest(CamelModel):
    incident_id: Optional[str] = None
    status: Optional[IncidentStatus] = None
    verified: Optional[bool] = None
    verification_notes: Optional[str] = None
    assigned_to: Optional[str] = None
    admin_address: Optional[str] = None


async def _read_multipart(request: Request):
    form = await request.form()
    fields = {name: form.get(name) for name in FORM_FIELDS if isinstance(form.get(name), str)}

    grouped = {kind: [] for kind in ATTACHMENT_KINDS}
    for key, value in form.multi_items():
        if not isinstance(value, UploadFile):
            continue
        for kind in ATTACHMENT_KINDS:
            if key.startswith(f"{kind}_"):
                grouped[kind].append(Attachment(
                    filename=value.filename or key,
                    content=await value.read(),
                    content_type=value.content_type or "application/octet-stream",
                    kind=kind,
                ))
    # Videos first, then images, then documents
    attachments: List[Attachment] = [a for kind in ATTACHMENT_KINDS for a in grouped[kind]]
    return fields, attachments


@router.get("")
async def list_incidents(
    category: Optional[str] = None,
    status: Optional[str] = None,
    severity: Optional[str] = None,
    reported_by: Optional[str] = Query(None, alias="reportedBy"),
    verified: Optional[str] = None,
    limit: int = Query(50, ge=0),
    offset: int = Query(0, ge=0),
    include_ipfs: str = Query("true", alias="includeIpfs"),
    services: Services = Depends(get_services),
):
    filters = IncidentFilters(
        category=category,
        status=status,
        severity=severity,
        reported_by=reported_by,
        verified=None if verified is None else verified == "true",
        limit=limit,
        offset=offset,
        include_ipfs=include_ipfs != "false",
    )
    result = await services.incidents.list(filters)
    return {"success": True, **result}


@router.post("", status_code=201)
async def create_incident(request: Request, services: Services = Depends(get_services)):
    content_type = request.headers.get("content-type", "")
    if "multipart/form-data" in content_type:
        fields, attachments = await _read_multipart(request)
    else:
        try:
            fields = await request.json()
        except ValueError:
            raise BadRequest("Request body must be JSON or multipart form data")
        attachments = []

    payload = parse_model(CreateIncidentRequest, fields)
    created = await services.incidents.create(payload.model_dump(), attachments)
    return {
        "success": True,
        "message": "Incident reported successfully",
        "incident": created.incident.to_json(),
        "ipfsHash": created.ipfs_hash,
        "attachments": created.attachment_summary(),
    }


@router.put("")
def update_incident(payload: UpdateIncidentRequest, services: Services = Depends(get_services)):
    incident = services.incidents.update(
        payload.incident_id,
        status=payload.status,
        verified=payload.verified,
        verification_notes=payload.verification_notes,
        assigned_to=payload.assigned_to,
        updated_by=payload.admin_address,
    )
    return {"success": True, "message": "Incident updated successfully", "incident": incident.to_json()}


@router.delete("")
def delete_incident(id: Optional[str] = None, services: Services = Depends(get_services)):
    services.incidents.delete(id)
    return {"success": True, "message": "Incident deleted successfully"}


@router.get("/ipfs/{content_id}")
async def get_pinned_incident(content_id: str, services: Services = Depends(get_services)):
    if not CONTENT_ID.match(content_id):
        raise BadRequest("Invalid IPFS hash format")

    pinning = services.pinning
    try:
        data = await pinning.fetch_json(content_id)
    except BaxelaError as e:
        logger.error("pinned_incident_fetch_failed", content_id=content_id, error=e.message)
        return JSONResponse(
            status_code=404,
            content={
                "success": False,
                "message": "Failed to retrieve incident data from IPFS",
                "error": e.message,
                "ipfsHash": content_id,
            },
        )
    return {
        "success": True,
        "data": data,
        "ipfsHash": content_id,
        "gatewayUrl": pinning.gateway_link(content_id),
        "retrievedAt": datetime.now(timezone.utc).isoformat(),
    }
