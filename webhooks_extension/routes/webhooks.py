"""Webhook routes - repository hooks backed by event listener triggers"""

from typing import Optional

from fastapi import APIRouter, HTTPException, Request, Response

from webhooks_extension.models.webhook import Webhook
from webhooks_extension.services.webhook_service import WebhookError, webhook_service
from webhooks_extension.utils import parse_bool


router = APIRouter()


@router.post("", status_code=201)
@router.post("/", status_code=201, include_in_schema=False)
async def create_webhook(data: Webhook, request: Request):
    """Create a webhook"""
    try:
        webhook = await webhook_service.create_webhook(data)
    except WebhookError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    location = f"{request.url.path.rstrip('/')}/{webhook.name}"
    return Response(status_code=201, headers={"Content-Location": location})


@router.get("", response_model=list[Webhook])
@router.get("/", response_model=list[Webhook], include_in_schema=False)
async def list_webhooks():
    """List all webhooks"""
    try:
        return await webhook_service.get_all_webhooks()
    except WebhookError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{name}", status_code=204)
async def delete_webhook(
    name: str,
    repository: Optional[str] = None,
    deletepipelineruns: Optional[str] = None,
):
    """Delete a webhook from a repository, optionally with its pipeline runs"""
    if not repository:
        raise HTTPException(
            status_code=400,
            detail="bad request information provided, a repository query parameter is required"
        )

    delete_pipeline_runs = False
    if deletepipelineruns:
        try:
            delete_pipeline_runs = parse_bool(deletepipelineruns)
        except ValueError as e:
            raise HTTPException(
                status_code=400,
                detail=f"bad request information provided, cannot handle deletepipelineruns value: {e}"
            )

    try:
        await webhook_service.delete_webhook(name, repository, delete_pipeline_runs)
    except WebhookError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return Response(status_code=204)
