"""Credential routes - Git access tokens for webhook registration"""

from fastapi import APIRouter, HTTPException, Request, Response

from webhooks_extension.models.credential import Credential, CredentialRequest
from webhooks_extension.services.credential_service import CredentialError, credential_service


router = APIRouter()


@router.post("", status_code=201)
@router.post("/", status_code=201, include_in_schema=False)
async def create_credential(data: CredentialRequest, request: Request):
    """Create a credential and generate its secret token"""
    try:
        credential = await credential_service.create_credential(data)
    except CredentialError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    location = f"{request.url.path.rstrip('/')}/{credential.name}"
    return Response(status_code=201, headers={"Content-Location": location})


@router.get("", response_model=list[Credential])
@router.get("/", response_model=list[Credential], include_in_schema=False)
async def list_credentials():
    """List all credentials in the installed namespace"""
    try:
        return await credential_service.get_all_credentials()
    except CredentialError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{name}", status_code=204)
async def delete_credential(name: str):
    """Delete a credential"""
    try:
        await credential_service.delete_credential(name)
    except CredentialError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return Response(status_code=204)
