"""Admin router: directory entries, coach assignments and API keys."""

from fastapi import APIRouter, Depends, Request, Response

from server.api.dependencies.auth import get_principal
from server.models.requests import (
    AssignmentRequest,
    ClientCreateRequest,
    CoachCreateRequest,
    CredentialCreateRequest,
    OrganizationCreateRequest,
)
from server.models.responses import CredentialResponse, IssuedCredentialResponse
from shared.models.identity import Assignment, Client, ClientOrganization, Coach, Principal

admin_router = APIRouter(prefix="/api/admin", tags=["Admin"])


##########################################
############### DIRECTORY ################
##########################################

@admin_router.post("/coaches", response_model=Coach, status_code=201)
async def create_coach(request: Request, body: CoachCreateRequest, principal: Principal = Depends(get_principal)) -> Coach:
    return await request.app.state.provisioning_service.register_coach(principal, body.id, body.name, email=body.email)


@admin_router.post("/organizations", response_model=ClientOrganization, status_code=201)
async def create_organization(request: Request, body: OrganizationCreateRequest, principal: Principal = Depends(get_principal)) -> ClientOrganization:
    return await request.app.state.provisioning_service.register_organization(principal, body.id, body.name)


@admin_router.post("/clients", response_model=Client, status_code=201)
async def create_client(request: Request, body: ClientCreateRequest, principal: Principal = Depends(get_principal)) -> Client:
    return await request.app.state.provisioning_service.register_client(
        principal, body.id, body.name, body.organization_id, email=body.email
    )


##########################################
############## ASSIGNMENTS ###############
##########################################

@admin_router.get("/assignments", response_model=list[Assignment])
async def list_assignments(request: Request, coach_id: str | None = None, principal: Principal = Depends(get_principal)) -> list[Assignment]:
    return await request.app.state.provisioning_service.list_assignments(principal, coach_id=coach_id)


@admin_router.post("/assignments", response_model=Assignment, status_code=201)
async def create_assignment(request: Request, body: AssignmentRequest, principal: Principal = Depends(get_principal)) -> Assignment:
    return await request.app.state.provisioning_service.assign_client(principal, body.coach_id, body.client_id)


@admin_router.delete("/assignments/{coach_id}/{client_id}", status_code=204)
async def delete_assignment(request: Request, coach_id: str, client_id: str, principal: Principal = Depends(get_principal)) -> Response:
    await request.app.state.provisioning_service.unassign_client(principal, coach_id, client_id)
    return Response(status_code=204)


##########################################
############## CREDENTIALS ###############
##########################################

@admin_router.get("/credentials", response_model=list[CredentialResponse])
async def list_credentials(request: Request, principal: Principal = Depends(get_principal)) -> list[CredentialResponse]:
    credentials = await request.app.state.provisioning_service.list_credentials(principal)
    return [CredentialResponse.from_credential(c) for c in credentials]


@admin_router.post("/credentials", response_model=IssuedCredentialResponse, status_code=201)
async def create_credential(request: Request, body: CredentialCreateRequest, principal: Principal = Depends(get_principal)) -> IssuedCredentialResponse:
    """Issue an API key. The plaintext token is only returned by this call."""
    issued = await request.app.state.provisioning_service.issue_credential(
        principal,
        role=body.role,
        owner_id=body.owner_id,
        scopes=body.scopes,
        expires_at=body.expires_at,
        name=body.name,
    )
    return IssuedCredentialResponse(token=issued.token, credential=CredentialResponse.from_credential(issued.credential))


@admin_router.post("/credentials/{credential_id}/revoke", response_model=CredentialResponse)
async def revoke_credential(request: Request, credential_id: str, principal: Principal = Depends(get_principal)) -> CredentialResponse:
    credential = await request.app.state.provisioning_service.revoke_credential(principal, credential_id)
    return CredentialResponse.from_credential(credential)
