"""
Admin API routes

Every route requires the admin bearer token. Fixed paths (stats, voters)
are registered before the /{kind} routes so they are matched first.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from database.db import Database
from database.models import CollectionKind
from server.dependencies import get_admin_service, get_db, get_voting_service, verify_admin_token
from server.metrics import metrics
from server.models.requests import (
    CandidateRequest,
    ItemRequest,
    StatusRequest,
    VoterActiveRequest,
    VoterRegistrationRequest,
    VoterUpdateRequest,
)
from voting.admin import AdminService
from voting.service import Audience, VotingService


router = APIRouter(prefix="/api/admin", dependencies=[Depends(verify_admin_token)])


def kind_from_path(kind: str) -> CollectionKind:
    """Map the plural path segment (elections, polls) to a CollectionKind"""
    normalized = kind.lower().rstrip("s")
    try:
        return CollectionKind(normalized)
    except ValueError:
        raise HTTPException(status_code=404, detail=f"Unknown ballot kind: {kind}")


@router.get("/stats")
async def participation_stats(service: VotingService = Depends(get_voting_service)):
    """Active items, total votes and unique voters"""
    stats = await service.participation_stats()
    metrics.update_active_items(stats)
    return {"success": True, "stats": stats}


# ========== Voters ==========


@router.get("/voters")
async def list_voters(
    faculty: Optional[str] = None,
    db: Database = Depends(get_db),
):
    voters = await db.voters.list_voters(faculty=faculty)
    return {"success": True, "voters": [v.to_dict() for v in voters]}


@router.post("/voters", status_code=201)
async def register_voter(
    body: VoterRegistrationRequest,
    admin: AdminService = Depends(get_admin_service),
):
    voter_id = await admin.register_voter(
        voter_id=body.voter_id,
        university_id=body.university_id,
        name=body.name,
        faculty=body.faculty,
        major=body.major,
        contact_email=body.contact_email,
        role=body.role,
    )
    return {"success": True, "id": voter_id}


@router.patch("/voters/{voter_id}")
async def update_voter(
    voter_id: str,
    body: VoterUpdateRequest,
    admin: AdminService = Depends(get_admin_service),
):
    await admin.update_voter(voter_id, body.changes())
    return {"success": True}


@router.put("/voters/{voter_id}/active")
async def set_voter_active(
    voter_id: str,
    body: VoterActiveRequest,
    admin: AdminService = Depends(get_admin_service),
):
    await admin.set_voter_active(voter_id, body.is_active)
    return {"success": True, "is_active": body.is_active}


# ========== Elections / polls ==========


@router.get("/{kind}")
async def list_items(
    kind: CollectionKind = Depends(kind_from_path),
    service: VotingService = Depends(get_voting_service),
):
    """All items of a kind, drafts included, with their current status"""
    items = await service.db.items.list_items(kind)
    return {
        "success": True,
        "items": [
            {**item.to_dict(), "computed_status": service.status_of(item).value}
            for item in items
        ],
    }


@router.post("/{kind}", status_code=201)
async def create_item(
    body: ItemRequest,
    kind: CollectionKind = Depends(kind_from_path),
    admin: AdminService = Depends(get_admin_service),
):
    item_id = await admin.create_item(kind, body.to_draft())
    return {"success": True, "id": item_id}


@router.put("/{kind}/{item_id}")
async def update_item(
    item_id: str,
    body: ItemRequest,
    kind: CollectionKind = Depends(kind_from_path),
    admin: AdminService = Depends(get_admin_service),
):
    await admin.update_item(kind, item_id, body.to_draft())
    return {"success": True}


@router.put("/{kind}/{item_id}/status")
async def set_item_status(
    item_id: str,
    body: StatusRequest,
    kind: CollectionKind = Depends(kind_from_path),
    admin: AdminService = Depends(get_admin_service),
):
    """Publish, or close early (manual closure)"""
    await admin.set_status(kind, item_id, body.status)
    return {"success": True, "status": body.status}


@router.delete("/{kind}/{item_id}")
async def delete_item(
    item_id: str,
    kind: CollectionKind = Depends(kind_from_path),
    admin: AdminService = Depends(get_admin_service),
):
    removed = await admin.delete_item(kind, item_id)
    return {"success": True, "selections_removed": removed}


@router.post("/{kind}/{item_id}/candidates", status_code=201)
async def add_candidate(
    item_id: str,
    body: CandidateRequest,
    kind: CollectionKind = Depends(kind_from_path),
    admin: AdminService = Depends(get_admin_service),
):
    if kind != CollectionKind.ELECTION:
        raise HTTPException(status_code=404, detail="Candidates belong to elections")
    candidate_id = await admin.add_candidate(
        item_id,
        body.name,
        faculty=body.faculty,
        bio=body.bio,
        photo_url=body.photo_url,
    )
    return {"success": True, "id": candidate_id}


@router.delete("/{kind}/selections/{selection_id}")
async def delete_selection(
    selection_id: str,
    kind: CollectionKind = Depends(kind_from_path),
    admin: AdminService = Depends(get_admin_service),
):
    await admin.delete_selection(kind, selection_id)
    return {"success": True}


@router.get("/{kind}/{item_id}/results")
async def live_results(
    item_id: str,
    kind: CollectionKind = Depends(kind_from_path),
    service: VotingService = Depends(get_voting_service),
):
    """Live tally regardless of status"""
    tally = await service.get_results(kind, item_id, audience=Audience.ADMIN)
    return {"success": True, "results": tally.to_dict()}
