"""Voter-facing ballot routes - listing, selections, casting and results

Elections and polls expose the same endpoints; build_ballot_router() is
mounted once per kind (/api/elections, /api/polls).
"""

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from database.models import CollectionKind, Voter
from server.dependencies import get_current_identity, get_voting_service
from server.models.requests import VoteRequest
from voting.guard import RejectionReason
from voting.service import Audience, VotingService

# HTTP status per rejection reason
REJECTION_STATUS = {
    RejectionReason.ALREADY_VOTED: 409,
    RejectionReason.NOT_ELIGIBLE: 403,
    RejectionReason.NOT_ACTIVE: 403,
    RejectionReason.NOT_FOUND: 404,
    RejectionReason.INVALID_SELECTION: 422,
}


async def require_voter(service: VotingService, voter_id: str) -> Voter:
    """Get voter profile or raise 404."""
    voter = await service.db.voters.get_voter(voter_id)
    if not voter:
        raise HTTPException(status_code=404, detail="Voter profile not found")
    return voter


def build_ballot_router(kind: CollectionKind) -> APIRouter:
    """Router for one ballot kind under /api/{kind}s"""
    router = APIRouter(prefix=f"/api/{kind.value}s", tags=[f"{kind.value}s"])

    @router.get("")
    async def list_items(
        voter_id: str = Depends(get_current_identity),
        service: VotingService = Depends(get_voting_service),
    ):
        """Published items visible to the caller's faculty, open ones first"""
        voter = await require_voter(service, voter_id)
        views = await service.list_eligible_items(voter.faculty, kind)
        return {"success": True, "items": [view.to_dict() for view in views]}

    @router.get("/{item_id}")
    async def get_item(
        item_id: str,
        voter_id: str = Depends(get_current_identity),
        service: VotingService = Depends(get_voting_service),
    ):
        voter = await require_voter(service, voter_id)
        view = await service.get_visible_item(voter.faculty, kind, item_id)
        return {"success": True, "item": view.to_dict()}

    @router.get("/{item_id}/selections")
    async def get_selections(
        item_id: str,
        voter_id: str = Depends(get_current_identity),
        service: VotingService = Depends(get_voting_service),
    ):
        """Candidates (elections) or options (polls) in display order"""
        voter = await require_voter(service, voter_id)
        selections = await service.get_selections(voter.faculty, kind, item_id)
        return {"success": True, "selections": [s.to_dict() for s in selections]}

    @router.get("/{item_id}/vote-status")
    async def vote_status(
        item_id: str,
        voter_id: str = Depends(get_current_identity),
        service: VotingService = Depends(get_voting_service),
    ):
        return {"has_voted": await service.has_voted(voter_id, kind, item_id)}

    @router.post("/{item_id}/vote", status_code=201)
    async def cast_vote(
        item_id: str,
        body: VoteRequest,
        voter_id: str = Depends(get_current_identity),
        service: VotingService = Depends(get_voting_service),
    ):
        """Cast the caller's single ballot for this item

        201 on success; rejections carry a reason code and message.
        """
        result = await service.cast_vote(voter_id, kind, item_id, body.selection_id)
        if not result.accepted:
            return JSONResponse(
                status_code=REJECTION_STATUS[result.reason],
                content=result.to_dict(),
            )
        return result.to_dict()

    @router.get("/{item_id}/results")
    async def get_results(
        item_id: str,
        voter_id: str = Depends(get_current_identity),
        service: VotingService = Depends(get_voting_service),
    ):
        """Final results; available once the item has closed"""
        voter = await require_voter(service, voter_id)
        tally = await service.get_results(
            kind, item_id, audience=Audience.VOTER, voter_faculty=voter.faculty
        )
        return {"success": True, "results": tally.to_dict()}

    return router


elections_router = build_ballot_router(CollectionKind.ELECTION)
polls_router = build_ballot_router(CollectionKind.POLL)
