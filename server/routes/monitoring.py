"""
Monitoring and health check API routes
"""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from config import config, get_logger
from server.dependencies import get_voting_service
from server.metrics import get_metrics_text, metrics
from voting.service import VotingService

logger = get_logger(__name__).bind(component="monitoring")

VERSION = "1.0.0"

router = APIRouter()


@router.get("/")
async def root():
    """API status and info"""
    return {
        "service": "campusvote API",
        "status": "running",
        "version": VERSION,
        "description": "University elections and polls - one vote per student, scoped by faculty",
        "endpoints": {
            "elections": "GET /api/elections - Elections visible to the caller's faculty",
            "polls": "GET /api/polls - Polls visible to the caller's faculty",
            "selections": "GET /api/{kind}s/{id}/selections - Candidates or options",
            "vote": "POST /api/{kind}s/{id}/vote - Cast the caller's ballot",
            "vote_status": "GET /api/{kind}s/{id}/vote-status - Whether the caller has voted",
            "results": "GET /api/{kind}s/{id}/results - Results after closing",
            "health": "GET /api/health - Health check with detailed status",
            "metrics": "GET /metrics - Prometheus metrics",
            "admin": {
                "stats": "GET /api/admin/stats - Participation counts",
                "items": "POST /api/admin/{kind}s - Create an election or poll",
                "voters": "POST /api/admin/voters - Register a voter",
            },
        },
    }


@router.get("/api/health")
async def health_check(service: VotingService = Depends(get_voting_service)):
    """Health check endpoint"""
    health_status: Dict[str, Any] = {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": VERSION,
        "checks": {},
    }

    try:
        stats = await service.participation_stats()
        metrics.update_active_items(stats)
        health_status["checks"]["store"] = {
            "status": "healthy",
            "backend": type(service.db.store).__name__,
            **stats,
        }
    except Exception as e:
        metrics.record_error("api", e)
        logger.error("health check failed", error=str(e))
        health_status["checks"]["store"] = {"status": "unhealthy", "error": str(e)}
        health_status["status"] = "unhealthy"

    health_status["checks"]["configuration"] = {
        "status": "healthy",
        "is_development": config.is_development(),
        "default_eligibility": config.DEFAULT_ELIGIBILITY,
        "honor_manual_closure": config.HONOR_MANUAL_CLOSURE,
        "voter_auth": "enabled" if config.JWT_SECRET else "disabled",
    }

    return health_status


@router.get("/metrics")
async def prometheus_metrics():
    """Prometheus scrape endpoint"""
    return Response(content=get_metrics_text(), media_type="text/plain; version=0.0.4")
