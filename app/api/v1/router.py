from fastapi import APIRouter
from app.api.v1.endpoints import (
    audit,
    auth,
    billing,
    call_logs,
    campaigns,
    deals,
    inventory,
    leads,
    permissions,
    pipeline,
    projects,
    users,
    webhooks,
)

api_router = APIRouter()
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(permissions.router, prefix="/permissions", tags=["permissions"])
api_router.include_router(leads.router, prefix="/leads", tags=["leads"])
api_router.include_router(pipeline.router, prefix="/pipeline", tags=["pipeline"])
api_router.include_router(campaigns.router, prefix="/campaigns", tags=["campaigns"])
api_router.include_router(call_logs.router, prefix="/call-logs", tags=["call-logs"])
api_router.include_router(inventory.router, prefix="/inventory", tags=["inventory"])
api_router.include_router(projects.router, prefix="/projects", tags=["projects"])
api_router.include_router(deals.router, prefix="/deals", tags=["deals"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(audit.router, prefix="/audit", tags=["audit"])
api_router.include_router(webhooks.router, prefix="/webhooks", tags=["webhooks"])
api_router.include_router(billing.router, prefix="/billing", tags=["billing"])
