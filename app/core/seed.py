"""Seed the shared system roles on app startup."""

import logging
from sqlalchemy import select
from app.core.database import async_session
from app.models.role import Role

logger = logging.getLogger(__name__)

LEAD_KEYS = ["view_all_leads", "edit_all_leads", "create_leads", "delete_leads"]
CAMPAIGN_KEYS = ["campaign.view", "campaign.create", "campaign.edit", "campaign.delete", "campaign.run"]
INVENTORY_KEYS = ["property.view", "property.edit", "project.view", "project.create", "project.edit", "project.delete"]

# Roles with no organization are visible to every tenant
SYSTEM_ROLES = {
    "Admin": {
        "description": "Full access to the organization",
        "permissions": LEAD_KEYS + CAMPAIGN_KEYS + INVENTORY_KEYS + [
            "call_log.view", "call_log.edit", "deal.view", "deal.edit", "pipeline.view", "pipeline.manage",
            "team.view", "team.manage", "audit.view",
        ],
    },
    "Manager": {
        "description": "Runs campaigns and manages the team's leads",
        "permissions": [
            "view_team_leads", "edit_team_leads", "create_leads",
            "campaign.view", "campaign.create", "campaign.edit", "campaign.run",
            "call_log.view", "property.view", "project.view", "deal.view", "deal.edit",
            "pipeline.view", "team.view",
        ],
    },
    "Employee": {
        "description": "Works assigned leads and takes transferred calls",
        "permissions": [
            "view_own_leads", "edit_own_leads", "call_log.view",
            "property.view", "project.view", "deal.view", "pipeline.view",
        ],
    },
}


async def seed_system_roles():
    """Create any missing system role; existing roles are left untouched."""
    async with async_session() as db:
        try:
            result = await db.execute(select(Role.name).where(Role.organization_id.is_(None)))
            existing = set(result.scalars().all())

            for name, spec in SYSTEM_ROLES.items():
                if name in existing:
                    continue
                db.add(Role(name=name, organization_id=None, **spec))
                logger.info("Seeding system role %s", name)
            await db.commit()

        except Exception as e:
            logger.error("Failed to seed system roles: %s", e)
            await db.rollback()
