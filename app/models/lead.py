"""Lead model for the CRM pipeline."""
import enum
import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Boolean, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.types import JSON
from app.core.database import Base


class LeadStatus(str, enum.Enum):
    """Lead status enum."""
    NEW = "new"
    CONTACTED = "contacted"
    QUALIFIED = "qualified"
    TRANSFERRED = "transferred"
    CONVERTED = "converted"
    LOST = "lost"


class Lead(Base):
    """Lead model."""
    __tablename__ = "leads"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    organization_id = Column(UUID(as_uuid=True), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    project_id = Column(UUID(as_uuid=True), ForeignKey("projects.id", ondelete="SET NULL"), nullable=True, index=True)
    stage_id = Column(UUID(as_uuid=True), ForeignKey("pipeline_stages.id", ondelete="SET NULL"), nullable=True)
    property_id = Column(UUID(as_uuid=True), ForeignKey("properties.id", ondelete="SET NULL"), nullable=True, index=True)
    assigned_to = Column(UUID(as_uuid=True), ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True, index=True)
    name = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    email = Column(String(255), nullable=True)
    status = Column(String(20), nullable=False, default=LeadStatus.NEW.value, index=True)
    call_status = Column(String(20), nullable=True)
    transferred_to_human = Column(Boolean, nullable=False, default=False)
    last_contacted_at = Column(DateTime, nullable=True)
    avatar_url = Column(String, nullable=True)
    raw_data = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


# Columns a caller may change through update/bulk-update
EDITABLE_LEAD_FIELDS = frozenset({
    "name",
    "phone",
    "email",
    "status",
    "stage_id",
    "project_id",
    "assigned_to",
    "call_status",
    "avatar_url",
    "raw_data",
})
