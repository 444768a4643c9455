"""Inventory unit (flat, villa, plot) belonging to a project."""
import enum
import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Numeric, Boolean, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from app.core.database import Base


class PropertyStatus(str, enum.Enum):
    """Property status enum."""
    AVAILABLE = "available"
    RESERVED = "reserved"
    SOLD = "sold"


class Property(Base):
    """Property model."""
    __tablename__ = "properties"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    organization_id = Column(UUID(as_uuid=True), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    project_id = Column(UUID(as_uuid=True), ForeignKey("projects.id", ondelete="SET NULL"), nullable=True, index=True)
    title = Column(String(255), nullable=False)
    property_type = Column(String(50), nullable=True)
    status = Column(String(20), nullable=False, default=PropertyStatus.AVAILABLE.value, index=True)
    price = Column(Numeric(14, 2), nullable=True)
    show_in_crm = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
