from sqlalchemy import Column, String, DateTime, Date, Text, Integer, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
import uuid
from datetime import datetime
from app.core.database import Base


class Campaign(Base):
    __tablename__ = "campaigns"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    organization_id = Column(UUID(as_uuid=True), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    project_id = Column(UUID(as_uuid=True), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False, default="Call Campaign")
    description = Column(Text, nullable=True)
    # Plain label: draft, scheduled, running, completed, cancelled
    status = Column(String, nullable=False, default="draft")
    ai_script = Column(Text, nullable=True)
    total_calls = Column(Integer, nullable=False, default=0)
    transferred_calls = Column(Integer, nullable=False, default=0)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    time_start = Column(String, nullable=True)  # "09:00"
    time_end = Column(String, nullable=True)  # "18:00"
    created_by = Column(UUID(as_uuid=True), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
