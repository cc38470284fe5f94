# slotbook/models/worker.py
"""Worker Model - the person whose time is scheduled and booked"""
from sqlalchemy import Column, String, Boolean, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
import uuid
from slotbook.models.base import Base, UTCDateTime, utcnow
from slotbook.models.service import worker_services


class Worker(Base):
    __tablename__ = "workers"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    business_profile_id = Column(
        UUID(as_uuid=True),
        ForeignKey("business_profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(UTCDateTime, default=utcnow)
    updated_at = Column(UTCDateTime, default=utcnow, onupdate=utcnow)

    business_profile = relationship("BusinessProfile", back_populates="workers")
    services = relationship("Service", secondary=worker_services, back_populates="workers", lazy="selectin")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def offers_service(self, service_id) -> bool:
        return any(service.id == service_id for service in self.services)

    def __repr__(self):
        return f"<Worker(id={self.id}, name={self.full_name})>"

    def to_dict(self):
        """Convert to dictionary for API responses"""
        return {
            "id": str(self.id),
            "business_profile_id": str(self.business_profile_id),
            "full_name": self.full_name,
            "email": self.email,
            "is_active": self.is_active,
            "service_ids": [str(service.id) for service in self.services],
        }
