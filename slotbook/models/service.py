# slotbook/models/service.py
"""
Service Model - what a customer books (name, duration, price)
Each service belongs to one business and is offered by zero or more workers.
"""
from sqlalchemy import Column, String, Numeric, Integer, ForeignKey, Boolean, Text, Table
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
import uuid
from slotbook.models.base import Base, UTCDateTime, utcnow


# Association table for the many-to-many Worker <-> Service relationship
worker_services = Table(
    "worker_services",
    Base.metadata,
    Column("worker_id", UUID(as_uuid=True), ForeignKey("workers.id", ondelete="CASCADE"), primary_key=True),
    Column("service_id", UUID(as_uuid=True), ForeignKey("services.id", ondelete="CASCADE"), primary_key=True),
)


class Service(Base):
    """
    Source of truth for price and duration. Bookings snapshot the price at creation.
    """
    __tablename__ = "services"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    business_profile_id = Column(
        UUID(as_uuid=True),
        ForeignKey("business_profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    duration_minutes = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False, default=0)  # Stored as decimal for precision
    is_active = Column(Boolean, default=True, index=True)

    created_at = Column(UTCDateTime, default=utcnow)
    updated_at = Column(UTCDateTime, default=utcnow, onupdate=utcnow)

    workers = relationship("Worker", secondary=worker_services, back_populates="services")

    def __repr__(self):
        return f"<Service(id={self.id}, name={self.name}, business_profile_id={self.business_profile_id})>"

    def to_dict(self):
        """Convert to dictionary for API responses"""
        return {
            "id": str(self.id),
            "business_profile_id": str(self.business_profile_id),
            "name": self.name,
            "description": self.description,
            "duration_minutes": self.duration_minutes,
            "price": float(self.price) if self.price is not None else None,
            "is_active": self.is_active,
        }
