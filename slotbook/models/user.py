# ============================================================================
# FILE: slotbook/models/user.py
# Platform identity: admins, vendors (scoped to one business) and customers
# ============================================================================
from sqlalchemy import Column, String, Boolean, ForeignKey, Enum as SQLEnum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from passlib.context import CryptContext
import uuid
import enum
from slotbook.models.base import Base, UTCDateTime, utcnow

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class UserRole(str, enum.Enum):
    """Platform-level user roles."""
    ADMIN = "admin"        # Platform admin - may act on any business
    VENDOR = "vendor"      # Manages one business profile
    CUSTOMER = "customer"  # Books slots


class User(Base):
    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=True)
    phone_number = Column(String(20), nullable=True)

    role = Column(
        SQLEnum(UserRole, name="user_role", values_callable=lambda obj: [e.value for e in obj]),
        default=UserRole.CUSTOMER,
        nullable=False,
        index=True
    )

    # Business this vendor manages (null for admins and customers)
    business_profile_id = Column(UUID(as_uuid=True), ForeignKey("business_profiles.id"), nullable=True)

    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(UTCDateTime, default=utcnow, nullable=False)
    updated_at = Column(UTCDateTime, default=utcnow, onupdate=utcnow, nullable=False)

    business_profile = relationship("BusinessProfile", foreign_keys=[business_profile_id], lazy="joined")

    def verify_password(self, plain_password: str) -> bool:
        """Verify a plain password against the hashed password."""
        return pwd_context.verify(plain_password, self.hashed_password)

    @staticmethod
    def hash_password(plain_password: str) -> str:
        """Hash a plain password."""
        return pwd_context.hash(plain_password)

    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def is_vendor(self) -> bool:
        return self.role == UserRole.VENDOR

    def __repr__(self):
        return f"<User {self.email} ({self.role})>"
