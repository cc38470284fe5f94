# ============================================================================
# slotbook/services/booking/booking_query_service.py
# Read side of bookings - joined, read-only views for the API layer
# ============================================================================
from datetime import datetime, date, time, timezone
from typing import Optional, Dict, Any, List
from uuid import UUID

from sqlalchemy.orm import Session

from slotbook.core.exceptions import NotFoundError
from slotbook.models.booking import Booking, BookingStatus
from slotbook.models.service import Service
from slotbook.models.user import User
from slotbook.models.worker import Worker


class BookingQueryService:
    """Service layer for booking lookups and listings."""

    @staticmethod
    def _joined_query(db: Session):
        return (
            db.query(Booking, User, Service, Worker)
            .join(User, User.id == Booking.customer_id)
            .join(Service, Service.id == Booking.service_id)
            .join(Worker, Worker.id == Booking.worker_id)
        )

    @staticmethod
    def _serialize(booking: Booking, customer: User, service: Service, worker: Worker) -> Dict[str, Any]:
        data = booking.to_dict()
        data["customer"] = {
            "id": str(customer.id),
            "full_name": customer.full_name,
            "email": customer.email,
            "phone_number": customer.phone_number,
        }
        data["service"] = {
            "id": str(service.id),
            "name": service.name,
            "duration_minutes": service.duration_minutes,
        }
        data["worker"] = {
            "id": str(worker.id),
            "full_name": worker.full_name,
        }
        return data

    @staticmethod
    def get_booking(db: Session, booking_id: UUID, business_profile_id: UUID) -> Dict[str, Any]:
        """Single booking with customer, service and worker identity. Raises NotFoundError."""
        row = BookingQueryService._joined_query(db).filter(
            Booking.id == booking_id,
            Booking.business_profile_id == business_profile_id
        ).first()

        if not row:
            raise NotFoundError(f"Booking {booking_id} not found.")

        return BookingQueryService._serialize(*row)

    @staticmethod
    def list_bookings(
            db: Session,
            business_profile_id: UUID,
            worker_id: Optional[UUID] = None,
            service_id: Optional[UUID] = None,
            customer_id: Optional[UUID] = None,
            status: Optional[BookingStatus] = None,
            start_date: Optional[date] = None,
            end_date: Optional[date] = None,
            skip: int = 0,
            limit: int = 50
    ) -> Dict[str, Any]:
        """Get paginated list of bookings with filters."""
        query = BookingQueryService._joined_query(db).filter(Booking.business_profile_id == business_profile_id)

        if worker_id:
            query = query.filter(Booking.worker_id == worker_id)
        if service_id:
            query = query.filter(Booking.service_id == service_id)
        if customer_id:
            query = query.filter(Booking.customer_id == customer_id)
        if status:
            query = query.filter(Booking.status == status)
        if start_date:
            query = query.filter(
                Booking.booking_start_time >= datetime.combine(start_date, time.min, tzinfo=timezone.utc)
            )
        if end_date:
            query = query.filter(
                Booking.booking_start_time <= datetime.combine(end_date, time.max, tzinfo=timezone.utc)
            )

        query = query.order_by(Booking.booking_start_time.asc())
        total = query.count()
        rows = query.offset(skip).limit(limit).all()

        return {
            "business_profile_id": str(business_profile_id),
            "total": total,
            "page": {
                "skip": skip,
                "limit": limit,
                "total_pages": (total + limit - 1) // limit if total > 0 else 0
            },
            "filters": {
                "worker_id": str(worker_id) if worker_id else None,
                "service_id": str(service_id) if service_id else None,
                "customer_id": str(customer_id) if customer_id else None,
                "status": status.value if status else None,
                "start_date": start_date.isoformat() if start_date else None,
                "end_date": end_date.isoformat() if end_date else None,
            },
            "bookings": [BookingQueryService._serialize(*row) for row in rows]
        }

    @staticmethod
    def list_customer_bookings(
            db: Session,
            customer_id: UUID,
            status: Optional[BookingStatus] = None
    ) -> List[Dict[str, Any]]:
        """A customer's own bookings, most recent first."""
        query = BookingQueryService._joined_query(db).filter(Booking.customer_id == customer_id)
        if status:
            query = query.filter(Booking.status == status)
        rows = query.order_by(Booking.booking_start_time.desc()).all()
        return [BookingQueryService._serialize(*row) for row in rows]
