import uuid
from datetime import timedelta

import pytest

from slotbook.core.exceptions import ConflictError, InvalidOperationError, NotFoundError, ValidationError
from slotbook.models import AvailabilitySlot, SlotStatus
from slotbook.services.availability.slot_generator import SlotGenerator
from slotbook.services.availability.slot_service import SlotService

from conftest import MONDAY, add_slot, utc


def test_manual_slot_is_not_generated(db, worker):
    slot = SlotService.create_manual_slot(
        db, worker.id, worker.business_profile_id, utc(MONDAY, 8), utc(MONDAY, 9), SlotStatus.UNAVAILABLE
    )
    assert slot.generating_schedule_id is None
    assert slot.status == SlotStatus.UNAVAILABLE


def test_manual_slot_may_not_overlap(db, worker, open_slot):
    with pytest.raises(ConflictError):
        SlotService.create_manual_slot(
            db, worker.id, worker.business_profile_id, utc(MONDAY, 14, 30), utc(MONDAY, 16)
        )
    # Back to back is fine
    SlotService.create_manual_slot(db, worker.id, worker.business_profile_id, utc(MONDAY, 15), utc(MONDAY, 16))


def test_manual_slot_cannot_start_booked(db, worker):
    with pytest.raises(ValidationError):
        SlotService.create_manual_slot(
            db, worker.id, worker.business_profile_id, utc(MONDAY, 8), utc(MONDAY, 9), SlotStatus.BOOKED
        )


def test_manual_slot_for_foreign_worker(db, worker):
    with pytest.raises(NotFoundError):
        SlotService.create_manual_slot(db, worker.id, uuid.uuid4(), utc(MONDAY, 8), utc(MONDAY, 9))


def test_update_detaches_generated_slot(db, worker, weekly_schedule):
    slot = add_slot(db, worker, utc(MONDAY, 9), utc(MONDAY, 12), schedule=weekly_schedule)

    updated = SlotService.update_slot(
        db, slot.id, worker.business_profile_id, end_time=utc(MONDAY, 11), status=SlotStatus.BREAK
    )

    assert updated.generating_schedule_id is None
    assert (updated.end_time, updated.status) == (utc(MONDAY, 11), SlotStatus.BREAK)


def test_update_rejects_overlap_with_neighbour(db, worker, open_slot):
    other = add_slot(db, worker, utc(MONDAY, 15), utc(MONDAY, 16))
    with pytest.raises(ConflictError):
        SlotService.update_slot(db, other.id, worker.business_profile_id, start_time=utc(MONDAY, 14, 30))


def test_booked_slots_are_frozen(db, worker):
    booked = add_slot(db, worker, utc(MONDAY, 10), utc(MONDAY, 11), SlotStatus.BOOKED)
    with pytest.raises(InvalidOperationError):
        SlotService.update_slot(db, booked.id, worker.business_profile_id, status=SlotStatus.AVAILABLE)
    with pytest.raises(InvalidOperationError):
        SlotService.delete_slot(db, booked.id, worker.business_profile_id)


def test_status_cannot_be_set_to_booked(db, worker, open_slot):
    with pytest.raises(InvalidOperationError):
        SlotService.update_slot(db, open_slot.id, worker.business_profile_id, status=SlotStatus.BOOKED)


def test_delete_slot(db, worker, open_slot):
    SlotService.delete_slot(db, open_slot.id, worker.business_profile_id)
    assert db.query(AvailabilitySlot).count() == 0


def test_slots_are_scoped_to_business(db, worker, open_slot):
    with pytest.raises(NotFoundError):
        SlotService.get_slot(db, open_slot.id, uuid.uuid4())


def test_bookable_slots_lists_only_available(db, worker, open_slot):
    add_slot(db, worker, utc(MONDAY, 10), utc(MONDAY, 11), SlotStatus.UNAVAILABLE)
    add_slot(db, worker, utc(MONDAY, 11), utc(MONDAY, 12), SlotStatus.BOOKED)

    slots = SlotService.list_bookable_slots(db, worker.id, utc(MONDAY, 0), utc(MONDAY, 23))
    assert [s.id for s in slots] == [open_slot.id]


def test_bookable_slots_hidden_for_inactive_worker(db, worker, open_slot):
    worker.is_active = False
    db.commit()
    with pytest.raises(NotFoundError):
        SlotService.list_bookable_slots(db, worker.id, utc(MONDAY, 0), utc(MONDAY, 23))


def test_list_slots_requires_ordered_window(db, worker):
    with pytest.raises(ValidationError):
        SlotService.list_slots(db, worker.id, utc(MONDAY, 12), utc(MONDAY, 9))


def generate_monday(db, worker):
    return SlotGenerator.generate_slots(
        db, worker.id, worker.business_profile_id, utc(MONDAY, 0), utc(MONDAY + timedelta(days=1), 0)
    )


def test_manual_slot_splits_generated_slot(db, worker, weekly_schedule):
    generate_monday(db, worker)

    blocked = SlotService.create_manual_slot(
        db, worker.id, worker.business_profile_id, utc(MONDAY, 10), utc(MONDAY, 11), SlotStatus.UNAVAILABLE
    )

    db.expire_all()
    generated = db.query(AvailabilitySlot).filter(
        AvailabilitySlot.generating_schedule_id == weekly_schedule.id
    ).order_by(AvailabilitySlot.start_time).all()
    assert [(s.start_time, s.end_time) for s in generated] == [
        (utc(MONDAY, 9), utc(MONDAY, 10)),
        (utc(MONDAY, 11), utc(MONDAY, 12)),
        (utc(MONDAY, 13), utc(MONDAY, 17)),
    ]
    assert all(s.status == SlotStatus.AVAILABLE for s in generated)

    windows = sorted(
        (s.start_time, s.end_time)
        for s in db.query(AvailabilitySlot).filter(AvailabilitySlot.worker_id == worker.id)
    )
    assert (blocked.start_time, blocked.end_time) in windows
    assert all(earlier[1] <= later[0] for earlier, later in zip(windows, windows[1:]))

    # Regeneration agrees with the split
    again = generate_monday(db, worker)
    assert (again.created, again.deleted, again.kept) == (0, 0, 3)


def test_manual_slot_still_blocked_by_booked_generated_slot(db, worker, weekly_schedule):
    add_slot(db, worker, utc(MONDAY, 9), utc(MONDAY, 12), SlotStatus.BOOKED, schedule=weekly_schedule)
    with pytest.raises(ConflictError):
        SlotService.create_manual_slot(
            db, worker.id, worker.business_profile_id, utc(MONDAY, 10), utc(MONDAY, 11), SlotStatus.UNAVAILABLE
        )
    assert db.query(AvailabilitySlot).count() == 1


def test_bookable_slots_window_is_capped(db, worker, open_slot):
    with pytest.raises(ValidationError):
        SlotService.list_bookable_slots(db, worker.id, utc(MONDAY, 0), utc(MONDAY + timedelta(days=400), 0))
