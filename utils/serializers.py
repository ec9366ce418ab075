def _iso(value):
    return value.isoformat() if value else None


def booking_to_dict(b):
    unit = b.capacity_unit
    slot = b.slot
    return {
        "id": b.id,
        "capacity_unit_id": b.capacity_unit_id,
        "business_id": unit.business_id,
        "business_name": unit.business.name,
        "department_id": unit.department_id,
        "department_name": unit.name,
        "mode": unit.mode.value,
        "slot": {
            "slot_id": slot.id,
            "date": slot.slot_date.isoformat(),
            "start_time": slot.start_time.strftime("%H:%M"),
            "end_time": slot.end_time.strftime("%H:%M"),
        } if slot else None,
        "service_date": b.service_date.isoformat(),
        "token": b.token,
        "status": b.status.value,
        "position": b.position,
        "estimated_wait_minutes": b.estimated_wait_minutes,
        "customer": {
            "name": b.customer_name,
            "phone": b.customer_phone,
            "email": b.customer_email,
        },
        "notes": b.notes,
        "check_in_code": b.check_in_code,
        "scheduled_at": _iso(b.scheduled_at),
        "created_at": _iso(b.created_at),
        "confirmed_at": _iso(b.confirmed_at),
        "checked_in_at": _iso(b.checked_in_at),
        "started_at": _iso(b.started_at),
        "completed_at": _iso(b.completed_at),
        "cancelled_at": _iso(b.cancelled_at),
        "no_show_at": _iso(b.no_show_at),
        "cancel_reason": b.cancel_reason,
    }


def snapshot_to_dict(snapshot):
    ref = snapshot.ref
    return {
        "capacity_unit_id": ref.capacity_unit_id,
        "slot_id": ref.slot_id,
        "service_date": _iso(ref.service_date),
        "capacity": snapshot.capacity,
        "active": len(snapshot),
        "average_service_minutes": snapshot.average_service_minutes,
        "queue": [
            {
                "booking_id": e.booking_id,
                "token": e.token,
                "status": e.status.value,
                "position": e.position,
                "estimated_wait_minutes": e.estimated_wait_minutes,
            }
            for e in snapshot
        ],
    }
