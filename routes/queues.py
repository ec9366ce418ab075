from flask import Blueprint, request, jsonify, current_app

from models.enums import Actor
from scheduling import parse_status
from security.rbac import require_actor
from utils.parsing import parse_date
from utils.serializers import booking_to_dict, snapshot_to_dict

queue_bp = Blueprint("queue", __name__, url_prefix="/units")


def _service():
    return current_app.extensions["scheduling"]


def _queue_args():
    slot_id = request.args.get("slot_id", type=int)
    date_str = request.args.get("date")
    return slot_id, parse_date(date_str) if date_str else None


# ---------- PUBLIC: live position board (poll this) ----------
@queue_bp.get("/<int:unit_id>/queue")
def queue_snapshot(unit_id: int):
    slot_id, service_date = _queue_args()
    snapshot = _service().get_queue_snapshot(unit_id, slot_id, service_date)
    return jsonify(snapshot_to_dict(snapshot)), 200


# ---------- PUBLIC: slot availability for a date ----------
@queue_bp.get("/<int:unit_id>/slots")
def list_slots(unit_id: int):
    date_str = request.args.get("date")
    if not date_str:
        return jsonify(error="date is required (YYYY-MM-DD)", code="bad_request"), 400
    return jsonify(_service().list_slots(unit_id, parse_date(date_str))), 200


# ---------- BUSINESS: bookings of a department ----------
@queue_bp.get("/<int:unit_id>/bookings")
@require_actor(Actor.BUSINESS)
def list_unit_bookings(unit_id: int):
    status = request.args.get("status")
    date_str = request.args.get("date")
    rows = _service().list_unit_bookings(
        unit_id,
        parse_status(status) if status else None,
        parse_date(date_str) if date_str else None,
    )
    return jsonify([booking_to_dict(b) for b in rows]), 200


# ---------- BUSINESS/SCHEDULER: refresh cached positions ----------
@queue_bp.post("/<int:unit_id>/recompute")
@require_actor(Actor.BUSINESS)
def recompute_queue(unit_id: int):
    slot_id, service_date = _queue_args()
    snapshot = _service().refresh_queue(unit_id, slot_id, service_date)
    return jsonify(snapshot_to_dict(snapshot)), 200
