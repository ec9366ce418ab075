from flask import Blueprint, request, jsonify, current_app, g

from models.enums import Actor
from scheduling import Customer, SlotRequest, InvalidRequestError, parse_status
from scheduling.lifecycle import describe_transitions
from security.rbac import require_actor
from utils.parsing import json_object, parse_date, parse_time, text_field
from utils.serializers import booking_to_dict

booking_bp = Blueprint("booking", __name__, url_prefix="/bookings")


def _service():
    return current_app.extensions["scheduling"]


def _body() -> dict:
    return json_object(request.get_json(silent=True))


# ---------- CUSTOMERS: join a queue or book a slot ----------
@booking_bp.post("")
@require_actor(Actor.CUSTOMER, Actor.BUSINESS)
def create_booking():
    data = _body()
    business_id = data.get("business_id")
    department_id = (str(data.get("department_id") or "")).strip()
    if not business_id or not department_id:
        return jsonify(error="business_id and department_id are required", code="bad_request"), 400

    raw_customer = json_object(data.get("customer"), "customer")
    customer = Customer(
        name=text_field(raw_customer, "name"),
        phone=text_field(raw_customer, "phone"),
        email=text_field(raw_customer, "email") or None,
    )
    notes = text_field(data, "notes") or None

    slot_request = None
    raw_slot = data.get("slot")
    if raw_slot:
        raw_slot = json_object(raw_slot, "slot")
        slot_request = SlotRequest(
            date=parse_date(raw_slot.get("date")),
            start_time=parse_time(raw_slot.get("start_time")),
        )

    try:
        business_id = int(business_id)
    except (TypeError, ValueError):
        raise InvalidRequestError("business_id must be an integer")

    booking = _service().create_booking(business_id, department_id, customer, notes, slot_request)
    return jsonify(booking_to_dict(booking)), 201


@booking_bp.get("/<int:booking_id>")
@require_actor(Actor.CUSTOMER, Actor.BUSINESS)
def get_booking(booking_id: int):
    return jsonify(booking_to_dict(_service().get_booking(booking_id))), 200


@booking_bp.get("/code/<string:code>")
@require_actor(Actor.CUSTOMER, Actor.BUSINESS)
def get_booking_by_code(code: str):
    return jsonify(booking_to_dict(_service().get_booking_by_code(code))), 200


# ---------- CUSTOMERS: booking history ----------
@booking_bp.get("")
@require_actor(Actor.CUSTOMER, Actor.BUSINESS)
def my_bookings():
    rows = _service().list_customer_bookings(request.args.get("phone"))
    return jsonify([booking_to_dict(b) for b in rows]), 200


# ---------- CUSTOMERS/BUSINESS: cancel (safe to repeat) ----------
@booking_bp.post("/<int:booking_id>/cancel")
@require_actor(Actor.CUSTOMER, Actor.BUSINESS)
def cancel_booking(booking_id: int):
    reason = text_field(_body(), "reason") or None

    booking = _service().cancel_booking(booking_id, g.actor, reason)
    return jsonify(booking_to_dict(booking)), 200


# ---------- BUSINESS: approve / check in / start / complete / no-show ----------
@booking_bp.post("/<int:booking_id>/advance")
@require_actor(Actor.BUSINESS)
def advance_booking(booking_id: int):
    status = text_field(_body(), "status")
    if not status:
        return jsonify(error="status is required", code="bad_request"), 400

    booking = _service().advance_booking(booking_id, g.actor, parse_status(status))
    return jsonify(booking_to_dict(booking)), 200


@booking_bp.get("/transitions")
def list_transitions():
    return jsonify([
        {"from": src, "to": dst, "event": event}
        for src, dst, event in describe_transitions()
    ]), 200
