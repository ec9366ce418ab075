from functools import wraps
from flask import g, jsonify

from models.enums import Actor

def require_actor(*actors: Actor):
    """
    Usage: @require_actor(Actor.BUSINESS)
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            actor = getattr(g, "actor", None)
            if actor is None:
                return jsonify(error="Caller role required", code="unauthenticated"), 401

            if actors and actor not in actors:
                return jsonify(error="Forbidden", code="forbidden"), 403

            return fn(*args, **kwargs)
        return wrapper
    return decorator
