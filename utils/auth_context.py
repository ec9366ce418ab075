from flask import g, request, current_app

from models.enums import Actor

def load_current_actor():
    """
    Authentication happens upstream; the gateway forwards the caller's role in a
    trusted header. Unknown values are treated as anonymous.
    """
    header = current_app.config.get("ACTOR_HEADER", "X-Actor-Role")
    raw = (request.headers.get(header) or "").strip().lower()
    try:
        g.actor = Actor(raw) if raw else None
    except ValueError:
        g.actor = None
