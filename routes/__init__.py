from .health import health_bp
from .booking import booking_bp
from .queues import queue_bp
