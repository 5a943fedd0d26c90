# carelink/routers/__init__.py
from . import health
from . import slots
from . import doctors
from . import appointments
from . import prescriptions
from . import reminders

__all__ = ["health", "slots", "doctors", "appointments", "prescriptions", "reminders"]
