"""
Somalia Tourism API

Destinations, bookings, contact messages and an admin dashboard for the
Somalia tourism site. Deployed on its own: ``uvicorn tourism_api.main:app``.
"""
