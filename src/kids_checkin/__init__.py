"""Children check-in/check-out tracker.

The package is organized by feature modules (families, attendance, reports, ...)
with a thin Flask controller layer over service/repository layers, plus a
client side (``kids_checkin.client``) used by staff devices.
"""
