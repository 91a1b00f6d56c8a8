"""Event registration and check-in package.

Organized by feature modules (events, registrations, qr, checkin, reports, ...)
with a thin Flask controller layer over service/repository layers.
"""
