"""Council Attendance package.

Organized by feature modules (members, settings, qr, biometrics, attendance,
realtime) with a thin Flask controller layer over service/repository layers.
"""
