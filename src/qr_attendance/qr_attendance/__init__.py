"""QR Attendance package.

Organized by feature modules (timetable, codes, attendance, justifications)
with a thin Flask controller layer over service/repository layers.
"""
