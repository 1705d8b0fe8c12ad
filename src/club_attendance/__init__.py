"""Club Attendance package.

Organized by feature modules (users, attendance, duty, strikes, ...) with a
thin Flask JSON controller layer on top of service/repository layers.
"""
