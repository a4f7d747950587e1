"""Classroom attendance package.

QR check-in for class sessions, organized by feature modules (sessions,
tokens, checkin, attendance, stats, ...) with a thin Flask controller layer
over service/repository layers.
"""
