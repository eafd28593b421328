"""Timekeeping package.

Organized by feature modules (employees, attendance, leave, ...) with a thin
Flask controller layer on top of service/repository layers.
"""
