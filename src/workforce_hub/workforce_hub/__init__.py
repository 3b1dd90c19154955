"""Workforce Hub package.

Organized by feature modules (work items, payroll, governance, ...) with a
thin Flask controller layer over service/repository layers.
"""
