"""
TL Payroll Core - Routers Package

FastAPI route handlers.

Routers:
- payroll: statutory calculators, payroll records and runs, bank files
"""
