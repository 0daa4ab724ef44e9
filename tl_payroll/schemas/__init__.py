"""
TL Payroll Core - Schemas Package

Pydantic schemas for request/response validation.
"""
