"""
TL Payroll Core - Services Package

Payroll computation and disbursement services.
"""
