"""Payroll engine package.

Monthly salary calculation, salary snapshots with an approval workflow, and
monthly trend reporting. Organized by feature modules (rates, worklogs,
payroll, snapshots, ...) behind a thin Flask controller layer.
"""
