"""HRMS — leave application workflow and balance ledger backend."""
