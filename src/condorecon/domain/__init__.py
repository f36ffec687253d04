"""Reconciliation domain: records, value objects, ports and services."""
