"""Pydantic schemas package.

Folder intent:
  common.py       — CamelModel base + HealthResponse (all schemas inherit CamelModel)
  catalog.py      — Supplier and article DTOs (wire names: nom, prixReference, adresse...)
  procurement.py  — Procurement records, line items, filters, statistics
"""
