"""Services package — all business logic lives here, never in routers.

Files:
  procurement.py  — Record store: create/update/delete, references, statistics
  catalog.py      — Supplier and article CRUD
  query.py        — Pure filtering and ordering of loaded records
  line_items.py   — Line-item aggregation for a record being drafted
  references.py   — APP-YYYYMM-NNN reference generation
  export.py       — CSV export

Rule: routers call services, services call repositories, repositories call the backend.
      No backend types in routers. No FastAPI imports in services.
"""
