"""v1 router package — all /api/v1/* endpoints live here.

Files:
  procurements.py  — /approvisionnements (list/filter/paginate, CRUD, status, export)
  suppliers.py     — /fournisseurs CRUD
  articles.py      — /articles CRUD and name search

Rule: Routers only handle HTTP (request parsing, response shaping).
      All business logic delegates to appro/services/.
"""
