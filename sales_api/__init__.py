"""
Sales Management API

  sales_api/
  ├── config.py    - environment settings
  ├── database.py  - MongoDB client lifecycle, repository, serialization
  ├── errors.py    - error taxonomy and response envelope handlers
  ├── auth.py      - bcrypt, JWT, admin guard
  ├── schemas.py   - pydantic request schemas
  ├── search.py    - free-text search filter builder
  ├── crud.py      - CRUD router factory and the record resources
  ├── stats.py     - dashboard stats
  ├── seed.py      - demo data loader
  └── main.py      - FastAPI app and admin routes
"""
