"""
auth_service package

Core backend of the multi-tenant authentication service:

- FastAPI application (`main.py`) and routers (`routes/`)
- Tenant store registry and SQLAlchemy models (`db.py`, `models.py`)
- User repository per tenant store (`repository.py`)
- Password hashing and JWT session tokens (`auth.py`)
- Registration and login orchestration (`service.py`)
- Pydantic schemas and settings (`schemas.py`, `config.py`)
"""
