"""
WriterID Portal Backend — Application Package
==============================================

What: CRUD backend coordinating writer-identification workflows: accounts,
      dataset uploads, model training requests and prediction tasks.
Who:  Imported by uvicorn (`writerid_portal.main:app`), Alembic and pytest.

Layering:

    ┌─────────────────────────────────────┐
    │   Routes (internal + external API)  │  ← HTTP concerns, auth
    ├─────────────────────────────────────┤
    │   Services (Dataset/Model/Task/...) │  ← lifecycle + status transitions
    ├──────────────────┬──────────────────┤
    │ Repository / UoW │ Storage, Queue,  │
    │ (SQLAlchemy)     │ Executor gateways│
    └──────────────────┴──────────────────┘

The ML computation itself lives in an external executor; this package only
hands work off (queue messages, one HTTP call) and records the outcome.
"""

__version__ = "1.0.0"
