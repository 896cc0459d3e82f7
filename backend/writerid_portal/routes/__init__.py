"""
WriterID Portal Backend — API Routes Package
=============================================

Route Inventory:
    - auth.py:       /api/v1/auth        (register, login, me)
    - datasets.py:   /api/v1/datasets    (CRUD, access URLs, analysis)
    - models.py:     /api/v1/models      (CRUD, training)
    - tasks.py:      /api/v1/tasks       (CRUD, prediction)
    - dashboard.py:  /api/v1/dashboard   (per-user counts)
    - external.py:   /api/external       (executor callbacks, X-API-Key)
    - health.py:     /health

Routes stay thin: parse the request, call a service, shape the response.
Authorization failures and domain errors are raised as WriterIDError
subclasses and turned into HTTP responses by the handlers in main.py.
"""
