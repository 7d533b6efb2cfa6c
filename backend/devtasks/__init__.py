"""
DevTasks Backend
================

Request-processing core for a project/task management API: body and
identifier validation, rate limiting, authentication, role and
resource-access gates, and error normalization.

Layers:
    routes/         HTTP surface (thin handlers, gates wired as dependencies)
    auth/           principals, tokens and the three gates
    middleware/     rate limiting, request ids, access logging, validation
    services/       business logic and the read-only resource store
    models/         SQLAlchemy ORM
    schemas/        pydantic request/response models and validation rule sets
"""

__version__ = "1.0.0"
