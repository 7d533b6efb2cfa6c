"""
DevTasks Backend - Middleware Package
======================================

Cross-cutting request processing.

Middleware chain (outermost first):
    Request → [Request ID] → [Logging] → [CORS] → [Security Headers]
            → [Rate Limit] → [Body Size] → [GZip] → Route

Route-level gates (validation.py and devtasks.auth) run as FastAPI
dependencies inside the route, after the chain above.
"""
