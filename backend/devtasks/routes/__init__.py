"""
DevTasks Backend - API Routes Package
======================================

Route inventory:
    - health.py:    GET  /health
    - auth.py:      POST /api/auth/login, GET /api/auth/me
    - users.py:     POST /api/users, GET /api/users/{id}
    - projects.py:  POST /api/projects, GET /api/projects/{id}
    - tasks.py:     POST /api/tasks, GET /api/tasks/{id}

Handlers stay thin: gates and body validation are declared as
dependencies, business rules live in services.
"""
