"""
DevTasks Backend - API Schemas
===============================

Pydantic request/response models (camelCase on the wire, snake_case in
Python) and the declarative rule sets the body validator applies before a
payload reaches them.
"""
