"""
DevTasks Backend - Services Layer
==================================

Business logic between the routes and the database. Services are
stateless singletons; each call receives the request's AsyncSession.

Service inventory:
    - ResourceStore:   read-only snapshots for the gates
    - AuthService:     login and token issuing
    - UserService:     create / read users
    - ProjectService:  create / read projects
    - TaskService:     create / read tasks
    - security:        bcrypt password hashing
"""
