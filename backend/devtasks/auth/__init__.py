"""
DevTasks Backend - Authentication & Authorization
==================================================

What:  The gates every protected request passes through.

    principal.py  Role enum and the Principal (authenticated caller) record
    tokens.py     Bearer token issuing and verification (PyJWT)
    gates.py      Authentication Gate and Role Gate (+ FastAPI dependencies)
    access.py     Resource-Access Gate: ownership / hierarchy / membership

Order within a request:
    Rate limit (middleware) → authenticate → role / resource access → body validation
"""
