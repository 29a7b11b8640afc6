# Routes package init
"""
Haiku Notes Backend: API Routes Package
========================================

What:  HTTP route handlers that accept requests and return responses.
How:   Each route module handles one resource; shared path and body
       handling lives in dependencies.py.

Route Inventory:
    - health.py:  GET  /ping                          (liveness)
                  GET  /health                        (database-aware status)
    - users.py:   POST /user                          (create user)
                  GET  /user/{user}                   (get user)
    - notes.py:   GET  /user/{user}/notes             (ordered note ids)
                  GET  /user/{user}/notes/detail      (ordered notes)
                  POST /user/{user}/notes             (create note)
                  GET  /user/{user}/note/{note}       (get note)
                  PUT  /user/{user}/note/{note}       (replace note)
                  DELETE /user/{user}/note/{note}     (delete note)

Design Principle:
    Routes are thin: validate identifiers, decode the body, apply payload
    rules, call a service. Storage lives in services.
"""
