# Services package init
"""
Haiku Notes Backend: Services Layer (Resource Store)
=====================================================

What:  Persistence layer sitting between routes (HTTP) and the database.
How:   Services receive an AsyncSession per call, run one statement, and
       translate database failures into tagged application errors.

Service Inventory:
    - StoreService (base): argument checks and failure tagging
    - UserService: create and read users
    - NoteService: list, get, create, update and delete a user's notes
"""
