# Middleware package init
"""
Haiku Notes Backend: Middleware Package
========================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain:
    Request → [Request ID] → [Logging] → [Deadline] → Route Handler

    1. Request ID: correlation id for logs, error bodies and X-Request-ID
    2. Logging: access line with status and duration
    3. Deadline: cancels handlers that outlive API_WRITE_TIMEOUT (504)

    Responses travel back through the chain in reverse, so the logged
    status and duration include a deadline 504.
"""
