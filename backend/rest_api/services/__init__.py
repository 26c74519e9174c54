"""
Services module for business logic.

- domain/: Application services (order aggregate, tables, lifecycle, payments, menu)
- events/: Typed notification events and the publishing boundary
"""
