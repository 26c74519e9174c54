"""
Shared module for common utilities across the REST API and the WS gateway.

STRUCTURE:
- shared.security: Authentication and authorization
  - auth.py: JWT sign/verify, current_principal, require_roles

- shared.infrastructure: Database and request plumbing
  - db.py: SQLAlchemy sessions, safe_commit(), atomic()
  - correlation.py: X-Request-ID middleware and log filter

- shared.config: Configuration
  - settings.py: Environment config (pydantic-settings)
  - logging.py: Structured logging
  - constants.py: Roles, order/table enums, rooms, transition rules

- shared.utils: Utilities
  - exceptions.py: HTTP exceptions with auto-logging
  - schemas.py: Shared Pydantic schemas

IMPORT EXAMPLES:
    from shared.security.auth import verify_jwt, current_principal
    from shared.infrastructure.db import get_db, atomic
    from shared.config.settings import settings
    from shared.config.constants import OrderStatus, Room
    from shared.utils.exceptions import NotFoundError, ConflictError
"""
