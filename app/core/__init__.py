"""
Core Application - Infrastructure & Base Classes

Generic building blocks shared by the domain apps. Nothing here knows
about bookings, milestones or wallets.

Models (import from core.models):
    - BaseModel: Abstract model with timestamps (created_at, updated_at)

Model Mixins (import from core.model_mixins):
    - UUIDPrimaryKeyMixin: UUID as primary key

Services (import from core.services):
    - BaseService: Stateless service base with get_logger() and atomic()

Exceptions (import from core.exceptions):
    - BaseApplicationError: Base with message, error_code, details, to_dict()
    - ValidationError, NotFoundError

Views (import from core.views):
    - health_check: Database and configuration health endpoint
"""
