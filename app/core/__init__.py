"""
Core Application - Infrastructure & Base Classes

Generic building blocks shared by the marketplace apps. Nothing in here
knows about lessons, payments or meetings.

Models (core.models / core.model_mixins):
    - BaseModel: Abstract model with created_at / updated_at
    - UUIDPrimaryKeyMixin: UUID primary key
    - VersionedModelMixin: Optimistic locking version counter

Services (core.services):
    - ServiceResult: Success/failure wrapper returned by services
    - BaseService: Logger, transaction and error-conversion helpers

Errors (core.exceptions, core.responses, core.exception_handler):
    - BaseApplicationError hierarchy
    - error_response(): ServiceResult failure -> DRF Response
    - application_exception_handler: DRF EXCEPTION_HANDLER

Security (core.permissions, core.crypto):
    - IsStudent / IsTeacher / IsAdminRole
    - encrypt_value / decrypt_value: Fernet encryption for secrets at rest
"""
