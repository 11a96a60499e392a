from typing import Any


class DomainError(Exception):
    pass


class NotFoundError(DomainError):
    def __init__(self, entity: str, entity_id: Any):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id}")


class InvalidInputError(DomainError, ValueError):
    pass


class AuthorizationError(DomainError):
    pass


class DataIntegrityError(DomainError):
    pass
