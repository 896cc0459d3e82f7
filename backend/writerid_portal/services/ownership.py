"""
Lookup helpers shared by the domain services.

User-facing calls pass the caller's id and get ownership enforced; the
executor callback API passes None and only gets the existence check.
"""

import uuid
from typing import Optional

from writerid_portal.exceptions import NotFoundError, UnauthorizedError
from writerid_portal.repository import EntityT, GenericRepository


async def get_active_entity(
    repository: GenericRepository[EntityT],
    entity_id: uuid.UUID,
    resource: str,
    user_id: Optional[uuid.UUID] = None,
) -> EntityT:
    """
    Returns an active entity, enforcing ownership when user_id is given.

    Raises:
        NotFoundError: missing or soft-deleted
        UnauthorizedError: owned by another user
    """
    entity = await repository.get_by_id(entity_id)
    if entity is None:
        raise NotFoundError(resource=resource, resource_id=str(entity_id))
    check_owner(entity, resource, user_id)
    return entity


def check_owner(entity, resource: str, user_id: Optional[uuid.UUID]) -> None:
    if user_id is not None and entity.user_id != user_id:
        raise UnauthorizedError(resource=resource, resource_id=str(entity.id))
