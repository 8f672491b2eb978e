from uuid import UUID

from fastapi import Header, HTTPException, status


async def get_current_actor(
    x_actor_id: str = Header(..., alias="X-Actor-Id", description="Id of the accountant/user performing the action"),
) -> UUID:
    """
    Actor id supplied by the identity provider in front of this service.
    The ledger does not authenticate; it only records who acted.
    """
    try:
        return UUID(x_actor_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-Actor-Id must be a UUID",
        )
