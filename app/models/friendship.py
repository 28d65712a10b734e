from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


def edge_id(account_id: str, friend_id: str) -> str:
    """Key of the directed edge account -> friend."""
    return f"{account_id}:{friend_id}"


class FriendshipEdge(BaseModel):
    """One direction of a friendship. Always stored together with its reverse."""
    id: str = Field(alias="_id")
    account_id: str
    friend_id: str
    created_at: datetime

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def between(cls, account_id: str, friend_id: str, created_at: datetime) -> "FriendshipEdge":
        return cls(
            id=edge_id(account_id, friend_id),
            account_id=account_id,
            friend_id=friend_id,
            created_at=created_at,
        )
