from pydantic import BaseModel


class FavoriteToggle(BaseModel):
    user_id: int
    equipment_id: int


class FavoriteState(BaseModel):
    equipment_id: int
    is_favorite: bool
