from datetime import datetime

from pydantic import BaseModel


class StockLevelRead(BaseModel):
    item_id: int
    location_id: int
    quantity: int
    updated_at: datetime

    class Config:
        from_attributes = True
