from __future__ import annotations

from pydantic import BaseModel, Field


class ReceivedItem(BaseModel):
    item_id: int
    quantity: int = Field(ge=0)


class ReceptionConfirm(BaseModel):
    receiving_location_id: int
    received_items: list[ReceivedItem] = Field(default_factory=list)
    reception_notes: str = ""


class DeliveryNoteIn(BaseModel):
    file_name: str = Field(min_length=1, max_length=255)
    file_type: str = Field(min_length=1, max_length=128)
    file_size: int | None = Field(default=None, ge=0)
    data: str = Field(min_length=1)  # base64


class DeliveryNotesAttach(BaseModel):
    delivery_notes: list[DeliveryNoteIn] = Field(min_length=1)
