from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class VendorCreate(BaseModel):
    name: str = Field(min_length=1, max_length=160)
    contact_name: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""
    gst_number: str = ""
    notes: str = ""


class VendorUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=160)
    contact_name: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    gst_number: str | None = None
    notes: str | None = None


class VendorRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    contact_name: str
    email: str
    phone: str
    address: str
    gst_number: str
    notes: str
    created_at: datetime
