"""Service catalog and booking submission data models."""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Union


class Service(BaseModel):
    """A bookable salon service."""
    model_config = ConfigDict(frozen=True)

    id: Union[int, str]
    name: str
    duration: int = Field(ge=0, description="Duration in minutes")
    price: float = Field(ge=0, description="Price in GTQ")
    description: str = ""
    category: str = ""


class AppointmentRequest(BaseModel):
    """Validated payload handed to the store's create_appointment."""
    staff_id: int
    starts_at: str
    ends_at: str
    services: list[Service]
    customer_name: str
    customer_phone: str
    customer_email: Optional[str] = None
    notes: Optional[str] = None
    payment_method: str
    total_price: float
    amount_due: float

    @property
    def service_ids(self) -> list[Union[int, str]]:
        return [service.id for service in self.services]


class AppointmentCreated(BaseModel):
    """Booking creation result."""
    appointment_id: int
    client_id: Optional[int] = None
