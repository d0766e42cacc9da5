"""
Appointment-creation request sent to the booking API.
"""

from datetime import datetime
from typing import Any, Dict, Union

import pendulum
from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator


class AppointmentRequest(BaseModel):
    """One appointment-creation request; serialises with the API's PascalCase keys."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    service_id: Union[int, str] = Field(alias="ServiceId")
    employee_id: Union[int, str] = Field(alias="EmployeeId")
    customer_id: int = Field(alias="CustomerId")
    account_id: Union[int, str] = Field(alias="AccountId")
    start_date_time: datetime = Field(alias="StartDateTime")
    end_date_time: datetime = Field(alias="EndDateTime")
    status: str = Field(default="Pending", alias="Status")
    cost: float = Field(default=0.0, alias="Cost")
    deposit: float = Field(default=0.0, alias="Deposit")
    final_amount: float = Field(default=0.0, alias="FinalAmount")
    tip: int = Field(default=0, alias="Tip")
    refund_amount: int = Field(default=0, alias="RefundAmount")
    discount: int = Field(default=0, alias="Discount")
    date_created: datetime = Field(alias="DateCreated")

    @field_validator("service_id", "employee_id", "account_id", mode="before")
    @classmethod
    def coerce_identifier(cls, value: Any) -> Any:
        """Ids other than int or str (UUIDs, for example) are sent as strings."""
        if isinstance(value, (int, str)):
            return value
        if value is None:
            raise ValueError("identifier is required")
        return str(value)

    @model_validator(mode="after")
    def validate_time_order(self) -> "AppointmentRequest":
        """Ensure the appointment ends after it starts."""
        if self.end_date_time <= self.start_date_time:
            raise ValueError("EndDateTime must be later than StartDateTime")
        return self

    @field_serializer("start_date_time", "end_date_time", "date_created")
    def serialize_timestamp(self, value: datetime) -> str:
        return pendulum.instance(value).to_iso8601_string()

    def to_payload(self) -> Dict[str, Any]:
        """The JSON body for POST /api/appointments."""
        return self.model_dump(by_alias=True)
