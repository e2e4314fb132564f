from pydantic import BaseModel


class CardDetails(BaseModel):
    card_number: str
    card_holder: str
    expiration_date: str  # MM/YY
    cvv: str


class PaymentResult(BaseModel):
    success: bool
    transaction_id: str | None = None
    error: str | None = None
