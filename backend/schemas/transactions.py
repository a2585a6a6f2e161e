import enum
from datetime import datetime
from decimal import Decimal
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field, RootModel, field_validator, model_validator

from models.transactions import TransactionType, Unit


class PartyKind(str, enum.Enum):
    CUSTOMER = "CUSTOMER"
    COMPANY = "COMPANY"
    DRIVER = "DRIVER"


class PartyRef(BaseModel):
    """Counterparty of a money movement."""
    kind: PartyKind
    id: int


class LedgerRequestBase(BaseModel):
    # Only admins may record on behalf of another driver
    driver_id: Optional[int] = None
    date: Optional[datetime] = None
    details: Optional[str] = None


class BuyRequest(LedgerRequestBase):
    type: Literal["BUY"]
    amount: Decimal = Field(..., gt=0)
    rate: Optional[Decimal] = Field(None, ge=0)
    total_amount: Decimal = Field(..., ge=0)
    company_id: Optional[int] = None


class ShopBuyRequest(LedgerRequestBase):
    type: Literal["SHOP_BUY"]
    amount: Decimal = Field(..., gt=0)
    rate: Optional[Decimal] = Field(None, ge=0)
    total_amount: Decimal = Field(Decimal("0"), ge=0)


class SellRequest(LedgerRequestBase):
    type: Literal["SELL"]
    amount: Decimal = Field(..., gt=0)
    rate: Optional[Decimal] = Field(None, ge=0)
    total_amount: Decimal = Field(..., ge=0)
    payment_cash: Decimal = Field(Decimal("0"), ge=0)
    payment_upi: Decimal = Field(Decimal("0"), ge=0)
    bank_id: Optional[int] = None
    party: Optional[PartyRef] = None

    @field_validator('party')
    def party_must_be_buyer(cls, v):
        if v is not None and v.kind == PartyKind.DRIVER:
            raise ValueError("A sale can only be made to a customer or a company")
        return v


class PaltiRequest(LedgerRequestBase):
    type: Literal["PALTI"]
    sub_type: Literal["ADD", "SUBTRACT"]
    amount: Decimal = Field(..., gt=0)
    transfer_driver_id: Optional[int] = None


class WeightLossRequest(LedgerRequestBase):
    type: Literal["WEIGHT_LOSS"]
    sub_type: Literal["MORTALITY", "WASTE"]
    amount: Decimal = Field(..., gt=0)


class FuelRequest(LedgerRequestBase):
    type: Literal["FUEL"]
    amount: Decimal = Field(..., gt=0)
    rate: Optional[Decimal] = Field(None, ge=0)
    total_amount: Decimal = Field(Decimal("0"), ge=0)
    vehicle_id: Optional[int] = None
    current_km: Optional[Decimal] = Field(None, ge=0)
    image_url: Optional[str] = None
    location: Optional[str] = None
    gps_lat: Optional[Decimal] = None
    gps_lng: Optional[Decimal] = None


class PaymentRequest(LedgerRequestBase):
    type: Literal["PAYMENT"]
    party: PartyRef
    total_amount: Decimal = Field(..., gt=0)
    bank_id: Optional[int] = None

    @field_validator('party')
    def party_must_be_customer_or_company(cls, v):
        if v.kind == PartyKind.DRIVER:
            raise ValueError("Payments can only be made to a customer or a company")
        return v


class ReceivePaymentRequest(LedgerRequestBase):
    type: Literal["RECEIVE_PAYMENT"]
    party: PartyRef
    total_amount: Decimal = Field(..., gt=0)
    bank_id: Optional[int] = None


class DebitNoteRequest(LedgerRequestBase):
    type: Literal["DEBIT_NOTE"]
    customer_id: int
    amount: Decimal = Field(Decimal("0"), ge=0)
    rate: Optional[Decimal] = Field(None, ge=0)
    total_amount: Decimal = Field(..., gt=0)


class CreditNoteRequest(LedgerRequestBase):
    type: Literal["CREDIT_NOTE"]
    customer_id: int
    amount: Decimal = Field(Decimal("0"), ge=0)
    rate: Optional[Decimal] = Field(None, ge=0)
    total_amount: Decimal = Field(..., gt=0)


class AdvancePaymentRequest(LedgerRequestBase):
    type: Literal["ADVANCE_PAYMENT"]
    customer_id: int
    total_amount: Decimal = Field(..., gt=0)


class CashToBankRequest(LedgerRequestBase):
    type: Literal["CASH_TO_BANK"]
    bank_id: int
    total_amount: Decimal = Field(..., gt=0)


class BankToBankRequest(LedgerRequestBase):
    type: Literal["BANK_TO_BANK"]
    bank_id: int
    to_bank_id: int
    total_amount: Decimal = Field(..., gt=0)

    @model_validator(mode='after')
    def banks_must_differ(self):
        if self.bank_id == self.to_bank_id:
            raise ValueError("Source and destination bank must be different")
        return self


class UpdateBankRequest(LedgerRequestBase):
    type: Literal["UPDATE_BANK"]
    bank_id: int
    balance: Decimal = Field(..., ge=0)


class UpdateCashRequest(LedgerRequestBase):
    type: Literal["UPDATE_CASH"]
    amount: Decimal

    @field_validator('amount')
    def amount_must_not_be_zero(cls, v):
        if v == 0:
            raise ValueError("Cash adjustment cannot be zero")
        return v


LedgerRequest = Annotated[
    Union[
        BuyRequest,
        ShopBuyRequest,
        SellRequest,
        PaltiRequest,
        WeightLossRequest,
        FuelRequest,
        PaymentRequest,
        ReceivePaymentRequest,
        DebitNoteRequest,
        CreditNoteRequest,
        AdvancePaymentRequest,
        CashToBankRequest,
        BankToBankRequest,
        UpdateBankRequest,
        UpdateCashRequest,
    ],
    Field(discriminator="type"),
]


class TransactionEdit(BaseModel):
    amount: Optional[Decimal] = Field(None, ge=0)
    rate: Optional[Decimal] = Field(None, ge=0)
    total_amount: Optional[Decimal] = Field(None, ge=0)
    payment_cash: Optional[Decimal] = Field(None, ge=0)
    payment_upi: Optional[Decimal] = Field(None, ge=0)
    details: Optional[str] = None


class Transaction(BaseModel):
    id: int
    type: TransactionType
    sub_type: Optional[str] = None
    unit: Optional[Unit] = None
    amount: Decimal
    rate: Optional[Decimal] = None
    total_amount: Decimal
    payment_cash: Decimal
    payment_upi: Decimal
    details: Optional[str] = None
    image_url: Optional[str] = None
    location: Optional[str] = None
    gps_lat: Optional[Decimal] = None
    gps_lng: Optional[Decimal] = None
    date: datetime
    driver_id: Optional[int] = None
    transfer_driver_id: Optional[int] = None
    customer_id: Optional[int] = None
    company_id: Optional[int] = None
    bank_id: Optional[int] = None
    to_bank_id: Optional[int] = None
    vehicle_id: Optional[int] = None
    expense_id: Optional[int] = None
    cash_to_bank_id: Optional[int] = None
    cash_delta: Decimal
    bank_delta: Decimal
    to_bank_delta: Decimal
    customer_delta: Decimal
    company_delta: Decimal
    driver_cash_delta: Decimal
    driver_upi_delta: Decimal
    created_at: Optional[datetime] = None
    created_by: Optional[str] = None

    class Config:
        from_attributes = True


class TransactionList(BaseModel):
    items: List[Transaction]
    count: int


class LedgerRequestBody(RootModel[LedgerRequest]):
    """Request body of POST /transactions, one variant per transaction type."""
    pass
