from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from models import TransactionType


class TransactionIn(BaseModel):
    type: TransactionType
    amount: Decimal = Field(..., ge=0, max_digits=14, decimal_places=2)
    category: str = Field(..., min_length=1, max_length=100)
    created_at: Optional[datetime] = None


class TransactionUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: Optional[TransactionType] = None
    amount: Optional[Decimal] = Field(
        default=None, ge=0, max_digits=14, decimal_places=2
    )
    category: Optional[str] = Field(default=None, min_length=1, max_length=100)


class TransactionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    type: TransactionType
    amount: Decimal
    category: str
    created_at: datetime


class BudgetIn(BaseModel):
    category: str = Field(..., min_length=1, max_length=100)
    amount: Decimal = Field(..., ge=0, max_digits=14, decimal_places=2)
    year: int = Field(..., ge=1970, le=3000)
    month: int = Field(..., ge=1, le=12)


class BudgetOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    category: str
    amount: Decimal
    year: int
    month: int


class BudgetCheckIn(BaseModel):
    category: str = Field(..., min_length=1, max_length=100)
    amount: Decimal = Field(..., ge=0, max_digits=14, decimal_places=2)


class SavingGoalIn(BaseModel):
    goal_name: str = Field(..., min_length=1, max_length=120)
    target_amount: Decimal = Field(..., ge=0, max_digits=14, decimal_places=2)


class SavingGoalOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    goal_name: str
    target_amount: Decimal
    current_amount: Decimal
    created_at: datetime


class ContributionIn(BaseModel):
    amount: Decimal = Field(..., gt=0, max_digits=14, decimal_places=2)


class ChatMessage(BaseModel):
    sender: Literal["user", "bot"]
    text: str = Field(..., min_length=1)


class AssistantIn(BaseModel):
    message: str = Field(..., min_length=1, max_length=4000)
    history: list[ChatMessage] = Field(default_factory=list)
