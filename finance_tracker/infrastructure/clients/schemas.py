"""Pydantic schemas for bridge and text-generation payloads"""

from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class OrganizationSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: Optional[str] = None
    domain: Optional[str] = None
    sfin_url: Optional[str] = Field(default=None, alias="sfin-url")


class TransactionSchema(BaseModel):
    """Bridge transaction; amounts arrive as numeric strings or numbers"""

    model_config = ConfigDict(extra="ignore")

    id: str
    description: str = ""
    amount: Decimal
    posted: int
    transacted_at: Optional[int] = None
    pending: Optional[bool] = None


class AccountSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    name: str
    currency: Optional[str] = None
    balance: Decimal
    available_balance: Optional[Decimal] = Field(default=None, alias="available-balance")
    balance_date: int = Field(..., alias="balance-date")
    org: Optional[OrganizationSchema] = None
    transactions: Optional[List[TransactionSchema]] = None


class AccountsResponse(BaseModel):
    """Response for GET {bridge}/accounts"""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    accounts: List[AccountSchema]
    errors: List[str] = Field(default_factory=list)
    x_api_message: List[str] = Field(default_factory=list, alias="x-api-message")


class ChatMessage(BaseModel):
    role: str
    content: str


class ChatCompletionRequest(BaseModel):
    """Request body for the chat-completion endpoint"""

    model: str
    models: Optional[List[str]] = None
    messages: List[ChatMessage]
    temperature: Optional[float] = None


class ChoiceMessage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    role: Optional[str] = None
    content: Optional[str] = None


class Choice(BaseModel):
    model_config = ConfigDict(extra="ignore")

    message: ChoiceMessage
    finish_reason: Optional[str] = None


class ApiError(BaseModel):
    model_config = ConfigDict(extra="ignore")

    message: str = ""
    code: Optional[int] = None


class ChatCompletionResponse(BaseModel):
    """Chat-completion response; only `choices` is required"""

    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    model: Optional[str] = None
    provider: Optional[str] = None
    choices: List[Choice]
    error: Optional[ApiError] = None
