"""
Core Record Models for Finance Manager

These models define the records a user creates and stores:
1. Transactions (income or expense, paid through a wallet)
2. Borrow/lend obligations with settlement tracking
3. The user owning them

DESIGN DECISION: Records are frozen Pydantic models.
An edit is a full replace of the record (same id, new field values),
never an in-place mutation.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    model_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class Category(str, Enum):
    """
    Transaction categories.

    Sorting by category uses the member name (e.g. ``MEAL``),
    not the display label.
    """
    MEAL = "meal"
    TRANSPORT = "transport"
    DRINKS = "drinks"
    SNACKS = "snacks"
    SHOPPING = "shopping"
    ENTERTAINMENT = "entertainment"
    SALARY = "salary"
    REWARDS = "rewards"
    OTHERS = "others"

    @property
    def display_name(self) -> str:
        return self.name.capitalize()


class PaymentMethod(str, Enum):
    """Wallets a transaction can be paid from or received into."""
    CASH = "cash"
    ALIPAY = "alipay"
    OCTOPUS = "octopus"

    @property
    def display_name(self) -> str:
        return _WALLET_LABELS[self]


_WALLET_LABELS = {
    PaymentMethod.CASH: "Cash Wallet",
    PaymentMethod.ALIPAY: "Alipay",
    PaymentMethod.OCTOPUS: "Octopus Card",
}


class BorrowLendType(str, Enum):
    """
    Direction of a borrow/lend obligation.

    LENT     -> receivable (money owed to the user)
    BORROWED -> repayable (money the user owes)
    """
    BORROWED = "borrowed"
    LENT = "lent"


Amount = Annotated[
    Decimal,
    Field(ge=0, description="Amount in the user's currency")
]


# =============================================================================
# RECORD MODELS
# =============================================================================

class User(BaseModel):
    """An authenticated user. All records are scoped to one user id."""
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str = Field(
        ...,
        min_length=1,
        description="User id issued by the authentication service"
    )
    email: str = ""
    name: str = ""
    created_at: datetime = Field(default_factory=datetime.now)
    last_login: datetime = Field(default_factory=datetime.now)


class Transaction(BaseModel):
    """
    A single income or expense entry.

    ``is_expense=True`` marks an outflow, ``False`` an inflow.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique transaction ID"
    )
    user_id: str = ""
    amount: Amount
    category: Category = Category.OTHERS
    description: str = Field(
        default="",
        max_length=500,
    )
    date: datetime = Field(
        default_factory=datetime.now,
        description="When the transaction happened"
    )
    is_expense: bool = True
    payment_method: PaymentMethod = PaymentMethod.CASH
    created_at: datetime = Field(default_factory=datetime.now)

    @property
    def is_income(self) -> bool:
        return not self.is_expense


class BorrowLend(BaseModel):
    """
    Money lent to or borrowed from another person.

    CRITICAL: An unsettled record never carries a settled date.
    Use ``with_settlement`` to flip the settlement state.
    """
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique record ID"
    )
    user_id: str = ""
    person_name: str = Field(
        ...,
        max_length=200,
        description="Who the money was lent to or borrowed from"
    )
    amount: Amount
    type: BorrowLendType = BorrowLendType.LENT
    description: str = Field(
        default="",
        max_length=500,
    )
    date: datetime = Field(default_factory=datetime.now)
    due_date: Optional[datetime] = None
    is_settled: bool = False
    settled_date: Optional[datetime] = None
    created_at: datetime = Field(default_factory=datetime.now)

    @model_validator(mode='after')
    def validate_settlement(self) -> 'BorrowLend':
        """An unsettled record must not have a settled date."""
        if not self.is_settled and self.settled_date is not None:
            raise ValueError("Settled date must be empty for an unsettled record")
        return self

    @property
    def is_receivable(self) -> bool:
        return self.type == BorrowLendType.LENT

    @property
    def is_repayable(self) -> bool:
        return self.type == BorrowLendType.BORROWED

    def with_settlement(
        self,
        settled: bool,
        now: Optional[datetime] = None,
    ) -> 'BorrowLend':
        """
        Return a copy with the settlement state set.

        Settling stamps ``settled_date`` with ``now`` (defaults to the
        current time); unsettling clears it.
        """
        if settled:
            return self.model_copy(update={
                "is_settled": True,
                "settled_date": now or datetime.now(),
            })
        return self.model_copy(update={
            "is_settled": False,
            "settled_date": None,
        })

    def toggle_settlement(self, now: Optional[datetime] = None) -> 'BorrowLend':
        """Flip the settlement state."""
        return self.with_settlement(not self.is_settled, now=now)
