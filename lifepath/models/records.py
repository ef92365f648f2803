"""
Personal Development Record Models

The four record types a user manages: goals, learnings, dreams and
financial entries. Every record belongs to exactly one user.

DESIGN DECISION: Money is always `Decimal`. Balances are summed from
stored amounts and must not drift the way binary floats do.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, ClassVar, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class RecordCollection(str, Enum):
    """External collections holding user records."""
    GOALS = "goals"
    LEARNINGS = "learnings"
    DREAMS = "dreams"
    FINANCES = "finances"


class DevelopmentArea(str, Enum):
    """Life areas a goal can belong to."""
    PROFESSIONAL = "professional"
    FINANCIAL = "financial"
    HEALTH = "health"
    SPIRITUAL = "spiritual"
    RELATIONSHIPS = "relationships"
    LEARNING = "learning"


class GoalStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


class LearningStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class DreamCategory(str, Enum):
    PERSONAL = "personal"
    PROFESSIONAL = "professional"
    TRAVEL = "travel"
    MATERIAL = "material"
    EXPERIENCE = "experience"
    OTHER = "other"


class DreamStatus(str, Enum):
    PENDING = "pending"
    ACHIEVED = "achieved"


class EntryType(str, Enum):
    """Direction of a financial entry."""
    INCOME = "income"
    EXPENSE = "expense"


class FinanceCategory(str, Enum):
    FOOD = "food"
    TRANSPORT = "transport"
    HOUSING = "housing"
    HEALTH = "health"
    EDUCATION = "education"
    ENTERTAINMENT = "entertainment"
    SALARY = "salary"
    OTHER = "other"


MAX_PROGRESS = 100


# =============================================================================
# RECORDS
# =============================================================================

class UserRecord(BaseModel):
    """
    Fields shared by every record type.

    Subclasses set `collection` so storage knows where the record lives.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    collection: ClassVar[RecordCollection]

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique record ID"
    )
    user_id: str = Field(
        ...,
        min_length=1,
        description="Owner of the record"
    )
    created_at: datetime = Field(
        default_factory=datetime.utcnow
    )
    updated_at: datetime = Field(
        default_factory=datetime.utcnow
    )


class Goal(UserRecord):
    """A goal in one development area, tracked by percentage progress."""
    collection: ClassVar[RecordCollection] = RecordCollection.GOALS

    title: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="What the user wants to achieve"
    )
    description: str = Field(default="", max_length=2000)
    category: DevelopmentArea = DevelopmentArea.PROFESSIONAL
    target_date: Optional[date] = None
    status: GoalStatus = GoalStatus.ACTIVE
    progress: int = Field(default=0, ge=0, le=MAX_PROGRESS)


class Learning(UserRecord):
    """A skill the user is learning."""
    collection: ClassVar[RecordCollection] = RecordCollection.LEARNINGS

    skill_name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Skill being learned"
    )
    description: str = Field(default="", max_length=2000)
    progress: int = Field(default=0, ge=0, le=MAX_PROGRESS)
    status: LearningStatus = LearningStatus.IN_PROGRESS

    @model_validator(mode='after')
    def validate_status(self) -> 'Learning':
        """A completed learning is always at full progress."""
        if self.status == LearningStatus.COMPLETED and self.progress != MAX_PROGRESS:
            raise ValueError("Completed learning must have 100% progress")
        return self


class Dream(UserRecord):
    """A dream the user would like to realise."""
    collection: ClassVar[RecordCollection] = RecordCollection.DREAMS

    title: str = Field(
        ...,
        min_length=1,
        max_length=200,
    )
    description: str = Field(default="", max_length=2000)
    category: DreamCategory = DreamCategory.PERSONAL
    status: DreamStatus = DreamStatus.PENDING


class FinancialEntry(UserRecord):
    """
    One income or expense.

    Amounts are non-negative; `type` carries the sign.
    """
    collection: ClassVar[RecordCollection] = RecordCollection.FINANCES

    type: EntryType = EntryType.EXPENSE
    amount: Annotated[
        Decimal,
        Field(ge=0, decimal_places=2, description="Amount in the configured currency")
    ]
    description: str = Field(default="", max_length=500)
    category: FinanceCategory = FinanceCategory.FOOD
    entry_date: date = Field(default_factory=date.today)

    @property
    def signed_amount(self) -> Decimal:
        return self.amount if self.type == EntryType.INCOME else -self.amount


RECORD_TYPES: dict[RecordCollection, type[UserRecord]] = {
    RecordCollection.GOALS: Goal,
    RecordCollection.LEARNINGS: Learning,
    RecordCollection.DREAMS: Dream,
    RecordCollection.FINANCES: FinancialEntry,
}


# =============================================================================
# AGGREGATES
# =============================================================================

class FinanceSummary(BaseModel):
    """Income, expense and balance over a set of entries."""

    total_income: Decimal = Decimal("0.00")
    total_expense: Decimal = Decimal("0.00")
    entry_count: int = Field(default=0, ge=0)

    @property
    def balance(self) -> Decimal:
        return self.total_income - self.total_expense

    @classmethod
    def from_entries(cls, entries: list[FinancialEntry]) -> 'FinanceSummary':
        income = sum(
            (e.amount for e in entries if e.type == EntryType.INCOME),
            Decimal("0.00"),
        )
        expense = sum(
            (e.amount for e in entries if e.type == EntryType.EXPENSE),
            Decimal("0.00"),
        )
        return cls(
            total_income=income,
            total_expense=expense,
            entry_count=len(entries),
        )


class DashboardStats(BaseModel):
    """
    Values shown on the dashboard.

    Collections that could not be fetched are listed in
    `failed_collections` and contribute nothing to the numbers.
    """

    user_id: str
    generated_at: datetime = Field(
        default_factory=datetime.utcnow
    )

    goals_count: int = Field(default=0, ge=0)
    learnings_count: int = Field(default=0, ge=0)
    dreams_count: int = Field(default=0, ge=0)
    completed_goals: int = Field(default=0, ge=0)

    finances: FinanceSummary = Field(default_factory=FinanceSummary)

    # Average goal progress per area; areas without goals are 0
    area_progress: dict[DevelopmentArea, int] = Field(default_factory=dict)

    failed_collections: list[RecordCollection] = Field(default_factory=list)

    @property
    def balance(self) -> Decimal:
        return self.finances.balance

    @property
    def is_partial(self) -> bool:
        """Was any collection missing from this view?"""
        return len(self.failed_collections) > 0
