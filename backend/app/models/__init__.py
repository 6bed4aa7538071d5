"""Models package - re-exports for convenience."""

from backend.app.models.budget import BudgetView, CategoryBudgetView
from backend.app.models.collaboration import (
    CollaboratorView,
    IdeaCommentView,
    IdeaView,
    MessageView,
    PollOptionView,
    PollView,
)
from backend.app.models.common import (
    CollaboratorRole,
    EventType,
    ExpenseCategory,
    InvitationStatus,
    Location,
    Money,
    MoneyAmount,
    Visibility,
)
from backend.app.models.expense import (
    AmountShare,
    AmountSplit,
    EqualSplit,
    ExpenseView,
    PercentageShare,
    PercentageSplit,
    SettlementView,
    SplitInput,
    SplitView,
)
from backend.app.models.trip import BudgetStructure, EventView, TagView, TripDetail, TripSummary

__all__ = [
    "AmountShare",
    "AmountSplit",
    "BudgetStructure",
    "BudgetView",
    "CategoryBudgetView",
    "CollaboratorRole",
    "CollaboratorView",
    "EqualSplit",
    "EventType",
    "EventView",
    "ExpenseCategory",
    "ExpenseView",
    "IdeaCommentView",
    "IdeaView",
    "InvitationStatus",
    "Location",
    "MessageView",
    "Money",
    "MoneyAmount",
    "PercentageShare",
    "PercentageSplit",
    "PollOptionView",
    "PollView",
    "SettlementView",
    "SplitInput",
    "SplitView",
    "TagView",
    "TripDetail",
    "TripSummary",
    "Visibility",
]
