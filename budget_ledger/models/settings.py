"""
Ledger settings: the configuration value shared by the store, the document
generator/parser and the recurring scheduler.

It is passed explicitly at construction time and replaced through
`update_settings`; nothing reads it from module state.
"""

from typing import Optional

from pydantic import Field, model_validator

from budget_ledger.locale import DEFAULT_LOCALE, labels_for
from budget_ledger.models.transaction import (
    Category,
    CategoryType,
    LedgerModel,
    RecurringTransaction,
)


class LedgerSettings(LedgerModel):
    """Everything the `_config.md` document stores."""

    categories: list[Category] = Field(default_factory=list)
    default_currency: str = Field(default="USD", pattern="^[A-Z]{3}$")
    currencies: list[str] = Field(
        default_factory=lambda: ["USD", "EUR", "GBP", "PLN"]
    )
    budget_folder: str = Field(default="Budget", min_length=1)
    date_format: str = "YYYY-MM-DD"
    show_balance_in_status_bar: bool = True
    locale: str = Field(default=DEFAULT_LOCALE, pattern="^(en|pl)$")
    recurring_transactions: list[RecurringTransaction] = Field(default_factory=list)

    @model_validator(mode='after')
    def validate_category_hierarchy(self) -> 'LedgerSettings':
        """Parents must exist and must not have parents themselves."""
        by_id = {c.id: c for c in self.categories}
        for category in self.categories:
            if category.parent_id is None:
                continue
            if category.parent_id == category.id:
                raise ValueError(f"Category {category.id} cannot be its own parent")
            parent = by_id.get(category.parent_id)
            if parent is None:
                raise ValueError(
                    f"Category {category.id} references unknown parent {category.parent_id}"
                )
            if parent.parent_id is not None:
                raise ValueError(
                    f"Category {category.id} is nested more than one level deep"
                )
        return self

    def get_category(self, category_id: str) -> Optional[Category]:
        for category in self.categories:
            if category.id == category_id:
                return category
        return None

    def subcategories_of(self, parent_id: str) -> list[Category]:
        return [c for c in self.categories if c.parent_id == parent_id]

    def top_level_categories(self) -> list[Category]:
        """Categories without a (known) parent, in list order."""
        ids = {c.id for c in self.categories}
        return [
            c for c in self.categories
            if c.parent_id is None or c.parent_id not in ids
        ]


# (id, icon, color) in display order
_DEFAULT_EXPENSE = [
    ("food", "🍕", "#e74c3c"),
    ("transport", "🚗", "#3498db"),
    ("entertainment", "🎬", "#9b59b6"),
    ("shopping", "🛒", "#e67e22"),
    ("bills", "📄", "#1abc9c"),
    ("health", "💊", "#2ecc71"),
    ("education", "📚", "#f39c12"),
    ("other-expense", "📦", "#95a5a6"),
]
_DEFAULT_INCOME = [
    ("salary", "💰", "#27ae60"),
    ("freelance", "💻", "#2980b9"),
    ("investment", "📈", "#8e44ad"),
    ("gift", "🎁", "#e91e63"),
    ("other-income", "✨", "#00bcd4"),
]


def default_categories(locale: str = DEFAULT_LOCALE) -> list[Category]:
    names = labels_for(locale).default_categories
    categories = [
        Category(id=cid, name=names[cid], icon=icon, type=CategoryType.EXPENSE, color=color)
        for cid, icon, color in _DEFAULT_EXPENSE
    ]
    categories += [
        Category(id=cid, name=names[cid], icon=icon, type=CategoryType.INCOME, color=color)
        for cid, icon, color in _DEFAULT_INCOME
    ]
    return categories


def default_settings(locale: str = DEFAULT_LOCALE) -> LedgerSettings:
    return LedgerSettings(
        categories=default_categories(locale),
        locale=locale if locale in ("en", "pl") else DEFAULT_LOCALE,
    )
