"""
Localized labels used inside the generated documents.

Only the strings that end up in month documents (and the default category
names) live here. The parser accepts the labels of every locale, so a
document written in one locale is still importable after switching.
"""

from pydantic import BaseModel, ConfigDict


class DocumentLabels(BaseModel):
    """Strings a month document is rendered with."""
    model_config = ConfigDict(frozen=True)

    month_title: str
    summary: str
    incomes: str
    expenses: str
    balance: str
    transactions: str
    date: str
    type: str
    category: str
    description: str
    amount: str
    no_transactions_in_month: str
    months: tuple[str, ...]
    default_categories: dict[str, str]


LABELS: dict[str, DocumentLabels] = {
    "en": DocumentLabels(
        month_title="📊 Budget:",
        summary="📈 Summary",
        incomes="💚 Income",
        expenses="🔴 Expenses",
        balance="📊 Balance",
        transactions="📝 Transactions",
        date="Date",
        type="Type",
        category="Category",
        description="Description",
        amount="Amount",
        no_transactions_in_month=(
            'No transactions this month. Use the "Add Transaction" '
            "command to add your first one!"
        ),
        months=(
            "January", "February", "March", "April", "May", "June",
            "July", "August", "September", "October", "November", "December",
        ),
        default_categories={
            "food": "Food",
            "transport": "Transport",
            "entertainment": "Entertainment",
            "shopping": "Shopping",
            "bills": "Bills",
            "health": "Health",
            "education": "Education",
            "other-expense": "Other expenses",
            "salary": "Salary",
            "freelance": "Freelance",
            "investment": "Investments",
            "gift": "Gift",
            "other-income": "Other income",
        },
    ),
    "pl": DocumentLabels(
        month_title="📊 Budżet:",
        summary="📈 Podsumowanie",
        incomes="💚 Przychody",
        expenses="🔴 Wydatki",
        balance="📊 Bilans",
        transactions="📝 Transakcje",
        date="Data",
        type="Typ",
        category="Kategoria",
        description="Opis",
        amount="Kwota",
        no_transactions_in_month=(
            'Brak transakcji w tym miesiącu. Użyj komendy "Dodaj transakcję" '
            "aby dodać pierwszą!"
        ),
        months=(
            "Styczeń", "Luty", "Marzec", "Kwiecień", "Maj", "Czerwiec",
            "Lipiec", "Sierpień", "Wrzesień", "Październik", "Listopad", "Grudzień",
        ),
        default_categories={
            "food": "Jedzenie",
            "transport": "Transport",
            "entertainment": "Rozrywka",
            "shopping": "Zakupy",
            "bills": "Rachunki",
            "health": "Zdrowie",
            "education": "Edukacja",
            "other-expense": "Inne wydatki",
            "salary": "Wynagrodzenie",
            "freelance": "Freelance",
            "investment": "Inwestycje",
            "gift": "Prezent",
            "other-income": "Inne przychody",
        },
    ),
}

DEFAULT_LOCALE = "en"


def labels_for(locale: str) -> DocumentLabels:
    """Labels for a locale, falling back to English for unknown codes."""
    return LABELS.get(locale, LABELS[DEFAULT_LOCALE])


def month_name(locale: str, month: int) -> str:
    months = labels_for(locale).months
    if 1 <= month <= 12:
        return months[month - 1]
    return "Unknown"


def all_header_labels() -> tuple[set[str], set[str]]:
    """Every known spelling of the Date and Type column headers."""
    return (
        {labels.date for labels in LABELS.values()},
        {labels.type for labels in LABELS.values()},
    )
