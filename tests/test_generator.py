"""Tests for the month document generator."""

from datetime import date
from decimal import Decimal

from budget_ledger.documents import format_amount, generate_month_document, month_document_path
from budget_ledger.documents.paths import month_of_document
from budget_ledger.models import Transaction, default_settings


def make_tx(day, amount, txn_type="expense", category="food", description="",
            currency="USD", exclude=False):
    return Transaction(
        date=date.fromisoformat(day),
        amount=Decimal(amount),
        type=txn_type,
        category=category,
        description=description,
        currency=currency,
        exclude_from_stats=exclude,
    )


def table_rows(text):
    return [line for line in text.splitlines() if line.startswith("| 20")]


class TestGenerateMonthDocument:
    """Rendering one month."""

    def test_single_expense_document(self, settings):
        """Test the full text for one expense."""
        text = generate_month_document(
            2024, 3, [make_tx("2024-03-05", "42.50")], settings
        )
        assert text == (
            "# 📊 Budget: March 2024\n"
            "\n"
            "## 📈 Summary\n"
            "\n"
            "| 💚 Income | 🔴 Expenses | 📊 Balance |\n"
            "|----------:|--------:|-------:|\n"
            "| 0.00 USD | 42.50 USD | -42.50 USD |\n"
            "\n"
            "## 📝 Transactions\n"
            "\n"
            "| Date | Type | Category | Description | Amount |\n"
            "|:-----|:----|:----------|:-----|------:|\n"
            "| 2024-03-05 | 🔴 | 🍕 Food | - | -42.50 USD |\n"
        )

    def test_rows_sorted_newest_first(self, settings):
        """Test date-descending order with stable ties."""
        txns = [
            make_tx("2024-03-01", "1", description="first"),
            make_tx("2024-03-20", "2", description="latest"),
            make_tx("2024-03-01", "3", description="second"),
        ]
        rows = table_rows(generate_month_document(2024, 3, txns, settings))
        assert [row.split(" | ")[3] for row in rows] == ["latest", "first", "second"]

    def test_other_months_are_ignored(self, settings):
        """Test that only the requested month is rendered."""
        txns = [make_tx("2024-03-05", "1"), make_tx("2024-04-05", "2")]
        rows = table_rows(generate_month_document(2024, 3, txns, settings))
        assert len(rows) == 1

    def test_empty_month_notice(self, settings):
        """Test the notice line instead of an empty table."""
        text = generate_month_document(2024, 3, [], settings)
        assert "> No transactions this month." in text
        assert "## 📝 Transactions" not in text
        assert "| 0.00 USD | 0.00 USD | +0.00 USD |" in text

    def test_signs_and_markers(self, settings):
        """Test the marker and sign of each type."""
        txns = [
            make_tx("2024-03-03", "3000", txn_type="income", category="salary"),
            make_tx("2024-03-02", "100", txn_type="investment", category="investment"),
            make_tx("2024-03-01", "50"),
        ]
        rows = table_rows(generate_month_document(2024, 3, txns, settings))
        assert rows[0].endswith("| 💚 | 💰 Salary | - | +3000.00 USD |")
        assert rows[1].endswith("| 📈 | 📈 Investments | - | -100.00 USD |")
        assert rows[2].endswith("| 🔴 | 🍕 Food | - | -50.00 USD |")

    def test_summary_skips_investments_and_excluded(self, settings):
        """Test that the summary only counts income and stat expenses."""
        txns = [
            make_tx("2024-03-03", "3000", txn_type="income", category="salary"),
            make_tx("2024-03-02", "100", txn_type="investment", category="investment"),
            make_tx("2024-03-01", "50"),
            make_tx("2024-03-01", "999", exclude=True),
        ]
        text = generate_month_document(2024, 3, txns, settings)
        assert "| 3000.00 USD | 50.00 USD | +2950.00 USD |" in text

    def test_excluded_marker(self, settings):
        """Test that excluded rows carry the marker after the description."""
        txns = [
            make_tx("2024-03-02", "5", description="Refund", exclude=True),
            make_tx("2024-03-01", "5", exclude=True),
        ]
        rows = table_rows(generate_month_document(2024, 3, txns, settings))
        assert "| Refund 🚫 |" in rows[0]
        assert "| - 🚫 |" in rows[1]

    def test_unknown_category_rendered_raw(self, settings):
        """Test that a deleted category shows its id."""
        rows = table_rows(generate_month_document(
            2024, 3, [make_tx("2024-03-01", "5", category="legacy-pets")], settings
        ))
        assert "| legacy-pets |" in rows[0]

    def test_pipes_in_descriptions_are_escaped(self, settings):
        """Test that a pipe cannot break the table."""
        rows = table_rows(generate_month_document(
            2024, 3, [make_tx("2024-03-01", "5", description="a|b")], settings
        ))
        assert "| a\\|b |" in rows[0]

    def test_transaction_currency_is_kept(self, settings):
        """Test that a foreign currency is rendered as recorded."""
        rows = table_rows(generate_month_document(
            2024, 3, [make_tx("2024-03-01", "10", currency="EUR")], settings
        ))
        assert rows[0].endswith("| -10.00 EUR |")

    def test_polish_labels(self):
        """Test a document in the Polish locale."""
        settings = default_settings("pl")
        text = generate_month_document(2024, 3, [make_tx("2024-03-05", "1")], settings)
        assert text.startswith("# 📊 Budżet: Marzec 2024\n")
        assert "| Data | Typ | Kategoria | Opis | Kwota |" in text

    def test_generation_is_idempotent(self, settings):
        """Test byte-identical output for the same input."""
        txns = [make_tx("2024-03-05", "42.50"), make_tx("2024-03-06", "7", description="x")]
        assert generate_month_document(2024, 3, txns, settings) == \
            generate_month_document(2024, 3, txns, settings)


class TestFormatting:
    """Amount formatting and document paths."""

    def test_two_decimals(self):
        """Test that amounts always have two decimals."""
        assert format_amount(Decimal("42.5"), "USD", "PLN") == "42.50 USD"
        assert format_amount(Decimal("3"), None, "PLN") == "3.00 PLN"

    def test_month_document_path(self, settings):
        """Test the year folder and zero-padded file name."""
        assert month_document_path(settings, 2024, 3) == "Budget/2024/03-March.md"
        assert month_document_path(default_settings("pl"), 2024, 11) == \
            "Budget/2024/11-Listopad.md"

    def test_month_of_document(self):
        """Test reading (year, month) back from a path."""
        assert month_of_document("Budget/2024/03-March.md") == (2024, 3)
        assert month_of_document("Budget/2024/03-Marzec.md") == (2024, 3)
        assert month_of_document("Budget/_config.md") is None
        assert month_of_document("Budget/2024/13-Nope.md") is None
