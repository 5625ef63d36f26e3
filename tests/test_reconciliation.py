"""Tests for the reconciliation pass that imports hand edits."""

from datetime import date
from decimal import Decimal

import pytest

from budget_ledger.audit import AuditLogger
from budget_ledger.ledger import LedgerStore
from budget_ledger.services.storage import InMemoryDocumentStorage
from budget_ledger.sync import DocumentReconciler, reconciliation

from factories import TODAY, make_candidate

HEADER = (
    "| Date | Type | Category | Description | Amount |\n"
    "|:-----|:----|:----------|:-----|------:|\n"
)

MARCH_TEXT = (
    "# 📊 Budget: March 2024\n\n## 📝 Transactions\n\n" + HEADER +
    "| 2024-03-05 | 🔴 | 🍕 Food | Pizza | -42.50 USD |\n"
    "| 2024-03-06 | 💚 | 💰 Salary | - | +3000.00 USD |\n"
)
APRIL_TEXT = HEADER + "| 2024-04-01 | 🔴 | 🚗 Transport | Bus | -2.80 USD |\n"


@pytest.fixture
def vault():
    return InMemoryDocumentStorage({
        "Budget/2024/03-March.md": MARCH_TEXT,
        "Budget/2024/04-April.md": APRIL_TEXT,
        "Budget/_config.md": "---\nlocale: en\n---\n",
        "Budget/notes.md": HEADER + "| 2024-01-01 | 🔴 | 🍕 Food | x | -1.00 USD |\n",
        "Budget/archive/2024/03-March.md": MARCH_TEXT.replace("42.50", "1.00"),
        "Other/2024/03-March.md": MARCH_TEXT.replace("42.50", "2.00"),
    })


@pytest.fixture
def vault_store(settings, vault):
    return LedgerStore(settings, vault, clock=lambda: TODAY)


class TestSync:
    """Importing month documents."""

    @pytest.mark.asyncio
    async def test_imports_month_documents(self, vault_store, vault):
        """Test that rows of every month document are imported."""
        imported = await vault_store.sync_from_documents()
        assert imported == 3
        amounts = sorted(t.amount for t in vault_store.transactions)
        assert amounts == [Decimal("2.80"), Decimal("42.50"), Decimal("3000.00")]

    @pytest.mark.asyncio
    async def test_documents_are_not_rewritten(self, vault_store, vault):
        """Test that importing never writes the documents it reads."""
        await vault_store.sync_from_documents()
        assert vault.write_count == 0
        assert vault.documents["Budget/2024/03-March.md"] == MARCH_TEXT

    @pytest.mark.asyncio
    async def test_second_pass_imports_nothing(self, vault_store):
        """Test that importing the same documents twice adds nothing."""
        assert await vault_store.sync_from_documents() == 3
        assert await vault_store.sync_from_documents() == 0
        assert len(vault_store.transactions) == 3

    @pytest.mark.asyncio
    async def test_only_month_documents_under_budget_folder(self, settings, vault):
        """Test that other files are ignored."""
        reconciler = DocumentReconciler(vault, AuditLogger())
        paths = await reconciler.month_documents(settings.budget_folder)
        assert paths == ["Budget/2024/03-March.md", "Budget/2024/04-April.md"]

    @pytest.mark.asyncio
    async def test_existing_transactions_are_not_duplicated(self, vault_store):
        """Test that rows already in the ledger are skipped."""
        vault_store.insert_imported(make_candidate("2024-03-05", "42.50", description="Other"))
        assert await vault_store.sync_from_documents() == 2

    @pytest.mark.asyncio
    async def test_identical_rows_in_one_pass_both_import(self, settings):
        """Test that two hand-typed rows with the same key are both kept."""
        path = "Budget/2024/03-March.md"
        storage = InMemoryDocumentStorage({
            path: HEADER +
            "| 2024-03-05 | 🔴 | 🍕 Food | Latte | -4.00 USD |\n"
            "| 2024-03-05 | 🔴 | 🍕 Food | Muffin | -4.00 USD |\n",
        })
        store = LedgerStore(settings, storage, clock=lambda: TODAY)

        assert await store.sync_from_documents() == 2
        assert await store.sync_from_documents() == 0

        await store.add(make_candidate("2024-03-09", "7.00"))
        assert "Latte" in storage.documents[path]
        assert "Muffin" in storage.documents[path]

    @pytest.mark.asyncio
    async def test_stored_entry_matches_one_row_only(self, vault_store):
        """Test that one stored entry does not absorb a repeated row."""
        vault_store.insert_imported(make_candidate("2024-03-05", "42.50", description="Pizza"))
        vault_store.insert_imported(make_candidate("2024-03-05", "42.50", description="Pizza"))
        assert await vault_store.sync_from_documents() == 2
        assert len(vault_store.filter(search="pizza")) == 2

    @pytest.mark.asyncio
    async def test_unreadable_document_is_skipped(self, vault_store, vault):
        """Test per-document failure isolation."""
        vault.fail_reads.add("Budget/2024/03-March.md")
        assert await vault_store.sync_from_documents() == 1
        [txn] = vault_store.transactions
        assert txn.date == date(2024, 4, 1)

    @pytest.mark.asyncio
    async def test_missing_budget_folder(self, store):
        """Test that an empty vault imports nothing."""
        assert await store.sync_from_documents() == 0

    @pytest.mark.asyncio
    async def test_generated_documents_round_trip(self, store, storage):
        """Test that the ledger's own documents import as duplicates."""
        await store.add(make_candidate("2024-03-05", "42.50"))
        await store.add(make_candidate("2024-03-06", "3000", txn_type="income",
                                       category="salary"))
        assert await store.sync_from_documents() == 0

    @pytest.mark.asyncio
    async def test_hand_added_row_after_generation(self, store, storage):
        """Test that a row typed into a generated document is picked up."""
        await store.add(make_candidate("2024-03-05", "42.50"))
        path = "Budget/2024/03-March.md"
        storage.documents[path] = storage.documents[path].rstrip("\n") + \
            "\n| 2024-03-09 | 🔴 | 🎬 Entertainment | Cinema | -15.00 USD |\n"

        assert await store.sync_from_documents() == 1
        cinema = store.filter(search="cinema")[0]
        assert cinema.category == "entertainment"
        assert cinema.currency == "USD"

    @pytest.mark.asyncio
    async def test_parser_failure_is_isolated(self, vault_store, monkeypatch):
        """Test that a document the parser chokes on does not stop the pass."""
        real_parse = reconciliation.parse_month_document

        def parse(text, settings):
            if "Pizza" in text:
                raise RuntimeError("unexpected layout")
            return real_parse(text, settings)

        monkeypatch.setattr(reconciliation, "parse_month_document", parse)
        assert await vault_store.sync_from_documents() == 1
        [txn] = vault_store.transactions
        assert txn.description == "Bus"
