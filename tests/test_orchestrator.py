"""Integration tests for the engine lifecycle."""

import io
import json
from datetime import date
from decimal import Decimal

import pandas as pd
import pytest

from budget_ledger.codec import generate_settings_document
from budget_ledger.config import (
    AppSettings,
    ConfigurationError,
    get_settings,
    validate_all_settings,
)
from budget_ledger.models import RecurringTransaction, default_settings
from budget_ledger.orchestrator import BudgetEngine, create_engine
from budget_ledger.services.storage import InMemoryDocumentStorage, LocalDocumentStorage

from factories import TODAY, make_candidate

CONFIG = "Budget/_config.md"
DATA = ".budget/data.json"
MARCH = "Budget/2024/03-March.md"

MARCH_TEXT = (
    "| Date | Type | Category | Description | Amount |\n"
    "|:-----|:----|:----------|:-----|------:|\n"
    "| 2024-03-05 | 🔴 | 🍕 Food | Pizza | -42.50 USD |\n"
)


def rent_rule(**overrides):
    fields = dict(
        id="rent", name="Rent", amount=Decimal("1200"), type="expense",
        category="bills", day_of_month=10, last_processed=date(2024, 3, 10),
    )
    fields.update(overrides)
    return RecurringTransaction(**fields)


def make_engine(storage):
    return BudgetEngine(storage, clock=lambda: TODAY)


class TestStartup:
    """BudgetEngine.start."""

    @pytest.mark.asyncio
    async def test_empty_vault_creates_settings_document(self):
        """Test that a missing settings document is written from defaults."""
        storage = InMemoryDocumentStorage()
        result = await make_engine(storage).start()

        assert result.settings_source == "migrated"
        assert result.transactions_loaded == 0
        assert CONFIG in storage.documents
        assert DATA not in storage.documents

    @pytest.mark.asyncio
    async def test_full_startup(self):
        """Test settings, import, backfill and persistence in one start."""
        settings = default_settings().model_copy(update={
            "recurring_transactions": [rent_rule()],
        })
        storage = InMemoryDocumentStorage({
            CONFIG: generate_settings_document(settings),
            MARCH: MARCH_TEXT,
        })
        engine = make_engine(storage)
        result = await engine.start()

        assert result.settings_source == "document"
        assert result.imported == 1
        assert result.recurring_created == 1

        blob = json.loads(storage.documents[DATA])
        assert len(blob["transactions"]) == 2
        assert 'lastProcessed: "2024-04-10"' in storage.documents[CONFIG]

    @pytest.mark.asyncio
    async def test_restart_is_stable(self):
        """Test that a second start loads the blob and adds nothing."""
        settings = default_settings().model_copy(update={
            "recurring_transactions": [rent_rule()],
        })
        storage = InMemoryDocumentStorage({
            CONFIG: generate_settings_document(settings),
            MARCH: MARCH_TEXT,
        })
        await make_engine(storage).start()

        second = make_engine(storage)
        result = await second.start()
        assert result.transactions_loaded == 2
        assert result.imported == 0
        assert result.recurring_created == 0
        assert len(second.store.transactions) == 2

    @pytest.mark.asyncio
    async def test_settings_document_applied(self):
        """Test that values from the settings document are used."""
        storage = InMemoryDocumentStorage({
            CONFIG: "---\ndefaultCurrency: EUR\n---\n",
        })
        engine = make_engine(storage)
        await engine.start()
        assert engine.settings.default_currency == "EUR"

        txn = await engine.add_transaction({
            "date": "2024-03-05", "amount": "3", "type": "expense", "category": "food",
        })
        assert txn.currency == "EUR"

    @pytest.mark.asyncio
    async def test_corrupt_settings_document_kept(self):
        """Test that a corrupt settings document is neither used nor overwritten."""
        storage = InMemoryDocumentStorage({CONFIG: "this is not frontmatter"})
        engine = make_engine(storage)
        result = await engine.start()

        assert result.settings_source == "defaults"
        assert engine.settings.default_currency == "USD"
        assert storage.documents[CONFIG] == "this is not frontmatter"

    @pytest.mark.asyncio
    async def test_corrupt_blob_ignored(self):
        """Test that an unparseable data file starts an empty ledger."""
        storage = InMemoryDocumentStorage({DATA: "{not json"})
        result = await make_engine(storage).start()
        assert result.transactions_loaded == 0

    @pytest.mark.asyncio
    async def test_persistence_failures_do_not_stop_startup(self):
        """Test that failed blob and settings writes are logged, not raised."""
        settings = default_settings().model_copy(update={
            "recurring_transactions": [rent_rule()],
        })
        original = generate_settings_document(settings)
        storage = InMemoryDocumentStorage({CONFIG: original})
        storage.fail_writes.update({CONFIG, DATA})

        engine = make_engine(storage)
        result = await engine.start()

        assert result.recurring_created == 1
        assert engine.settings.recurring_transactions[0].last_processed == date(2024, 4, 10)
        assert storage.documents[CONFIG] == original
        assert DATA not in storage.documents


class TestEngineOperations:
    """CRUD, settings and export through the engine."""

    @pytest.mark.asyncio
    async def test_crud_round_trip(self):
        """Test add, update and delete through the engine."""
        storage = InMemoryDocumentStorage()
        engine = make_engine(storage)
        await engine.start()

        txn = await engine.add_transaction(make_candidate("2024-03-05", "42.50"))
        assert "-42.50 USD" in storage.documents[MARCH]

        await engine.update_transaction(txn.id, {"description": "Pizza"})
        assert engine.get_transaction(txn.id).description == "Pizza"
        assert engine.filter_transactions(search="pizza")[0].id == txn.id

        assert await engine.delete_transaction(txn.id) is True
        await engine.save()
        assert json.loads(storage.documents[DATA]) == {"transactions": []}

    @pytest.mark.asyncio
    async def test_update_settings_writes_document(self):
        """Test that new settings are applied and persisted."""
        storage = InMemoryDocumentStorage()
        engine = make_engine(storage)
        await engine.update_settings(engine.settings.model_copy(update={"locale": "pl"}))

        assert engine.store.settings.locale == "pl"
        assert "locale: pl" in storage.documents[CONFIG]

    @pytest.mark.asyncio
    async def test_exports(self):
        """Test CSV and JSON exports of the ledger."""
        engine = make_engine(InMemoryDocumentStorage())
        await engine.add_transaction(make_candidate("2024-03-05", "42.50", description="Pizza"))

        df = pd.read_csv(io.StringIO(engine.export_csv()), dtype=str)
        assert list(df.columns) == [
            "id", "date", "type", "category", "description", "amount", "currency",
            "excludeFromStats",
        ]
        assert len(df) == 1
        assert df.loc[0, "amount"] == "42.50"
        assert df.loc[0, "description"] == "Pizza"
        assert df.loc[0, "excludeFromStats"] == "False"

        records = json.loads(engine.export_json())
        assert records[0]["category"] == "food"


class TestLocalStorage:
    """The engine against real files."""

    @pytest.mark.asyncio
    async def test_local_round_trip(self, tmp_path):
        """Test documents and folders created on disk."""
        storage = LocalDocumentStorage(tmp_path)
        engine = make_engine(storage)
        await engine.start()
        await engine.add_transaction(make_candidate("2024-03-05", "42.50"))
        await engine.save()

        march = tmp_path / "Budget" / "2024" / "03-March.md"
        assert march.is_file()
        assert "-42.50 USD" in march.read_text(encoding="utf-8")
        assert (tmp_path / ".budget" / "data.json").is_file()
        assert await storage.list("Budget") == ["Budget/2024/03-March.md", "Budget/_config.md"]

    @pytest.mark.asyncio
    async def test_local_missing_document(self, tmp_path):
        """Test that reading a missing file raises NotFoundError."""
        from budget_ledger.services.storage import NotFoundError

        with pytest.raises(NotFoundError):
            await LocalDocumentStorage(tmp_path).read("Budget/nope.md")

    def test_create_engine_from_environment(self, tmp_path, monkeypatch):
        """Test the factory reads the storage root from the environment."""
        monkeypatch.setenv("BUDGET_STORAGE_ROOT", str(tmp_path))
        monkeypatch.setenv("BUDGET_STORAGE_DATA_FILE", "state/ledger.json")
        get_settings.cache_clear()
        try:
            engine = create_engine()
        finally:
            get_settings.cache_clear()
        assert engine._storage.root == tmp_path
        assert engine._data_path == "state/ledger.json"

    def test_create_engine_rejects_invalid_environment(self, tmp_path, monkeypatch):
        """Test that the startup check stops on an unsupported locale."""
        monkeypatch.setenv("BUDGET_STORAGE_ROOT", str(tmp_path))
        monkeypatch.setenv("BUDGET_APP_DEFAULT_LOCALE", "de")
        get_settings.cache_clear()
        try:
            status = validate_all_settings()
            with pytest.raises(ConfigurationError, match="app"):
                create_engine()
        finally:
            get_settings.cache_clear()
        assert status["storage"] is True
        assert status["app"] is False
        assert "default_locale" in status["app_error"]

    def test_app_settings_from_prefixed_environment(self, tmp_path, monkeypatch):
        """Test that every app setting is read and applied by the factory."""
        monkeypatch.setenv("BUDGET_STORAGE_ROOT", str(tmp_path))
        monkeypatch.setenv("BUDGET_APP_LOG_JSON", "false")
        monkeypatch.setenv("BUDGET_APP_DEFAULT_LOCALE", "pl")
        get_settings.cache_clear()
        try:
            app = get_settings().app
            engine = create_engine()
        finally:
            get_settings.cache_clear()
        assert set(AppSettings.model_fields) == {"log_level", "log_json", "default_locale"}
        assert app.log_json is False
        assert engine.settings.locale == "pl"
