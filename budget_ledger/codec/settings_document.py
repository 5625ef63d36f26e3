"""
Settings document codec.

The settings live in `<budget folder>/_config.md` as YAML-like frontmatter
followed by a short note for humans:

    ---
    locale: en
    defaultCurrency: USD
    ...
    currencies: ["USD", "EUR"]

    categories:
      - id: food
        name: "Food"
        ...
    recurringTransactions:
      - id: rent
        ...
    ---

DESIGN DECISION: This is deliberately not a YAML library round trip.
The key order is fixed, strings are quoted the same way every time and
the subset is small enough that generate -> parse -> generate is stable,
which keeps diffs in synced vaults quiet.
"""

import re
from typing import Any, Optional

from budget_ledger.codec.values import format_value, parse_value
from budget_ledger.models.settings import LedgerSettings


CONFIG_FILE_NAME = "_config.md"

_FRONTMATTER_RE = re.compile(r"^---\r?\n(.*?)\r?\n---", re.DOTALL)
_TOP_LEVEL_RE = re.compile(r"^(\w+):\s*(.*)$")
_ITEM_START_RE = re.compile(r"^\s+-\s+(\w+):\s*(.*)$")
_ITEM_PROP_RE = re.compile(r"^\s+(\w+):\s*(.*)$")

# Keys whose values are always strings, even when they look like numbers
_STRING_KEYS = {
    "locale", "defaultCurrency", "budgetFolder", "dateFormat",
    "id", "name", "icon", "type", "color", "parentId",
    "category", "createdAt", "lastProcessed",
}


class SettingsDocumentError(ValueError):
    """The settings document has no parseable frontmatter."""
    pass


def _value(key: str, raw: str) -> Any:
    return parse_value(raw, as_string=key in _STRING_KEYS)


def parse_settings_document(text: str) -> dict[str, Any]:
    """
    Parse the frontmatter into a dict keyed by the on-disk (camelCase) names.

    Only keys present in the document are returned, so the result can be
    merged over existing settings. An empty record list (`categories:` with
    no items) is returned as `[]`.

    Raises:
        SettingsDocumentError: If there is no frontmatter block
    """
    match = _FRONTMATTER_RE.match(text)
    if not match:
        raise SettingsDocumentError("No frontmatter found in settings document")

    result: dict[str, Any] = {}
    current_list: Optional[str] = None
    current_item: Optional[dict[str, Any]] = None

    for line in match.group(1).splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue

        top = _TOP_LEVEL_RE.match(line)
        if top:
            if current_item is not None and current_list:
                result[current_list].append(current_item)
            current_item = None
            key, raw = top.groups()
            if raw.strip() == "":
                current_list = key
                result[key] = []
            else:
                current_list = None
                result[key] = _value(key, raw)
            continue

        item_start = _ITEM_START_RE.match(line)
        if item_start and current_list:
            if current_item is not None:
                result[current_list].append(current_item)
            key, raw = item_start.groups()
            current_item = {key: _value(key, raw)}
            continue

        prop = _ITEM_PROP_RE.match(line)
        if prop and current_item is not None:
            key, raw = prop.groups()
            current_item[key] = _value(key, raw)
            continue

        raise SettingsDocumentError(f"Unrecognized settings line: {stripped!r}")

    if current_item is not None and current_list:
        result[current_list].append(current_item)

    return result


def settings_from_document(text: str, base: LedgerSettings) -> LedgerSettings:
    """
    Merge the document's keys over `base` and validate the result.

    Raises:
        SettingsDocumentError: If there is no frontmatter
        pydantic.ValidationError: If the merged settings are invalid
    """
    parsed = parse_settings_document(text)
    merged = base.model_dump(by_alias=True)
    merged.update(parsed)
    return LedgerSettings.model_validate(merged)


def generate_settings_document(settings: LedgerSettings) -> str:
    lines = [
        "---",
        "# Budget Tracker Configuration",
        "# This file syncs your settings across devices",
        "",
        f"locale: {settings.locale}",
        f"defaultCurrency: {settings.default_currency}",
        f"budgetFolder: {settings.budget_folder}",
        f"showBalanceInStatusBar: {format_value(settings.show_balance_in_status_bar)}",
        f"dateFormat: {settings.date_format}",
        f"currencies: {format_value(settings.currencies)}",
        "",
        "categories:",
    ]
    if not settings.categories:
        lines.append("  # No categories configured")
    for cat in settings.categories:
        lines.append(f"  - id: {cat.id}")
        lines.append(f"    name: {format_value(cat.name, quote=True)}")
        lines.append(f"    icon: {format_value(cat.icon, quote=True)}")
        lines.append(f"    type: {format_value(cat.type)}")
        lines.append(f"    color: {format_value(cat.color, quote=True)}")
        if cat.parent_id:
            lines.append(f"    parentId: {cat.parent_id}")
        if cat.budget_limit is not None and cat.budget_limit > 0:
            lines.append(f"    budgetLimit: {format_value(cat.budget_limit)}")
    lines.append("")

    lines.append("recurringTransactions:")
    if not settings.recurring_transactions:
        lines.append("  # No recurring transactions configured")
    for rec in settings.recurring_transactions:
        lines.append(f"  - id: {rec.id}")
        lines.append(f"    name: {format_value(rec.name, quote=True)}")
        lines.append(f"    amount: {format_value(rec.amount)}")
        lines.append(f"    type: {format_value(rec.type)}")
        lines.append(f"    category: {rec.category}")
        lines.append(f"    dayOfMonth: {rec.day_of_month}")
        lines.append(f"    isActive: {format_value(rec.is_active)}")
        if rec.created_at:
            lines.append(f'    createdAt: "{rec.created_at.isoformat()}"')
        if rec.last_processed:
            lines.append(f'    lastProcessed: "{rec.last_processed.isoformat()}"')

    lines += [
        "---",
        "",
        "# 💰 Budget Configuration",
        "",
        "> [!NOTE]",
        "> This file stores your Budget Tracker settings.",
        "> It syncs across devices via your sync method (WebDAV, Syncthing, etc.)",
        "",
        "Do not edit manually unless you know what you're doing.",
        "",
    ]
    return "\n".join(lines)
