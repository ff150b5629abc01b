from __future__ import annotations

from collections import OrderedDict
from typing import Any, Dict, Iterable, List, Mapping

from .listings import listing_from_row
from .timeutils import as_utc

DEFAULT_LIST_NAME = "default"


def list_name_or_default(list_name: Any) -> str:
    name = str(list_name).strip() if list_name else ""
    return name or DEFAULT_LIST_NAME


def saved_item_from_row(row: Mapping[str, Any]) -> Dict[str, Any]:
    """Flatten a saves row joined with its listing."""
    listing = row.get("listing") or row.get("listings") or {"id": row["listing_id"]}
    item = listing_from_row(listing)
    item["list_name"] = list_name_or_default(row.get("list_name"))
    item["saved_at"] = as_utc(row.get("created_at")).isoformat()
    return item


def saved_items(rows: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    """Saved items, newest first."""
    items = [saved_item_from_row(row) for row in rows]
    return sorted(items, key=lambda i: as_utc(i["saved_at"]), reverse=True)


def group_by_list(items: Iterable[Mapping[str, Any]]) -> Dict[str, List[Mapping[str, Any]]]:
    groups: Dict[str, List[Mapping[str, Any]]] = OrderedDict()
    for item in items:
        groups.setdefault(item.get("list_name") or DEFAULT_LIST_NAME, []).append(item)
    return dict(groups)
