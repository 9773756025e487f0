from __future__ import annotations

import csv
import io
import json
from typing import Any

from esview.bridge.models import ResponseDescription

OUTPUT_FORMATS = ["json", "jsonl", "csv", "tsv", "table", "raw", "status"]


def _extract_items(body: Any) -> list[Any] | None:
    if isinstance(body, list):
        return body
    if isinstance(body, dict):
        # _search response
        hits = body.get("hits")
        if isinstance(hits, dict) and isinstance(hits.get("hits"), list):
            return [{"_id": hit.get("_id"), **(hit.get("_source") or {})} for hit in hits["hits"]]
        # _sql?format=json response
        if isinstance(body.get("columns"), list) and isinstance(body.get("rows"), list):
            names = [column.get("name") for column in body["columns"]]
            return [dict(zip(names, row)) for row in body["rows"]]
        values = list(body.values())
        if len(values) == 1 and isinstance(values[0], list):
            return values[0]
    return None


def _stringify_value(value: Any) -> str:
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value)


def _collect_fieldnames(items: list[Any]) -> list[str]:
    fieldnames: list[str] = []
    for item in items:
        if isinstance(item, dict):
            for key in item:
                if key not in fieldnames:
                    fieldnames.append(key)
    return fieldnames or ["value"]


def _print_delimited(items: list[Any], *, delimiter: str = ",") -> None:
    if not items:
        return
    fieldnames = _collect_fieldnames(items)
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=fieldnames, delimiter=delimiter)
    writer.writeheader()
    for item in items:
        if isinstance(item, dict):
            writer.writerow({k: _stringify_value(v) for k, v in item.items()})
        else:
            writer.writerow({"value": _stringify_value(item)})
    print(buf.getvalue(), end="")


def _print_table(items: list[Any]) -> None:
    if not items:
        return
    fieldnames = _collect_fieldnames(items)
    col_widths = [len(f) for f in fieldnames]
    rows: list[list[str]] = []
    for item in items:
        row = [
            _stringify_value(item.get(f, "")) if isinstance(item, dict) else _stringify_value(item) for f in fieldnames
        ]
        rows.append(row)
        for i, cell in enumerate(row):
            col_widths[i] = max(col_widths[i], len(cell))
    header = "| " + " | ".join(f.ljust(col_widths[i]) for i, f in enumerate(fieldnames)) + " |"
    separator = "|-" + "-|-".join("-" * w for w in col_widths) + "-|"
    print(header)
    print(separator)
    for row in rows:
        print("| " + " | ".join(cell.ljust(col_widths[i]) for i, cell in enumerate(row)) + " |")


def print_response(response: ResponseDescription, *, output_format: str = "json") -> None:
    if output_format == "status":
        print(response.status)
        return
    if not response.body:
        return
    if output_format == "raw":
        print(response.body)
        return

    try:
        body = json.loads(response.body)
    except ValueError:
        print(response.body)
        return

    if output_format in ("jsonl", "csv", "tsv", "table"):
        items = _extract_items(body)
        if items is not None:
            if output_format in ("csv", "tsv"):
                _print_delimited(items, delimiter="\t" if output_format == "tsv" else ",")
            elif output_format == "table":
                _print_table(items)
            else:
                for item in items:
                    print(json.dumps(item))
            return
    print(json.dumps(body, indent=2))
