"""Turn aggregated report rows into a header and flat string records."""

from __future__ import annotations

import csv
from collections.abc import Iterable, Mapping, Sequence
from typing import TextIO

from platform_scan.models import Report

FIXED_COLUMNS = ["Subscription", "Title", "Plan", "Storage", "Region", "Last Backup at", "Type", "App"]


def service_columns(engine_usage: Mapping[str, int]) -> list[str]:
    return sorted(engine_usage)


def report_heading(services_cols: Sequence[str], package_cols: Sequence[str]) -> list[str]:
    return [*FIXED_COLUMNS, *services_cols, *package_cols]


def sort_rows(rows: Iterable[Report]) -> list[Report]:
    return sorted(rows, key=lambda row: (row.title.casefold(), row.app))


def report_record(row: Report, services_cols: Sequence[str], package_cols: Sequence[str]) -> list[str]:
    backup = row.last_backup_at.isoformat(timespec="seconds") if row.last_backup_at else ""
    return [
        row.subscription,
        row.title,
        row.plan,
        str(row.storage),
        row.region,
        backup,
        row.app_type,
        row.app,
        *(row.services.get(col, "") for col in services_cols),
        *(row.packages.get(col, "") for col in package_cols),
    ]


def report_table(
    rows: Iterable[Report],
    services_cols: Sequence[str],
    package_cols: Sequence[str],
) -> tuple[list[str], list[list[str]]]:
    heading = report_heading(services_cols, package_cols)
    records = [report_record(row, services_cols, package_cols) for row in sort_rows(rows)]
    return heading, records


def write_csv(stream: TextIO, heading: Sequence[str], records: Iterable[Sequence[str]]) -> None:
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(heading)
    writer.writerows(records)
