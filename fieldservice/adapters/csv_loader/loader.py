"""CSV loader — reads and normalizes seed data files."""

from __future__ import annotations

import csv
import logging
from pathlib import Path

from fieldservice.adapters.csv_loader.normalizer import (
    clean_string,
    normalize_column_name,
    parse_bool,
    parse_role,
    parse_skills,
)

logger = logging.getLogger(__name__)


def _sniff_dialect(sample: str) -> type[csv.Dialect]:
    """Detect the delimiter (comma/semicolon/tab) from the header line."""
    if not sample:
        return csv.excel

    first_line = sample.splitlines()[0]
    delims = [";", ",", "\t"]
    counts = {d: first_line.count(d) for d in delims}
    best_delim = max(counts, key=counts.get)

    if counts[best_delim] > 0:
        class DynamicDialect(csv.excel):
            delimiter = best_delim
        return DynamicDialect
    return csv.excel


def _read_csv(file_path: Path, encoding: str = "utf-8-sig") -> list[dict[str, str | None]]:
    """Read a CSV file with BOM handling and column normalization.

    Args:
        file_path: path to the CSV file.
        encoding: file encoding (utf-8-sig strips BOM automatically).

    Returns:
        List of dicts with normalized column names.
    """
    with open(file_path, encoding=encoding, newline="") as f:
        sample = f.read(4096)
        f.seek(0)
        reader = csv.DictReader(f, dialect=_sniff_dialect(sample))
        if reader.fieldnames is None:
            raise ValueError(f"CSV file {file_path} has no header row")

        col_map = {col: normalize_column_name(col) for col in reader.fieldnames}
        rows = [
            {col_map[k]: clean_string(v) for k, v in raw_row.items() if k is not None}
            for raw_row in reader
        ]

    logger.info("Loaded %d rows from %s (columns: %s)", len(rows), file_path.name, list(col_map.values()))
    return rows


def load_engineers(file_path: Path) -> list[dict]:
    """Load the engineers CSV.

    Expected columns (after normalization):
        name, email, role, skills ('CO2:expert:4;Fiber:advanced:2'), active
    """
    engineers = []
    for row in _read_csv(file_path):
        name = row.get("name") or row.get("full_name")
        if not name:
            logger.warning("Skipping engineer row without a name: %s", row)
            continue
        engineers.append({
            "name": name,
            "email": row.get("email"),
            "role": parse_role(row.get("role")),
            "skills": parse_skills(row.get("skills")),
            "is_active": parse_bool(row.get("active") or row.get("is_active")),
        })
    logger.info("Parsed %d engineers", len(engineers))
    return engineers


def load_customers(file_path: Path) -> list[dict]:
    """Load the customers CSV.

    Expected columns: company_name, contact_person, email, phone, city,
    address, service_no
    """
    customers = []
    for row in _read_csv(file_path):
        company = row.get("company_name") or row.get("company") or row.get("name")
        if not company:
            continue
        customers.append({
            "company_name": company,
            "contact_person": row.get("contact_person"),
            "email": row.get("email"),
            "phone": row.get("phone"),
            "city": row.get("city"),
            "address": row.get("address"),
            "service_no": row.get("service_no"),
        })
    logger.info("Parsed %d customers", len(customers))
    return customers


def load_machines(file_path: Path) -> list[dict]:
    """Load the machines CSV.

    Expected columns: model, serial_number, company_name (owning customer)
    """
    machines = []
    for row in _read_csv(file_path):
        model = row.get("model")
        serial = row.get("serial_number") or row.get("serial")
        if not model or not serial:
            logger.warning("Skipping machine row without model/serial: %s", row)
            continue
        machines.append({
            "model": model,
            "serial_number": serial,
            "company_name": row.get("company_name") or row.get("customer"),
        })
    logger.info("Parsed %d machines", len(machines))
    return machines
