"""Tests for CSV loader functions."""

import csv
import tempfile
from pathlib import Path

from fieldservice.adapters.csv_loader.loader import load_customers, load_engineers, load_machines
from fieldservice.domain.value_objects.enums import Role, SkillLevel


def _write_csv(rows: list[dict], path: Path, encoding: str = "utf-8-sig", delimiter: str = ",") -> None:
    """Helper to write a test CSV file."""
    if not rows:
        return
    with open(path, "w", encoding=encoding, newline="") as f:
        writer = csv.DictWriter(f, fieldnames=rows[0].keys(), delimiter=delimiter)
        writer.writeheader()
        writer.writerows(rows)


def test_load_engineers_with_skills():
    with tempfile.TemporaryDirectory() as tmpdir:
        csv_path = Path(tmpdir) / "engineers.csv"
        _write_csv([
            {"Name": "Aisha Khan", "Email": "aisha@example.com", "Role": "engineer",
             "Skills": "CO2:expert:4;Fiber:advanced:2", "Active": "true"},
            {"Name": "Marco Bell", "Email": "marco@example.com", "Role": "Manager",
             "Skills": "", "Active": ""},
        ], csv_path)

        engineers = load_engineers(csv_path)
        assert len(engineers) == 2
        assert engineers[0]["name"] == "Aisha Khan"
        assert engineers[0]["role"] == Role.ENGINEER
        assert [s.name for s in engineers[0]["skills"]] == ["CO2", "Fiber"]
        assert engineers[0]["skills"][0].level == SkillLevel.EXPERT
        assert engineers[0]["skills"][1].years_experience == 2
        assert engineers[1]["role"] == Role.MANAGER
        assert engineers[1]["skills"] == []
        assert engineers[1]["is_active"] is True


def test_load_engineers_skips_rows_without_name():
    with tempfile.TemporaryDirectory() as tmpdir:
        csv_path = Path(tmpdir) / "engineers.csv"
        _write_csv([
            {"name": " ", "email": "ghost@example.com", "role": "engineer", "skills": "", "active": "true"},
            {"name": "Ravi Patel", "email": "ravi@example.com", "role": "engineer", "skills": "Fiber", "active": "no"},
        ], csv_path)

        engineers = load_engineers(csv_path)
        assert [e["name"] for e in engineers] == ["Ravi Patel"]
        assert engineers[0]["is_active"] is False
        assert engineers[0]["skills"][0].level == SkillLevel.NOVICE


def test_load_engineers_semicolon_delimited():
    with tempfile.TemporaryDirectory() as tmpdir:
        csv_path = Path(tmpdir) / "engineers.csv"
        _write_csv([
            {"name": "Lena Ortiz", "email": "lena@example.com", "role": "engineer",
             "skills": "Chiller:advanced:3|Electrical:advanced:5", "active": "1"},
        ], csv_path, delimiter=";")

        engineers = load_engineers(csv_path)
        assert engineers[0]["email"] == "lena@example.com"
        assert [s.name for s in engineers[0]["skills"]] == ["Chiller", "Electrical"]


def test_load_customers_basic():
    with tempfile.TemporaryDirectory() as tmpdir:
        csv_path = Path(tmpdir) / "customers.csv"
        _write_csv([
            {"Company Name": "Acme Metalworks", "Contact Person": "J. Doe", "Email": "ops@acme.example",
             "Phone": "555-0100", "City": "Pune", "Address": "Plot 12", "Service No": "SRV-001"},
            {"Company Name": "", "Contact Person": "Nobody", "Email": "", "Phone": "", "City": "",
             "Address": "", "Service No": ""},
        ], csv_path)

        customers = load_customers(csv_path)
        assert len(customers) == 1
        assert customers[0]["company_name"] == "Acme Metalworks"
        assert customers[0]["service_no"] == "SRV-001"
        assert customers[0]["phone"] == "555-0100"


def test_load_machines_requires_model_and_serial():
    with tempfile.TemporaryDirectory() as tmpdir:
        csv_path = Path(tmpdir) / "machines.csv"
        _write_csv([
            {"model": "CO2 150W", "serial_number": "SN-CO2-0001", "company_name": "Acme Metalworks"},
            {"model": "Fiber 2kW", "serial_number": "", "company_name": "Acme Metalworks"},
        ], csv_path)

        machines = load_machines(csv_path)
        assert machines == [
            {"model": "CO2 150W", "serial_number": "SN-CO2-0001", "company_name": "Acme Metalworks"},
        ]


def test_load_sample_data_files():
    data_dir = Path(__file__).resolve().parents[3] / "data"
    engineers = load_engineers(data_dir / "engineers.csv")
    machines = load_machines(data_dir / "machines.csv")

    assert any(e["role"] == Role.MANAGER for e in engineers)
    assert all(m["serial_number"] for m in machines)
