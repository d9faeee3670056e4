"""Seed database from CSV files.

Usage:
    python -m fieldservice.tools.seed_db
    python -m fieldservice.tools.seed_db --data-dir data
    python -m fieldservice.tools.seed_db --drop  # drop existing data first
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from fieldservice.adapters.csv_loader.loader import load_customers, load_engineers, load_machines
from fieldservice.adapters.persistence.database import async_session_factory
from fieldservice.adapters.persistence.models import (
    CustomerModel,
    DailyWorkRecordModel,
    EngineerModel,
    EngineerSkillModel,
    MachineModel,
    ServiceHistoryModel,
    TicketModel,
)
from fieldservice.adapters.persistence.repositories import SqlEngineerRepository
from fieldservice.domain.entities.engineer import Engineer

logger = logging.getLogger(__name__)


async def _drop_data(session: AsyncSession) -> None:
    """Delete all data in FK order."""
    for model in [
        ServiceHistoryModel,
        DailyWorkRecordModel,
        TicketModel,
        MachineModel,
        CustomerModel,
        EngineerSkillModel,
        EngineerModel,
    ]:
        await session.execute(delete(model))
    await session.commit()
    logger.info("Dropped all existing data")


def _find_csv(data_dir: Path, keywords: list[str]) -> Path | None:
    """Find the first CSV in ``data_dir`` whose name contains one of ``keywords``."""
    for path in sorted(data_dir.glob("*.csv")):
        stem = path.stem.lower()
        if any(k in stem for k in keywords):
            return path
    return None


async def _seed_engineers(session: AsyncSession, csv_path: Path) -> int:
    repo = SqlEngineerRepository(session)
    created = 0
    for row in load_engineers(csv_path):
        if row["email"] and await repo.get_by_email(row["email"]):
            logger.debug("Engineer '%s' already exists, skipping", row["email"])
            continue
        await repo.save(
            Engineer(
                id=None,
                name=row["name"],
                email=row["email"],
                role=row["role"],
                skills=row["skills"],
                is_active=row["is_active"],
            )
        )
        created += 1
    await session.commit()
    return created


async def _seed_customers_and_machines(
    session: AsyncSession,
    customer_csv: Path | None,
    machine_csv: Path | None,
) -> tuple[int, int]:
    customers = machines = 0
    name_to_id: dict[str, int] = {}

    if customer_csv:
        for row in load_customers(customer_csv):
            existing = await session.execute(
                select(CustomerModel).where(CustomerModel.company_name == row["company_name"])
            )
            found = existing.scalars().first()
            if found:
                name_to_id[found.company_name] = found.id
                continue
            customer = CustomerModel(**row)
            session.add(customer)
            await session.flush()
            name_to_id[customer.company_name] = customer.id
            customers += 1

    if machine_csv:
        for row in load_machines(machine_csv):
            existing = await session.execute(
                select(MachineModel).where(MachineModel.serial_number == row["serial_number"])
            )
            if existing.scalar_one_or_none():
                logger.debug("Machine '%s' already exists, skipping", row["serial_number"])
                continue
            customer_id = name_to_id.get(row["company_name"] or "")
            if row["company_name"] and customer_id is None:
                logger.warning(
                    "Machine %s references unknown customer '%s'",
                    row["serial_number"], row["company_name"],
                )
            session.add(
                MachineModel(
                    model=row["model"],
                    serial_number=row["serial_number"],
                    customer_id=customer_id,
                )
            )
            machines += 1

    await session.commit()
    return customers, machines


async def seed(data_dir: Path, drop: bool = False) -> dict[str, int]:
    """Main seed function. Returns counts of seeded records."""
    engineer_csv = _find_csv(data_dir, ["engineers", "technicians", "users"])
    customer_csv = _find_csv(data_dir, ["customers", "clients"])
    machine_csv = _find_csv(data_dir, ["machines"])

    if not engineer_csv:
        raise FileNotFoundError(
            f"No engineers CSV found in {data_dir}. Expected something like engineers.csv"
        )

    async with async_session_factory() as session:
        if drop:
            await _drop_data(session)

        engineers = await _seed_engineers(session, engineer_csv)
        customers, machines = await _seed_customers_and_machines(session, customer_csv, machine_csv)

    counts = {"engineers": engineers, "customers": customers, "machines": machines}
    logger.info("Seed complete: %s", counts)
    return counts


async def _verify_data() -> None:
    """Print a quick summary of what is in the database."""
    async with async_session_factory() as session:
        engineers = (await session.execute(select(EngineerModel))).scalars().all()
        customers = (await session.execute(select(func.count(CustomerModel.id)))).scalar_one()
        machines = (await session.execute(select(func.count(MachineModel.id)))).scalar_one()

        roles: dict[str, int] = {}
        for e in engineers:
            roles[e.role] = roles.get(e.role, 0) + 1
        with_skills = sum(1 for e in engineers if e.skills)

        print(f"\n{'='*50}")
        print("DATA VERIFICATION")
        print(f"{'='*50}")
        print(f"Users:     {len(engineers)}")
        print(f"Customers: {customers}")
        print(f"Machines:  {machines}")
        print(f"Role distribution: {roles}")
        print(f"Users with skills: {with_skills}/{len(engineers)}")
        print(f"{'='*50}\n")


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s | %(message)s")

    parser = argparse.ArgumentParser(description="Seed the field service database from CSV files")
    parser.add_argument(
        "--data-dir", type=str, default="data",
        help="Directory containing CSV files (default: data)",
    )
    parser.add_argument(
        "--drop", action="store_true",
        help="Drop existing data before seeding",
    )
    parser.add_argument(
        "--verify-only", action="store_true",
        help="Only run verification, don't seed",
    )
    args = parser.parse_args()

    data_dir = Path(args.data_dir)
    if not args.verify_only and not data_dir.exists():
        logger.error("Data directory not found: %s", data_dir)
        sys.exit(1)

    if args.verify_only:
        asyncio.run(_verify_data())
    else:
        async def run_all():
            await seed(data_dir, drop=args.drop)
            await _verify_data()
        asyncio.run(run_all())


if __name__ == "__main__":
    main()
