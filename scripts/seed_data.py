"""Script to create the tables and seed demo data into the database."""

import asyncio

from sqlalchemy import delete, update

from components.core.init_db import db_manager
from components.core.security import get_password_hash
from components.otp.models import OneTimeCode
from components.student.models import Student
from components.transaction.models import Transaction
from components.tuition.models import Tuition
from components.user.models import User


async def seed_data():
    """Seed demo users, students and tuitions."""
    await db_manager.create_all()

    async with db_manager.get_db() as db:
        # Clear existing data
        await db.execute(delete(OneTimeCode))
        await db.execute(update(Transaction).values(group_id=None))
        await db.execute(delete(Transaction))
        await db.execute(delete(Tuition))
        await db.execute(delete(Student))
        await db.execute(delete(User))
        await db.commit()

        users = [
            User(
                username="alice",
                password=get_password_hash("password123"),
                full_name="Alice Nguyen",
                phone="0900000001",
                email="alice@example.com",
                balance_cents=100_000_000,
            ),
            User(
                username="bob",
                password=get_password_hash("password123"),
                full_name="Bob Tran",
                phone="0900000002",
                email="bob@example.com",
                balance_cents=5_000_000,
            ),
        ]
        db.add_all(users)

        students = [
            Student(mssv="20190001", full_name="Le Van A", combined_billing=True),
            Student(mssv="20190002", full_name="Pham Thi B"),
            Student(mssv="20190003", full_name="Hoang Van C"),
        ]
        db.add_all(students)
        await db.flush()

        tuitions = [
            Tuition(student_id=students[0].id, academic_year="2023-2024", semester=2,
                    amount_cents=12_000_000, description="Tuition 2023-2024 semester 2"),
            Tuition(student_id=students[0].id, academic_year="2024-2025", semester=1,
                    amount_cents=15_000_000, description="Tuition 2024-2025 semester 1"),
            Tuition(student_id=students[0].id, academic_year="2024-2025", semester=2,
                    amount_cents=15_000_000, description="Tuition 2024-2025 semester 2"),
            Tuition(student_id=students[1].id, academic_year="2024-2025", semester=1,
                    amount_cents=14_000_000, description="Tuition 2024-2025 semester 1"),
            Tuition(student_id=students[1].id, academic_year="2024-2025", semester=2,
                    amount_cents=14_500_000, description="Tuition 2024-2025 semester 2"),
            Tuition(student_id=students[2].id, academic_year="2024-2025", semester=2,
                    amount_cents=9_000_000, description="Tuition 2024-2025 semester 2"),
        ]
        db.add_all(tuitions)
        await db.commit()

    print("Demo data seeded")
    await db_manager.dispose()

if __name__ == "__main__":
    asyncio.run(seed_data())
