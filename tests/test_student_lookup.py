import pytest

from components.core.errors import (
    IndividualPaymentNotAllowed,
    InvalidTuitionId,
    StudentNotFound,
    TuitionNotFoundForStudent,
)
from components.student.models import Student
from components.student.repository import StudentRepository
from components.tuition.models import Tuition, TuitionStatus


@pytest.mark.asyncio
async def test_lookup_unknown_student(db_manager, world):
    async with db_manager.get_db() as session:
        with pytest.raises(StudentNotFound):
            await StudentRepository(session).lookup("99999999")


@pytest.mark.asyncio
async def test_lookup_orders_newest_first(db_manager, world):
    async with db_manager.get_db() as session:
        student = Student(mssv="20210001", full_name="Many Terms")
        session.add(student)
        await session.flush()
        session.add_all([
            Tuition(student_id=student.id, academic_year="2023-2024", semester=2, amount_cents=200),
            Tuition(student_id=student.id, academic_year="2024-2025", semester=1, amount_cents=300),
            Tuition(student_id=student.id, academic_year="2023-2024", semester=1, amount_cents=100),
            Tuition(student_id=student.id, academic_year="2024-2025", semester=2, amount_cents=400,
                    status=TuitionStatus.PAID.value),
        ])
        await session.commit()

    async with db_manager.get_db() as session:
        info = await StudentRepository(session).lookup("20210001")

    assert info.student_id == "20210001"
    assert [item.id for item in info.pending_tuitions] == [1, 2, 3]
    assert [item.amount_cents for item in info.pending_tuitions] == [300, 200, 100]
    assert not any(item.read_only or item.is_combined for item in info.pending_tuitions)


@pytest.mark.asyncio
async def test_lookup_combined_student(db_manager, world):
    async with db_manager.get_db() as session:
        info = await StudentRepository(session).lookup(world.combined_mssv)

    individual = info.pending_tuitions[:-1]
    combined = info.pending_tuitions[-1]
    assert [item.id for item in individual] == [1, 2, 3]
    assert all(item.read_only for item in individual)
    assert combined.id == 0
    assert combined.is_combined and combined.mandatory
    assert combined.amount_cents == 60000
    assert combined.tuition_count == 3


@pytest.mark.asyncio
async def test_combined_rule_needs_more_than_one_pending(db_manager, world):
    async with db_manager.get_db() as session:
        student = Student(mssv="20210002", full_name="One Left", combined_billing=True)
        session.add(student)
        await session.flush()
        session.add(Tuition(student_id=student.id, academic_year="2024-2025", semester=1, amount_cents=500))
        await session.commit()

    async with db_manager.get_db() as session:
        repo = StudentRepository(session)
        info = await repo.lookup("20210002")
        assert [item.id for item in info.pending_tuitions] == [1]
        assert not info.pending_tuitions[0].read_only

        tuitions = await repo.resolve_public_id("20210002", 1)
        assert [tuition.amount_cents for tuition in tuitions] == [500]
        with pytest.raises(InvalidTuitionId):
            await repo.resolve_public_id("20210002", 0)


@pytest.mark.asyncio
async def test_resolve_public_id(db_manager, world):
    async with db_manager.get_db() as session:
        repo = StudentRepository(session)

        tuitions = await repo.resolve_public_id(world.single_mssv, 1)
        assert [tuition.id for tuition in tuitions] == [world.single_tuition_id]

        tuitions = await repo.resolve_public_id(world.combined_mssv, 0)
        assert [tuition.id for tuition in tuitions] == world.combined_tuition_ids

        with pytest.raises(IndividualPaymentNotAllowed):
            await repo.resolve_public_id(world.combined_mssv, 2)
        with pytest.raises(InvalidTuitionId):
            await repo.resolve_public_id(world.single_mssv, 0)
        with pytest.raises(TuitionNotFoundForStudent):
            await repo.resolve_public_id(world.single_mssv, 2)
        with pytest.raises(TuitionNotFoundForStudent):
            await repo.resolve_public_id("99999999", 1)
