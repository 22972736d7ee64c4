from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import select

from termrequester.adapters.sqlalchemy.mappings import phenotype_name_table
from termrequester.adapters.sqlalchemy.repositories import (
    LOCAL_ID_PREFIX,
    SqlAlchemyPhenotypeRepository,
)
from termrequester.domain.model import Phenotype, Status
from tests.helpers.phenotypes import make_phenotype

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.orm import Session

    from termrequester.adapters.sqlalchemy.unit_of_work import SqlAlchemyUnitOfWork


def _stored_names(session: Session, local_id: str) -> set[str]:
    stmt = select(phenotype_name_table.c.name).where(
        phenotype_name_table.c.phenotype_id == local_id
    )
    return set(session.execute(stmt).scalars())


def test_save_assigns_local_id_and_timestamps(store_session: Session) -> None:
    repository = SqlAlchemyPhenotypeRepository(store_session)

    saved = repository.save(make_phenotype("abnormal gait", synonyms=["limp"]))

    assert saved.local_id is not None
    assert saved.local_id.startswith(LOCAL_ID_PREFIX)
    assert saved.created_at is not None
    assert saved.modified_at is not None
    assert _stored_names(store_session, saved.local_id) == {"abnormal gait", "limp"}


def test_save_rewrites_name_index_after_merge(store_session: Session) -> None:
    repository = SqlAlchemyPhenotypeRepository(store_session)
    saved = repository.save(make_phenotype("abnormal gait"))
    assert saved.local_id is not None

    saved.merge_with(make_phenotype("walking difficulty"))
    repository.save(saved)

    assert _stored_names(store_session, saved.local_id) == {
        "abnormal gait",
        "walking difficulty",
    }


def test_round_trip_preserves_fields(
    store_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    with store_unit_of_work() as uow:
        saved = uow.repositories.phenotypes.save(
            make_phenotype(
                "abnormal gait",
                synonyms=["limp", "gait disturbance"],
                parent_ids=["HP:0001288"],
                description="Walks oddly",
                issue_number="12",
                status=Status.SUBMITTED,
            )
        )
        uow.commit()
        local_id = str(saved.local_id)

    with store_unit_of_work() as uow:
        loaded = uow.repositories.phenotypes.get_by_id(local_id)

        assert loaded is not None
        assert loaded is not saved
        assert loaded.name == "abnormal gait"
        assert loaded.synonyms == {"limp", "gait disturbance"}
        assert loaded.parent_ids == {"HP:0001288"}
        assert loaded.description == "Walks oddly"
        assert loaded.issue_number == "12"
        assert loaded.status is Status.SUBMITTED
        assert loaded.created_at is not None
        assert loaded.created_at.tzinfo is not None


def test_save_of_detached_stand_in_keeps_creation_time(
    store_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> None:
    with store_unit_of_work() as uow:
        saved = uow.repositories.phenotypes.save(make_phenotype("abnormal gait"))
        uow.commit()
        local_id = str(saved.local_id)
        created_at = saved.created_at

    stand_in = make_phenotype("abnormal gait", synonyms=["limp"], local_id=local_id)
    with store_unit_of_work() as uow:
        uow.repositories.phenotypes.save(stand_in)
        uow.commit()

    with store_unit_of_work() as uow:
        loaded = uow.repositories.phenotypes.get_by_id(local_id)
        assert loaded is not None
        assert loaded.synonyms == {"limp"}
        assert loaded.created_at == created_at


def test_get_matching_finds_by_any_name(store_session: Session) -> None:
    repository = SqlAlchemyPhenotypeRepository(store_session)
    saved = repository.save(make_phenotype("abnormal gait", synonyms=["limp"]))
    repository.save(make_phenotype("short stature"))

    assert repository.get_matching(Phenotype.new("LIMP")) is saved
    assert repository.get_matching(Phenotype.new("walking difficulty", synonyms=["Abnormal gait"])) is saved
    assert repository.get_matching(Phenotype.new("macrocephaly")) is None


def test_get_matching_prefers_local_id(store_session: Session) -> None:
    repository = SqlAlchemyPhenotypeRepository(store_session)
    saved = repository.save(make_phenotype("abnormal gait"))

    candidate = make_phenotype("renamed entirely", local_id=saved.local_id)

    assert repository.get_matching(candidate) is saved


def test_get_by_issue_number(store_session: Session) -> None:
    repository = SqlAlchemyPhenotypeRepository(store_session)
    saved = repository.save(make_phenotype("abnormal gait", issue_number="42"))

    assert repository.get_by_issue_number("42") is saved
    assert repository.get_by_issue_number("43") is None


def test_search_orders_exact_name_first(store_session: Session) -> None:
    repository = SqlAlchemyPhenotypeRepository(store_session)
    broad = repository.save(make_phenotype("abnormal gait"))
    exact = repository.save(make_phenotype("gait"))
    described = repository.save(make_phenotype("limp", description="An uneven GAIT"))
    repository.save(make_phenotype("short stature"))

    assert repository.search("Gait") == [exact, broad, described]


def test_search_treats_wildcards_literally(store_session: Session) -> None:
    repository = SqlAlchemyPhenotypeRepository(store_session)
    repository.save(make_phenotype("abnormal gait"))
    percent = repository.save(make_phenotype("growth below 3%"))

    assert repository.search("%") == [percent]
    assert repository.search("_") == []
    assert repository.search("  ") == []


def test_delete_removes_record_and_names(store_session: Session) -> None:
    repository = SqlAlchemyPhenotypeRepository(store_session)
    saved = repository.save(make_phenotype("abnormal gait", synonyms=["limp"]))
    local_id = str(saved.local_id)

    assert repository.delete(saved) is True
    assert repository.get_by_id(local_id) is None
    assert _stored_names(store_session, local_id) == set()
    assert repository.delete(make_phenotype("never saved")) is False
