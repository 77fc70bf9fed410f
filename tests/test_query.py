# tests/test_query.py
# PURPOSE: the predicate builder is pure; check it without a database.

import pytest

from taskboard.errors import Unauthenticated, ValidationError
from taskboard.models import UserIdentity
from taskboard.query import TaskFilters, build_task_query


IDENTITY = UserIdentity(id=7, email="seven@example.com", username="seven")


def _sql(clause) -> str:
    return str(clause.compile(compile_kwargs={"literal_binds": True}))


def test_owner_predicate_always_present_and_first():
    for filters in (
        None,
        TaskFilters(),
        TaskFilters(status="completed"),
        TaskFilters(priority="high", search="x"),
        TaskFilters(status="pending", priority="low", search="report"),
    ):
        query = build_task_query(IDENTITY, filters)
        assert query.names[0] == "owner"
        assert query.owner_id == 7
        assert "tasks.owner_id = 7" in _sql(query.where_clause())


def test_predicates_added_only_for_present_filters():
    assert build_task_query(IDENTITY).names == ("owner",)
    assert build_task_query(IDENTITY, TaskFilters(status="pending")).names == ("owner", "status")
    assert build_task_query(IDENTITY, TaskFilters(priority="medium")).names == ("owner", "priority")
    assert build_task_query(
        IDENTITY, TaskFilters(status="completed", priority="high", search="foo")
    ).names == ("owner", "status", "priority", "search")


def test_filters_carry_no_owner():
    with pytest.raises(TypeError):
        TaskFilters(owner_id=1)  # type: ignore[call-arg]


def test_missing_identity_is_rejected():
    with pytest.raises(Unauthenticated):
        build_task_query(None, TaskFilters())  # type: ignore[arg-type]


def test_statement_orders_by_due_date_then_id():
    sql = _sql(build_task_query(IDENTITY).statement())
    assert "ORDER BY" in sql
    order = sql.split("ORDER BY", 1)[1]
    assert order.index("tasks.due_date") < order.index("tasks.id")


@pytest.mark.parametrize(
    "raw, expected",
    [
        ({}, TaskFilters()),
        ({"status": "", "priority": "", "search": "   "}, TaskFilters()),
        ({"status": "all", "priority": "ALL"}, TaskFilters()),
        ({"status": "Completed", "priority": "HIGH"}, TaskFilters(status="completed", priority="high")),
        ({"search": "  milk "}, TaskFilters(search="milk")),
    ],
)
def test_parse_normalizes(raw, expected):
    assert TaskFilters.parse(**raw) == expected


@pytest.mark.parametrize("raw", [{"status": "done"}, {"priority": "urgent"}, {"priority": "3"}])
def test_parse_rejects_out_of_set_values(raw):
    with pytest.raises(ValidationError) as err:
        TaskFilters.parse(**raw)
    field = next(iter(raw))
    assert err.value.details[0]["loc"] == ["query", field]
