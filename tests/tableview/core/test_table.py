from __future__ import annotations

import pytest

import tableview.core.table as table_module
from tableview.core.pagination import ELLIPSIS
from tableview.core.schema import FieldDescriptor, FieldSchema, FilterKind
from tableview.core.state import ViewState
from tableview.core.table import NO_DATA, NO_RESULTS, TableController, derive_view
from tableview.validation.errors import ValidationError


def _schema() -> FieldSchema:
    return FieldSchema(
        fields=(
            FieldDescriptor("status", "Status", FilterKind.MULTI_SELECT, options=("Paid", "Pending", "Failed")),
            FieldDescriptor("amount", "Amount", FilterKind.NUMBER_RANGE),
            FieldDescriptor("region", "Region", FilterKind.SELECT, options=("north", "south")),
        ),
    )


def _orders(n: int = 12):
    statuses = ["Paid", "Pending", "Failed"]
    return [
        {
            "order_id": f"ORD-{i:03d}",
            "status": statuses[i % 3],
            "amount": i * 10,
            "region": "north" if i % 2 else "south",
        }
        for i in range(1, n + 1)
    ]


@pytest.fixture()
def table() -> TableController:
    return TableController(_schema(), _orders(), name="orders", page_size=5)


def test_initial_view(table):
    view = table.view
    assert view.total_records == 12
    assert view.total_count == 12
    assert view.total_pages == 3
    assert view.current_page == 1
    assert [r["order_id"] for r in view.page_records] == [f"ORD-{i:03d}" for i in range(1, 6)]
    assert (view.start_index, view.end_index) == (1, 5)
    assert not view.has_active_filters
    assert view.empty_reason is None


def test_filtered_records_are_the_callers_objects_in_order(table):
    records = table.records
    view = table.set_filter_value("status", ["Paid"])
    assert all(any(r is src for src in records) for r in view.filtered_records)
    positions = [records.index(r) for r in view.filtered_records]
    assert positions == sorted(positions)


def test_search_and_filter_reset_page(table):
    table.set_page(3)
    assert table.state.current_page == 3

    table.set_search_term("ORD")
    assert table.state.current_page == 1

    table.set_page(2)
    table.set_filter_value("region", "north")
    assert table.state.current_page == 1

    table.set_page(2)
    table.reset_filters()
    assert table.state.current_page == 1
    assert table.state.search_term == "ORD"


def test_set_page_is_clamped(table):
    assert table.set_page(99).current_page == 3
    assert table.set_page(0).current_page == 1


def test_set_page_does_not_refilter(table, monkeypatch):
    calls = []
    original = table_module.filter_mask

    def counting(*args, **kwargs):
        calls.append(1)
        return original(*args, **kwargs)

    monkeypatch.setattr(table_module, "filter_mask", counting)

    table.set_filter_value("amount", {"min": 20})
    assert len(calls) == 1

    table.set_page(2)
    table.next_page()
    table.previous_page()
    assert len(calls) == 1


def test_unchanged_inputs_reuse_the_filter_pass(table, monkeypatch):
    table.set_filter_value("amount", {"min": 20})

    calls = []
    original = table_module.filter_mask

    def counting(*args, **kwargs):
        calls.append(1)
        return original(*args, **kwargs)

    monkeypatch.setattr(table_module, "filter_mask", counting)

    table.set_filter_value("amount", {"min": 20})
    assert calls == []


def test_filters_and_search_combine(table):
    table.set_filter_value("status", ["Paid", "Pending"])
    table.set_filter_value("amount", {"min": 50, "max": 100})
    view = table.set_search_term("ord-01")

    assert [r["order_id"] for r in view.filtered_records] == ["ORD-010"]
    assert view.has_active_filters


def test_empty_multi_select_equals_absent_filter(table):
    baseline = table.view.filtered_records
    view = table.set_filter_value("status", [])
    assert view.filtered_records == baseline
    assert "status" not in table.state.filter_state


def test_no_results_and_no_data():
    table = TableController(_schema(), _orders(), page_size=5)
    view = table.set_search_term("zzz")
    assert view.filtered_records == ()
    assert view.total_pages == 1
    assert view.empty_reason == NO_RESULTS

    empty = TableController(_schema(), [])
    assert empty.view.empty_reason == NO_DATA
    assert empty.view.visible_pages == (1,)


def test_replace_records_keeps_state_and_clamps_page(table):
    table.set_filter_value("region", "north")
    table.set_page(2)
    assert table.view.total_pages == 2

    view = table.replace_records(_orders(4))

    assert table.state.filter_state.get("region") == "north"
    assert view.current_page == 1
    assert [r["order_id"] for r in view.filtered_records] == ["ORD-001", "ORD-003"]


def test_replace_records_keeps_satisfiable_page(table):
    table.set_page(2)
    view = table.replace_records(_orders(30))
    assert view.current_page == 2
    assert view.total_pages == 6


def test_next_and_previous_stop_at_the_edges(table):
    assert table.previous_page().current_page == 1
    table.set_page(3)
    assert table.next_page().current_page == 3
    assert table.previous_page().current_page == 2


def test_page_size_change(table):
    table.set_page(2)
    view = table.set_page_size(4)
    assert view.page_size == 4
    assert view.total_pages == 3
    assert view.current_page == 1


def test_pages_reconstruct_the_filtered_set(table):
    table.set_filter_value("amount", {"min": 15})
    expected = table.view.filtered_records

    collected = []
    for page in range(1, table.view.total_pages + 1):
        collected.extend(table.set_page(page).page_records)

    assert tuple(collected) == expected


def test_five_records_page_size_two():
    table = TableController(_schema(), _orders(5), page_size=2)
    assert table.view.total_pages == 3
    assert len(table.set_page(3).page_records) == 1


def test_visible_pages_for_many_pages():
    table = TableController(_schema(), _orders(100), page_size=5)
    view = table.set_page(6)
    assert view.visible_pages == (1, ELLIPSIS, 4, 5, 6, 7, 8, ELLIPSIS, 20)


def test_reset_clears_everything_but_page_size(table):
    table.set_search_term("ORD")
    table.set_filter_value("region", "south")
    view = table.reset()
    assert table.state == ViewState(page_size=5)
    assert view.total_count == 12


def test_unknown_filter_key_does_not_count_as_active(table):
    view = table.set_filter_value("nope", "x")
    assert not view.has_active_filters
    assert view.total_count == 12


def test_invalid_schema_is_rejected():
    bad = FieldSchema(fields=(FieldDescriptor("s", "S", FilterKind.SELECT),))
    with pytest.raises(ValidationError):
        TableController(bad)


def test_derive_view_is_pure():
    records = _orders()
    state = ViewState(search_term="ORD-00", page_size=5, current_page=9)
    first = derive_view(records, _schema(), state)
    second = derive_view(records, _schema(), state)
    assert first == second
    assert first.total_count == 9
    assert first.current_page == 2


def test_to_frame(table):
    table.set_filter_value("region", "south")
    frame = table.view.to_frame(columns=["order_id", "amount", "missing"])
    assert list(frame.columns) == ["order_id", "amount", "missing"]
    assert len(frame) == 6
    assert frame["order_id"].tolist()[0] == "ORD-002"


def test_switching_select_between_one_and_true_refilters():
    one, true = {"f": 1}, {"f": True}
    schema = FieldSchema(fields=(FieldDescriptor("f", "F", FilterKind.SELECT, options=(1, True)),))
    table = TableController(schema, [one, true])

    view = table.set_filter_value("f", 1)
    assert len(view.filtered_records) == 1
    assert view.filtered_records[0] is one

    view = table.set_filter_value("f", True)
    assert len(view.filtered_records) == 1
    assert view.filtered_records[0] is true


def test_search_edits_reuse_the_field_filter_mask(table, monkeypatch):
    calls = []
    real = table_module.filter_mask

    def counting(*args, **kwargs):
        calls.append(args)
        return real(*args, **kwargs)

    monkeypatch.setattr(table_module, "filter_mask", counting)

    table.set_filter_value("region", "north")
    assert len(calls) == 1

    table.set_search_term("ORD-00")
    table.set_search_term("ORD-001")
    view = table.set_search_term("")
    assert len(calls) == 1
    assert view.total_count == 6

    table.set_filter_value("region", "south")
    assert len(calls) == 2
