import math

import pytest
from openpyxl import load_workbook

from calibration.evaluations.historic import (
    MetricDefinition,
    build_metric_rows,
    export_historic_workbook,
    get_employee_historic_data,
    next_sort_state,
    parse_sort_column,
    sort_metric_rows,
)
from calibration.evaluations.models import Evaluation, MetricRow, YearData


def _evaluation(year, **scores):
    return Evaluation(id=f"ev-{year}", employee_id="e", evaluation_year=year, **scores)


def _row(name, **scores_by_year):
    year_data = {int(y[1:]): YearData(score=s) for y, s in scores_by_year.items()}
    values = [s for s in scores_by_year.values() if s is not None]
    return MetricRow(metric_name=name, year_data=year_data, average=sum(values) / len(values) if values else None)


# ---------------------------------------------------------------------------
# build_metric_rows
# ---------------------------------------------------------------------------


def test_missing_middle_year_is_an_empty_cell():
    evaluations = {
        2022: _evaluation(2022, general_potential=4.0, general_potential_label="Alto"),
        2024: _evaluation(2024, general_potential=3.0, general_potential_label="Medio +"),
    }
    rows = build_metric_rows(evaluations, [2022, 2023, 2024])
    potential = rows[0]

    assert potential.metric_name == "Potencial General"
    assert potential.year_data[2023] == YearData(score=None, label=None)
    assert potential.year_data[2022].label == "Alto"
    assert math.isclose(potential.average, 3.5)


def test_average_is_none_when_every_year_is_null():
    evaluations = {2023: _evaluation(2023), 2024: _evaluation(2024)}
    rows = build_metric_rows(evaluations, [2023, 2024])
    assert all(row.average is None for row in rows)


def test_ipe_row_has_no_label():
    evaluations = {2024: _evaluation(2024, ipe=87.5)}
    ipe = next(r for r in build_metric_rows(evaluations, [2024]) if r.metric_name == "IPE")
    assert ipe.year_data[2024] == YearData(score=87.5, label=None)


def test_custom_definitions():
    definitions = [MetricDefinition("Jefe", lambda e: e.direct_manager_score)]
    rows = build_metric_rows({2024: _evaluation(2024, direct_manager_score=3.13)}, [2024], definitions)
    assert [r.metric_name for r in rows] == ["Jefe"]
    assert rows[0].average == 3.13


def test_historic_data_from_store(seeded_store):
    data = get_employee_historic_data(seeded_store, "emp-paula")

    assert data.available_years == [2022, 2024]
    assert len(data.metrics) == 10
    potential = data.metrics[0]
    assert potential.year_data[2022].score == 4.0
    assert potential.year_data[2024].score == 2.5
    assert math.isclose(potential.average, 3.25)


def test_historic_data_unknown_employee(seeded_store):
    assert get_employee_historic_data(seeded_store, "missing") is None


def test_historic_data_employee_without_evaluations(seeded_store):
    data = get_employee_historic_data(seeded_store, "emp-nuevo")
    assert data.available_years == []
    assert all(row.year_data == {} and row.average is None for row in data.metrics)


# ---------------------------------------------------------------------------
# Sorting
# ---------------------------------------------------------------------------


@pytest.fixture
def rows():
    return [
        _row("a", y2023=3.0, y2024=None),
        _row("b", y2023=None, y2024=None),
        _row("c", y2023=2.0, y2024=4.0),
        _row("d", y2023=3.5, y2024=1.0),
    ]


def test_sort_ascending_puts_nulls_last(rows):
    assert [r.metric_name for r in sort_metric_rows(rows, 2023, "asc")] == ["c", "a", "d", "b"]


def test_sort_descending_puts_nulls_last(rows):
    assert [r.metric_name for r in sort_metric_rows(rows, 2024, "desc")] == ["c", "d", "a", "b"]


def test_sort_by_average(rows):
    ordered = sort_metric_rows(rows, "average", "asc")
    # a and c tie at 3.0 and keep their relative order
    assert [r.metric_name for r in ordered] == ["d", "a", "c", "b"]


def test_unsorted_keeps_original_order(rows):
    assert sort_metric_rows(rows, None, None) == rows


def test_bad_direction(rows):
    with pytest.raises(ValueError):
        sort_metric_rows(rows, 2023, "sideways")


def test_sort_cycle():
    assert next_sort_state(None, None, 2024) == (2024, "asc")
    assert next_sort_state(2024, "asc", 2024) == (2024, "desc")
    assert next_sort_state(2024, "desc", 2024) == (None, None)
    assert next_sort_state(2024, "desc", "average") == ("average", "asc")


def test_parse_sort_column():
    assert parse_sort_column(None) is None
    assert parse_sort_column("average") == "average"
    assert parse_sort_column("2023") == 2023
    with pytest.raises(ValueError):
        parse_sort_column("potencial")


# ---------------------------------------------------------------------------
# Excel export
# ---------------------------------------------------------------------------


def test_export_historic_workbook(seeded_store, tmp_path):
    data = get_employee_historic_data(seeded_store, "emp-paula")
    path = export_historic_workbook(data, tmp_path / "out" / "paula.xlsx")

    assert path.exists()
    ws = load_workbook(path)["Historial"]
    assert ws["A1"].value == "Historial de Evaluaciones - Paula Roa"
    assert [c.value for c in ws[2]] == ["Métrica", "2022", "2024", "Promedio"]
    assert [c.value for c in ws[3]] == ["Potencial General", 4.0, 2.5, 3.25]
    # peer score never filled in
    assert [c.value for c in ws[4]] == ["Evaluación Par", "-", "-", "N/A"]
    assert ws["B3"].fill.start_color.rgb.endswith("271DED")
    assert ws["C3"].fill.start_color.rgb.endswith("FF5D38")
