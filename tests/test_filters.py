import dataclasses
import itertools

import pandas as pd
import pytest

from mfg_dashboard.config import FILTER_CONTROLS
from mfg_dashboard.filters import FilterSelection, apply_filters, month_number
from mfg_dashboard.loaders import extract_filter_options


def test_empty_selection_keeps_every_row(sample_rows):
    pd.testing.assert_frame_equal(apply_filters(sample_rows, FilterSelection()), sample_rows)
    pd.testing.assert_frame_equal(apply_filters(sample_rows, None), sample_rows)


def test_blank_strings_mean_no_constraint(sample_rows):
    selection = FilterSelection(plant_id="", shift="  ", month="")
    assert selection.is_empty()
    assert len(apply_filters(sample_rows, selection)) == len(sample_rows)


def test_plant_filter(sample_rows):
    result = apply_filters(sample_rows, FilterSelection(plant_id="P01"))
    assert list(result.index) == [0, 1, 4]
    assert (result["Plant_ID"] == "P01").all()


def test_month_filter_uses_day_month_year(sample_rows):
    result = apply_filters(sample_rows, FilterSelection(month=2))
    assert list(result.index) == [2, 4]
    # string month values from a select box behave the same
    pd.testing.assert_frame_equal(apply_filters(sample_rows, FilterSelection(month="2")), result)


def test_unparseable_dates_never_match_a_month(sample_rows):
    for month in range(1, 13):
        result = apply_filters(sample_rows, FilterSelection(month=month))
        assert 3 not in result.index


def test_filters_combine_as_conjunction(sample_rows):
    result = apply_filters(
        sample_rows,
        FilterSelection(product_line="Pumps", shift="Morning", plant_name="Riverside"),
    )
    assert list(result.index) == [2]


def test_no_match_returns_empty_frame(sample_rows):
    result = apply_filters(sample_rows, FilterSelection(plant_id="P99"))
    assert result.empty
    assert list(result.columns) == list(sample_rows.columns)


@pytest.mark.parametrize("month", [0, 13, "abc", 2.5])
def test_invalid_month_matches_nothing(sample_rows, month):
    assert apply_filters(sample_rows, FilterSelection(month=month)).empty


def test_apply_filters_does_not_modify_input(sample_rows):
    before = sample_rows.copy()
    apply_filters(sample_rows, FilterSelection(plant_id="P01", month=1))
    pd.testing.assert_frame_equal(sample_rows, before)


def test_every_combination_is_an_idempotent_subset(sample_rows):
    options = extract_filter_options(sample_rows)
    choices = [
        [None] + options["plant_ids"],
        [None] + options["product_lines"],
        [None] + options["shifts"],
        [None] + options["months"],
    ]
    for plant_id, product_line, shift, month in itertools.product(*choices):
        selection = FilterSelection(
            plant_id=plant_id, product_line=product_line, shift=shift, month=month,
        )
        once = apply_filters(sample_rows, selection)
        twice = apply_filters(once, selection)

        assert set(once.index) <= set(sample_rows.index)
        pd.testing.assert_frame_equal(once, sample_rows.loc[once.index])
        pd.testing.assert_frame_equal(twice, once)


def test_selection_active_and_replace():
    selection = FilterSelection(plant_id="P01", month=3)
    assert selection.active() == {"plant_id": "P01", "month": 3}

    changed = selection.replace(month=None, shift="Night")
    assert changed.active() == {"plant_id": "P01", "shift": "Night"}
    # original is untouched
    assert selection.month == 3


def test_sidebar_controls_cover_every_filter_field(sample_rows):
    fields = {f.name for f in dataclasses.fields(FilterSelection)}
    assert set(FILTER_CONTROLS) == fields

    options = extract_filter_options(sample_rows)
    for field, (_, options_key) in FILTER_CONTROLS.items():
        assert options_key in options, field
    assert options[FILTER_CONTROLS["plant_name"][1]] == ["Northfield", "Riverside"]


def test_month_number():
    assert month_number(1) == 1
    assert month_number("12") == 12
    assert month_number(3.0) == 3
    assert month_number(0) is None
    assert month_number(13) is None
    assert month_number("March") is None
    assert month_number(None) is None
