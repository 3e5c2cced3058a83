import pandas as pd
import pytest

from drugexplorer.filtering import (
    build_predicate,
    clamp_page,
    conjunction,
    describe_selection,
    equals,
    filter_view,
    page_count,
    page_view,
)
from drugexplorer.pipeline import compose_view


class TestPredicates:
    """Test the predicate building blocks."""

    def test_equals_compares_string_form(self, small_view):
        mask = equals("created_year", "2016")(small_view)
        assert mask.tolist() == [True, True, False, True]

    def test_equals_never_matches_missing(self, small_view):
        mask = equals("group", "<NA>")(small_view)
        assert not mask.any()

    def test_empty_conjunction_matches_everything(self, small_view):
        mask = conjunction([])(small_view)
        assert mask.all()
        assert mask.index.equals(small_view.index)

    def test_build_predicate_is_conjunctive(self, small_view):
        mask = build_predicate({"created_year": "2016", "created_month": "3"})(small_view)
        assert mask.tolist() == [True, False, False, True]


class TestFilterView:
    """Test the filter_view function."""

    def test_empty_selection_is_identity(self, small_view):
        result = filter_view(small_view, {})
        pd.testing.assert_frame_equal(result, small_view)

    def test_unset_values_put_no_constraint(self, small_view):
        result = filter_view(small_view, {"state": None, "group": "  "})
        pd.testing.assert_frame_equal(result, small_view)

    def test_group_and_state(self, small_view):
        result = filter_view(small_view, {"group": "approved", "state": "solid"})
        assert result.index.tolist() == [0]
        assert result.iloc[0]["name"] == "A"

    def test_every_row_matches_selection(self, composed):
        selection = {"group": "approved", "created_year": "2005"}
        result = filter_view(composed, selection)

        assert not result.empty
        assert (result["group"] == "approved").all()
        assert (result["created_year"] == 2005).all()

    def test_result_is_subset_by_row_identity(self, composed):
        result = filter_view(composed, {"state": "liquid"})
        assert set(result.index) <= set(composed.index)
        pd.testing.assert_frame_equal(result, composed.loc[result.index])

    def test_idempotent(self, composed):
        selection = {"state": "solid", "group": "approved"}
        once = filter_view(composed, selection)
        twice = filter_view(once, selection)
        pd.testing.assert_frame_equal(once, twice)

    def test_no_match_gives_empty_frame(self, small_view):
        result = filter_view(small_view, {"created_year": "2017", "state": "solid"})
        assert result.empty
        assert list(result.columns) == list(small_view.columns)

    def test_month_is_trimmed(self, small_view):
        assert filter_view(small_view, {"created_month": " 3 "}).index.tolist() == [0, 2, 3]

        padded = small_view.assign(created_month=[" 3", "4 ", "3", "12"])
        assert filter_view(padded, {"created_month": "3"}).index.tolist() == [0, 2]

    def test_missing_group_is_never_selected(self, small_view):
        result = filter_view(small_view, {"group": "approved"})
        assert "D" not in result["name"].tolist()

    def test_values_with_quotes(self, small_view):
        view = small_view.assign(
            group=pd.array(["it's \"odd\"", "approved", None, "x"], dtype="string")
        )
        result = filter_view(view, {"group": "it's \"odd\""})
        assert result.index.tolist() == [0]

    def test_integer_selection_value(self, small_view):
        result = filter_view(small_view, {"created_year": 2017})
        assert result["name"].tolist() == ["C"]

    def test_unknown_key_raises(self, small_view):
        with pytest.raises(ValueError, match="colour"):
            filter_view(small_view, {"colour": "red"})

    def test_view_not_modified(self, small_view):
        before = small_view.copy()
        result = filter_view(small_view, {"state": "liquid"})
        result["name"] = "changed"

        pd.testing.assert_frame_equal(small_view, before)

    def test_composed_single_drug_example(self):
        drugs = pd.DataFrame(
            {
                "primary_key": [1],
                "name": ["A"],
                "type": ["small molecule"],
                "state": [None],
                "created": ["2016-03-10"],
            }
        )
        view = compose_view(drugs, pd.DataFrame(columns=["parent_key", "text"]))

        assert filter_view(view, {"created_year": "2016"})["name"].tolist() == ["A"]
        assert filter_view(view, {"created_year": "2017"}).empty


class TestDescribeSelection:
    """Test the describe_selection function."""

    def test_empty(self):
        assert describe_selection({}) == "All drugs"

    def test_fixed_order(self):
        text = describe_selection({"state": "solid", "group": "", "created_year": "2016"})
        assert text == "created_year = 2016 AND state = solid"


class TestPaging:
    """Test page_count and page_view."""

    @pytest.fixture
    def rows(self):
        return pd.DataFrame({"n": range(23)})

    def test_page_count(self, rows):
        assert page_count(rows, 10) == 3
        assert page_count(rows.iloc[:0], 10) == 1

    def test_last_page_is_partial(self, rows):
        assert page_view(rows, 3, 10)["n"].tolist() == [20, 21, 22]

    def test_out_of_range_pages_are_clamped(self, rows):
        assert page_view(rows, 0, 10)["n"].tolist() == list(range(10))
        assert page_view(rows, 99, 10)["n"].tolist() == [20, 21, 22]

    def test_clamp_page(self, rows):
        assert clamp_page(rows, 2, 10) == 2
        assert clamp_page(rows, 0, 10) == 1
        assert clamp_page(rows, None, 10) == 1
        assert clamp_page(rows, 99, 10) == 3
        assert clamp_page(rows.iloc[:0], 5, 10) == 1

    def test_page_view_uses_clamped_page(self, rows):
        for requested in (-1, 0, 1, 2, 3, 4, 99):
            page = clamp_page(rows, requested, 10)
            expected = rows.iloc[(page - 1) * 10 : page * 10]
            pd.testing.assert_frame_equal(page_view(rows, requested, 10), expected)

    def test_invalid_page_size(self, rows):
        with pytest.raises(ValueError):
            page_count(rows, 0)
