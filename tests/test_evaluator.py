"""Tests for the SLO evaluation engine.

Covers categorization, trend classification, ordering, severity tiers and
the full evaluate() pass including target policies.
"""

import pytest
from conftest import make_record

from sloreport.core.errors import ConfigurationError, ValidationError
from sloreport.evaluator import (
    Category,
    EvaluatorConfig,
    Severity,
    Trend,
    categorize,
    classify_trend,
    evaluate,
    order,
    severity,
)
from sloreport.evaluator.models import SloRecord, WindowValue


class TestCategorize:
    """Tests for categorize()."""

    def test_below_target_is_failing(self):
        record = make_record(target=99.0, values=(99.5, 99.5, 98.5, 99.9))
        assert categorize(record) == Category.FAILING

    def test_above_target_is_passing(self):
        record = make_record(target=99.0, values=(90.0, 90.0, 99.5, 90.0))
        assert categorize(record) == Category.PASSING

    def test_boundary_is_passing(self):
        record = make_record(target=99.0, values=(None, None, 99.0, None))
        assert categorize(record) == Category.PASSING

    def test_missing_value_is_no_data(self):
        record = make_record(values=(99.0, 99.0, None, 99.0))
        assert categorize(record) == Category.NO_DATA

    def test_negative_value_is_no_data(self):
        record = make_record(values=(99.0, 99.0, -1.0, 99.0))
        assert categorize(record) == Category.NO_DATA

    def test_missing_target_is_no_data(self):
        record = make_record(target=None, values=(99.0, 99.0, 99.0, 99.0))
        assert categorize(record) == Category.NO_DATA

    def test_uses_given_window(self):
        record = make_record(target=99.0, values=(99.5, 99.5, 99.5, 95.0))
        assert categorize(record, 3) == Category.FAILING
        assert categorize(record, 2) == Category.PASSING

    def test_zero_value_against_zero_target_passes(self):
        record = make_record(target=0.0, values=(None, None, 0.0, None))
        assert categorize(record) == Category.PASSING


class TestClassifyTrend:
    """Tests for classify_trend()."""

    @pytest.mark.parametrize(
        "values,expected",
        [
            ((90, 92, 95, 98), Trend.IMPROVING),
            ((98, 95, 92, 90), Trend.DEGRADING),
            ((95, 95.002, 94.999, 95.001), Trend.STABLE),
            ((90, 95, 85, 98), Trend.FLUCTUATING),
            ((None, None, 90, None), Trend.INSUFFICIENT),
        ],
    )
    def test_documented_examples(self, values, expected):
        assert classify_trend(make_record(values=values)) == expected

    def test_flats_tolerated_when_improving(self):
        assert classify_trend(make_record(values=(95, 95, 96, 96))) == Trend.IMPROVING

    def test_flats_tolerated_when_degrading(self):
        assert classify_trend(make_record(values=(97, 96, 96, 96))) == Trend.DEGRADING

    def test_dip_and_recovery_is_fluctuating(self):
        assert classify_trend(make_record(values=(95, 94, 95, 95))) == Trend.FLUCTUATING

    def test_invalid_values_are_skipped(self):
        assert classify_trend(make_record(values=(90, None, -1, 95))) == Trend.IMPROVING

    def test_no_values_is_insufficient(self):
        assert classify_trend(make_record()) == Trend.INSUFFICIENT

    def test_two_points_are_enough(self):
        assert classify_trend(make_record(values=(None, 98, None, 97))) == Trend.DEGRADING

    def test_custom_epsilon(self):
        record = make_record(values=(95.0, 95.5, 95.0, 95.5))
        assert classify_trend(record) == Trend.FLUCTUATING
        assert classify_trend(record, stable_epsilon=1.0) == Trend.STABLE


class TestOrder:
    """Tests for order()."""

    def test_sorted_by_name(self):
        records = [
            make_record("c", "Charlie"),
            make_record("a", "Alpha"),
            make_record("b", "Bravo"),
        ]
        assert [r.id for r in order(records)] == ["a", "b", "c"]

    def test_name_comparison_is_case_sensitive(self):
        records = [make_record("1", "alpha"), make_record("2", "Bravo")]
        assert [r.name for r in order(records)] == ["Bravo", "alpha"]

    def test_priority_ids_first_in_given_order(self):
        records = [
            make_record("a", "Alpha"),
            make_record("b", "Bravo"),
            make_record("c", "Charlie"),
            make_record("d", "Delta"),
        ]
        result = order(records, priority_ids=["d", "b"])
        assert [r.id for r in result] == ["d", "b", "a", "c"]

    def test_unknown_priority_ids_ignored(self):
        records = [make_record("b", "Bravo"), make_record("a", "Alpha")]
        assert [r.id for r in order(records, priority_ids=["zzz"])] == ["a", "b"]

    def test_stable_for_equal_names(self):
        records = [make_record("x", "Same"), make_record("y", "Same"), make_record("z", "Same")]
        assert [r.id for r in order(records)] == ["x", "y", "z"]

    def test_idempotent(self):
        records = [make_record("b", "Bravo"), make_record("c", "Charlie"), make_record("a", "Alpha")]
        once = order(records, priority_ids=["c"])
        assert order(once, priority_ids=["c"]) == once

    def test_does_not_mutate_input(self):
        records = [make_record("b", "Bravo"), make_record("a", "Alpha")]
        order(records)
        assert [r.id for r in records] == ["b", "a"]


class TestSeverity:
    """Tests for severity()."""

    def test_met(self):
        assert severity(99.0, 99.0) == Severity.MET
        assert severity(100.0, 99.0) == Severity.MET

    def test_near_miss_within_five_percent(self):
        assert severity(95.0, 99.0) == Severity.NEAR_MISS
        assert severity(95.0, 100.0) == Severity.NEAR_MISS

    def test_missed(self):
        assert severity(90.0, 99.0) == Severity.MISSED

    def test_unknown(self):
        assert severity(None, 99.0) == Severity.UNKNOWN
        assert severity(-1.0, 99.0) == Severity.UNKNOWN
        assert severity(99.0, None) == Severity.UNKNOWN


class TestEvaluatorConfig:
    """Tests for EvaluatorConfig validation."""

    def test_defaults(self):
        config = EvaluatorConfig()
        assert config.evaluation_window_index == 2
        assert config.stable_epsilon == 0.005
        assert config.priority_ids == ()
        assert config.missing_target_policy == "no_data"

    def test_priority_ids_coerced_to_tuple(self):
        assert EvaluatorConfig(priority_ids=["a", "b"]).priority_ids == ("a", "b")

    @pytest.mark.parametrize("index", [-1, 4])
    def test_window_index_out_of_range(self, index):
        with pytest.raises(ConfigurationError):
            EvaluatorConfig(evaluation_window_index=index)

    def test_negative_epsilon(self):
        with pytest.raises(ConfigurationError):
            EvaluatorConfig(stable_epsilon=-0.1)

    def test_unknown_policy(self):
        with pytest.raises(ConfigurationError):
            EvaluatorConfig(missing_target_policy="guess")


class TestSloRecord:
    """Tests for SloRecord validation."""

    def test_missing_id_rejected(self):
        with pytest.raises(ValidationError):
            make_record(slo_id="")

    def test_wrong_window_count_rejected(self):
        with pytest.raises(ValidationError) as exc:
            SloRecord(id="x", name="X", target=99.0, windows=(WindowValue(99.0),) * 3)
        assert exc.value.details["windows"] == 3

    def test_from_dict_accepts_window_list(self):
        record = SloRecord.from_dict(
            {"id": "x", "target": 99.0, "windows": [{"value": 1}, {"value": 2}, {}, None]}
        )
        assert record.name == "Unknown SLO"
        assert record.values() == [1, 2, None, None]

    def test_from_dict_missing_id_rejected(self):
        with pytest.raises(ValidationError):
            SloRecord.from_dict({"name": "No id", "windows": {}})


class TestEvaluate:
    """Tests for evaluate()."""

    def test_partitions_and_breach(self):
        records = [
            make_record("a", "Alpha", 99.0, (99, 99, 98, 99)),
            make_record("b", "Bravo", 99.0, (99, 99, 99.5, 99)),
            make_record("c", "Charlie", 99.0, (99, 99, None, 99)),
        ]
        result = evaluate(records)

        assert [r.id for r in result.failing] == ["a"]
        assert [r.id for r in result.passing] == ["b"]
        assert [r.id for r in result.no_data] == ["c"]
        assert result.has_breach is True
        assert result.total == 3

    def test_every_record_lands_in_one_category(self):
        records = [make_record(str(i), f"SLO {i}", 99.0, (None, None, 97 + i * 0.5, None)) for i in range(6)]
        result = evaluate(records)
        ids = [r.id for r in result.failing + result.passing + result.no_data]
        assert sorted(ids) == sorted(r.id for r in records)
        assert set(result.trends) == {r.id for r in records}

    def test_no_breach_when_all_passing(self):
        result = evaluate([make_record(values=(99, 99, 99.9, 99))])
        assert result.has_breach is False

    def test_empty_input(self):
        result = evaluate([])
        assert result.total == 0
        assert result.has_breach is False

    def test_trends_recorded_by_id(self):
        result = evaluate([make_record("a", values=(90, 92, 95, 98))])
        assert result.trends["a"] == Trend.IMPROVING

    def test_duplicate_id_rejected(self):
        records = [make_record("a", "One"), make_record("a", "Two")]
        with pytest.raises(ValidationError):
            evaluate(records)

    def test_missing_target_defaults_to_no_data(self):
        result = evaluate([make_record(target=None, values=(1, 1, 1, 1))])
        assert len(result.no_data) == 1

    def test_missing_target_zero_policy_passes(self):
        config = EvaluatorConfig(missing_target_policy="zero")
        result = evaluate([make_record(target=None, values=(1, 1, 1, 1))], config)
        assert len(result.passing) == 1
        assert result.passing[0].target == 0.0

    def test_target_override_wins(self):
        config = EvaluatorConfig(target_overrides={"a": 99.9}, missing_target_policy="zero")
        result = evaluate([make_record("a", target=None, values=(None, None, 99.5, None))], config)
        assert [r.id for r in result.failing] == ["a"]
        assert result.failing[0].target == 99.9

    def test_priority_ordering_within_category(self):
        records = [
            make_record("a", "Alpha", 99.0, (None, None, 90, None)),
            make_record("z", "Zulu", 99.0, (None, None, 90, None)),
        ]
        result = evaluate(records, EvaluatorConfig(priority_ids=("z",)))
        assert [r.id for r in result.failing] == ["z", "a"]

    def test_evaluation_window_from_config(self):
        record = make_record(target=99.0, values=(99.5, 99.5, 99.5, 50.0))
        result = evaluate([record], EvaluatorConfig(evaluation_window_index=3))
        assert result.has_breach is True

    def test_to_dict(self):
        result = evaluate([make_record("a", "Alpha", 99.0, (90, 92, 95, 98))])
        data = result.to_dict()
        assert data["summary"] == {
            "total": 1,
            "failing": 1,
            "passing": 0,
            "no_data": 0,
            "has_breach": True,
        }
        assert data["categories"]["failing"] == [
            {"id": "a", "name": "Alpha", "trend": "improving"}
        ]
