"""Tests for the engine tracer decorator and input fingerprints."""

from decimal import Decimal

from crm_engines.budget import BudgetCalculator
from crm_engines.tracer import compute_input_fingerprint, traced_engine


class TestInputFingerprint:

    def test_deterministic(self):
        kwargs = {"total_revenue": Decimal("100"), "currency": "USD"}
        fields = ("total_revenue", "currency")

        assert compute_input_fingerprint(fields, kwargs) == compute_input_fingerprint(fields, kwargs)
        assert len(compute_input_fingerprint(fields, kwargs)) == 16

    def test_trailing_zeros_ignored(self):
        fields = ("total_revenue",)
        assert compute_input_fingerprint(fields, {"total_revenue": Decimal("50")}) == \
            compute_input_fingerprint(fields, {"total_revenue": Decimal("50.00")})

    def test_different_inputs_differ(self):
        fields = ("total_revenue",)
        assert compute_input_fingerprint(fields, {"total_revenue": Decimal("1")}) != \
            compute_input_fingerprint(fields, {"total_revenue": Decimal("2")})

    def test_missing_field_is_null(self):
        fields = ("absent",)
        assert compute_input_fingerprint(fields, {}) == compute_input_fingerprint(fields, {"absent": None})


class TestTracedEngine:

    def test_emits_trace_record(self, captured_logs):
        @traced_engine("sample", "2.1", fingerprint_fields=("value",))
        def double(*, value):
            return value * 2

        assert double(value=21) == 42

        traces = [r for r in captured_logs() if r["message"] == "CRM_ENGINE_TRACE"]
        assert len(traces) == 1
        trace = traces[0]
        assert trace["engine_name"] == "sample"
        assert trace["engine_version"] == "2.1"
        assert trace["input_fingerprint"] == compute_input_fingerprint(("value",), {"value": 21})
        assert trace["logger"] == "crm_kernel.engines.tracer"

    def test_budget_calculation_is_traced(self, captured_logs):
        BudgetCalculator().calculate(
            total_revenue=Decimal("100"),
            resources=(),
            expenses=(),
            contingency_percentage=Decimal("0"),
            overhead_percentage=Decimal("0"),
            currency="USD",
        )

        traces = [r for r in captured_logs() if r.get("trace_type") == "CRM_ENGINE_TRACE"]
        assert [t["engine_name"] for t in traces] == ["budget"]
