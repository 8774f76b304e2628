"""Tests for the retrieval function registry."""

import pytest

from api.tools.retrieval_registry import PARAMETER_TYPES, DataSource, RetrievalFunctionName
from libs.common.errors import UnknownFunction


def _codes(products):
    return [p["productCode"] for p in products]


class TestCatalogue:

    def test_every_function_is_registered(self, registry):
        names = {spec["name"] for spec in registry.catalogue()}
        assert names == {name.value for name in RetrievalFunctionName}
        assert len(registry) == len(RetrievalFunctionName)

    def test_unknown_name_raises(self, registry):
        with pytest.raises(UnknownFunction, match="Function getEverything not found"):
            registry.get("getEverything")

    def test_contains(self, registry):
        assert "compareProducts" in registry
        assert "getEverything" not in registry

    def test_data_sources(self, registry):
        assert registry.get("getProductsAffectedByAssumption").data_source is DataSource.EXPLICIT_MEMORY
        assert registry.get("getYearOverYearPerformance").data_source is DataSource.PRECOMPUTED_STATISTICS


class TestParameterValidation:

    @pytest.mark.parametrize("value", [None, "", []])
    def test_missing_required_key(self, registry, value):
        result = registry.execute("compareProducts", {"productCodes": value, "year": "2024"})
        assert result.success is False
        assert "productCodes" in result.error
        assert result.required_params == ["productCodes", "year"]

    def test_unexpected_key_fails_closed(self, registry):
        result = registry.execute("getAssumptionsByProduct", {"productCode": "PROD-001", "colour": "red"})
        assert result.success is False
        assert "colour" in result.error

    @pytest.mark.parametrize(
        "name,params,bad_key",
        [
            ("getProductsAffectedByAssumption", {"assumptionType": ["incidence"]}, "assumptionType"),
            ("getProductsAffectedByAssumption", {"assumptionType": "incidence", "assumptionDetail": 5}, "assumptionDetail"),
            ("getAssumptionsByProduct", {"productCode": ["PROD-001"]}, "productCode"),
            ("getAssumptionsByProduct", {"productCode": {"code": "PROD-001"}}, "productCode"),
            ("getAssumptionRelationships", {"assumptionCode": 51}, "assumptionCode"),
            ("getDesignHistoryByFilter", {"designer": ["Kim Minji"]}, "designer"),
            ("getFinancialMetricsByFilter", {"year": ["2024"], "metricType": "IRR"}, "year"),
            ("getFinancialMetricsByFilter", {"year": True, "metricType": "IRR"}, "year"),
            ("getFinancialMetricsByFilter",
             {"year": "2024", "metricType": "IRR", "threshold": [0.12], "comparison": "above"}, "threshold"),
            ("compareProducts", {"productCodes": [["PROD-001"]], "year": "2024"}, "productCodes"),
            ("compareProducts", {"productCodes": ["PROD-001"], "year": "2024", "metrics": {"IRR": 1}}, "metrics"),
            ("getAggregatedMetrics", {"aggregationType": "year", "value": {"year": 2024}}, "value"),
        ],
    )
    def test_wrongly_typed_parameter_fails_closed(self, registry, name, params, bad_key):
        result = registry.execute(name, params)
        assert result.success is False
        assert result.error.startswith(f"Invalid {bad_key}: expected")

    def test_every_declared_key_has_a_type_check(self, registry):
        declared = {key for spec in registry.catalogue() for key in spec["requiredKeys"] + spec["optionalKeys"]}
        assert declared <= set(PARAMETER_TYPES)

    def test_failed_result_payload_uses_wire_names(self, registry):
        payload = registry.execute("getRiskMetrics", {}).to_payload()
        assert payload["success"] is False
        assert payload["requiredParams"] == ["year"]
        assert "data" not in payload


class TestExplicitMemoryFunctions:

    def test_products_affected_by_assumption_code(self, registry):
        result = registry.execute(
            "getProductsAffectedByAssumption",
            {"assumptionType": "incidence", "assumptionCode": "C51"},
        )
        assert result.success is True
        assert _codes(result.data["affectedProducts"]) == ["PROD-001", "PROD-002", "PROD-004"]
        assert result.result_count == 3
        affected = result.data["affectedProducts"][1]["affectedAssumptions"]
        assert [a["assumptionCode"] for a in affected] == ["C51"]

    def test_products_affected_by_assumption_type(self, registry):
        result = registry.execute("getProductsAffectedByAssumption", {"assumptionType": "incidence"})
        assert _codes(result.data["affectedProducts"]) == ["PROD-001", "PROD-002", "PROD-003", "PROD-004"]

    def test_unknown_assumption_type(self, registry):
        result = registry.execute("getProductsAffectedByAssumption", {"assumptionType": "weather"})
        assert result.success is False
        assert "weather" in result.error

    def test_assumption_code_of_another_type(self, registry):
        result = registry.execute(
            "getProductsAffectedByAssumption", {"assumptionType": "lapse", "assumptionCode": "C51"}
        )
        assert result.success is False

    def test_assumptions_by_product(self, registry):
        result = registry.execute("getAssumptionsByProduct", {"productCode": "PROD-004"})
        assert result.success is True
        assert [a["assumptionCode"] for a in result.data["assumptions"]] == ["C51", "L01", "D01"]

    def test_assumptions_by_unknown_product(self, registry):
        result = registry.execute("getAssumptionsByProduct", {"productCode": "PROD-999"})
        assert result.success is False
        assert result.error == "Product code PROD-999 not found"

    def test_assumption_relationships_for_code(self, registry):
        result = registry.execute("getAssumptionRelationships", {"assumptionCode": "C51"})
        assert result.success is True
        assert result.result_count == 2
        related = [(r["relatedAssumptionCode"], r["impactLevel"]) for r in result.data["relationships"]]
        assert related == [("L01", "medium"), ("M10", "low")]
        assert result.data["relationships"][0]["relatedAssumptionName"] == "Lapse Rate"

    def test_assumption_relationships_all(self, registry):
        result = registry.execute("getAssumptionRelationships", {})
        assert result.success is True
        assert result.data["assumptionCode"] is None
        assert {r["assumptionCode"] for r in result.data["relationships"]} == {"C51", "C52", "L01", "D01"}

    def test_assumption_without_relationships(self, registry):
        result = registry.execute("getAssumptionRelationships", {"assumptionCode": "M10"})
        assert result.success is True
        assert result.result_count == 0
        assert result.data["relationships"] == []

    def test_assumption_relationships_unknown_code(self, registry):
        result = registry.execute("getAssumptionRelationships", {"assumptionCode": "X99"})
        assert result.success is False
        assert result.error == "Assumption code X99 not found"

    def test_design_history_requires_a_filter(self, registry):
        result = registry.execute("getDesignHistoryByFilter", {})
        assert result.success is False
        assert set(result.required_params) == {"designer", "startDate", "endDate", "productCode"}

    def test_design_history_by_designer(self, registry):
        result = registry.execute("getDesignHistoryByFilter", {"designer": "Kim Minji"})
        assert _codes(result.data) == ["PROD-001", "PROD-004"]
        assert len(result.data[0]["history"]) == 2

    def test_design_history_by_date_range(self, registry):
        result = registry.execute(
            "getDesignHistoryByFilter", {"startDate": "2024-01-01", "endDate": "2024-12-31"}
        )
        dates = [h["date"] for p in result.data for h in p["history"]]
        assert dates and all(d.startswith("2024") for d in dates)

    def test_design_history_invalid_date(self, registry):
        result = registry.execute("getDesignHistoryByFilter", {"startDate": "01/01/2024"})
        assert result.success is False
        assert "startDate" in result.error


class TestStatisticsFunctions:

    def test_irr_above_threshold(self, registry):
        result = registry.execute(
            "getFinancialMetricsByFilter",
            {"year": "2024", "metricType": "IRR", "threshold": 0.12, "comparison": "above"},
        )
        assert result.success is True
        assert _codes(result.data["products"]) == ["PROD-001", "PROD-004"]
        assert all(p["IRR"] > 0.12 for p in result.data["products"])

    def test_irr_below_threshold(self, registry):
        result = registry.execute(
            "getFinancialMetricsByFilter",
            {"year": 2024, "metricType": "IRR", "threshold": "0.12", "comparison": "below"},
        )
        assert _codes(result.data["products"]) == ["PROD-002", "PROD-003"]

    def test_threshold_without_comparison(self, registry):
        result = registry.execute(
            "getFinancialMetricsByFilter", {"year": "2024", "metricType": "IRR", "threshold": 0.12}
        )
        assert result.success is False
        assert "together" in result.error

    def test_invalid_comparison(self, registry):
        result = registry.execute(
            "getFinancialMetricsByFilter",
            {"year": "2024", "metricType": "IRR", "threshold": 0.12, "comparison": "around"},
        )
        assert result.success is False

    def test_non_numeric_threshold(self, registry):
        result = registry.execute(
            "getFinancialMetricsByFilter",
            {"year": "2024", "metricType": "IRR", "threshold": "twelve", "comparison": "above"},
        )
        assert result.success is False
        assert "threshold" in result.error

    def test_unknown_metric_type(self, registry):
        result = registry.execute("getFinancialMetricsByFilter", {"year": "2024", "metricType": "vibes"})
        assert result.success is False

    def test_unknown_year(self, registry):
        result = registry.execute("getFinancialMetricsByFilter", {"year": "2019", "metricType": "IRR"})
        assert result.success is False
        assert "2019" in result.error

    def test_category_filter(self, registry):
        result = registry.execute(
            "getFinancialMetricsByFilter", {"year": "2024", "metricType": "lossRatio", "productCategory": "health"}
        )
        assert _codes(result.data["products"]) == ["PROD-002", "PROD-003"]

    def test_product_profitability_single(self, registry):
        result = registry.execute("getProductProfitability", {"year": "2024", "productCode": "PROD-001"})
        assert result.success is True
        assert result.data["lossRatio"] == 0.58
        assert result.data["underwritingProfit"] == 3129000000

    def test_product_profitability_all(self, registry):
        result = registry.execute("getProductProfitability", {"year": "2023"})
        assert result.result_count == 3
        assert result.data["summary"]["averageIRR"] == 0.107

    def test_premium_statistics_by_product(self, registry):
        result = registry.execute("getPremiumStatisticsByProduct", {"productCode": "PROD-001"})
        assert [y["year"] for y in result.data["yearlyStatistics"]] == ["2023", "2024"]
        assert result.data["yearlyStatistics"][1]["newContracts"] == 6300

    def test_risk_metrics(self, registry):
        result = registry.execute("getRiskMetrics", {"year": "2024"})
        assert result.result_count == 4
        assert "riskScore" in result.data["products"][0]["riskMetrics"]

    def test_compare_products_selected_metrics(self, registry):
        result = registry.execute(
            "compareProducts",
            {"productCodes": ["PROD-001", "PROD-002"], "year": "2024", "metrics": ["IRR", "lossRatio"]},
        )
        assert result.success is True
        assert result.data["products"][0] == {
            "productCode": "PROD-001",
            "productName": "Thyroid Cancer Health Insurance A",
            "IRR": 0.135,
            "lossRatio": 0.58,
        }

    def test_compare_products_unknown_metric(self, registry):
        result = registry.execute(
            "compareProducts", {"productCodes": ["PROD-001"], "year": "2024", "metrics": ["sparkle"]}
        )
        assert result.success is False
        assert "sparkle" in result.error

    def test_compare_products_missing_year_data(self, registry):
        result = registry.execute("compareProducts", {"productCodes": ["PROD-004"], "year": "2023"})
        assert result.success is False

    def test_year_over_year(self, registry):
        result = registry.execute("getYearOverYearPerformance", {"baseYear": "2023", "compareYear": "2024"})
        assert result.success is True
        assert result.data["growth"] == {"contractsGrowth": 29.19, "premiumGrowth": 29.47, "irrChange": 0.009}

    def test_year_over_year_swapped_inverts_sign(self, registry):
        result = registry.execute("getYearOverYearPerformance", {"baseYear": "2024", "compareYear": "2023"})
        assert result.data["growth"]["contractsGrowth"] == -22.59
        assert result.data["growth"]["irrChange"] == -0.009

    def test_year_over_year_by_category(self, registry):
        result = registry.execute(
            "getYearOverYearPerformance",
            {"baseYear": "2023", "compareYear": "2024", "productCategory": "health"},
        )
        assert result.data["baseYear"]["totalContracts"] == 5600 + 7700
        assert result.data["compareYear"]["totalContracts"] == 6500 + 6100

    def test_aggregated_metrics(self, registry):
        by_year = registry.execute("getAggregatedMetrics", {"aggregationType": "year", "value": "2024"})
        by_category = registry.execute(
            "getAggregatedMetrics", {"aggregationType": "category", "value": "thyroidCancer"}
        )
        assert by_year.data["metrics"]["productCount"] == 4
        assert by_category.data["metrics"]["productCodes"] == ["PROD-001", "PROD-004"]

    def test_aggregated_metrics_invalid_type(self, registry):
        result = registry.execute("getAggregatedMetrics", {"aggregationType": "region", "value": "x"})
        assert result.success is False


class TestPurity:

    def test_results_do_not_alias_store_data(self, registry):
        params = {"year": "2024", "metricType": "IRR", "threshold": 0.12, "comparison": "above"}
        first = registry.execute("getFinancialMetricsByFilter", params)
        first.data["products"][0]["allFinancialMetrics"]["IRR"] = 99
        second = registry.execute("getFinancialMetricsByFilter", params)
        assert second.data["products"][0]["IRR"] == 0.135
        assert second == registry.execute("getFinancialMetricsByFilter", params)
