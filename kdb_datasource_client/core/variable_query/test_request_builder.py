import unittest
from unittest.mock import Mock

from kdb_datasource_client.core.models import DataSourceIdentity, VariableQuery
from kdb_datasource_client.core.settings import DEFAULT_VARIABLE_TIMEOUT_MS
from kdb_datasource_client.core.template_service import DashboardTemplateService, IdentityTemplateService
from kdb_datasource_client.core.variable_query.request_builder import build, parse_timeout


class TestParseTimeout(unittest.TestCase):

    def test_digit_string(self):
        self.assertEqual(parse_timeout("5000"), 5000)
        self.assertEqual(parse_timeout("0"), 0)
        self.assertEqual(parse_timeout("007"), 7)

    def test_empty_and_missing_use_default(self):
        self.assertEqual(parse_timeout(""), DEFAULT_VARIABLE_TIMEOUT_MS)
        self.assertEqual(parse_timeout(None), DEFAULT_VARIABLE_TIMEOUT_MS)
        self.assertEqual(DEFAULT_VARIABLE_TIMEOUT_MS, 10000)

    def test_unparsable_uses_default(self):
        for raw in ("abc", "12abc", "-5", "1.5", " ", "\u0661\u0662", "9" * 5000):
            self.assertEqual(parse_timeout(raw), 10000, raw)

    def test_integers(self):
        self.assertEqual(parse_timeout(250), 250)
        self.assertEqual(parse_timeout(-1), 10000)
        self.assertEqual(parse_timeout(True), 10000)


class TestBuild(unittest.TestCase):

    def setUp(self):
        self.identity = DataSourceIdentity(id=7)

    def test_single_query_with_parsed_timeout(self):
        request = build(VariableQuery("select sym from t", "2500"), self.identity, IdentityTemplateService())
        self.assertEqual(request.to_dict(), {
            "queries": [{"datasourceId": 7, "orgId": 7, "queryText": "select sym from t", "timeOut": 2500}]
        })

    def test_default_timeout_when_empty(self):
        request = build(VariableQuery("select sym from t", ""), self.identity, IdentityTemplateService())
        self.assertEqual(request.queries[0].time_out, 10000)

    def test_oversized_timeout_uses_default(self):
        request = build(VariableQuery("select sym from t", "9" * 5000), self.identity, IdentityTemplateService())
        self.assertEqual(request.queries[0].time_out, 10000)

    def test_empty_query_text_skips_interpolation(self):
        template_service = Mock()
        for text in ("", None):
            request = build(VariableQuery(text, "1"), self.identity, template_service)
            self.assertEqual(request.queries[0].query_text, "")
        template_service.replace.assert_not_called()

    def test_query_text_is_interpolated(self):
        template_service = DashboardTemplateService({"table": "trade"})
        request = build(VariableQuery("exec distinct sym from $table", "100"), self.identity, template_service)
        self.assertEqual(request.queries[0].query_text, "exec distinct sym from trade")

    def test_org_id_override(self):
        identity = DataSourceIdentity(id=7, org_id=1)
        request = build(VariableQuery("x", "1"), identity, IdentityTemplateService())
        self.assertEqual(request.queries[0].datasource_id, 7)
        self.assertEqual(request.queries[0].org_id, 1)

    def test_build_is_idempotent(self):
        template_service = DashboardTemplateService({"t": "quote"})
        query = VariableQuery("select from $t", "300")
        self.assertEqual(build(query, self.identity, template_service), build(query, self.identity, template_service))


if __name__ == '__main__':
    unittest.main()
