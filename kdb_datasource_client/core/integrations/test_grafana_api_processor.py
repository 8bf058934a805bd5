import unittest
from unittest.mock import Mock, patch

import requests

from kdb_datasource_client.core.integrations.dispatcher import BackendDispatcher
from kdb_datasource_client.core.integrations.grafana_api_processor import GrafanaApiProcessor
from kdb_datasource_client.core.models import QueryDescriptor, QueryExecutionRequest

MODULE = 'kdb_datasource_client.core.integrations.grafana_api_processor'


def _response(status_code=200, json_body=None, text=''):
    response = Mock()
    response.status_code = status_code
    response.json.return_value = json_body
    response.text = text
    if status_code >= 400:
        error = requests.exceptions.HTTPError(f"{status_code} Error")
        error.response = response
        response.raise_for_status.side_effect = error
    return response


class TestGrafanaApiProcessor(unittest.TestCase):

    def setUp(self):
        self.processor = GrafanaApiProcessor('https://grafana.example.com/', 'token', ssl_verify='false')

    def test_headers_and_host(self):
        self.assertEqual(self.processor.host, 'https://grafana.example.com')
        self.assertEqual(self.processor.headers['Authorization'], 'Bearer token')

    @patch(f'{MODULE}.requests.post')
    def test_query_datasource_posts_body(self, mock_post):
        mock_post.return_value = _response(json_body={'results': {}})
        body = {'queries': [{'datasourceId': 1, 'orgId': 1, 'queryText': 'x', 'timeOut': 10000}]}

        self.assertEqual(self.processor.query_datasource(body), {'results': {}})
        mock_post.assert_called_once_with('https://grafana.example.com/api/ds/query',
                                          headers=self.processor.headers, json=body, verify=False)

    @patch(f'{MODULE}.requests.post')
    def test_query_datasource_raises_on_http_error(self, mock_post):
        mock_post.return_value = _response(status_code=500, text='kdb down')
        with self.assertRaises(requests.exceptions.HTTPError):
            self.processor.query_datasource({'queries': [{'queryText': 'x'}]})

    def test_query_datasource_requires_queries(self):
        with self.assertRaises(ValueError):
            self.processor.query_datasource({'queries': []})

    @patch(f'{MODULE}.requests.get')
    def test_test_connection(self, mock_get):
        mock_get.return_value = _response(json_body={'database': 'ok'})
        self.assertTrue(self.processor.test_connection())

        mock_get.return_value = _response(status_code=503, text='unavailable')
        with self.assertRaises(Exception):
            self.processor.test_connection()

    @patch(f'{MODULE}.requests.get')
    def test_health_check_returns_failure_body(self, mock_get):
        body = {'status': 'ERROR', 'message': 'kdb connection failed'}
        mock_get.return_value = _response(status_code=400, json_body=body)
        self.assertEqual(self.processor.check_data_source_health('kdb-prod'), body)
        self.assertEqual(mock_get.call_args.args[0],
                         'https://grafana.example.com/api/datasources/uid/kdb-prod/health')

    @patch(f'{MODULE}.requests.put')
    def test_update_data_source(self, mock_put):
        mock_put.return_value = _response(json_body={'message': 'Datasource updated'})
        payload = {'name': 'kdb'}
        self.assertEqual(self.processor.update_data_source('u1', payload), {'message': 'Datasource updated'})
        self.assertEqual(mock_put.call_args.kwargs['json'], payload)


class TestBackendDispatcher(unittest.IsolatedAsyncioTestCase):

    async def test_dispatch_sends_wire_body(self):
        processor = Mock()
        processor.query_datasource.return_value = {'results': {}}
        request = QueryExecutionRequest(queries=[QueryDescriptor(2, 2, 'select from t', 100)])

        self.assertEqual(await BackendDispatcher(processor).dispatch(request), {'results': {}})
        processor.query_datasource.assert_called_once_with(
            {'queries': [{'datasourceId': 2, 'orgId': 2, 'queryText': 'select from t', 'timeOut': 100}]})

    async def test_dispatch_propagates_errors(self):
        processor = Mock()
        processor.query_datasource.side_effect = requests.exceptions.ConnectionError('refused')
        with self.assertRaises(requests.exceptions.ConnectionError):
            await BackendDispatcher(processor).dispatch(
                QueryExecutionRequest(queries=[QueryDescriptor(1, 1, '', 10000)]))


if __name__ == '__main__':
    unittest.main()
