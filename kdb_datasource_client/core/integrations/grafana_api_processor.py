import logging

import requests

from ..settings import EXTERNAL_CALL_TIMEOUT, QUERY_ENDPOINT

logger = logging.getLogger(__name__)


class GrafanaApiProcessor:

    def __init__(self, grafana_host, grafana_api_key, ssl_verify='true'):
        self.__host = grafana_host.rstrip('/')
        self.__api_key = grafana_api_key
        self.__ssl_verify = False if ssl_verify and str(ssl_verify).lower() == 'false' else True
        self.headers = {
            'Authorization': f'Bearer {self.__api_key}',
            'Content-Type': 'application/json'
        }

    @property
    def host(self):
        return self.__host

    def test_connection(self):
        try:
            url = '{}/api/health'.format(self.__host)
            response = requests.get(url, headers=self.headers, verify=self.__ssl_verify,
                                    timeout=EXTERNAL_CALL_TIMEOUT)
            if response is not None and response.status_code == 200:
                return True
            else:
                status_code = response.status_code if response is not None else None
                raise Exception(
                    f"Failed to connect with Grafana. Status Code: {status_code}. Response Text: {response.text}")
        except Exception as e:
            logger.error(f"Exception occurred while checking grafana api health with error: {e}")
            raise e

    def fetch_data_source(self, uid):
        try:
            url = '{}/api/datasources/uid/{}'.format(self.__host, uid)
            response = requests.get(url, headers=self.headers, verify=self.__ssl_verify,
                                    timeout=EXTERNAL_CALL_TIMEOUT)
            response.raise_for_status()
            return response.json()
        except Exception as e:
            logger.error(f"Exception occurred while fetching grafana data source {uid} with error: {e}")
            raise e

    def update_data_source(self, uid, payload):
        try:
            url = '{}/api/datasources/uid/{}'.format(self.__host, uid)
            response = requests.put(url, headers=self.headers, json=payload, verify=self.__ssl_verify,
                                    timeout=EXTERNAL_CALL_TIMEOUT)
            response.raise_for_status()
            return response.json()
        except Exception as e:
            logger.error(f"Exception occurred while updating grafana data source {uid} with error: {e}")
            raise e

    def check_data_source_health(self, uid):
        """
        Runs the plugin backend health check (the same as the "Save & test" button).

        The host answers 400 with a status/message body when the check fails,
        so the body is returned for both outcomes.
        """
        try:
            url = '{}/api/datasources/uid/{}/health'.format(self.__host, uid)
            response = requests.get(url, headers=self.headers, verify=self.__ssl_verify,
                                    timeout=EXTERNAL_CALL_TIMEOUT)
            if response.status_code in (200, 400):
                return response.json()
            response.raise_for_status()
            raise Exception(f"Unexpected health check status {response.status_code}: {response.text}")
        except Exception as e:
            logger.error(f"Exception occurred while checking health of data source {uid} with error: {e}")
            raise e

    def query_datasource(self, payload):
        """POSTs a query batch to the query endpoint and returns the decoded body."""
        try:
            if not payload or not payload.get('queries'):
                raise ValueError("No queries provided.")

            url = f"{self.__host}{QUERY_ENDPOINT}"
            logger.debug(f"Posting {len(payload['queries'])} queries to {url}")

            response = requests.post(url, headers=self.headers, json=payload, verify=self.__ssl_verify)
            response.raise_for_status()

            return response.json()
        except requests.exceptions.HTTPError as e:
            logger.error("Grafana query API error: status code %s, response: %s", e.response.status_code,
                         e.response.text)
            raise e
        except Exception as e:
            logger.error("Exception occurred while querying Grafana datasource: %s", e)
            raise e
