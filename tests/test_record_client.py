"""
Unit tests for plantops.services.record_client.

The HTTP session is always mocked; no test touches the network.
"""

import json
import pytest
import requests

from plantops.services.record_client import RecordClient, RecordStoreError


def _response(body):
    response = requests.Response()
    response.status_code = 200
    response._content = json.dumps(body).encode("utf-8")
    return response


@pytest.fixture
def session(mocker):
    return mocker.MagicMock(spec=requests.Session)


@pytest.fixture(autouse=True)
def no_sleep(mocker):
    return mocker.patch("plantops.services.record_client.time.sleep")


class TestListRecords:
    """Test paginated collection reads."""

    def test_reads_every_page(self, session):
        session.get.side_effect = [
            _response({"page": 1, "totalPages": 2, "items": [{"id": "a"}, {"id": "b"}]}),
            _response({"page": 2, "totalPages": 2, "items": [{"id": "c"}]}),
        ]
        client = RecordClient("http://store:8090/", session=session, per_page=2)

        items = client.list_records("users", filter='role = "Operator"', fields="id,name", sort="name")

        assert [i["id"] for i in items] == ["a", "b", "c"]
        assert session.get.call_count == 2

        first_url = session.get.call_args_list[0].args[0]
        first_params = session.get.call_args_list[0].kwargs["params"]
        assert first_url == "http://store:8090/api/collections/users/records"
        assert first_params == {
            "perPage": 2, "page": 1, "filter": 'role = "Operator"',
            "fields": "id,name", "sort": "name",
        }
        assert session.get.call_args_list[1].kwargs["params"]["page"] == 2

    def test_optional_params_are_omitted(self, session):
        session.get.return_value = _response({"page": 1, "totalPages": 1, "items": []})
        client = RecordClient("http://store:8090", session=session)

        assert client.list_records("users") == []
        params = session.get.call_args.kwargs["params"]
        assert set(params) == {"perPage", "page"}

    def test_empty_collection_without_total_pages(self, session):
        session.get.return_value = _response({"items": []})
        client = RecordClient("http://store:8090", session=session)
        assert client.list_records("users") == []
        assert session.get.call_count == 1


class TestRetries:
    """Test bounded retries with linear backoff."""

    def test_recovers_after_transient_error(self, session, no_sleep):
        session.get.side_effect = [
            requests.ConnectionError("refused"),
            _response({"page": 1, "totalPages": 1, "items": [{"id": "a"}]}),
        ]
        client = RecordClient("http://store:8090", session=session)

        assert client.list_records("users") == [{"id": "a"}]
        no_sleep.assert_called_once_with(1)

    def test_raises_after_max_retries(self, session, no_sleep):
        session.get.side_effect = requests.ConnectionError("refused")
        client = RecordClient("http://store:8090", session=session, max_retries=3, retry_delay=1)

        with pytest.raises(RecordStoreError):
            client.list_records("users")

        assert session.get.call_count == 3
        # 1 s x attempt between attempts, none after the last one
        assert [c.args[0] for c in no_sleep.call_args_list] == [1, 2]

    def test_http_error_is_retried(self, session):
        failed = requests.Response()
        failed.status_code = 503
        session.get.return_value = failed
        client = RecordClient("http://store:8090", session=session, max_retries=2)

        with pytest.raises(RecordStoreError):
            client.list_records("users")
        assert session.get.call_count == 2

    def test_error_is_a_runtime_error(self):
        assert issubclass(RecordStoreError, RuntimeError)


class TestClient:
    """Test construction and health checks."""

    def test_url_is_required(self):
        with pytest.raises(ValueError):
            RecordClient("")

    def test_token_sets_authorization_header(self):
        client = RecordClient("http://store:8090", token="abc")
        assert client.session.headers["Authorization"] == "abc"
        client.close()

    def test_is_connected(self, session):
        session.get.return_value = _response({"code": 200, "message": "API is healthy."})
        client = RecordClient("http://store:8090", session=session)
        assert client.is_connected() is True
        assert session.get.call_args.args[0] == "http://store:8090/api/health"

    def test_is_not_connected(self, session):
        session.get.side_effect = requests.Timeout("slow")
        client = RecordClient("http://store:8090", session=session, max_retries=1)
        assert client.is_connected() is False
