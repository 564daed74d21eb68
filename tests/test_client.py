import threading
from unittest.mock import Mock, patch

import pytest
import requests

import shulkers
from shulkers.cancellation import CancellationToken
from shulkers.client import EMPTY, APIClient, ClientConfig, RequestExecutor, RetryPolicy
from shulkers.exceptions import (
    HttpStatusFailure,
    ModrinthError,
    ModrinthErrorCode,
    RequestCancelled,
    ResponseDecodeFailure,
    TimeoutFailure,
    TransportFailure,
    UnexpectedPayloadError,
    map_modrinth_error,
)
from shulkers.types_models import HangarPlatform
from shulkers.utils import DEFAULT_USER_AGENT, RETRY_AFTER_EPOCH_THRESHOLD

URL = "https://api.example.test/v2/thing"


def executor_for(session, **policy):
    return RequestExecutor(session, timeout=10.0, retry=RetryPolicy(**policy), headers={"User-Agent": "t/1"})


class TestRetryPolicy:
    def test_defaults(self):
        policy = RetryPolicy()
        assert policy.limit == 2
        assert policy.methods == {"GET", "PUT", "HEAD", "DELETE", "OPTIONS", "TRACE"}
        assert policy.status_codes == {408, 413, 429, 500, 502, 503, 504}
        assert policy.after_status_codes == {413, 429, 503}

    def test_non_retryable_method(self):
        failure = HttpStatusFailure(503, method="POST", url=URL)
        assert RetryPolicy().delay_for("POST", failure, 1) is None

    def test_limit_exceeded(self):
        failure = HttpStatusFailure(500, method="GET", url=URL)
        assert RetryPolicy(limit=2).delay_for("GET", failure, 2) == pytest.approx(0.6)
        assert RetryPolicy(limit=2).delay_for("GET", failure, 3) is None

    def test_timeout_is_terminal(self):
        failure = TimeoutFailure("slow", method="GET", url=URL, timeout=10.0)
        assert RetryPolicy().delay_for("GET", failure, 1) is None

    def test_413_never_retried_even_with_header(self):
        failure = HttpStatusFailure(413, method="GET", url=URL, headers={"Retry-After": "1"})
        assert RetryPolicy().delay_for("GET", failure, 1) is None

    def test_absolute_reset_header(self):
        reset = RETRY_AFTER_EPOCH_THRESHOLD + 1000
        failure = HttpStatusFailure(429, method="GET", url=URL, headers={"X-RateLimit-Reset": str(reset)})
        assert RetryPolicy().delay_for("GET", failure, 1, now=reset - 3) == pytest.approx(3.0)

    def test_header_ignored_for_other_retryable_statuses(self):
        failure = HttpStatusFailure(500, method="GET", url=URL, headers={"Retry-After": "30"})
        assert RetryPolicy().delay_for("GET", failure, 1) == pytest.approx(0.3)

    def test_clamps(self):
        with_header = HttpStatusFailure(503, method="GET", url=URL, headers={"Retry-After": "100"})
        assert RetryPolicy(max_retry_after=5).delay_for("GET", with_header, 1) == 5
        no_header = HttpStatusFailure(502, method="GET", url=URL)
        assert RetryPolicy(backoff_limit=0.1).delay_for("GET", no_header, 2) == pytest.approx(0.1)

    def test_transport_failures(self):
        conn = TransportFailure(requests.ConnectionError("reset"), method="GET", url=URL)
        other = TransportFailure(requests.TooManyRedirects("loop"), method="GET", url=URL, connection_error=False)
        assert RetryPolicy().delay_for("GET", conn, 1) == pytest.approx(0.3)
        assert RetryPolicy().delay_for("GET", other, 1) is None

    def test_negative_limit_rejected(self):
        with pytest.raises(ValueError):
            RetryPolicy(limit=-1)


class TestClientConfig:
    def test_for_service_ignores_none_overrides(self):
        config = ClientConfig.for_service("https://api.modrinth.com/v2/", base_url=None, user_agent=None, timeout=None)
        assert config.base_url == "https://api.modrinth.com/v2"
        assert config.user_agent == DEFAULT_USER_AGENT
        assert config.timeout == 10.0
        assert config.retry == RetryPolicy()

    def test_overrides(self):
        config = ClientConfig.for_service("https://a.test", base_url="https://b.test/", user_agent="me/1", timeout=3)
        assert (config.base_url, config.user_agent, config.timeout) == ("https://b.test", "me/1", 3.0)

    @pytest.mark.parametrize("kwargs", [{"base_url": "ftp://x"}, {"base_url": "https://x", "timeout": 0},
                                        {"base_url": "https://x", "user_agent": ""}])
    def test_validation(self, kwargs):
        with pytest.raises(ValueError):
            ClientConfig(**kwargs)


class TestRequestExecutor:
    def test_retry_after_then_success(self, session, make_response, no_sleep):
        session.request.side_effect = [
            make_response(503, headers={"Retry-After": "2"}),
            make_response(200, {"ok": True}),
        ]

        result = executor_for(session).request_json("GET", URL)

        assert result == {"ok": True}
        assert session.request.call_count == 2
        assert no_sleep == [pytest.approx(2.0)]

    def test_404_is_not_retried(self, session, make_response, no_sleep):
        session.request.return_value = make_response(404)

        with pytest.raises(HttpStatusFailure) as exc_info:
            executor_for(session).request_json("GET", URL)

        assert exc_info.value.status == 404
        assert session.request.call_count == 1
        assert no_sleep == []

    def test_timeout_is_never_retried(self, session, no_sleep):
        session.request.side_effect = requests.Timeout("read timed out")

        with pytest.raises(TimeoutFailure) as exc_info:
            executor_for(session, limit=5).request_json("GET", URL)

        assert exc_info.value.timeout == 10.0
        assert session.request.call_count == 1
        assert no_sleep == []

    def test_connect_timeout_is_a_timeout(self, session, no_sleep):
        session.request.side_effect = requests.ConnectTimeout("connect timed out")
        with pytest.raises(TimeoutFailure):
            executor_for(session).request_json("GET", URL)
        assert session.request.call_count == 1

    def test_exhausts_retries_with_exponential_backoff(self, session, make_response, no_sleep):
        session.request.return_value = make_response(500)

        with pytest.raises(HttpStatusFailure):
            executor_for(session).request_json("GET", URL)

        assert session.request.call_count == 3
        assert no_sleep == [pytest.approx(0.3), pytest.approx(0.6)]

    def test_post_is_not_retried(self, session, make_response, no_sleep):
        session.request.return_value = make_response(503, headers={"Retry-After": "1"})

        with pytest.raises(HttpStatusFailure):
            executor_for(session).request_json("POST", URL, json_body={"a": 1})

        assert session.request.call_count == 1

    def test_413_propagates_immediately(self, session, make_response, no_sleep):
        session.request.return_value = make_response(413, headers={"Retry-After": "1"})
        with pytest.raises(HttpStatusFailure):
            executor_for(session).request_json("GET", URL)
        assert session.request.call_count == 1
        assert no_sleep == []

    def test_429_without_header_uses_backoff(self, session, make_response, no_sleep):
        session.request.side_effect = [make_response(429), make_response(200, [1, 2])]
        assert executor_for(session).request_json("GET", URL) == [1, 2]
        assert no_sleep == [pytest.approx(0.3)]

    def test_connection_error_is_retried(self, session, make_response, no_sleep):
        session.request.side_effect = [requests.ConnectionError("reset"), make_response(200, {"id": "x"})]
        assert executor_for(session).request_json("GET", URL) == {"id": "x"}
        assert session.request.call_count == 2

    def test_non_connection_transport_error(self, session, no_sleep):
        session.request.side_effect = requests.TooManyRedirects("loop")
        with pytest.raises(TransportFailure) as exc_info:
            executor_for(session).request_json("GET", URL)
        assert exc_info.value.connection_error is False
        assert session.request.call_count == 1

    @pytest.mark.parametrize("status,body", [(204, b""), (200, b"")])
    def test_empty_bodies_yield_sentinel(self, session, make_response, status, body):
        session.request.return_value = make_response(status, content=body)
        result = executor_for(session).request_json("GET", URL)
        assert result is EMPTY
        assert not result

    def test_invalid_json_is_not_retried(self, session, make_response, no_sleep):
        session.request.return_value = make_response(200, content=b"<html>")
        with pytest.raises(ResponseDecodeFailure) as exc_info:
            executor_for(session).request_json("GET", URL)
        assert exc_info.value.status == 200
        assert session.request.call_count == 1

    def test_total_backoff_ceiling(self, session, make_response, no_sleep):
        session.request.side_effect = [make_response(500), make_response(500), make_response(200, {})]

        with pytest.raises(HttpStatusFailure):
            executor_for(session, max_total_backoff=0.5).request_json("GET", URL)

        assert session.request.call_count == 2
        assert no_sleep == [pytest.approx(0.3)]

    def test_sends_headers_timeout_and_params(self, session, make_response):
        session.request.return_value = make_response(200, {})

        executor_for(session).request_json("GET", URL, params={"q": "x"})

        args, kwargs = session.request.call_args
        assert args == ("GET", URL)
        assert kwargs["headers"] == {"User-Agent": "t/1"}
        assert kwargs["timeout"] == 10.0
        assert kwargs["params"] == {"q": "x"}
        assert kwargs["stream"] is False

    def test_request_raw_streams_and_skips_parsing(self, session, make_response):
        resp = make_response(200, content=b"\x00\x01binary")
        session.request.return_value = resp

        result = executor_for(session).request_raw(URL)

        assert result is resp
        assert session.request.call_args[1]["stream"] is True
        assert session.request.call_args[0][0] == "GET"

    def test_request_raw_closes_failed_response(self, session, make_response):
        resp = make_response(404)
        resp.close = Mock()
        session.request.return_value = resp

        with pytest.raises(HttpStatusFailure):
            executor_for(session).request_raw(URL)

        resp.close.assert_called_once()


class TestCancellation:
    def test_cancelled_before_first_attempt(self, session):
        token = CancellationToken()
        token.cancel("shutdown")

        with pytest.raises(RequestCancelled) as exc_info:
            executor_for(session).request_json("GET", URL, cancel_token=token)

        assert exc_info.value.reason == "shutdown"
        session.request.assert_not_called()

    def test_cancel_during_backoff_raises_reason(self, session, make_response):
        token = CancellationToken()

        def respond(*args, **kwargs):
            token.cancel("user abort")
            return make_response(503, headers={"Retry-After": "30"})

        session.request.side_effect = respond

        with patch("shulkers.client.time.sleep") as sleep:
            with pytest.raises(RequestCancelled) as exc_info:
                executor_for(session).request_json("GET", URL, cancel_token=token)

        assert exc_info.value.reason == "user abort"
        assert session.request.call_count == 1
        sleep.assert_not_called()

    def test_cancel_while_request_in_flight(self, session, make_response):
        token = CancellationToken()
        resp = make_response(200, {"ok": True})
        resp.close = Mock()

        def respond(*args, **kwargs):
            token.cancel("abort")
            return resp

        session.request.side_effect = respond

        with pytest.raises(RequestCancelled) as exc_info:
            executor_for(session).request_json("GET", URL, cancel_token=token)

        assert exc_info.value.reason == "abort"
        resp.close.assert_called_once()
        assert session.request.call_count == 1

    def test_streaming_response_closed_when_cancelled_in_flight(self, session, make_response):
        token = CancellationToken()
        resp = make_response(200, content=b"jar")
        resp.close = Mock()

        def respond(*args, **kwargs):
            token.cancel("abort")
            return resp

        session.request.side_effect = respond

        with pytest.raises(RequestCancelled):
            executor_for(session).request_raw(URL, cancel_token=token)

        assert session.request.call_args[1]["stream"] is True
        resp.close.assert_called_once()

    def test_cancel_from_another_thread_interrupts_wait(self, session, make_response):
        token = CancellationToken()
        session.request.return_value = make_response(503, headers={"Retry-After": "30"})
        timer = threading.Timer(0.05, token.cancel, args=("timer",))
        timer.start()
        try:
            with pytest.raises(RequestCancelled):
                executor_for(session).request_json("GET", URL, cancel_token=token)
        finally:
            timer.cancel()
        assert session.request.call_count == 1

    def test_token_keeps_first_reason(self):
        token = CancellationToken()
        token.cancel("first")
        token.cancel("second")
        assert token.is_cancelled()
        assert token.reason == "first"
        assert token.wait(0) is True


class TestAPIClient:
    def make_client(self, session, **policy):
        config = ClientConfig("https://api.example.test/v2", retry=RetryPolicy(**policy))
        return APIClient(config, map_modrinth_error, session=session)

    def test_build_url_encodes_path_params(self, session):
        client = self.make_client(session)
        assert client.build_url("/search/{q}", {"q": "world edit/7"}) == \
            "https://api.example.test/v2/search/world%20edit%2F7"
        assert client.build_url("thing/{p}", {"p": HangarPlatform.PAPER}) == "https://api.example.test/v2/thing/PAPER"

    def test_build_url_missing_param(self, session):
        with pytest.raises(ValueError):
            self.make_client(session).build_url("/project/{id}", {"slug": "x"})

    def test_execute_json_encodes_query(self, session, make_response):
        session.request.return_value = make_response(200, {"ok": 1})
        client = self.make_client(session)

        assert client.execute_json("/projects", {"ids": ["a", "b"], "x": None}) == {"ok": 1}

        args, kwargs = session.request.call_args
        assert args == ("GET", "https://api.example.test/v2/projects")
        assert kwargs["params"] == {"ids": '["a","b"]'}
        assert kwargs["headers"]["User-Agent"] == DEFAULT_USER_AGENT

    def test_execute_json_maps_failures_with_context(self, session, make_response, no_sleep):
        session.request.return_value = make_response(404)
        client = self.make_client(session)

        with pytest.raises(ModrinthError) as exc_info:
            client.execute_json("/project/{id}", path_params={"id": "nope"})

        err = exc_info.value
        assert err.code is ModrinthErrorCode.RESOURCE_NOT_FOUND
        assert err.context["status"] == 404
        assert err.context["endpoint"] == "/project/nope"
        assert err.context["url"] == "https://api.example.test/v2/project/nope"
        assert isinstance(err.__cause__, HttpStatusFailure)
        assert session.request.call_count == 1

    def test_timeout_maps_to_default_kind(self, session):
        session.request.side_effect = requests.Timeout()
        with pytest.raises(ModrinthError) as exc_info:
            self.make_client(session).execute_json("/statistics")
        assert exc_info.value.code is ModrinthErrorCode.API_REQUEST_FAILED
        assert "timed out" in exc_info.value.message

    def test_execute_post_sends_body(self, session, make_response):
        session.request.return_value = make_response(200, {"h": {}})
        self.make_client(session).execute_post("/version_files", {"hashes": ["h"]}, {"algorithm": "sha1"})
        args, kwargs = session.request.call_args
        assert args[0] == "POST"
        assert kwargs["json"] == {"hashes": ["h"]}
        assert kwargs["params"] == {"algorithm": "sha1"}

    def test_execute_raw_maps_to_download_failed(self, session, make_response):
        session.request.side_effect = requests.TooManyRedirects("loop")
        with pytest.raises(ModrinthError) as exc_info:
            self.make_client(session).execute_raw("https://cdn.example.test/file.jar")
        assert exc_info.value.code is ModrinthErrorCode.DOWNLOAD_FAILED

    def test_parse_maps_unexpected_shape(self, session):
        client = self.make_client(session)

        def needs_object(payload):
            if not isinstance(payload, dict):
                raise UnexpectedPayloadError("object", payload)
            return payload

        assert client.parse(needs_object, {"a": 1}) == {"a": 1}
        with pytest.raises(ModrinthError) as exc_info:
            client.parse(needs_object, EMPTY)
        assert exc_info.value.code is ModrinthErrorCode.INVALID_RESPONSE
        assert exc_info.value.context["actual"] == "EmptyResponse"
        assert isinstance(exc_info.value.__cause__, UnexpectedPayloadError)

    def test_cancellation_is_not_mapped(self, session):
        token = CancellationToken()
        token.cancel()
        with pytest.raises(RequestCancelled):
            self.make_client(session).execute_json("/statistics", cancel_token=token)

    def test_close_only_owned_sessions(self, session):
        with self.make_client(session):
            pass
        session.close.assert_not_called()

        with patch("shulkers.client.session_factory") as factory:
            owned = factory.return_value
            with APIClient(ClientConfig("https://x.test"), map_modrinth_error):
                pass
            owned.close.assert_called_once()
            factory.assert_called_once_with(DEFAULT_USER_AGENT)


class TestCreateClient:
    @pytest.mark.parametrize("name,cls", [("spiget", shulkers.SpigetAPI), ("Modrinth", shulkers.ModrinthAPI),
                                          ("HANGAR", shulkers.HangarAPI)])
    def test_known_services(self, name, cls, session):
        client = shulkers.create_client(name, session=session, user_agent="me/1")
        assert isinstance(client, cls)
        assert client.user_agent == "me/1"

    def test_unknown_service(self):
        with pytest.raises(ValueError):
            shulkers.create_client("curseforge")
