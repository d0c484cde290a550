"""
Tests for odata_node.core session, connection and errors.
"""

import pytest
import requests
from unittest.mock import Mock, patch, MagicMock

from odata_node.batch.classify import ErrorReport
from odata_node.core.connection import ConnectionContext
from odata_node.core.errors import (
    ConfigurationError,
    DispatchError,
    NodeOperationError,
)
from odata_node.core.session import ODataConfig, ODataSession


class TestODataConfig:
    """Tests for ODataConfig dataclass."""

    def test_default_values(self):
        cfg = ODataConfig(base_url="https://test.com/odata/")
        assert cfg.auth_mode == "none"
        assert cfg.auth_type is None
        assert cfg.continue_on_fail is False
        assert cfg.timeout == 60.0
        assert cfg.verify is True
        assert cfg.direct_count is False

    def test_custom_values(self):
        cfg = ODataConfig(
            base_url="https://test.com/odata/",
            auth_mode="genericCredentialType",
            auth_type="httpBasicAuth",
            continue_on_fail=True,
            timeout=30.0,
            verify=False,
        )
        assert cfg.auth_type == "httpBasicAuth"
        assert cfg.timeout == 30.0
        assert cfg.verify is False


class TestErrors:
    """Tests for the error taxonomy."""

    def test_configuration_error_names_field(self):
        err = ConfigurationError("data", "not valid JSON")
        assert err.field == "data"
        assert str(err) == "Invalid data: not valid JSON"

    def test_dispatch_error_attributes(self):
        err = DispatchError(
            "GET x failed", url="https://test.com/x", status=404,
            status_text="Not Found", body={"error": "missing"},
        )
        assert err.status == 404
        assert err.status_text == "Not Found"
        assert err.body == {"error": "missing"}
        assert err.headers == {}

    def test_node_operation_error_stamp(self):
        err = NodeOperationError(ErrorReport(message="boom", source_index=1))
        err.stamp(4)
        assert err.report.source_index == 4
        assert err.context["item_index"] == 4
        assert err.report.message == "boom"


class TestODataSession:
    """Tests for ODataSession."""

    @patch("odata_node.core.session.requests.Session")
    def test_session_creation(self, mock_session_class):
        mock_session = MagicMock()
        mock_session_class.return_value = mock_session

        sess = ODataSession(ODataConfig(base_url="https://test.com/odata"))
        assert sess.base == "https://test.com/odata/"
        mock_session.headers.update.assert_called()

    @patch("odata_node.core.session.requests.Session")
    def test_context_manager(self, mock_session_class):
        mock_session = MagicMock()
        mock_session_class.return_value = mock_session

        with ODataSession(ODataConfig(base_url="https://test.com/odata")) as sess:
            assert sess is not None

        mock_session.close.assert_called_once()

    def test_send_returns_json(self, config, response_factory):
        sess = ODataSession(config)
        sess.session.request = Mock(return_value=response_factory(body={"Id": 1}))

        assert sess.send("GET", sess.base + "People(1)") == {"Id": 1}
        kwargs = sess.session.request.call_args.kwargs
        assert kwargs["timeout"] == 60.0
        assert kwargs["data"] is None
        assert kwargs["headers"]["Accept"] == "application/json"

    def test_send_serializes_body(self, config, response_factory):
        sess = ODataSession(config)
        sess.session.request = Mock(return_value=response_factory(status=201, body={"Id": 2}))

        sess.send("POST", sess.base + "People", body={"UserName": "newuser"})
        kwargs = sess.session.request.call_args.kwargs
        assert kwargs["data"] == '{"UserName":"newuser"}'
        assert kwargs["headers"]["Content-Type"] == "application/json"

    def test_lowercase_header_overrides_default(self, config, response_factory):
        sess = ODataSession(config)
        sess.session.request = Mock(return_value=response_factory(body={}))

        sess.send("GET", sess.base + "People", headers={"accept": "text/plain"})
        headers = sess.session.request.call_args.kwargs["headers"]
        assert headers["Accept"] == "text/plain"

    def test_empty_body_is_empty_object(self, config, response_factory):
        sess = ODataSession(config)
        sess.session.request = Mock(return_value=response_factory(status=204, reason="No Content"))
        assert sess.send("DELETE", sess.base + "People('x')") == {}

    def test_non_2xx_raises(self, config, response_factory):
        sess = ODataSession(config)
        sess.session.request = Mock(
            return_value=response_factory(status=404, reason="Not Found", body={"error": "missing"})
        )
        with pytest.raises(DispatchError) as exc:
            sess.send("GET", sess.base + "People('nobody')")
        assert exc.value.status == 404
        assert exc.value.status_text == "Not Found"
        assert exc.value.body == {"error": "missing"}

    def test_non_json_raises(self, config, response_factory):
        sess = ODataSession(config)
        sess.session.request = Mock(return_value=response_factory(text="<html>hi</html>"))
        with pytest.raises(DispatchError, match="non-JSON"):
            sess.send("GET", sess.base + "People")

    def test_transport_failure_wrapped(self, config):
        sess = ODataSession(config)
        sess.session.request = Mock(side_effect=requests.ConnectionError("refused"))
        with pytest.raises(DispatchError) as exc:
            sess.send("GET", sess.base + "People")
        assert exc.value.status is None
        assert isinstance(exc.value.__cause__, requests.ConnectionError)


class TestConnectionContext:
    """Tests for ConnectionContext."""

    @patch.dict("os.environ", {}, clear=True)
    def test_missing_base_url_raises(self):
        with pytest.raises(ConfigurationError, match="missing service URL"):
            ConnectionContext(base_url="")

    @patch.dict("os.environ", {
        "ODATA_URL": "https://env.test.com/odata",
        "ODATA_AUTH_MODE": "genericCredentialType",
        "ODATA_AUTH_TYPE": "httpBasicAuth",
        "ODATA_CONTINUE_ON_FAIL": "true",
        "ODATA_TIMEOUT": "15",
    })
    def test_reads_from_environment(self):
        conn = ConnectionContext()
        assert conn.base_url == "https://env.test.com/odata/"
        assert conn.cfg.auth_type == "httpBasicAuth"
        assert conn.cfg.continue_on_fail is True
        assert conn.cfg.timeout == 15.0

    @patch.dict("os.environ", {"ODATA_URL": "https://env.test.com/odata/"})
    def test_explicit_params_override_env(self):
        conn = ConnectionContext(base_url="https://explicit.com/odata/", continue_on_fail=False)
        assert conn.base_url == "https://explicit.com/odata/"
        assert conn.cfg.continue_on_fail is False

    def test_executor_shares_session(self):
        with ConnectionContext(base_url="https://test.com/odata/") as conn:
            ex = conn.executor()
            assert ex.session is conn.session
