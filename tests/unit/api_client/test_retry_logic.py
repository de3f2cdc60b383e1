"""Unit tests for api_client.retry_logic module."""

from unittest.mock import MagicMock, Mock, call, patch

import pytest

from shanoom.api_client.errors import MaxRetriesExceededError, ServerUnavailableError
from shanoom.api_client.retry_logic import (
    MAX_RETRIES,
    RETRY_DELAY,
    ConnectivityProbe,
    call_with_retries,
)


class TestCallWithRetries:
    """Test cases for call_with_retries function."""

    def test_success_on_first_attempt(self):
        """call_with_retries should call func once when online."""
        func = Mock(return_value="ok")
        sleep = Mock()

        result = call_with_retries(func, lambda: True, sleep=sleep)

        assert result == "ok"
        func.assert_called_once_with()
        sleep.assert_not_called()

    def test_retries_until_probe_succeeds(self):
        """Two failed probes then success: one request, two one-second waits."""
        probe = Mock(side_effect=[False, False, True])
        func = Mock(return_value="response")
        sleep = Mock()

        result = call_with_retries(func, probe, sleep=sleep)

        assert result == "response"
        assert probe.call_count == 3
        func.assert_called_once_with()
        assert sleep.call_args_list == [call(1.0), call(1.0)]

    def test_gives_up_after_max_retries(self):
        """call_with_retries should raise once the retry budget is spent."""
        func = Mock()
        sleep = Mock()

        with pytest.raises(MaxRetriesExceededError) as exc_info:
            call_with_retries(func, lambda: False, max_retries=3, delay=0.5, sleep=sleep)

        assert exc_info.value.max_retries == 3
        assert "Max retries exceeded" in str(exc_info.value)
        func.assert_not_called()
        assert sleep.call_count == 3

    def test_reports_each_retry(self):
        """on_retry should receive the attempt number and the budget."""
        on_retry = Mock()
        probe = Mock(side_effect=[False, False, True])

        call_with_retries(Mock(), probe, max_retries=5, sleep=Mock(), on_retry=on_retry)

        assert on_retry.call_args_list == [call(1, 5), call(2, 5)]

    def test_zero_retries_fails_immediately(self):
        sleep = Mock()

        with pytest.raises(MaxRetriesExceededError):
            call_with_retries(Mock(), lambda: False, max_retries=0, sleep=sleep)

        sleep.assert_not_called()

    def test_server_errors_are_not_retried(self):
        """A refused connection means the backend is down, not the network."""
        func = Mock(side_effect=ServerUnavailableError("http://api.test/"))
        sleep = Mock()

        with pytest.raises(ServerUnavailableError):
            call_with_retries(func, lambda: True, sleep=sleep)

        func.assert_called_once_with()
        sleep.assert_not_called()

    def test_defaults(self):
        assert MAX_RETRIES == 20
        assert RETRY_DELAY == 1.0


class TestConnectivityProbe:
    """Test cases for ConnectivityProbe."""

    @patch('socket.create_connection')
    def test_online_when_connection_opens(self, mock_connect):
        mock_connect.return_value = MagicMock()

        assert ConnectivityProbe(host="1.1.1.1", port=53)() is True
        mock_connect.assert_called_once_with(("1.1.1.1", 53), timeout=3.0)

    @patch('socket.create_connection')
    def test_offline_when_connection_fails(self, mock_connect):
        mock_connect.side_effect = OSError("Network is unreachable")

        assert ConnectivityProbe()() is False

    @patch('socket.create_connection')
    def test_disabled_probe_is_always_online(self, mock_connect):
        assert ConnectivityProbe(enabled=False)() is True
        mock_connect.assert_not_called()
