from unittest.mock import Mock

import pytest

from stocktrack.utils.errors import RepositoryError
from stocktrack.utils.retry import retry_with_backoff


def test_returns_first_success():
    sleep = Mock()
    func = Mock(side_effect=[ConnectionError("down"), "ok"])
    func.__name__ = "fetch"
    wrapped = retry_with_backoff(max_retries=3, backoff_factor=0.5, sleep=sleep)(func)

    assert wrapped() == "ok"
    sleep.assert_called_once_with(0.5)


def test_backoff_doubles_and_reraises_last_error():
    sleep = Mock()

    @retry_with_backoff(max_retries=2, backoff_factor=1.0, sleep=sleep)
    def always_fails():
        raise ConnectionError("down")

    with pytest.raises(ConnectionError):
        always_fails()
    assert [c.args[0] for c in sleep.call_args_list] == [1.0, 2.0]


def test_reraise_as_chains_cause():
    @retry_with_backoff(max_retries=0, reraise_as=RepositoryError)
    def always_fails():
        raise TimeoutError("slow")

    with pytest.raises(RepositoryError) as exc_info:
        always_fails()
    assert isinstance(exc_info.value.__cause__, TimeoutError)


def test_other_exceptions_are_not_retried():
    sleep = Mock()
    func = Mock(side_effect=KeyError("x"))
    func.__name__ = "lookup"
    wrapped = retry_with_backoff(max_retries=3, exceptions=(ConnectionError,), sleep=sleep)(func)

    with pytest.raises(KeyError):
        wrapped()
    assert func.call_count == 1
    sleep.assert_not_called()
