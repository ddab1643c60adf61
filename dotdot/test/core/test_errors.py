"""Tests for dotdot.core.errors module."""

from dotdot.core.errors import ErrorCode


def test_exit_codes_are_stable() -> None:
    assert int(ErrorCode.OK) == 0
    assert int(ErrorCode.USER_ERROR) == 1
    assert int(ErrorCode.ENV_ERROR) == 2
    assert int(ErrorCode.CONFIG_ERROR) == 3
    assert int(ErrorCode.OPERATION_FAILED) == 4


def test_str_is_readable() -> None:
    assert str(ErrorCode.OPERATION_FAILED) == "operation failed"


def test_is_success() -> None:
    assert ErrorCode.OK.is_success is True
    assert ErrorCode.CONFIG_ERROR.is_success is False
