"""
Tests for the log_exception decorator.

Tests cover:
- Exception logging with sync and async functions
- Prefix formatting with parameter substitution
- Binding and formatting failures
- Stacklevel verification for correct log location
"""

import asyncio

from filebox.logger import log_exception


class TestBasicExceptionLogging:
    """Test basic exception logging functionality."""

    def test_sync_function_with_prefix(self, caplog):
        """Test sync function logs exception with prefix and returns None."""

        @log_exception("SyncOperation")
        def sync_func_with_error():
            raise ValueError("Test error from sync function")

        result = sync_func_with_error()

        assert result is None
        assert "SyncOperation: ValueError: Test error from sync function" in caplog.text
        assert "ERROR" in caplog.text

    async def test_async_function_with_prefix(self, caplog):
        """Test async function logs exception with prefix and returns None."""

        @log_exception("AsyncOperation")
        async def async_func_with_error():
            await asyncio.sleep(0)
            raise ValueError("Test error from async function")

        result = await async_func_with_error()

        assert result is None
        assert "AsyncOperation: ValueError: Test error from async function" in caplog.text

    def test_function_without_prefix(self, caplog):
        @log_exception()
        def sync_func_no_prefix():
            raise RuntimeError("Error without prefix")

        assert sync_func_no_prefix() is None
        assert "RuntimeError: Error without prefix" in caplog.text

    async def test_successful_execution_no_log(self, caplog):
        """Test successful execution does not log error."""

        @log_exception("SuccessfulOp")
        async def async_func_success():
            return "Success!"

        assert await async_func_success() == "Success!"
        assert "ERROR" not in caplog.text

    async def test_default_return(self):
        @log_exception("Counting", default_return=-1)
        async def count_files() -> int:
            raise ConnectionError("offline")

        assert await count_files() == -1


class TestPrefixFormatting:
    """Test prefix formatting with parameter substitution."""

    def test_parameters_in_prefix(self, caplog):
        @log_exception("Upload[{item_id}] as {name}")
        def upload(item_id: str, name: str):
            raise ValueError("Test error")

        upload("abc", name="report.pdf")

        assert "Upload[abc] as report.pdf: ValueError: Test error" in caplog.text

    def test_default_values_are_available(self, caplog):
        @log_exception("Listing {prefix}")
        def list_files(prefix: str = "users"):
            raise ValueError("Test error")

        list_files()

        assert "Listing users:" in caplog.text

    def test_missing_parameter_in_prefix(self, caplog):
        """Test prefix with non-existent parameter shows warning."""

        @log_exception("MissingParam[{nonexistent}]")
        def test_missing(actual_param: str):
            raise ValueError("Test error")

        assert test_missing("test_value") is None
        assert "Failed to format prefix" in caplog.text
        # Falls back to the raw prefix
        assert "MissingParam[{nonexistent}]:" in caplog.text


class TestBindingFailures:
    def test_too_many_arguments_warning(self, caplog):
        @log_exception("TooManyArgs")
        def test_func(param1: str):
            raise ValueError("Test error")

        # The TypeError from the bad call is swallowed too
        result = test_func("first", "second")  # type: ignore

        assert result is None
        assert "Failed to bind arguments" in caplog.text
        assert "test_func" in caplog.text
        assert "TooManyArgs: TypeError" in caplog.text


class TestStackLevel:
    """Test that log location (stacklevel) is correct."""

    def test_error_log_shows_caller_location(self, caplog):
        @log_exception()
        def failing_func():
            raise ValueError("Test error")

        failing_func()

        record = next(r for r in caplog.records if r.levelname == "ERROR")
        assert record.filename == "test_log_exception_decorator.py"
        assert record.funcName == "test_error_log_shows_caller_location"

    async def test_async_error_log_shows_caller_location(self, caplog):
        @log_exception()
        async def failing_func():
            raise ValueError("Test error")

        await failing_func()

        record = next(r for r in caplog.records if r.levelname == "ERROR")
        assert record.filename == "test_log_exception_decorator.py"
