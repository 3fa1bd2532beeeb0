"""
Unit tests for the storage operation decorator.
"""
import asyncio

import pytest

from identity_service.core.decorators import storage_operation
from identity_service.core.exceptions import GenericError, NotFoundError


class FlakyStore:
    def __init__(self, timeout: float = 1.0):
        self.timeout = timeout

    @storage_operation("flaky.slow")
    async def slow(self):
        await asyncio.sleep(5)

    @storage_operation("flaky.broken")
    async def broken(self):
        raise ConnectionError("connection to 10.0.0.7:5432 refused")

    @storage_operation("flaky.missing")
    async def missing(self):
        raise NotFoundError()

    @storage_operation("flaky.ok")
    async def ok(self, value, scale=1):
        return value * scale


class TestStorageOperation:
    """Test suite for storage_operation."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_passes_result_through(self):
        assert await FlakyStore().ok(21, scale=2) == 42

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_timeout_becomes_generic_error(self):
        with pytest.raises(GenericError) as exc_info:
            await FlakyStore(timeout=0.05).slow()

        assert exc_info.value.message == "Storage operation timed out"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_backend_detail_is_not_exposed(self):
        with pytest.raises(GenericError) as exc_info:
            await FlakyStore().broken()

        assert "10.0.0.7" not in exc_info.value.message
        assert exc_info.value.message == "Storage operation failed"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_service_errors_pass_through(self):
        with pytest.raises(NotFoundError):
            await FlakyStore().missing()
