"""Tests for backend error classification."""
from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError, ProgrammingError

from marketplace.core.errors import (
    ErrorKind,
    MarketplaceError,
    NotFoundError,
    classify_backend_error,
    translate_backend_errors,
)


def test_classify_backend_errors():
    assert classify_backend_error(IntegrityError("insert", {}, Exception("dup"))) is ErrorKind.CONFLICT
    assert classify_backend_error(OperationalError("select", {}, Exception("down"))) is ErrorKind.UNAVAILABLE
    assert classify_backend_error(ProgrammingError("select", {}, Exception("syntax"))) is ErrorKind.UNKNOWN


@pytest.mark.asyncio
async def test_translate_backend_errors_wraps_sqlalchemy_failures():
    with pytest.raises(MarketplaceError) as info:
        async with translate_backend_errors("Saving document"):
            raise IntegrityError("insert", {}, Exception("dup"))

    assert info.value.kind is ErrorKind.CONFLICT
    assert info.value.status_code == 409
    assert info.value.message == "Saving document failed"


@pytest.mark.asyncio
async def test_translate_backend_errors_passes_domain_errors_through():
    with pytest.raises(NotFoundError):
        async with translate_backend_errors("Loading"):
            raise NotFoundError("Property not found")
