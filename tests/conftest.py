"""Shared pytest fixtures."""

from __future__ import annotations

from typing import Callable

import pytest
from botocore.exceptions import ClientError


@pytest.fixture
def client_error() -> Callable[..., ClientError]:
    """Build botocore ClientErrors the way AWS returns them."""

    def _make(code: str, operation: str = "Operation", message: str = "") -> ClientError:
        error = {"Code": code}
        if message:
            error["Message"] = message
        return ClientError({"Error": error, "ResponseMetadata": {"RequestId": "req-123"}}, operation)

    return _make
