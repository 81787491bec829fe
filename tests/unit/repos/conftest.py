import pytest
from botocore.exceptions import ClientError

# ─────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────


def _client_error(
    op_name: str, *, code: str = "500", message: str | None = None
) -> ClientError:
    """
    Build a botocore ClientError for unit tests.
    """
    msg = message or f"Boom in {op_name}"
    return ClientError(
        error_response={"Error": {"Code": code, "Message": msg}},
        operation_name=op_name,
    )


@pytest.fixture
def client_error():
    """
    Fixture returning a helper function to build ClientError instances.
    Usage:
        err = client_error("Query")
    """
    return _client_error


# ─────────────────────────────────────────────────────────────
# Fake DynamoDB Table
# ─────────────────────────────────────────────────────────────


OP_NAMES = {
    "query": "Query",
    "get_item": "GetItem",
    "put_item": "PutItem",
    "update_item": "UpdateItem",
}


class FakeTable:
    """
    A lightweight fake for boto3 DynamoDB Table.

    - `response`: dict returned by every call
    - `queued`: per-call responses, consumed in order before `response` is used
      (e.g. one page per query, or one item per get_item)
    - `fail_on`: set of operation names that should raise ClientError
      (e.g. {"query", "put_item"})
    """

    def __init__(
        self,
        response: dict | None = None,
        *,
        queued: list[dict] | None = None,
        fail_on: set[str] | None = None,
    ):
        self.response: dict = response or {}
        self.queued: list[dict] = list(queued or [])
        self.fail_on: set[str] = set(fail_on or [])

        self.query_calls: list[dict] = []
        self.get_calls: list[dict] = []
        self.put_calls: list[dict] = []
        self.update_calls: list[dict] = []

    @property
    def last_query_kwargs(self) -> dict | None:
        return self.query_calls[-1] if self.query_calls else None

    @property
    def last_get_kwargs(self) -> dict | None:
        return self.get_calls[-1] if self.get_calls else None

    @property
    def last_put_kwargs(self) -> dict | None:
        return self.put_calls[-1] if self.put_calls else None

    @property
    def last_update_kwargs(self) -> dict | None:
        return self.update_calls[-1] if self.update_calls else None

    def _maybe_fail(self, op: str):
        name = OP_NAMES[op]
        if op in self.fail_on or name in self.fail_on:
            raise _client_error(name)

    def _next_response(self) -> dict:
        if self.queued:
            return self.queued.pop(0)
        return self.response

    def query(self, **kwargs):
        self._maybe_fail("query")
        self.query_calls.append(kwargs)
        return self._next_response()

    def get_item(self, **kwargs):
        self._maybe_fail("get_item")
        self.get_calls.append(kwargs)
        return self._next_response()

    def put_item(self, **kwargs):
        self._maybe_fail("put_item")
        self.put_calls.append(kwargs)
        return {}

    def update_item(self, **kwargs):
        self._maybe_fail("update_item")
        self.update_calls.append(kwargs)
        return self._next_response()


# ─────────────────────────────────────────────────────────────
# Fixtures
# ─────────────────────────────────────────────────────────────


@pytest.fixture
def fake_table() -> FakeTable:
    """
    Fixture returning a FakeTable instance.
    Tests can override response / queued to simulate DynamoDB responses.
    """
    return FakeTable()


@pytest.fixture
def failing_query_table() -> FakeTable:
    return FakeTable(fail_on={"query"})


@pytest.fixture
def failing_get_table() -> FakeTable:
    return FakeTable(fail_on={"get_item"})


@pytest.fixture
def failing_put_table() -> FakeTable:
    return FakeTable(fail_on={"put_item"})


@pytest.fixture
def failing_update_table() -> FakeTable:
    return FakeTable(fail_on={"update_item"})
