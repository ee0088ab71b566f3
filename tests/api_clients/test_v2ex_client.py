import httpx
import pytest

from infrastructure.external.api_clients import (
    APIError,
    AuthenticationError,
    AuthorizationError,
    ConfigurationError,
    DecodingError,
    NotFoundError,
    RateLimitedError,
    ServerError,
    TransportError,
    V2exClient,
)
from shared.codes import ErrorCode


V2 = "/api/v2"

AUTH_OPERATIONS = [
    ("list_notifications", (), "GET", f"{V2}/notifications"),
    ("delete_notification", (123,), "DELETE", f"{V2}/notifications/123"),
    ("get_member", (), "GET", f"{V2}/member"),
    ("get_token", (), "GET", f"{V2}/token"),
    ("get_node", ("python",), "GET", f"{V2}/nodes/python"),
    ("get_node_topics", ("python",), "GET", f"{V2}/nodes/python/topics"),
    ("get_topic", (1000,), "GET", f"{V2}/topics/1000"),
    ("get_topic_replies", (1000,), "GET", f"{V2}/topics/1000/replies"),
]

CLASSIC_OPERATIONS = [
    ("get_hot_topics", "/api/topics/hot.json"),
    ("get_latest_topics", "/api/topics/latest.json"),
]


def _envelope(result, message=None):
    return {"success": True, "message": message, "result": result}


@pytest.mark.asyncio
@pytest.mark.parametrize("operation,args,method,path", AUTH_OPERATIONS)
async def test_auth_operations_without_token_fail_before_network(make_client, fake_api, operation, args, method, path):
    client = make_client(token=None)
    with pytest.raises(ConfigurationError) as excinfo:
        await getattr(client, operation)(*args)
    assert excinfo.value.code == ErrorCode.CONFIGURATION_ERROR
    assert fake_api.requests == []
    await client.close()


@pytest.mark.asyncio
@pytest.mark.parametrize("operation,args,method,path", AUTH_OPERATIONS)
async def test_auth_operations_send_bearer_token_once(make_client, fake_api, operation, args, method, path):
    fake_api.add(method, path, json=_envelope({"id": 1}))
    async with make_client(token="T") as client:
        result = await getattr(client, operation)(*args)

    request = fake_api.last_request
    assert request.method == method
    assert request.url.path == path
    assert request.headers.get_list("authorization") == ["Bearer T"]
    assert result.data == {"id": 1}


@pytest.mark.asyncio
@pytest.mark.parametrize("operation,path", CLASSIC_OPERATIONS)
async def test_classic_operations_never_send_authorization(make_client, fake_api, operation, path):
    topics = [{"id": 1, "title": "hello"}, {"id": 2, "title": "world"}]
    fake_api.add("GET", path, json=topics)
    async with make_client(token="T") as client:
        result = await getattr(client, operation)()

    assert "authorization" not in fake_api.last_request.headers
    assert fake_api.last_request.url.host == "www.v2ex.com"
    assert result.data == topics
    assert result.message is None


@pytest.mark.asyncio
@pytest.mark.parametrize("operation,path", CLASSIC_OPERATIONS)
async def test_classic_operations_work_without_token(make_client, fake_api, operation, path):
    fake_api.add("GET", path, json=[])
    async with make_client(token=None) as client:
        result = await getattr(client, operation)()
    assert result.data == []


@pytest.mark.asyncio
@pytest.mark.parametrize("operation,path", CLASSIC_OPERATIONS)
async def test_classic_operations_reject_envelope_shape(make_client, fake_api, operation, path):
    fake_api.add("GET", path, json=_envelope([{"id": 1}]))
    async with make_client() as client:
        with pytest.raises(DecodingError):
            await getattr(client, operation)()


@pytest.mark.asyncio
async def test_v2_operation_rejects_bare_list(make_client, fake_api):
    fake_api.add("GET", f"{V2}/member", json=[{"id": 1}])
    async with make_client() as client:
        with pytest.raises(DecodingError) as excinfo:
            await client.get_member()
    assert excinfo.value.status_code == 200
    assert excinfo.value.code == ErrorCode.DECODING_ERROR


@pytest.mark.asyncio
async def test_v2_operation_rejects_object_without_success_flag(make_client, fake_api):
    fake_api.add("GET", f"{V2}/member", json={"result": {"id": 1}})
    async with make_client() as client:
        with pytest.raises(DecodingError):
            await client.get_member()


@pytest.mark.asyncio
async def test_malformed_json_is_decoding_error(make_client, fake_api):
    fake_api.add("GET", f"{V2}/token", content=b"<html>oops</html>")
    async with make_client() as client:
        with pytest.raises(DecodingError):
            await client.get_token()


@pytest.mark.asyncio
async def test_envelope_with_success_false_is_api_error(make_client, fake_api):
    fake_api.add("GET", f"{V2}/member", json={"success": False, "message": "Token disabled"})
    async with make_client() as client:
        with pytest.raises(APIError) as excinfo:
            await client.get_member()
    assert not isinstance(excinfo.value, DecodingError)
    assert excinfo.value.message == "Token disabled"


@pytest.mark.asyncio
async def test_list_notifications_page_param_sent_once(make_client, fake_api):
    fake_api.add("GET", f"{V2}/notifications", json=_envelope([]))
    async with make_client() as client:
        await client.list_notifications(page=2)
    assert fake_api.last_request.url.params.get_list("p") == ["2"]


@pytest.mark.asyncio
async def test_list_notifications_defaults_to_first_page(make_client, fake_api):
    fake_api.add("GET", f"{V2}/notifications", json=_envelope([]))
    async with make_client() as client:
        await client.list_notifications()
    assert fake_api.last_request.url.params.get_list("p") == ["1"]


@pytest.mark.asyncio
@pytest.mark.parametrize("page", [0, -1, "2", True])
async def test_invalid_page_rejected_before_network(make_client, fake_api, page):
    async with make_client() as client:
        with pytest.raises(ValueError):
            await client.list_notifications(page=page)
    assert fake_api.requests == []


@pytest.mark.asyncio
async def test_get_member_authorization_header_is_exact(make_client, fake_api):
    fake_api.add("GET", f"{V2}/member", json=_envelope({"username": "livid"}))
    async with make_client(token="abc-123") as client:
        result = await client.get_member()
    assert fake_api.last_request.headers["authorization"] == "Bearer abc-123"
    assert result.data["username"] == "livid"


@pytest.mark.asyncio
async def test_get_node_scenario(make_client, fake_api):
    fake_api.add("GET", f"{V2}/nodes/programmer", json=_envelope({"name": "programmer", "title": "程序员"}))
    async with make_client() as client:
        result = await client.get_node("programmer")
        assert result.status_code == 200
        assert result.data["title"] == "程序员"

        with pytest.raises(NotFoundError) as excinfo:
            await client.get_node("__does_not_exist__")
    assert excinfo.value.status_code == 404
    assert excinfo.value.message == "Object Not Found"


@pytest.mark.asyncio
async def test_path_parameters_are_quoted(make_client, fake_api):
    async with make_client() as client:
        with pytest.raises(NotFoundError):
            await client.get_node("a/b")
    assert fake_api.last_request.url.raw_path.startswith(b"/api/v2/nodes/a%2Fb")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "operation,value",
    [
        ("get_node_topics", ".."),
        ("get_node", "."),
        ("get_node", ""),
        ("get_topic_replies", " .. "),
    ],
)
async def test_dot_segment_path_values_rejected_before_network(make_client, fake_api, operation, value):
    async with make_client() as client:
        with pytest.raises(ValueError):
            await getattr(client, operation)(value)
    assert fake_api.requests == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "operation,arg,path",
    [
        ("get_node_topics", "python", f"{V2}/nodes/python/topics"),
        ("get_topic_replies", 1000, f"{V2}/topics/1000/replies"),
    ],
)
async def test_paginated_operations_send_page_param(make_client, fake_api, operation, arg, path):
    fake_api.add("GET", path, json=_envelope([]))
    async with make_client() as client:
        await getattr(client, operation)(arg, page=4)
    assert fake_api.last_request.url.path == path
    assert fake_api.last_request.url.params.get_list("p") == ["4"]


@pytest.mark.asyncio
async def test_delete_with_no_content_is_success(make_client, fake_api):
    fake_api.add("DELETE", f"{V2}/notifications/42", status=204)
    async with make_client() as client:
        result = await client.delete_notification(42)
    assert result.status_code == 204
    assert result.data is None
    assert result.rate_limit.remaining == 599


@pytest.mark.asyncio
async def test_empty_body_on_get_is_still_decoding_error(make_client, fake_api):
    fake_api.add("GET", f"{V2}/member", status=200)
    async with make_client() as client:
        with pytest.raises(DecodingError):
            await client.get_member()


@pytest.mark.asyncio
async def test_delete_missing_notification_is_not_found(make_client, fake_api):
    async with make_client() as client:
        with pytest.raises(NotFoundError) as excinfo:
            await client.delete_notification(999999)
    assert fake_api.last_request.method == "DELETE"
    assert excinfo.value.code == ErrorCode.NOT_FOUND


@pytest.mark.asyncio
async def test_rate_limited_error_carries_reset(make_client, fake_api):
    fake_api.add(
        "GET",
        f"{V2}/topics/1",
        status=429,
        json={"success": False, "message": "Rate limit exceeded"},
        headers={"X-Rate-Limit-Remaining": "0", "X-Rate-Limit-Reset": "1712345678"},
    )
    async with make_client() as client:
        with pytest.raises(RateLimitedError) as excinfo:
            await client.get_topic(1)
    err = excinfo.value
    assert err.status_code == 429
    assert err.reset_at == 1712345678
    assert err.rate_limit.remaining == 0
    assert err.rate_limit.limit == 600


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status,error_class",
    [
        (401, AuthenticationError),
        (403, AuthorizationError),
        (404, NotFoundError),
        (429, RateLimitedError),
        (500, ServerError),
        (502, ServerError),
        (418, APIError),
    ],
)
async def test_status_classification(make_client, fake_api, status, error_class):
    fake_api.add("GET", f"{V2}/token", status=status, json={"success": False, "message": "nope"})
    async with make_client() as client:
        with pytest.raises(error_class) as excinfo:
            await client.get_token()
    assert type(excinfo.value) is error_class
    assert excinfo.value.status_code == status
    assert excinfo.value.rate_limit.reset == 1700000000


@pytest.mark.asyncio
async def test_error_without_json_body_uses_generic_message(make_client, fake_api):
    fake_api.add("GET", f"{V2}/token", status=500, content=b"Internal Server Error")
    async with make_client() as client:
        with pytest.raises(ServerError) as excinfo:
            await client.get_token()
    assert "500" in excinfo.value.message


@pytest.mark.asyncio
async def test_transport_failure_is_transport_error(make_client, fake_api):
    fake_api.add_error("GET", f"{V2}/member")
    async with make_client() as client:
        with pytest.raises(TransportError) as excinfo:
            await client.get_member()
    assert excinfo.value.status_code is None
    assert excinfo.value.rate_limit.is_empty


@pytest.mark.asyncio
async def test_timeout_is_transport_error(make_client, fake_api):
    fake_api.add_error("GET", f"{V2}/topics/7", exc_type=httpx.ReadTimeout)
    async with make_client(timeout=2.5) as client:
        with pytest.raises(TransportError) as excinfo:
            await client.get_topic(7)
    assert "timeout" in excinfo.value.message.lower()
    assert isinstance(excinfo.value.__cause__, httpx.TimeoutException)
    assert excinfo.value.code == ErrorCode.TRANSPORT_ERROR


@pytest.mark.asyncio
async def test_success_result_exposes_rate_limit(make_client, fake_api):
    fake_api.add("GET", f"{V2}/token", json=_envelope({"token": "x"}, message="ok"))
    async with make_client() as client:
        result = await client.get_token()
    assert result.message == "ok"
    assert result.rate_limit.limit == 600
    assert result.rate_limit.remaining == 599
    assert result.rate_limit.reset == 1700000000


@pytest.mark.asyncio
async def test_iter_notifications_walks_until_empty_page(fake_api, settings):
    pages = {"1": [{"id": 1}, {"id": 2}], "2": [{"id": 3}], "3": []}
    seen_pages = []

    def handler(request):
        page = request.url.params["p"]
        seen_pages.append(page)
        return httpx.Response(200, json=_envelope(pages[page]))

    client = V2exClient(token="T", settings=settings, transport=httpx.MockTransport(handler))
    async with client:
        items = [item async for item in client.iter_notifications()]
    assert [item["id"] for item in items] == [1, 2, 3]
    assert seen_pages == ["1", "2", "3"]


@pytest.mark.asyncio
async def test_iter_notifications_respects_max_pages(make_client, fake_api):
    fake_api.add("GET", f"{V2}/notifications", json=_envelope([{"id": 1}]))
    async with make_client() as client:
        items = [item async for item in client.iter_notifications(max_pages=2)]
    assert len(items) == 2
    assert len(fake_api.requests) == 2

