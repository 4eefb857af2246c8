import json

import httpx
import pytest

from fashion_relay.config import Settings
from fashion_relay.exceptions import (
    ConfigurationError,
    PredictionFailedError,
    PredictionTimeoutError,
    UnknownPredictionStatusError,
    UpstreamAPIError,
    UpstreamParseError,
    UpstreamRequestError,
)
from fashion_relay.inference.replicate_client import ReplicateClient, first_output


class FakeReplicateAPI:
    """Scripted stand-in for the Replicate HTTP API, used as an httpx transport handler."""

    def __init__(self, submit_status=201, submit_body=None, polls=(), repeat_last=False):
        self.submit_status = submit_status
        self.submit_body = submit_body if submit_body is not None else {"id": "pred-1", "status": "starting"}
        self.polls = list(polls)
        self.repeat_last = repeat_last
        self.requests = []

    @property
    def poll_requests(self):
        return [r for r in self.requests if r.method == "GET"]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.method == "POST":
            if isinstance(self.submit_body, str):
                return httpx.Response(self.submit_status, text=self.submit_body)
            return httpx.Response(self.submit_status, json=self.submit_body)

        if self.repeat_last and len(self.polls) == 1:
            body = self.polls[0]
        else:
            body = self.polls.pop(0)
        return httpx.Response(200, json=body)


class RecordingSleep:
    def __init__(self):
        self.calls = []

    async def __call__(self, seconds):
        self.calls.append(seconds)


def make_client(api, token="test-token", sleep=None):
    settings = Settings(_env_file=None, REPLICATE_API_TOKEN=token)
    return ReplicateClient(settings, transport=httpx.MockTransport(api), sleep=sleep or RecordingSleep())


def pending(status="processing"):
    return {"id": "pred-1", "status": status}


@pytest.mark.asyncio
async def test_submit_created_proceeds_to_polling():
    api = FakeReplicateAPI(polls=[pending("starting"), {"id": "pred-1", "status": "succeeded", "output": ["https://cdn/a.jpg", "https://cdn/b.jpg"]}])
    sleep = RecordingSleep()
    client = make_client(api, sleep=sleep)

    output = await client.run("google/nano-banana", {"prompt": "a dress", "image_input": None})

    assert output == "https://cdn/a.jpg"
    assert sleep.calls == [5.0]

    submit = api.requests[0]
    assert submit.method == "POST"
    assert submit.url.path == "/v1/models/google/nano-banana/predictions"
    assert submit.headers["Authorization"] == "Bearer test-token"
    assert json.loads(submit.content) == {"input": {"prompt": "a dress"}}
    assert [r.url.path for r in api.poll_requests] == ["/v1/predictions/pred-1"] * 2


@pytest.mark.asyncio
@pytest.mark.parametrize("status_code", [200, 401, 429, 500])
async def test_submit_rejects_non_created_status_without_polling(status_code):
    api = FakeReplicateAPI(submit_status=status_code, submit_body='{"detail": "nope"}')
    client = make_client(api)

    with pytest.raises(UpstreamAPIError) as excinfo:
        await client.run("google/nano-banana", {"prompt": "x"})

    assert excinfo.value.upstream_status == status_code
    assert str(status_code) in excinfo.value.message
    assert '{"detail": "nope"}' in excinfo.value.message
    assert api.poll_requests == []


@pytest.mark.asyncio
async def test_submit_with_malformed_json_is_parse_error():
    api = FakeReplicateAPI(submit_body="<html>gateway</html>")
    client = make_client(api)

    with pytest.raises(UpstreamParseError):
        await client.submit("google/nano-banana", {"prompt": "x"})


@pytest.mark.asyncio
async def test_transport_failure_is_request_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = make_client(handler)

    with pytest.raises(UpstreamRequestError) as excinfo:
        await client.submit("google/nano-banana", {"prompt": "x"})
    assert "connection refused" in excinfo.value.message


@pytest.mark.asyncio
async def test_missing_token_fails_before_any_request():
    api = FakeReplicateAPI()
    client = make_client(api, token=None)

    with pytest.raises(ConfigurationError):
        await client.submit("google/nano-banana", {"prompt": "x"})
    assert api.requests == []


@pytest.mark.asyncio
@pytest.mark.parametrize("pending_count", [0, 1, 4])
async def test_poller_resolves_after_exactly_the_pending_intervals(pending_count):
    polls = [pending() for _ in range(pending_count)]
    polls.append({"id": "pred-1", "status": "succeeded", "output": "https://cdn/video.mp4"})
    api = FakeReplicateAPI(polls=polls)
    sleep = RecordingSleep()
    client = make_client(api, sleep=sleep)

    output = await client.wait_for_prediction("pred-1")

    assert output == "https://cdn/video.mp4"
    assert len(sleep.calls) == pending_count
    assert len(api.poll_requests) == pending_count + 1


@pytest.mark.asyncio
@pytest.mark.parametrize("pending_count", [0, 2])
async def test_poller_rejects_with_reported_failure(pending_count):
    polls = [pending("starting") for _ in range(pending_count)]
    polls.append({"id": "pred-1", "status": "failed", "error": "NSFW content detected"})
    api = FakeReplicateAPI(polls=polls)
    sleep = RecordingSleep()
    client = make_client(api, sleep=sleep)

    with pytest.raises(PredictionFailedError) as excinfo:
        await client.wait_for_prediction("pred-1")

    assert excinfo.value.message == "Prediction failed: NSFW content detected"
    assert len(sleep.calls) == pending_count


@pytest.mark.asyncio
async def test_poller_keeps_structured_failure_reason():
    api = FakeReplicateAPI(polls=[{"id": "pred-1", "status": "failed", "error": {"detail": "NSFW"}}])
    client = make_client(api)

    with pytest.raises(PredictionFailedError) as excinfo:
        await client.wait_for_prediction("pred-1")

    assert excinfo.value.error == {"detail": "NSFW"}
    assert excinfo.value.message == 'Prediction failed: {"detail": "NSFW"}'


@pytest.mark.asyncio
@pytest.mark.parametrize("status", ["canceled", "queued", None])
async def test_poller_treats_other_statuses_as_protocol_violation(status):
    api = FakeReplicateAPI(polls=[pending(), {"id": "pred-1", "status": status}])
    client = make_client(api)

    with pytest.raises(UnknownPredictionStatusError):
        await client.wait_for_prediction("pred-1")
    assert len(api.poll_requests) == 2


@pytest.mark.asyncio
@pytest.mark.parametrize("long_running,budget", [(False, 60), (True, 240)])
async def test_poller_times_out_after_attempt_budget(long_running, budget):
    api = FakeReplicateAPI(polls=[pending()], repeat_last=True)
    client = make_client(api)

    with pytest.raises(PredictionTimeoutError) as excinfo:
        await client.wait_for_prediction("pred-1", long_running=long_running)

    assert excinfo.value.attempts == budget
    assert len(api.poll_requests) == budget


@pytest.mark.asyncio
async def test_poll_http_error_is_upstream_error():
    def handler(request):
        return httpx.Response(404, json={"detail": "Not found."})

    client = make_client(handler)

    with pytest.raises(UpstreamAPIError) as excinfo:
        await client.get_prediction("missing")
    assert excinfo.value.upstream_status == 404


def test_first_output_unwraps_lists_only():
    assert first_output(["https://cdn/1.jpg", "https://cdn/2.jpg"]) == "https://cdn/1.jpg"
    assert first_output("https://cdn/only.jpg") == "https://cdn/only.jpg"
    assert first_output([]) is None
    assert first_output(None) is None
