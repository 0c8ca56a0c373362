"""Shared fakes for completion service tests."""


def fake_response(usage=None, content="ok", model="meta-llama/Meta-Llama-3.1-405B-Instruct", id="resp-1", cost=0.0001):
    """Build a minimal object that looks like a LiteLLM completion response."""
    u = usage if usage is not None else {"prompt_tokens": 5, "completion_tokens": 10, "total_tokens": 15}

    class Usage:
        prompt_tokens = u.get("prompt_tokens", 0)
        completion_tokens = u.get("completion_tokens", 0)
        total_tokens = u.get("total_tokens", 0)

    class Message:
        pass

    class Choice:
        message = None

    class Response:
        pass

    msg = Message()
    msg.content = content
    choice = Choice()
    choice.message = msg
    r = Response()
    r.usage = Usage() if u else None
    r.choices = [choice]
    r.model = model
    r.id = id
    r._hidden_params = {"response_cost": cost} if cost is not None else {}
    return r


class FakeHTTPError(Exception):
    """Stand-in for a provider exception carrying an HTTP status code."""

    def __init__(self, message, status_code):
        super().__init__(message)
        self.status_code = status_code
