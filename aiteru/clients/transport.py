"""urllib ベースの JSON HTTP ヘルパー."""
import json
from urllib.parse import urlencode
from urllib.request import Request, urlopen

USER_AGENT = "ImaAiteruKun-App/1.0"


def build_url(base_url, params=None):
    if not params:
        return base_url
    return f"{base_url}?{urlencode(params)}"


def fetch_json(url, params=None, headers=None, body=None, timeout=10):
    """
    GET (body=None) or POST a JSON body and decode the JSON response.

    Network errors and non-2xx statuses propagate as urllib exceptions;
    callers decide whether that is fatal or degrades to a default.
    """
    request_headers = {"User-Agent": USER_AGENT, "Accept": "application/json"}
    if headers:
        request_headers.update(headers)

    data = None
    if body is not None:
        data = json.dumps(body).encode("utf-8")
        request_headers["Content-Type"] = "application/json"

    request = Request(build_url(url, params), data=data, headers=request_headers)
    with urlopen(request, timeout=timeout) as response:
        raw = response.read().decode("utf-8")
    return json.loads(raw) if raw.strip() else None
