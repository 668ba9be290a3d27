import threading

import requests

from curlpoke.core.config import CounterConfig
from curlpoke.remote.counter import UNAVAILABLE, RemoteCounterClient


class FakeResponse:
    def __init__(self, payload=None, status=200):
        self.payload = payload
        self.status = status

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status}")

    def json(self):
        return self.payload


class FakeHTTP:
    def __init__(self, total=41, fail=None, post_status=200):
        self.total = total
        self.fail = fail
        self.post_status = post_status
        self.calls = []

    def get(self, url, params=None, headers=None, timeout=None):
        self.calls.append(("GET", url, params, headers))
        if self.fail:
            raise self.fail
        return FakeResponse([{"total": self.total}])

    def post(self, url, json=None, headers=None, timeout=None):
        self.calls.append(("POST", url, json, headers))
        if self.fail:
            raise self.fail
        if self.post_status < 400:
            self.total += json["delta"]
        return FakeResponse(None, self.post_status)

    def close(self):
        pass


CFG = CounterConfig(url="https://counter.example", key="anon", poll_s=0)


def client(http, cfg=CFG):
    return RemoteCounterClient(cfg, session=http, spawn=lambda fn: fn())


def test_unconfigured_counter_is_unavailable_and_silent():
    http = FakeHTTP()
    c = client(http, CounterConfig())
    c.init()
    c.increment(1)
    assert not c.available
    assert c.display_text() == UNAVAILABLE
    assert http.calls == []


def test_init_fetches_the_singleton_record():
    http = FakeHTTP(total=1234)
    c = client(http)
    c.init()
    assert c.total == 1234
    assert c.display_text() == "1,234"
    method, url, params, headers = http.calls[0]
    assert method == "GET"
    assert url == "https://counter.example/rest/v1/global_counter"
    assert params == {"id": "eq.1", "select": "total"}
    assert headers["apikey"] == "anon"


def test_increment_adds_then_reconciles():
    http = FakeHTTP(total=41)
    c = client(http)
    seen = []
    c.subscribe(seen.append)

    c.increment(1)

    assert [m for m, *_ in http.calls] == ["POST", "GET"]
    assert http.calls[0][1] == "https://counter.example/rest/v1/rpc/increment_global_total"
    assert http.calls[0][2] == {"delta": 1}
    assert c.total == 42
    assert seen == [42]


def test_network_errors_are_swallowed():
    c = client(FakeHTTP(fail=requests.ConnectionError("down")))
    c.init()
    c.increment(1)
    assert c.total is None
    assert c.display_text() == UNAVAILABLE


def test_failed_rpc_keeps_last_known_value():
    http = FakeHTTP(total=10)
    c = client(http)
    c.init()
    http.post_status = 500
    c.increment(1)
    assert c.display_text() == "10"
    assert [m for m, *_ in http.calls] == ["GET", "POST"]


def test_missing_record_and_bad_payloads():
    http = FakeHTTP()
    http.get = lambda *a, **k: FakeResponse([])
    c = client(http)
    assert c.fetch() is None

    http.get = lambda *a, **k: FakeResponse([{"total": "lots"}])
    assert c.fetch() == 0

    for payload in ({"message": "relation does not exist"}, [3], "ok", None):
        http.get = lambda *a, p=payload, **k: FakeResponse(p)
        assert c.fetch() is None
    assert c.total == 0


def test_broken_observer_does_not_break_updates():
    c = client(FakeHTTP(total=7))

    def boom(_):
        raise RuntimeError("observer bug")

    c.subscribe(boom)
    assert c.fetch() == 7
    assert c.total == 7


def test_config_from_env():
    cfg = CounterConfig.from_env({
        "CURLPOKE_COUNTER_URL": "https://x.example/",
        "CURLPOKE_COUNTER_KEY": "k",
        "CURLPOKE_COUNTER_POLL_S": "2.5",
    })
    assert cfg.url == "https://x.example"
    assert cfg.key == "k"
    assert cfg.poll_s == 2.5
    assert cfg.enabled
    assert not CounterConfig.from_env({}).enabled


def test_init_starts_a_watcher_that_feeds_observers():
    http = FakeHTTP(total=5)
    c = client(http, CounterConfig(url="https://counter.example", poll_s=0.01))
    seen = []
    polled = threading.Event()

    def observe(total):
        seen.append(total)
        if total == 6:
            polled.set()

    c.subscribe(observe)
    c.init()
    assert seen[0] == 5

    http.total = 6
    try:
        assert polled.wait(2.0)
    finally:
        c.close()
    assert c.total == 6
    assert c._watcher.daemon


def test_a_bad_poll_does_not_stop_the_watcher():
    http = FakeHTTP(total=3)
    c = client(http)

    def broken(*a, **k):
        raise RuntimeError("proxy returned garbage")

    http.get = broken
    c.poll_once()
    assert c.total is None

    del http.get
    c.poll_once()
    assert c.total == 3
