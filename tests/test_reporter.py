import logging
import time
import requests

from expressions.models import DetectorOutput
from expressions.reporter import CounterReporter


class FakeResponse:
    def __init__(self, status_code=201):
        self.status_code = status_code
        self.ok = 200 <= status_code < 300


class FakeSession:
    def __init__(self, responses=None):
        self.posts = []
        self.responses = list(responses or [])

    def post(self, url, json=None, timeout=None):
        self.posts.append((url, json, timeout))
        nxt = self.responses.pop(0) if self.responses else FakeResponse()
        if isinstance(nxt, Exception):
            raise nxt
        return nxt


class FakeClock:
    def __init__(self):
        self.t = 100.0
    def __call__(self):
        return self.t


def make(session, clock=None, interval=0.0):
    return CounterReporter("http://example.test/gestos", min_interval=interval, timeout=2.0,
                           session=session, clock=clock or FakeClock())


def test_observe_only_queues_changes():
    r = make(FakeSession())
    assert r.observe(DetectorOutput()) is False  # initial zeros are not news
    assert r.observe(DetectorOutput(blinks=1)) is True
    assert r.observe(DetectorOutput(blinks=1, eye_is_closed=True)) is False
    assert r.observe(DetectorOutput(blinks=1, mouth_opens=1)) is True
    assert r.pending == 2


def test_drain_posts_original_payload_keys():
    s = FakeSession()
    r = make(s)
    r.observe(DetectorOutput(blinks=2, brow_raises=1, mouth_opens=3))
    assert r.drain() == 1
    url, payload, timeout = s.posts[0]
    assert url == "http://example.test/gestos" and timeout == 2.0
    assert (payload["Parpadeo"], payload["Cejas"], payload["Boca"]) == (2, 1, 3)
    assert payload["Fecha_Hora"].endswith("Z")


def test_reset_posts_zeros_and_resets_baseline():
    s = FakeSession()
    r = make(s)
    r.observe(DetectorOutput(blinks=1))
    r.report_reset()
    # same counts as before the reset are news again
    assert r.observe(DetectorOutput(blinks=1)) is True
    r.drain()
    assert [p[1]["Parpadeo"] for p in s.posts] == [1, 0, 1]


def test_throttle_waits_between_posts(monkeypatch):
    clock = FakeClock()
    r = make(FakeSession(), clock=clock, interval=0.8)
    waits = []
    monkeypatch.setattr(r._stop, "wait", lambda d: waits.append(round(d, 3)))
    r.observe(DetectorOutput(blinks=1))
    r.observe(DetectorOutput(blinks=2))
    r.drain()
    # first post goes straight out, the second waits a full interval
    assert waits == [0.8]


def test_failed_posts_are_logged_and_dropped(caplog):
    s = FakeSession([FakeResponse(500), requests.ConnectionError("down"), FakeResponse(201)])
    r = make(s)
    for n in (1, 2, 3):
        r.observe(DetectorOutput(blinks=n))
    with caplog.at_level(logging.WARNING):
        assert r.drain() == 1
    assert len(s.posts) == 3
    assert "status=500" in caplog.text
    assert "POST failed" in caplog.text
    assert r.pending == 0


def test_disabled_without_url():
    s = FakeSession()
    r = CounterReporter("", session=s)
    assert r.enabled is False
    assert r.observe(DetectorOutput(blinks=1)) is False
    r.report_reset()
    r.start()
    assert r.drain() == 0 and s.posts == []


def test_worker_thread_delivers():
    s = FakeSession()
    r = make(s)
    r.start()
    try:
        r.observe(DetectorOutput(blinks=1))
        deadline = time.time() + 2.0
        while not s.posts and time.time() < deadline:
            time.sleep(0.01)
    finally:
        r.close()
    assert s.posts and s.posts[0][1]["Parpadeo"] == 1
