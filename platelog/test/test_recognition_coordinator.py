"""Tests del coordinador de reconocimiento."""
import threading
from unittest import mock

import pytest

from conftest import FakeRecognizer, plate
from platelog.application.recognition_coordinator import RecognitionCoordinator
from platelog.domain.errors import ServiceError, TransportError
from platelog.domain.Services.plate_cache import PlateCache
from platelog.infrastructure.Messaging.queue_publisher import QueueEventPublisher


@pytest.fixture
def cache(store, utc_clock):
    return PlateCache(store, clock=utc_clock)


@pytest.fixture
def publisher():
    return QueueEventPublisher()


def make_coordinator(recognizer, cache, publisher, feedback=None, **kwargs):
    return RecognitionCoordinator(recognizer, cache, publisher=publisher, feedback=feedback, **kwargs)


def test_same_plate_twice_notifies_once(cache, publisher, frame):
    feedback = mock.Mock()
    coordinator = make_coordinator(FakeRecognizer([plate("ABC1D23")]), cache, publisher, feedback)

    first = coordinator.recognize(frame)
    second = coordinator.recognize(frame)

    assert [p.text for p in first] == ["ABC1D23"]
    assert [p.text for p in second] == ["ABC1D23"]
    assert [e.plate for e in publisher.drain()] == ["ABC1D23"]
    feedback.beep.assert_called_once_with()
    feedback.vibrate.assert_called_once_with(200)
    assert coordinator.last_detected_plate == "ABC1D23"


def test_alternating_plates_notify_every_time(cache, publisher, frame):
    recognizer = FakeRecognizer([plate("AAA1A11")], [plate("BBB2B22")], [plate("AAA1A11")])
    coordinator = make_coordinator(recognizer, cache, publisher)

    for _ in range(3):
        coordinator.recognize(frame)

    assert [e.plate for e in publisher.drain()] == ["AAA1A11", "BBB2B22", "AAA1A11"]


def test_reset_last_plate_allows_renotification(cache, publisher, frame):
    coordinator = make_coordinator(FakeRecognizer([plate("AAA1A11")]), cache, publisher)

    coordinator.recognize(frame)
    coordinator.reset_last_plate()
    assert coordinator.last_detected_plate is None
    coordinator.recognize(frame)

    assert len(publisher.drain()) == 2


def test_concurrent_call_returns_empty_without_second_request(cache, publisher, frame):
    gate = threading.Event()
    recognizer = FakeRecognizer([plate("AAA1A11")], gate=gate)
    coordinator = make_coordinator(recognizer, cache, publisher)

    results = {}
    worker = threading.Thread(target=lambda: results.setdefault("first", coordinator.recognize(frame)))
    worker.start()
    assert recognizer.entered.wait(timeout=2)

    assert coordinator.is_processing
    assert coordinator.recognize(frame) == []

    gate.set()
    worker.join(timeout=2)

    assert recognizer.calls == 1
    assert [p.text for p in results["first"]] == ["AAA1A11"]
    assert not coordinator.is_processing


def test_candidates_below_threshold_are_discarded(cache, publisher, frame):
    recognizer = FakeRecognizer([plate("LOW1A11", 0.69), plate("HIG1A11", 0.7)])
    coordinator = make_coordinator(recognizer, cache, publisher)

    result = coordinator.recognize(frame)

    assert [p.text for p in result] == ["HIG1A11"]
    assert not cache.has("LOW1A11")


def test_nothing_above_threshold_returns_empty(cache, publisher, frame):
    coordinator = make_coordinator(FakeRecognizer([plate("LOW1A11", 0.3)]), cache, publisher)

    assert coordinator.recognize(frame) == []
    assert publisher.drain() == []
    assert len(cache) == 0


def test_best_candidate_is_highest_confidence(cache, publisher, frame):
    recognizer = FakeRecognizer([plate("AAA1A11", 0.8), plate("BBB2B22", 0.95), plate("CCC3C33", 0.9)])
    coordinator = make_coordinator(recognizer, cache, publisher)

    result = coordinator.recognize(frame)

    assert [p.text for p in result] == ["AAA1A11", "BBB2B22", "CCC3C33"]
    event = publisher.drain()[0]
    assert event.plate == "BBB2B22"
    assert len(event.candidates) == 3


@pytest.mark.parametrize("error", [TransportError("timeout"), ServiceError("HTTP 500", status=500)])
def test_service_errors_are_recorded_not_raised(cache, publisher, frame, error):
    coordinator = make_coordinator(FakeRecognizer(error), cache, publisher)

    assert coordinator.recognize(frame) == []
    assert coordinator.last_error is error
    assert publisher.drain() == []
    assert not coordinator.is_processing


def test_successful_call_clears_last_error(cache, publisher, frame):
    coordinator = make_coordinator(FakeRecognizer(TransportError("offline"), [plate("AAA1A11")]), cache, publisher)

    coordinator.recognize(frame)
    assert coordinator.last_error is not None
    coordinator.recognize(frame)
    assert coordinator.last_error is None


def test_cache_miss_inserts_and_hit_does_not_modify(cache, publisher, frame, utc_clock):
    cache.put("AAA1A11", region="ar", confidence=0.75)
    recognizer = FakeRecognizer([plate("AAA1A11", 0.99)], [plate("bbb2b22", 0.88)])
    coordinator = make_coordinator(recognizer, cache, publisher)

    coordinator.recognize(frame)
    coordinator.recognize(frame)

    hit, miss = publisher.drain()
    assert hit.cache_hit is True
    assert cache.get("AAA1A11").confidence == 0.75
    assert miss.cache_hit is False
    assert miss.plate == "BBB2B22"
    assert cache.get("BBB2B22").confidence == 0.88


def test_duplicate_still_inserts_cache_miss(cache, publisher, frame):
    coordinator = make_coordinator(FakeRecognizer([plate("AAA1A11")]), cache, publisher)
    coordinator.recognize(frame)
    cache.clear()

    coordinator.recognize(frame)

    assert cache.has("AAA1A11")
    assert len(publisher.drain()) == 1


def test_feedback_failure_is_swallowed(cache, publisher, frame):
    feedback = mock.Mock()
    feedback.beep.side_effect = OSError("no audio device")
    coordinator = make_coordinator(FakeRecognizer([plate("AAA1A11")]), cache, publisher, feedback)

    assert len(coordinator.recognize(frame)) == 1
    assert len(publisher.drain()) == 1


def test_publisher_failure_is_logged(cache, frame):
    broken = mock.Mock()
    broken.publish.side_effect = RuntimeError("queue closed")
    feedback = mock.Mock()
    coordinator = make_coordinator(FakeRecognizer([plate("AAA1A11")]), cache, broken, feedback)

    assert len(coordinator.recognize(frame)) == 1
    feedback.beep.assert_called_once()


def test_region_hint_is_forwarded(cache, publisher, frame):
    recognizer = mock.Mock()
    recognizer.recognize.return_value = []
    coordinator = make_coordinator(recognizer, cache, publisher, region="br")

    coordinator.recognize(frame)

    recognizer.recognize.assert_called_once_with(frame, "br")


def test_returned_candidates_are_untouched_and_best_is_normalized(cache, publisher, frame):
    candidates = [plate("abc-1d23x", 0.95), plate("xyz-1a23", 0.8), plate("low1a11", 0.2)]
    coordinator = make_coordinator(FakeRecognizer(candidates), cache, publisher)

    result = coordinator.recognize(frame)

    assert result == candidates[:2]
    assert coordinator.last_detected_plate == "ABC1D23X"
    assert cache.has("ABC1D23X")
    assert publisher.drain()[0].plate == "ABC1D23X"


def test_unexpected_recognizer_error_is_recorded(cache, publisher, frame):
    coordinator = make_coordinator(FakeRecognizer(ValueError("could not convert string to float")), cache, publisher)

    assert coordinator.recognize(frame) == []
    assert isinstance(coordinator.last_error, ServiceError)
    assert not coordinator.is_processing


def test_vibrate_runs_when_beep_fails(cache, publisher, frame):
    feedback = mock.Mock()
    feedback.beep.side_effect = OSError("no audio device")
    coordinator = make_coordinator(FakeRecognizer([plate("AAA1A11")]), cache, publisher, feedback)

    coordinator.recognize(frame)

    feedback.vibrate.assert_called_once_with(200)
