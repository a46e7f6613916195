from conftest import FakeClock

from seller_harvester.progress import ProgressTracker, format_duration


def test_counts_found_and_missing_sellers():
    clock = FakeClock()
    tracker = ProgressTracker(clock=clock.time)
    tracker.start(4)

    for found in (True, False, True):
        clock.sleep(10)
        tracker.record(found)

    assert (tracker.done, tracker.found, tracker.missing) == (3, 2, 1)
    assert round(tracker.found_rate) == 67
    assert tracker.eta_seconds() == 10


def test_status_line():
    clock = FakeClock()
    tracker = ProgressTracker(clock=clock.time)
    tracker.start(10)
    assert "ETA calculating..." in tracker.status_line()

    clock.sleep(30)
    tracker.record(True)
    assert tracker.status_line() == (
        "1/10 sellers | emails 1 (100%), missing 0 | ETA 4m 30s | elapsed 30s"
    )


def test_format_duration():
    assert format_duration(42) == "42s"
    assert format_duration(125) == "2m 5s"
    assert format_duration(3720) == "1h 2m"
