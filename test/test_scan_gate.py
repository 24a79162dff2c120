from conftest import FakeClock

from instabill.domain.models import ScanEvent, ScanKind
from instabill.services.scan_gate import ScanGate


def _barcode(v: str) -> ScanEvent:
    return ScanEvent(kind=ScanKind.BARCODE, value=v)


def test_same_barcode_within_window_is_suppressed():
    clock = FakeClock()
    gate = ScanGate(3.0, clock=clock)

    assert gate.admit(_barcode("123")) is True
    clock.advance(2.9)
    assert gate.admit(_barcode("123")) is False


def test_same_barcode_after_window_is_admitted_again():
    clock = FakeClock()
    gate = ScanGate(3.0, clock=clock)

    assert gate.admit(_barcode("123")) is True
    clock.advance(3.0)
    assert gate.admit(_barcode("123")) is True


def test_different_barcode_replaces_cooldown():
    clock = FakeClock()
    gate = ScanGate(3.0, clock=clock)

    assert gate.admit(_barcode("A")) is True
    assert gate.admit(_barcode("B")) is True
    # A is no longer the code in cooldown
    assert gate.admit(_barcode("A")) is True


def test_image_scans_are_never_deduplicated():
    gate = ScanGate(3.0, clock=FakeClock())
    image = ScanEvent(kind=ScanKind.IMAGE, value="data:image/png;base64,AAAA")

    assert gate.admit(image) is True
    assert gate.admit(image) is True


def test_nothing_is_admitted_while_a_scan_is_in_flight():
    gate = ScanGate(3.0, clock=FakeClock())

    with gate.hold():
        assert gate.in_flight is True
        assert gate.admit(_barcode("X")) is False
        assert gate.admit(ScanEvent(kind=ScanKind.IMAGE, value="img")) is False

    assert gate.in_flight is False
    assert gate.admit(_barcode("X")) is True


def test_hold_is_released_when_processing_fails():
    gate = ScanGate(3.0, clock=FakeClock())
    try:
        with gate.hold():
            raise RuntimeError("lookup crashed")
    except RuntimeError:
        pass

    assert gate.in_flight is False
