import pytest

QtCore = pytest.importorskip("PyQt6.QtCore")

from simEngine.qt_frame_driver import FrameDriver
from simEngine.sim_engine_backend import SimulationEngine


@pytest.fixture(scope="module")
def app():
    instance = QtCore.QCoreApplication.instance()
    if instance is None:
        instance = QtCore.QCoreApplication([])
    return instance


@pytest.fixture
def driver(app):
    d = FrameDriver(SimulationEngine(), interval_ms=5)
    yield d
    d.stop()


def test_frame_ticks_engine_and_emits(driver):
    received = []
    driver.snapshot_ready.connect(received.append)
    driver._elapsed.start()
    driver._on_frame()
    assert len(received) == 1
    assert received[0].position_x == 0.0


def test_start_and_stop(driver):
    driver.start()
    assert driver.is_active()
    driver.stop()
    assert not driver.is_active()


def test_timer_drives_engine(app, driver):
    received = []
    driver.snapshot_ready.connect(received.append)
    driver.engine.play()
    driver.start()

    loop = QtCore.QEventLoop()
    QtCore.QTimer.singleShot(200, loop.quit)
    loop.exec()

    assert len(received) > 1
    assert received[-1].position_x > 0.0
