"""Tests for the shared, reference-counted edge driver handle."""

from unittest.mock import Mock

from weatherstn.drivers.edge_bus import SharedEdgeBus


class TestSharedEdgeBus:
    def test_opens_once_and_closes_on_last_release(self, edge_driver, edge_bus):
        edge_bus.acquire()
        edge_bus.acquire()
        assert edge_driver.open_count == 1

        edge_bus.release()
        assert edge_driver.is_open

        edge_bus.release()
        assert not edge_driver.is_open
        assert edge_driver.close_count == 1

    def test_extra_release_is_ignored(self, edge_driver, edge_bus):
        edge_bus.acquire()
        edge_bus.release()
        edge_bus.release()

        assert edge_driver.close_count == 1
        assert edge_bus.users == 0

    def test_close_error_is_not_fatal(self):
        driver = Mock()
        driver.close.side_effect = OSError("already closed")
        bus = SharedEdgeBus(driver)

        bus.acquire()
        bus.release()

        driver.close.assert_called_once()
        assert bus.users == 0

    def test_watch_delegates_to_driver(self, edge_driver, edge_bus):
        hits = []
        edge_bus.watch(5, lambda: hits.append(1))
        edge_driver.pulse(5, 3)
        edge_bus.unwatch(5)
        edge_driver.pulse(5)

        assert len(hits) == 3
        assert edge_driver.watched_pins() == []
