"""
Unit tests for counters and gauges.
"""
import threading
import unittest

from ddmetrics.core.counter import Counter, FlashCounter
from ddmetrics.core.gauge import Gauge, GaugeF
from ddmetrics.core.metric import MT_COUNTER, MT_GAUGE, Series, metric_id


class TestMetricId(unittest.TestCase):
    """Registry identity."""

    def test_tag_order_insensitive(self):
        self.assertEqual(metric_id("x", ["b", "a"]), metric_id("x", ["a", "b"]))

    def test_format(self):
        self.assertEqual(metric_id("x", ["b", "a"]), "x|a,b")
        self.assertEqual(metric_id("x"), "x|")

    def test_does_not_mutate_tags(self):
        tags = ["b", "a"]
        metric_id("x", tags)
        self.assertEqual(tags, ["b", "a"])

    def test_different_tags_differ(self):
        self.assertNotEqual(metric_id("x", ["a"]), metric_id("x", ["b"]))

    def test_metric_id_property(self):
        self.assertEqual(Counter("x", ["b", "a"]).id, "x|a,b")


class TestCounter(unittest.TestCase):
    """Tests for Counter."""

    def test_inc_dec(self):
        c = Counter("requests")
        c.inc()
        c.inc(5)
        c.dec(2)
        self.assertEqual(c.count(), 4)

    def test_negative_values_accepted(self):
        c = Counter("requests")
        c.dec(3)
        self.assertEqual(c.count(), -3)

    def test_clear(self):
        c = Counter("requests")
        c.inc(5)
        c.clear()
        self.assertEqual(c.count(), 0)

    def test_flush(self):
        c = Counter("requests", ["env:test"])
        c.inc(7)
        self.assertEqual(
            c.flush(100),
            [Series("requests.count", 100, 7, MT_COUNTER, ["env:test"])],
        )
        # lifetime total survives a flush
        self.assertEqual(c.count(), 7)

    def test_concurrent_inc_is_exact(self):
        c = Counter("requests")

        def produce():
            for _ in range(10000):
                c.inc(1)

        threads = [threading.Thread(target=produce) for _ in range(10)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(c.count(), 100000)


class TestFlashCounter(unittest.TestCase):
    """Tests for FlashCounter."""

    def test_flush_reports_and_resets(self):
        c = FlashCounter("events")
        c.inc(5)
        series = c.flush(1)
        self.assertEqual(series[0].value, 5)
        self.assertEqual(series[0].type, MT_COUNTER)
        self.assertEqual(c.count(), 0)

    def test_flush_reports_delta(self):
        c = FlashCounter("events")
        c.inc(5)
        c.flush(1)
        c.inc(2)
        self.assertEqual(c.flush(2)[0].value, 2)
        self.assertEqual(c.flush(3)[0].value, 0)

    def test_concurrent_increments_are_not_lost(self):
        c = FlashCounter("events")
        stop = threading.Event()
        produced = []

        def produce():
            n = 0
            while not stop.is_set():
                c.inc(1)
                n += 1
            produced.append(n)

        t = threading.Thread(target=produce)
        t.start()
        flushed = 0
        for ts in range(50):
            flushed += c.flush(ts)[0].value
        stop.set()
        t.join()
        flushed += c.flush(99)[0].value

        self.assertEqual(flushed, produced[0])


class TestGauge(unittest.TestCase):
    """Tests for Gauge and GaugeF."""

    def test_gauge_update(self):
        g = Gauge("queue.depth")
        g.update(42)
        g.update(17)
        self.assertEqual(g.value(), 17)

    def test_gauge_flush(self):
        g = Gauge("queue.depth", ["q:main"])
        g.update(3)
        self.assertEqual(
            g.flush(10),
            [Series("queue.depth.value", 10, 3, MT_GAUGE, ["q:main"])],
        )

    def test_gauge_f(self):
        g = GaugeF("load")
        self.assertEqual(g.value(), 0.0)
        g.update(0.75)
        self.assertEqual(g.value(), 0.75)
        series = g.flush(10)
        self.assertEqual(series[0].metric, "load.value")
        self.assertEqual(series[0].value, 0.75)
        self.assertEqual(series[0].type, MT_GAUGE)


class TestSeries(unittest.TestCase):
    """Wire shape of series points."""

    def test_to_dict(self):
        s = Series("a.count", 100, 5, MT_COUNTER, ["x:1"], host="web-1")
        self.assertEqual(s.to_dict(), {
            "metric": "a.count",
            "points": [[100, 5]],
            "type": "counter",
            "host": "web-1",
            "tags": ["x:1"],
        })

    def test_to_dict_omits_empty_host_and_tags(self):
        s = Series("a.value", 100, 1.5, MT_GAUGE)
        self.assertEqual(s.to_dict(), {
            "metric": "a.value",
            "points": [[100, 1.5]],
            "type": "gauge",
        })

    def test_series_tags_are_copies(self):
        c = Counter("a", ["x:1"])
        s = c.flush(1)[0]
        s.tags.append("y:2")
        self.assertEqual(c.tags, ["x:1"])


if __name__ == "__main__":
    unittest.main()
