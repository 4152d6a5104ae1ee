import threading
import unittest
from unittest.mock import patch

import pytest

from nodecidr.observability.metrics import (
    FailureBucket,
    LoggerBackend,
    MetricsCollector,
    PrometheusBackend,
    bucket_for,
    get_global_collector,
    start_metrics_server,
)
from nodecidr.utils.exceptions import (
    AddressCardinalityError,
    InterfaceCardinalityError,
    MalformedAddressError,
    NodeCIDRError,
    NodeUpdateError,
    RegistryUnavailable,
    ResolutionCancelled,
    UnassignedOwnerError,
)


class TestLoggerBackend(unittest.TestCase):
    def test_increment_counter(self):
        backend = LoggerBackend()
        backend.increment("test_counter", 1)
        backend.increment("test_counter", 2, tags={"status": "ok"})

        counters = backend.get_summary()["counters"]

        self.assertEqual(counters["test_counter"], 1)
        self.assertEqual(counters["test_counter[status=ok]"], 2)

    def test_timing(self):
        backend = LoggerBackend()
        backend.timing("test_timer", 100)
        backend.timing("test_timer", 200)

        timings = backend.get_summary()["timings"]

        self.assertEqual(timings["test_timer"]["count"], 2)
        self.assertEqual(timings["test_timer"]["avg"], 150.0)
        self.assertEqual(timings["test_timer"]["max"], 200)

    def test_concurrent_increments(self):
        backend = LoggerBackend()

        def bump():
            for _ in range(1000):
                backend.increment("racy")

        threads = [threading.Thread(target=bump) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(backend.get_summary()["counters"]["racy"], 8000)


class TestMetricsCollector(unittest.TestCase):
    def test_singleton(self):
        self.assertIs(get_global_collector(), get_global_collector())

    def test_failure_counters_start_at_zero(self):
        collector = MetricsCollector()

        for bucket in FailureBucket:
            self.assertEqual(collector.failure_count(bucket), 0)

    def test_record_failure(self):
        collector = MetricsCollector()

        bucket = collector.record_failure(AddressCardinalityError("hostname", got=2))

        self.assertEqual(bucket, FailureBucket.REGISTRY_RESULT)
        self.assertEqual(collector.failure_count(FailureBucket.REGISTRY_RESULT), 1)
        self.assertEqual(collector.failure_count(FailureBucket.REGISTRY_TRANSPORT), 0)

    def test_count_reconcile(self):
        collector = MetricsCollector()
        collector.count_reconcile("updated")
        collector.count_reconcile("updated")

        counters = collector.get_summary()["counters"]

        self.assertEqual(counters["reconcile_total[outcome=updated]"], 2)

    def test_unknown_backend_falls_back(self):
        collector = MetricsCollector(backend="statsd")

        self.assertIsInstance(collector.backend, LoggerBackend)


class TestPrometheusBackend(unittest.TestCase):
    def test_counters_are_exported(self):
        backend = PrometheusBackend()
        backend.increment("k8s_fails")
        backend.increment("k8s_fails", 2)

        self.assertEqual(backend.registry.get_sample_value("k8s_fails_total"), 3.0)
        self.assertEqual(backend.get_summary()["counters"]["k8s_fails"], 3)

    def test_tags_become_labels(self):
        backend = PrometheusBackend()
        backend.increment("reconcile_total", tags={"outcome": "updated"})
        backend.increment("reconcile_total", tags={"outcome": "failed"})
        backend.increment("reconcile_total", tags={"outcome": "updated"})

        value = backend.registry.get_sample_value("reconcile_total", {"outcome": "updated"})
        self.assertEqual(value, 2.0)

    def test_timing_is_a_histogram(self):
        backend = PrometheusBackend()
        backend.timing("netbox_latency_ms", 42.0, tags={"endpoint": "ipam/ip-addresses/"})

        labels = {"endpoint": "ipam/ip-addresses/"}
        self.assertEqual(backend.registry.get_sample_value("netbox_latency_ms_count", labels), 1.0)
        self.assertEqual(backend.registry.get_sample_value("netbox_latency_ms_sum", labels), 42.0)

    def test_backends_do_not_share_registries(self):
        first = PrometheusBackend()
        second = PrometheusBackend()
        first.increment("netbox_fails")

        self.assertIsNone(second.registry.get_sample_value("netbox_fails_total"))


class TestPrometheusCollector(unittest.TestCase):
    def test_failure_buckets_exported_at_zero(self):
        collector = MetricsCollector(backend="prometheus")

        for bucket in FailureBucket:
            sample = collector.registry.get_sample_value(f"{bucket.value}_total")
            self.assertEqual(sample, 0.0)

    def test_record_failure_reaches_registry(self):
        collector = MetricsCollector(backend="prometheus")

        collector.record_failure(NodeUpdateError("node001", "patch"))

        self.assertEqual(collector.registry.get_sample_value("k8s_fails_total"), 1.0)
        self.assertEqual(collector.failure_count(FailureBucket.NODE_UPDATE), 1)

    def test_logger_backend_has_no_registry(self):
        self.assertIsNone(MetricsCollector().registry)

    @patch("nodecidr.observability.metrics.start_http_server")
    def test_start_metrics_server(self, mock_start):
        collector = MetricsCollector(backend="prometheus")

        start_metrics_server(collector, 32280, "127.0.0.1")

        mock_start.assert_called_once_with(
            32280, addr="127.0.0.1", registry=collector.registry
        )

    def test_start_metrics_server_needs_prometheus(self):
        with self.assertRaises(ValueError):
            start_metrics_server(MetricsCollector(), 32280)


@pytest.mark.parametrize(
    "error,bucket",
    [
        (RegistryUnavailable("down"), FailureBucket.REGISTRY_TRANSPORT),
        (ResolutionCancelled("node001", 5.0), FailureBucket.REGISTRY_TRANSPORT),
        (AddressCardinalityError("hostname", got=0), FailureBucket.REGISTRY_RESULT),
        (AddressCardinalityError("management-address", got=3), FailureBucket.REGISTRY_RESULT),
        (InterfaceCardinalityError("management-interface", got=2), FailureBucket.REGISTRY_RESULT),
        (UnassignedOwnerError("10.0.0.1/32", None), FailureBucket.REGISTRY_RESULT),
        (MalformedAddressError("not-an-ip/24"), FailureBucket.REGISTRY_RESULT),
        (NodeUpdateError("node001", "patch"), FailureBucket.NODE_UPDATE),
    ],
)
def test_bucket_mapping(error, bucket):
    assert bucket_for(error) == bucket


def test_bucket_mapping_rejects_unclassified_errors():
    with pytest.raises(TypeError):
        bucket_for(NodeCIDRError("unclassified"))


def test_bucket_names_match_counter_names():
    assert FailureBucket.REGISTRY_TRANSPORT.value == "netbox_fails"
    assert FailureBucket.REGISTRY_RESULT.value == "netbox_result_fails"
    assert FailureBucket.NODE_UPDATE.value == "k8s_fails"
