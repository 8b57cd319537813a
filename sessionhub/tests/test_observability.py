import sys
import unittest
from unittest.mock import MagicMock, patch

from sessionhub.observability import otel


class ObservabilityTests(unittest.TestCase):
    def test_disabled_recorders_are_no_ops(self) -> None:
        counter = MagicMock()
        with patch.object(otel, "_enabled", False), \
                patch.object(otel, "_prom_enabled", False), \
                patch.object(otel, "_source_read_counter", counter), \
                patch.object(otel, "_malformed_record_counter", counter):
            otel.record_source_read("logs", "ok", 12.0)
            otel.record_malformed_record("logs", 3)
            with otel.start_span("sessionhub.aggregate") as span:
                self.assertIsNone(span)

        counter.add.assert_not_called()

    def test_enabled_recorders_emit_labelled_measurements(self) -> None:
        reads = MagicMock()
        latency = MagicMock()
        malformed = MagicMock()
        with patch.object(otel, "_enabled", True), \
                patch.object(otel, "_prom_enabled", False), \
                patch.object(otel, "_source_read_counter", reads), \
                patch.object(otel, "_source_read_latency_hist", latency), \
                patch.object(otel, "_malformed_record_counter", malformed):
            otel.record_source_read("index", "unavailable", -5)
            otel.record_malformed_record("", 2)
            otel.record_malformed_record("logs", 0)

        reads.add.assert_called_once_with(1, {"source": "index", "result": "unavailable"})
        latency.record.assert_called_once_with(0.0, {"source": "index", "result": "unavailable"})
        malformed.add.assert_called_once_with(2, {"source": "unknown"})

    def test_prometheus_fallback_uses_label_children(self) -> None:
        reads = MagicMock()
        latency = MagicMock()
        malformed = MagicMock()
        with patch.object(otel, "_enabled", False), \
                patch.object(otel, "_prom_enabled", True), \
                patch.object(otel, "_prom_source_read_counter", reads), \
                patch.object(otel, "_prom_source_read_latency_hist", latency), \
                patch.object(otel, "_prom_malformed_record_counter", malformed):
            otel.record_source_read("", "ok", 7.5)
            otel.record_malformed_record("logs", 4)

        reads.labels.assert_called_once_with(source="unknown", result="ok")
        reads.labels.return_value.inc.assert_called_once_with()
        latency.labels.return_value.observe.assert_called_once_with(7.5)
        malformed.labels.assert_called_once_with(source="logs")
        malformed.labels.return_value.inc.assert_called_once_with(4)

    def test_enabled_span_sets_only_present_attributes(self) -> None:
        tracer = MagicMock()
        span = tracer.start_as_current_span.return_value.__enter__.return_value
        with patch.object(otel, "_enabled", True), patch.object(otel, "_tracer", tracer):
            with otel.start_span("sessionhub.read", {"source": "logs", "filter": None}) as current:
                self.assertIs(current, span)

        tracer.start_as_current_span.assert_called_once_with("sessionhub.read")
        span.set_attribute.assert_called_once_with("source", "logs")

    def test_initialize_without_dependencies_stays_disabled(self) -> None:
        with patch.object(otel, "_initialized", False), \
                patch.object(otel, "_enabled", False), \
                patch.object(otel.config, "OTEL_ENABLED", True), \
                patch.dict(sys.modules, {"opentelemetry": None}):
            with self.assertLogs("sessionhub.observability", "WARNING"):
                otel.initialize()
            self.assertFalse(otel._enabled)
            with otel.start_span("sessionhub.aggregate") as span:
                self.assertIsNone(span)

    def test_normalize_otlp_endpoint(self) -> None:
        self.assertEqual(otel._normalize_otlp_endpoint("", "/v1/traces"), "")
        self.assertEqual(
            otel._normalize_otlp_endpoint("http://collector:4318/", "/v1/traces"),
            "http://collector:4318/v1/traces",
        )
        self.assertEqual(
            otel._normalize_otlp_endpoint("http://collector:4318/v1", "/v1/metrics"),
            "http://collector:4318/v1/metrics",
        )
        self.assertEqual(
            otel._normalize_otlp_endpoint("http://collector:4318/v1/traces", "/v1/traces"),
            "http://collector:4318/v1/traces",
        )


if __name__ == "__main__":
    unittest.main()
