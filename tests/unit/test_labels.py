import base64

import pytest
from google.cloud.audit import audit_log_pb2

from cloudlogging.decoders import AUDIT_LOG_TYPE, DEFAULT_REGISTRY, REQUEST_LOG_TYPE
from cloudlogging.labels import build_labels, format_duration, provider_label_key
from cloudlogging.models import LogEntry
from config import NormalizationConfig


def test_entry_without_labels_or_resource(rest_entry):
    entry = LogEntry.from_api(rest_entry())

    assert build_labels(entry) == {"id": "insert-id", "level": "info"}


def test_resource_labels(rest_entry):
    entry = LogEntry.from_api(
        rest_entry(resource={"type": "gce_instance", "labels": {"instance_id": "123456"}})
    )

    assert build_labels(entry) == {
        "id": "insert-id",
        "level": "info",
        "resource.type": "gce_instance",
        "resource.labels.instance_id": "123456",
    }


def test_provider_labels_are_quoted_by_default(rest_entry):
    entry = LogEntry.from_api(
        rest_entry(
            "insert-id2",
            labels={"pid": "111", "LOG_BUCKET_NUM": "1"},
            resource={"type": "cloudsql_database", "labels": {"instance_id": "98765"}},
        )
    )

    assert build_labels(entry) == {
        "id": "insert-id2",
        "level": "info",
        "resource.type": "cloudsql_database",
        "resource.labels.instance_id": "98765",
        'labels."pid"': "111",
        'labels."LOG_BUCKET_NUM"': "1",
    }


def test_provider_labels_raw_style(rest_entry):
    entry = LogEntry.from_api(rest_entry(labels={"pid": "111"}))

    labels = build_labels(entry, NormalizationConfig(label_key_style="raw"))

    assert labels == {"id": "insert-id", "level": "info", "pid": "111"}


def test_json_payload_fields_without_message(rest_entry):
    entry = LogEntry.from_api(
        rest_entry(
            "insert-id4",
            severity="ALERT",
            labels={"logging.googleapis.com/instrumentation_source": "agent.googleapis.com/thirdparty"},
            jsonPayload={
                "tid": 222,
                "db": "database-experiencing-error",
                "is_serious": True,
                "message": "Something very bad happened!",
                "service_context": {"service": "some-service", "version": "v42"},
            },
        )
    )

    assert build_labels(entry) == {
        "id": "insert-id4",
        "level": "alert",
        'labels."logging.googleapis.com/instrumentation_source"': "agent.googleapis.com/thirdparty",
        "jsonPayload.db": "database-experiencing-error",
        "jsonPayload.is_serious": "true",
        "jsonPayload.service_context.service": "some-service",
        "jsonPayload.service_context.version": "v42",
        "jsonPayload.tid": "222",
    }


def test_json_payload_field_types(rest_entry):
    entry = LogEntry.from_api(
        rest_entry(
            jsonPayload={
                "string_field": "test",
                "number_field": 42.5,
                "bool_field": False,
                "null_field": None,
                "list_field": ["item1", 2],
            }
        )
    )

    labels = build_labels(entry)

    assert labels["jsonPayload.string_field"] == "test"
    assert labels["jsonPayload.number_field"] == "42.5"
    assert labels["jsonPayload.bool_field"] == "false"
    assert labels["jsonPayload.null_field"] == "null_value:NULL_VALUE"
    assert labels["jsonPayload.list_field[0]"] == "item1"
    assert labels["jsonPayload.list_field[1]"] == "2"


def test_text_payload_adds_no_label(rest_entry):
    entry = LogEntry.from_api(rest_entry(textPayload="This is a text log message"))

    assert build_labels(entry) == {"id": "insert-id", "level": "info"}


def test_trace_and_span(rest_entry):
    entry = LogEntry.from_api(
        rest_entry(
            trace="projects/my-project/traces/06796866738c859f2f19b7cfb3214824",
            spanId="000000000000004a",
        )
    )

    assert build_labels(entry) == {
        "id": "insert-id",
        "level": "info",
        "trace": "projects/my-project/traces/06796866738c859f2f19b7cfb3214824",
        "traceId": "06796866738c859f2f19b7cfb3214824",
        "spanId": "000000000000004a",
    }


@pytest.mark.parametrize("type_name", [AUDIT_LOG_TYPE, REQUEST_LOG_TYPE])
def test_known_proto_payload_with_empty_bytes_adds_no_label(rest_entry, type_name: str):
    entry = LogEntry.from_api(rest_entry(protoPayload={"@type": f"type.googleapis.com/{type_name}", "value": ""}))

    assert build_labels(entry) == {"id": "insert-id", "level": "info"}


def test_proto_payload_rendered_by_the_provider(rest_entry):
    entry = LogEntry.from_api(
        rest_entry(
            protoPayload={
                "@type": f"type.googleapis.com/{AUDIT_LOG_TYPE}",
                "methodName": "storage.objects.get",
                "authenticationInfo": {"principalEmail": "ada@example.com"},
            }
        )
    )

    labels = build_labels(entry)

    assert labels["protoPayload.methodName"] == "storage.objects.get"
    assert labels["protoPayload.authenticationInfo.principalEmail"] == "ada@example.com"
    assert "protoPayload.@type" not in labels


def test_unknown_proto_payload_adds_no_label(rest_entry):
    entry = LogEntry.from_api(rest_entry(protoPayload={"@type": "type.googleapis.com/some.Unknown", "value": "AAE="}))

    assert build_labels(entry) == {"id": "insert-id", "level": "info"}


def test_undecodable_proto_payload_adds_no_label(rest_entry):
    def _broken(value: bytes) -> dict:
        raise ValueError("corrupt")

    registry = DEFAULT_REGISTRY.with_decoder("my.Type", _broken)
    entry = LogEntry.from_api(rest_entry(protoPayload={"@type": "type.googleapis.com/my.Type", "value": "AAE="}))

    assert build_labels(entry, registry=registry) == {"id": "insert-id", "level": "info"}


def test_http_request_labels_with_latency(rest_entry):
    entry = LogEntry.from_api(
        rest_entry(
            httpRequest={"requestMethod": "GET", "status": 200, "latency": "0.250s", "cacheHit": False},
            textPayload="GET /",
        )
    )

    labels = build_labels(entry)

    assert labels["httpRequest.requestMethod"] == "GET"
    assert labels["httpRequest.status"] == "200"
    assert labels["httpRequest.latency"] == "250ms"
    assert labels["httpRequest.cacheHit"] == "false"


@pytest.mark.parametrize(
    "latency, expected",
    [
        ("1.5s", "1.5s"),
        ("90s", "1m30s"),
        ({"seconds": 2, "nanos": 500000000}, "2.5s"),
        (0.001, "1ms"),
    ],
)
def test_http_request_latency_formats(rest_entry, latency, expected: str):
    entry = LogEntry.from_api(rest_entry(httpRequest={"latency": latency}, textPayload="x"))

    assert build_labels(entry)["httpRequest.latency"] == expected


def test_unparseable_latency_is_kept_verbatim(rest_entry):
    entry = LogEntry.from_api(rest_entry(httpRequest={"latency": "soon"}, textPayload="x"))

    assert build_labels(entry)["httpRequest.latency"] == "soon"


def test_default_severity_level_is_configurable(rest_entry):
    entry = LogEntry.from_api(rest_entry(severity="DEFAULT"))

    assert build_labels(entry)["level"] == "info"
    assert build_labels(entry, NormalizationConfig(default_severity_level="debug"))["level"] == "debug"


def test_later_label_groups_win_on_collision(rest_entry):
    entry = LogEntry.from_api(
        rest_entry(
            labels={"jsonPayload.user": "from-provider-label"},
            jsonPayload={"user": "from-payload"},
        )
    )

    labels = build_labels(entry, NormalizationConfig(label_key_style="raw"))

    assert labels["jsonPayload.user"] == "from-payload"


def test_provider_label_key():
    assert provider_label_key("pid") == 'labels."pid"'
    assert provider_label_key("pid", "raw") == "pid"


@pytest.mark.parametrize(
    "nanos, expected",
    [
        (0, "0s"),
        (999, "999ns"),
        (1_500, "1.5µs"),
        (250_000_000, "250ms"),
        (1_500_000_000, "1.5s"),
        (90_000_000_000, "1m30s"),
        (3_600_000_000_000, "1h0m0s"),
        (-2_000_000_000, "-2s"),
    ],
)
def test_format_duration(nanos: int, expected: str):
    assert format_duration(nanos) == expected


def test_audit_log_bytes_become_proto_payload_labels(rest_entry):
    value = audit_log_pb2.AuditLog(
        service_name="storage.googleapis.com",
        authentication_info=audit_log_pb2.AuthenticationInfo(principal_email="ada@example.com"),
    )
    encoded = base64.b64encode(value.SerializeToString()).decode()
    entry = LogEntry.from_api(rest_entry(protoPayload={"@type": f"type.googleapis.com/{AUDIT_LOG_TYPE}", "value": encoded}))

    labels = build_labels(entry)

    assert labels["protoPayload.serviceName"] == "storage.googleapis.com"
    assert labels["protoPayload.authenticationInfo.principalEmail"] == "ada@example.com"


def test_provider_rendered_proto_of_an_unknown_type_adds_no_label(rest_entry):
    entry = LogEntry.from_api(rest_entry(protoPayload={"@type": "type.googleapis.com/some.Unknown", "k": "v"}))

    labels = build_labels(entry)

    assert labels == {"id": "insert-id", "level": "info"}
    assert not any(key.startswith("protoPayload.") for key in labels)


@pytest.mark.parametrize("latency", [float("inf"), float("-inf"), float("nan"), "Infinitys", "NaNs"])
def test_non_finite_latency_is_kept_verbatim(rest_entry, latency):
    entry = LogEntry.from_api(rest_entry(httpRequest={"latency": latency}, textPayload="x"))

    labels = build_labels(entry)

    assert "httpRequest.latency" in labels
    assert labels["httpRequest.latency"] != ""
