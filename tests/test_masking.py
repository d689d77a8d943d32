import io
import json
import logging

import pytest

from fermion.config import Config
from fermion.constants import DEFAULT_MASK_PATTERN
from fermion.exceptions import MaskDepthExceededError
from fermion.masking import (
    SensitiveDataFilter,
    mask_embedded,
    mask_ip,
    mask_name,
    mask_raw_text,
    mask_row,
    mask_sensitive_data,
    mask_structure,
)

MASK = DEFAULT_MASK_PATTERN


def test_null_and_empty_returned_unchanged():
    assert mask_sensitive_data(None) is None
    assert mask_sensitive_data("") == ""

def test_password_masked_other_fields_kept():
    result = json.loads(mask_sensitive_data('{"Username":"john","Password":"secret123"}'))
    assert result == {"Username": "john", "Password": MASK}

def test_output_is_compact_and_keeps_key_order():
    data = '{"b": 1, "Password": "x", "a": [3, 2, 1]}'
    assert mask_sensitive_data(data) == '{"b":1,"Password":"***MASKED***","a":[3,2,1]}'

def test_nested_objects_masked():
    data = json.dumps({
        "User": {"Username": "jane", "Password": "p", "Token": "t"},
        "ApiAccess": {"Key": "k", "Endpoint": "https://api.example.com"},
    })
    result = json.loads(mask_sensitive_data(data))
    assert result["User"] == {"Username": "jane", "Password": MASK, "Token": MASK}
    assert result["ApiAccess"] == {"Key": MASK, "Endpoint": "https://api.example.com"}

def test_array_of_objects_masked():
    data = json.dumps([
        {"Username": "user1", "Password": "a", "Email": "user1@example.com"},
        {"Username": "user2", "Password": "b", "Email": "user2@example.com"},
    ])
    result = json.loads(mask_sensitive_data(data))
    assert [r["Password"] for r in result] == [MASK, MASK]
    assert [r["Email"] for r in result] == ["user1@example.com", "user2@example.com"]

@pytest.mark.parametrize("value", [123, 4.5, True, False, None, {"inner": 1}, [1, 2]])
def test_sensitive_key_masked_regardless_of_value_type(value):
    result = json.loads(mask_sensitive_data(json.dumps({"Secret": value})))
    assert result == {"Secret": MASK}

def test_key_match_is_case_insensitive():
    data = '{"username":"john","PASSWORD":"a","Token":"b","secret":"c"}'
    result = json.loads(mask_sensitive_data(data))
    assert result == {"username": "john", "PASSWORD": MASK, "Token": MASK, "secret": MASK}

def test_scalar_types_preserved():
    data = json.dumps({
        "StringValue": "text",
        "NumberValue": 42,
        "FloatValue": 1.5,
        "BoolValue": True,
        "NullValue": None,
        "ArrayValue": [1, "two"],
        "ObjectValue": {"Key": "hidden", "Visible": 7},
    })
    result = json.loads(mask_sensitive_data(data))
    assert result["NumberValue"] == 42 and isinstance(result["NumberValue"], int)
    assert result["FloatValue"] == 1.5
    assert result["BoolValue"] is True
    assert result["NullValue"] is None
    assert result["ArrayValue"] == [1, "two"]
    assert result["ObjectValue"] == {"Key": MASK, "Visible": 7}

def test_custom_pattern_and_names():
    data = '{"Username":"john","Password":"secret123","Email":"j@x.com","PhoneNumber":"555"}'
    result = json.loads(mask_sensitive_data(data, "[REDACTED]", ["Email", "PhoneNumber"]))
    assert result == {
        "Username": "john",
        "Password": "secret123",
        "Email": "[REDACTED]",
        "PhoneNumber": "[REDACTED]",
    }

def test_no_sensitive_keys_round_trips():
    data = {"name": "widget", "count": 3, "tags": ["a", "b"], "meta": {"ok": True, "ratio": 0.25}}
    assert json.loads(mask_sensitive_data(json.dumps(data))) == data

def test_masking_twice_is_stable():
    data = json.dumps({
        "Password": "x",
        "ConnectionString": "Server=db;Password=hunter2;",
        "items": [{"Token": 1}],
    })
    once = mask_sensitive_data(data)
    assert mask_sensitive_data(once) == once

def test_connection_string_value_masked_in_place():
    data = json.dumps({"ConnectionString": "Server=x;Password=secret123;", "RegularText": "This is normal text"})
    result = json.loads(mask_sensitive_data(data))
    assert result["ConnectionString"] == "Server=x;Password=***MASKED***;"
    assert result["RegularText"] == "This is normal text"

def test_connection_string_multiple_segments():
    data = json.dumps({"ConnectionString": "Server=s;Database=d;User=u;Password=p;ApiKey=k;Token=t;"})
    result = json.loads(mask_sensitive_data(data))
    assert result["ConnectionString"] == (
        "Server=s;Database=d;User=u;Password=***MASKED***;ApiKey=***MASKED***;Token=***MASKED***;"
    )

def test_connection_strings_inside_array():
    data = json.dumps(["Server=a;Password=one;", "Server=b;Password=two;", "Regular text"])
    result = json.loads(mask_sensitive_data(data))
    assert result == ["Server=a;Password=***MASKED***;", "Server=b;Password=***MASKED***;", "Regular text"]

def test_malformed_json_falls_back_to_regex():
    data = '{\n  "Username": "john",\n  "Password": "secret123",\n  "Email": "john@example.com"\n'
    result = mask_sensitive_data(data)
    assert '"Password": "***MASKED***"' in result
    assert result == data.replace("secret123", MASK)

def test_fallback_masks_connection_string_segments():
    data = "Server=x;Password=secret123;Database=y"
    assert mask_sensitive_data(data) == "Server=x;Password=***MASKED***;Database=y"

def test_non_standard_constants_use_fallback():
    data = '{"Password": "abc", "value": NaN}'
    assert mask_sensitive_data(data) == '{"Password": "***MASKED***", "value": NaN}'

def test_large_exponent_number_written_back_unchanged():
    assert mask_sensitive_data('{"huge": 1e400}') == '{"huge":1E+400}'

def test_high_precision_numbers_written_back_exactly():
    data = '{"amount":12345678901234567.89,"rate":1.10}'
    assert mask_sensitive_data(data) == data

def test_duplicate_keys_keep_last_value():
    assert mask_sensitive_data('{"a":1,"a":2}') == '{"a":2}'

def test_unencodable_value_returns_serialization_error_payload(monkeypatch):
    def failing_dumps(*args, **kwargs):
        raise ValueError("Out of range float values are not JSON compliant")

    monkeypatch.setattr("fermion.masking.simplejson.dumps", failing_dumps)
    result = json.loads(mask_sensitive_data('{"Password": "x"}'))
    assert result == {"error": "SerializationError", "message": "Out of range float values are not JSON compliant"}

def test_assignment_pattern_is_not_word_anchored():
    # "Key=" also matches inside "MyKey="
    assert mask_embedded("MyKey=abc;Other=1", sensitive_names=["Key"]) == "MyKey=***MASKED***;Other=1"

def test_mask_raw_text_leaves_other_text_untouched():
    text = 'prefix "token" : "abc" middle "name": "bob" suffix'
    assert mask_raw_text(text) == 'prefix "token" : "***MASKED***" middle "name": "bob" suffix'

def test_mask_pattern_with_backslashes_inserted_literally():
    assert mask_embedded("Password=x", mask_pattern=r"\1\g<0>") == r"Password=\1\g<0>"

def test_mask_structure_does_not_mutate_input():
    original = {"Password": "x", "nested": {"Token": "y"}}
    masked = mask_structure(original)
    assert original == {"Password": "x", "nested": {"Token": "y"}}
    assert masked == {"Password": MASK, "nested": {"Token": MASK}}

def test_mask_structure_depth_limit():
    assert mask_structure([[1]], max_depth=2) == [[1]]
    with pytest.raises(MaskDepthExceededError) as excinfo:
        mask_structure([[[1]]], max_depth=2)
    assert excinfo.value.to_dict()["context"] == {"max_depth": 2}

def test_mask_name_and_ip():
    assert mask_name("Alice") == "A***"
    assert mask_name("") == ""
    assert mask_ip("10.0.0.1") == "***.***.***.***"
    assert mask_ip(None) is None

def test_mask_row_masks_pii_and_payload():
    row = {
        "entry_id": "e1",
        "user_name": "Alice",
        "ip_address": "1.1.1.1",
        "payload": '{"user":"alice","password":"pw"}',
    }
    masked = mask_row(row)
    assert masked["entry_id"] == "e1"
    assert masked["user_name"] == "A***"
    assert masked["ip_address"] == "***.***.***.***"
    assert json.loads(masked["payload"]) == {"user": "alice", "password": MASK}
    assert row["user_name"] == "Alice"

def test_mask_row_ignores_missing_columns():
    assert mask_row({"entry_id": "e2", "payload": None}) == {"entry_id": "e2", "payload": None}

def _record(msg, *args):
    return logging.LogRecord("test", logging.INFO, __file__, 1, msg, args, None)

def test_log_filter_masks_json_messages():
    record = _record('{"user":"bob","Password":"hunter2"}')
    assert SensitiveDataFilter().filter(record) is True
    assert record.getMessage() == '{"user":"bob","Password":"***MASKED***"}'

def test_log_filter_masks_formatted_args():
    record = _record("connecting with %s", "Server=db;Password=hunter2;")
    SensitiveDataFilter().filter(record)
    assert record.getMessage() == "connecting with Server=db;Password=***MASKED***;"

def test_log_filter_leaves_plain_messages():
    record = _record("processed %d rows", 3)
    SensitiveDataFilter().filter(record)
    assert record.msg == "processed %d rows"
    assert record.getMessage() == "processed 3 rows"

def test_mask_row_falls_back_to_regex_when_payload_nests_too_deeply(monkeypatch):
    monkeypatch.setattr(Config, "MAX_MASK_DEPTH", 2)
    masked = mask_row({"entry_id": "e3", "payload": '{"a":{"b":{"Password":"x"}}}'})
    assert masked["payload"] == '{"a":{"b":{"Password":"***MASKED***"}}}'

def test_log_filter_passes_records_with_mismatched_args():
    record = _record("two %s %s", "only-one")
    assert SensitiveDataFilter().filter(record) is True
    assert record.msg == "two %s %s"
    assert record.args == ("only-one",)

def test_log_filter_does_not_raise_on_bad_format_through_logger():
    errors = []
    handler = logging.StreamHandler(io.StringIO())
    handler.handleError = errors.append
    handler.addFilter(SensitiveDataFilter())
    logger = logging.getLogger("fermion.tests.bad_format")
    logger.addHandler(handler)
    logger.propagate = False
    try:
        logger.warning("two %s %s", "only-one")
    finally:
        logger.removeHandler(handler)
        logger.propagate = True
    assert len(errors) == 1
    assert errors[0].msg == "two %s %s"
