import hashlib

from carenexa.audit import (
    DEFAULT_DISCLAIMER,
    AuditTrailRecorder,
    canonical_json,
    content_hash,
    summarize_prompt,
)


def test_canonical_json_is_compact_and_keeps_unicode():
    assert canonical_json({"a": 1, "b": ["x", "é"]}) == '{"a":1,"b":["x","é"]}'


def test_hash_matches_sha256_of_canonical_json():
    expected = hashlib.sha256('"hello"'.encode("utf-8")).hexdigest()
    assert content_hash("hello") == expected


def test_same_content_same_hash_and_one_char_changes_it():
    assert content_hash({"metrics": [1, 2]}) == content_hash({"metrics": [1, 2]})
    assert content_hash("Drink water.") != content_hash("Drink water!")


def test_verify_round_trip():
    recorder = AuditTrailRecorder()
    receipt = recorder.record_consultation("general", 12, "Rest and hydrate.", "gpt-4o-mini")
    assert AuditTrailRecorder.verify("Rest and hydrate.", receipt.content_hash)
    assert AuditTrailRecorder.verify("Rest and hydrate.", receipt.content_hash.upper())
    assert not AuditTrailRecorder.verify("Rest and hydrate!", receipt.content_hash)


def test_receipt_fields():
    recorder = AuditTrailRecorder()
    receipt = recorder.record_consultation(
        "nutrition", 200, {"a": 1}, "gpt-4o", prompt_summary=summarize_prompt("x" * 100)
    )
    assert receipt.id.startswith("cr_")
    assert receipt.timestamp.endswith("Z")
    assert receipt.prompt_summary == "x" * 80 + "..."
    assert receipt.disclaimer == DEFAULT_DISCLAIMER
    assert len(receipt.content_hash) == 64


def test_history_is_bounded_newest_first_with_unique_ids():
    recorder = AuditTrailRecorder(history_size=3)
    for i in range(5):
        recorder.record_consultation("general", i, f"answer {i}", "m")
    receipts = recorder.receipts()
    assert [r.prompt_length for r in receipts] == [4, 3, 2]
    assert len({r.id for r in receipts}) == 3


def test_short_prompt_summary_unchanged():
    assert summarize_prompt("short") == "short"
