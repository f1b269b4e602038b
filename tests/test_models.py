from __future__ import annotations

import pytest

from core.entities import decode
from core.errors import InvalidMessageError
from core.models import Message


def test_decode_entities() -> None:
    assert decode("&gt;&gt;1 &amp; &#039;x&#039;") == ">>1 & 'x'"
    assert decode("&zzfake; plain") == "&zzfake; plain"
    assert decode("") == ""


def test_message_record_round_trip() -> None:
    raw = {
        "id": 3,
        "timestamp": 30,
        "body": "text",
        "title": "OTK",
        "attachment": {
            "file_id": 99,
            "extension": ".png",
            "filename": "pic",
            "width": 10,
            "height": 20,
            "thumb_width": 5,
            "thumb_height": 10,
        },
    }
    message = Message.from_record(raw, lineage_id=1)
    assert message.lineage_id == 1
    assert message.to_record() == raw


def test_missing_body_defaults_to_empty() -> None:
    assert Message.from_record({"id": 1, "timestamp": 2}, lineage_id=1).body == ""


def test_boolean_id_is_rejected() -> None:
    with pytest.raises(InvalidMessageError):
        Message.from_record({"id": True, "timestamp": 2}, lineage_id=1)
