import hashlib

from resumecraft.core.fingerprint import request_fingerprint


def test_fingerprint_is_deterministic_hex_digest() -> None:
    first = request_fingerprint("data:text/plain;base64,SGk=", "Senior Go engineer")
    second = request_fingerprint("data:text/plain;base64,SGk=", "Senior Go engineer")

    assert first == second
    assert len(first) == 64
    assert first == hashlib.sha256(b"data:text/plain;base64,SGk=Senior Go engineer").hexdigest()


def test_fingerprint_changes_when_either_input_changes() -> None:
    base = request_fingerprint("data:text/plain;base64,SGk=", "Senior Go engineer")

    assert request_fingerprint("data:text/plain;base64,SGkh", "Senior Go engineer") != base
    assert request_fingerprint("data:text/plain;base64,SGk=", "Senior Go engineer.") != base