import base64
import hashlib

from annotator.services.digest_service import DigestService


def test_digest_matches_sha384_base64():
    payload = b"console.log('hello');\n"
    result = DigestService().compute(payload)

    expected = base64.b64encode(hashlib.sha384(payload).digest()).decode("ascii")
    assert result.algorithm == "sha384"
    assert result.digest == expected
    assert result.value == f"sha384-{expected}"


def test_digest_of_empty_payload():
    """The well-known sha384 integrity value of an empty file."""
    result = DigestService().compute(b"")
    assert result.value == "sha384-OLBgp1GsljhM2TJ+sbHjaiH9txEUvgdDTAzHv2P24donTt6/529l+9Ua0vFImLlb"


def test_digest_is_deterministic():
    service = DigestService()
    assert service.compute(b"abc") == service.compute(b"abc")
    assert service.compute(b"abc") != service.compute(b"abd")
