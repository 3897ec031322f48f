"""
Sharer — end-to-end tests.
Create and reveal secrets against an in-memory, delete-on-read fake of the
storage service served through requests_mock.
"""

import os
import re
import sys
import tempfile
import uuid
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import requests
import requests_mock

from snappwd import Config, LinkStyle, Sharer, StorageClient
from snappwd.errors import (
    AuthenticationFailure,
    InvalidKey,
    MalformedEnvelope,
    MissingKey,
    NetworkFailure,
    NotFound,
    SecretUnavailable,
)
from snappwd.envelope import seal
from snappwd.flow import ShareState
from snappwd.keys import encode_key, generate_key
from snappwd.links import parse_link
from snappwd.transfer import from_text, to_text


API = "http://api.test"
ORIGIN = "https://snappwd.example"


class FakeStorageService:
    """Blob store with the real service's contract: store, then read once."""

    def __init__(self, mocker: requests_mock.Mocker):
        self.secrets = {}
        self.files = {}
        for resource, store in (("secrets", self.secrets), ("files", self.files)):
            mocker.post(f"{API}/api/v1/{resource}", json=self._create(store))
            mocker.get(re.compile(rf"{re.escape(API)}/api/v1/{resource}/[^/]+$"), json=self._read(store))

    @staticmethod
    def _create(store: dict):
        def callback(request, context):
            secret_id = uuid.uuid4().hex
            store[secret_id] = request.json()
            return {"id": secret_id}
        return callback

    @staticmethod
    def _read(store: dict):
        def callback(request, context):
            secret_id = request.url.rsplit("/", 1)[-1]
            body = store.pop(secret_id, None)
            if body is None:
                context.status_code = 404
                return {"error": "not found"}
            body.pop("expiration", None)
            return body
        return callback


def _sharer(style: LinkStyle = LinkStyle.QUERY) -> Sharer:
    return Sharer(StorageClient(API), origin=ORIGIN, path="/", style=style)


def test_share_and_reveal_text():
    """A text secret round-trips and the server only ever sees ciphertext."""
    print("Testing text share/reveal...", end=" ")
    with requests_mock.Mocker() as m:
        service = FakeStorageService(m)
        sharer = _sharer()

        url = sharer.share_text("hello world", expiration=3600)
        assert sharer.flow.state is ShareState.CREATED
        assert url.startswith(f"{ORIGIN}/?id=")

        link = parse_link(url)
        stored = service.secrets[link.id]
        assert stored["expiration"] == 3600
        assert b"hello world" not in from_text(stored["encryptedSecret"])
        for request in m.request_history:
            assert link.key not in request.url
            assert link.key not in (request.text or "")

        secret = _sharer().reveal_url(url)
        assert secret.text == "hello world"
        assert not secret.is_file
    print("PASS")


def test_compact_links():
    """Sharers configured for compact links emit and read #id_key."""
    print("Testing compact share/reveal...", end=" ")
    with requests_mock.Mocker() as m:
        FakeStorageService(m)
        url = _sharer(LinkStyle.COMPACT).share_text("compact")
        assert "?" not in url
        assert re.match(rf"^{re.escape(ORIGIN)}/#[0-9a-f]+_[1-9A-HJ-NP-Za-km-z]+$", url)
        assert _sharer().reveal_url(url).text == "compact"
    print("PASS")


def test_reveal_is_one_shot():
    """The second reveal of a link fails because the service deleted it."""
    print("Testing delete-on-read...", end=" ")
    with requests_mock.Mocker() as m:
        FakeStorageService(m)
        url = _sharer().share_text("burn after reading")
        assert _sharer().reveal_url(url).text == "burn after reading"
        try:
            _sharer().reveal_url(url)
            assert False, "Second reveal should fail"
        except SecretUnavailable as e:
            assert isinstance(e.__cause__, NotFound)
    print("PASS")


def test_wrong_key_looks_like_not_found():
    """A wrong key and a missing secret produce the same message."""
    print("Testing undifferentiated read errors...", end=" ")
    with requests_mock.Mocker() as m:
        FakeStorageService(m)
        url = _sharer().share_text("private")
        link = parse_link(url)
        wrong = url.replace(link.key, encode_key(generate_key()))

        try:
            _sharer().reveal_url(wrong)
            assert False, "Wrong key should not decrypt"
        except SecretUnavailable as e:
            wrong_key_message = str(e)
            assert isinstance(e.__cause__, AuthenticationFailure)

        try:
            _sharer().reveal_url(f"{ORIGIN}/?id=doesnotexist#key={link.key}")
            assert False, "Unknown id should fail"
        except SecretUnavailable as e:
            assert str(e) == wrong_key_message
            assert isinstance(e.__cause__, NotFound)
    print("PASS")


def test_server_errors_are_masked_network_errors_are_not():
    """5xx on the read path is masked; an unreachable service is reported."""
    print("Testing read-path error surfaces...", end=" ")
    key = encode_key(generate_key())
    with requests_mock.Mocker() as m:
        m.get(f"{API}/api/v1/secrets/abc", status_code=500)
        try:
            _sharer().reveal_url(f"{ORIGIN}/?id=abc#key={key}")
            assert False, "500 should fail"
        except SecretUnavailable:
            pass

        m.get(f"{API}/api/v1/secrets/abc", exc=requests.exceptions.ConnectionError("refused"))
        sharer = _sharer()
        try:
            sharer.reveal_url(f"{ORIGIN}/?id=abc#key={key}")
            assert False, "Connection errors should fail"
        except NetworkFailure:
            pass
        assert sharer.flow.state is ShareState.ERROR
    print("PASS")


def test_prepare_checks_key_without_fetching():
    """Bad keys are caught before the secret is fetched and consumed."""
    print("Testing pre-flight key check...", end=" ")
    with requests_mock.Mocker() as m:
        sharer = _sharer()
        for url, error in [
            (f"{ORIGIN}/?id=abc#key=3mJr7AoUXx2Wqd", InvalidKey),
            (f"{ORIGIN}/?id=abc#key=0OIl", InvalidKey),
            (f"{ORIGIN}/?id=abc", MissingKey),
        ]:
            try:
                sharer.prepare(url)
                assert False, f"{url} should fail pre-flight"
            except error:
                pass
            assert sharer.flow.state is ShareState.ERROR
        assert not m.called

        good = f"{ORIGIN}/?id=abc#key={encode_key(generate_key())}"
        link = sharer.prepare(good)
        assert link.id == "abc"
        assert sharer.flow.state is ShareState.CONFIRMING
        assert not m.called
    print("PASS")


def test_legacy_16_byte_links_still_reveal():
    """Secrets sealed by older clients with 16-byte keys still open."""
    print("Testing legacy 16-byte key links...", end=" ")
    with requests_mock.Mocker() as m:
        service = FakeStorageService(m)
        key = os.urandom(16)
        service.secrets["old1"] = {"encryptedSecret": to_text(seal(b"from 2023", key))}
        url = f"{ORIGIN}/#old1_{encode_key(key)}"
        assert _sharer().reveal_url(url).text == "from 2023"
    print("PASS")


def test_share_and_reveal_file():
    """Files keep their name and type; iv mirrors the envelope nonce."""
    print("Testing file share/reveal...", end=" ")
    data = bytes(range(256)) * 50
    with requests_mock.Mocker() as m, tempfile.TemporaryDirectory() as tmpdir:
        service = FakeStorageService(m)
        url = _sharer().share_file(data, "notes.pdf")

        stored = service.files[parse_link(url).id]
        assert stored["metadata"]["originalFilename"] == "notes.pdf"
        assert stored["metadata"]["contentType"] == "application/pdf"
        envelope_bytes = from_text(stored["encryptedData"])
        assert from_text(stored["metadata"]["iv"]) == envelope_bytes[1:13]

        secret = _sharer().reveal_url(url)
        assert secret.is_file
        assert secret.data == data
        assert secret.filename == "notes.pdf"
        assert secret.content_type == "application/pdf"

        saved = secret.save(tmpdir)
        assert saved == Path(tmpdir) / "notes.pdf"
        assert saved.read_bytes() == data
    print("PASS")


def test_share_path_and_unsafe_filename():
    """Files shared from disk keep their name; saving strips directories."""
    print("Testing share_path...", end=" ")
    with requests_mock.Mocker() as m, tempfile.TemporaryDirectory() as tmpdir:
        service = FakeStorageService(m)
        source = Path(tmpdir) / "blob.unknownext"
        source.write_bytes(b"\x00\x01\x02")
        url = _sharer().share_path(source)

        stored = service.files[parse_link(url).id]
        assert stored["metadata"]["contentType"] == "application/octet-stream"
        stored["metadata"]["originalFilename"] = "../../etc/passwd"

        secret = _sharer().reveal_url(url)
        out = Path(tmpdir) / "out"
        assert secret.save(out) == out / "passwd"
    print("PASS")


def test_mismatched_iv_is_rejected():
    """A file whose metadata iv disagrees with its envelope is refused."""
    print("Testing iv/nonce mismatch...", end=" ")
    with requests_mock.Mocker() as m:
        service = FakeStorageService(m)
        url = _sharer().share_file(b"payload", "a.bin")
        service.files[parse_link(url).id]["metadata"]["iv"] = to_text(b"\x00" * 12)
        try:
            _sharer().reveal_url(url)
            assert False, "Mismatched iv should fail"
        except SecretUnavailable as e:
            assert isinstance(e.__cause__, MalformedEnvelope)
    print("PASS")


def test_null_fields_are_masked():
    """Bodies with null or non-text fields fail like any other bad secret."""
    print("Testing null fields in server bodies...", end=" ")
    key = generate_key()
    sealed = seal(b"payload", key)
    url = f"{ORIGIN}/?id=abc#key={encode_key(key)}"
    with requests_mock.Mocker() as m:
        m.get(f"{API}/api/v1/secrets/abc", json={"encryptedSecret": None})
        sharer = _sharer()
        try:
            sharer.reveal_url(url)
            assert False, "A null envelope should fail"
        except SecretUnavailable:
            pass
        assert sharer.flow.state is ShareState.ERROR

        m.get(f"{API}/api/v1/secrets/abc", status_code=404)
        m.get(f"{API}/api/v1/files/abc", json={
            "metadata": {"originalFilename": "a.bin", "contentType": "application/octet-stream", "iv": None},
            "encryptedData": to_text(sealed),
        })
        sharer = _sharer()
        try:
            sharer.reveal_url(url)
            assert False, "A null iv should fail"
        except SecretUnavailable:
            pass
        assert sharer.flow.state is ShareState.ERROR
    print("PASS")


def test_unexpected_reveal_errors_end_in_error_state():
    """Errors outside the masked set propagate but still end the flow."""
    print("Testing unexpected reveal errors...", end=" ")
    sharer = _sharer()

    def broken_fetch(secret_id):
        raise RuntimeError("decoder exploded")

    sharer.client.fetch_secret = broken_fetch
    try:
        sharer.reveal_url(f"{ORIGIN}/?id=abc#key={encode_key(generate_key())}")
        assert False, "RuntimeError should propagate"
    except RuntimeError:
        pass
    assert sharer.flow.state is ShareState.ERROR
    assert sharer.flow.error == "decoder exploded"
    print("PASS")


def test_create_path_errors():
    """Create-path failures are specific and leave the flow in ERROR."""
    print("Testing create-path errors...", end=" ")
    sharer = _sharer()
    try:
        sharer.share_text("")
        assert False, "Empty text should be rejected"
    except ValueError:
        pass

    with requests_mock.Mocker() as m:
        m.post(f"{API}/api/v1/secrets", status_code=503)
        try:
            sharer.share_text("x")
            assert False, "503 should fail"
        except Exception as e:
            assert "503" in str(e)
        assert sharer.flow.state is ShareState.ERROR
        assert "503" in sharer.flow.error

    with requests_mock.Mocker() as m:
        for expiration in (0, -60):
            try:
                sharer.share_text("x", expiration=expiration)
                assert False, f"expiration={expiration} should be rejected"
            except ValueError:
                pass
            assert sharer.flow.state is ShareState.ERROR
        assert not m.called
    print("PASS")


def test_from_config():
    """A sharer built from config uses its origin, style and expiration."""
    print("Testing Sharer.from_config...", end=" ")
    config = Config(api_url=API, origin=ORIGIN, link_style=LinkStyle.COMPACT, expiration=3600)
    with requests_mock.Mocker() as m:
        service = FakeStorageService(m)
        url = Sharer.from_config(config).share_text("configured")
        assert url.startswith(f"{ORIGIN}/#")
        assert service.secrets[parse_link(url).id]["expiration"] == 3600
    print("PASS")


if __name__ == "__main__":
    print("Testing sharer...\n")
    test_share_and_reveal_text()
    test_compact_links()
    test_reveal_is_one_shot()
    test_wrong_key_looks_like_not_found()
    test_server_errors_are_masked_network_errors_are_not()
    test_prepare_checks_key_without_fetching()
    test_legacy_16_byte_links_still_reveal()
    test_share_and_reveal_file()
    test_share_path_and_unsafe_filename()
    test_mismatched_iv_is_rejected()
    test_null_fields_are_masked()
    test_unexpected_reveal_errors_end_in_error_state()
    test_create_path_errors()
    test_from_config()
    print(f"\n{'='*50}")
    print("All sharer tests passed!")
