import uuid

import pytest

from trow.config import (
    ConfigError,
    NetAddr,
    TlsConfig,
    TrowBuilder,
    UserConfig,
)


def make_builder(**overrides):
    args = dict(
        data_dir="./data",
        addr=NetAddr("0.0.0.0", 8443),
        listen="127.0.0.1:51000",
        host_names=["myhost.example.com"],
        proxy_hub=False,
        allow_prefixes=["k8s.gcr.io/"],
        allow_images=[],
        deny_prefixes=[],
        deny_images=[],
        dry_run=False,
        cors=False,
        max_manifest_size=4,
        max_blob_size=8192,
        log_level="error",
    )
    args.update(overrides)
    return TrowBuilder(**args)


def test_builder_copies_settings():
    builder = make_builder()
    cfg = builder.config
    assert cfg.data_dir == "./data"
    assert cfg.grpc_listen == "127.0.0.1:51000"
    assert cfg.addr == NetAddr("0.0.0.0", 8443)
    assert cfg.tls is None
    assert cfg.user is None
    assert cfg.hub_user is None and cfg.hub_pass is None


def test_token_secret_is_fresh_uuid():
    first = make_builder().config.token_secret
    second = make_builder().config.token_secret
    assert str(uuid.UUID(first)) == first
    assert first != second


def test_netaddr_rejects_bad_port():
    with pytest.raises(ValueError):
        NetAddr("localhost", 70000)


def test_with_tls_chains_and_sets():
    builder = make_builder()
    assert builder.with_tls("cert.crt", "key.key") is builder
    assert builder.config.tls == TlsConfig("cert.crt", "key.key")


def test_with_hub_auth():
    builder = make_builder()
    assert builder.with_hub_auth("hubuser", "token") is builder
    assert builder.config.hub_user == "hubuser"
    assert builder.config.hub_pass == "token"


def test_with_user_hash_verifies():
    builder = make_builder()
    password = "password"
    builder.with_user("admin", password)
    user = builder.config.user
    assert user.user == "admin"
    assert password not in user.hash_encoded
    assert user.verify(password) is True
    assert user.verify("secret") is False


def test_user_hashes_are_salted():
    password = "password"
    a = make_builder().with_user("admin", password).config.user
    b = make_builder().with_user("admin", password).config.user
    assert a.hash_encoded != b.hash_encoded
    assert b.verify(password)


def test_malformed_hash_raises():
    with pytest.raises(ConfigError):
        UserConfig(user="admin", hash_encoded="garbage").verify("password")


def test_check_tls_without_tls_passes(tmp_path):
    builder = make_builder()
    builder.check_tls()
    assert builder.config.tls is None


def test_check_tls_missing_files(tmp_path):
    builder = make_builder().with_tls(
        str(tmp_path / "domain.crt"), str(tmp_path / "domain.key")
    )
    with pytest.raises(ConfigError, match="requires a TLS certificate and key"):
        builder.check_tls()


def test_check_tls_with_files(tmp_path):
    cert = tmp_path / "domain.crt"
    key = tmp_path / "domain.key"
    cert.write_text("cert")
    key.write_text("key")
    builder = make_builder().with_tls(str(cert), str(key))
    builder.check_tls()
    assert builder.config.tls.cert_file == str(cert)


def test_check_tls_only_cert_present(tmp_path):
    cert = tmp_path / "domain.crt"
    cert.write_text("cert")
    builder = make_builder().with_tls(str(cert), str(tmp_path / "domain.key"))
    with pytest.raises(ConfigError):
        builder.check_tls()


def test_summary_contents():
    text = make_builder().summary()
    assert "Starting Trow on 0.0.0.0:8443" in text
    assert "Maximum blob size: 8192 Mebibytes" in text
    assert "Maximum manifest size: 4 Mebibytes" in text
    assert '["myhost.example.com"]' in text
    assert '["k8s.gcr.io/"]' in text
    assert "proxy-cached" not in text
    assert "CORS" not in text


def test_summary_optional_lines():
    text = make_builder(proxy_hub=True, cors=True).summary()
    assert "Docker Hub repostories are being proxy-cached under f/docker/" in text
    assert "Cross-Origin Resource Sharing(CORS) requests are allowed" in text


def test_config_error_default_message():
    assert str(ConfigError()) == "invalid data directory"