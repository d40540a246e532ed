import base64
import hashlib
import io
import logging

import pytest
from bs4 import BeautifulSoup

from annotator.services.asset_resolver_service import AssetResolverService
from sri_cli.app import EXIT_FAILED, EXIT_OK, EXIT_UNTRUSTED, build_parser, build_settings, main
from sri_cli.core.managers.config_manager import config_manager
from sri_cli.core.utils.configure_logging import LogWithTqdm, configure_logger


@pytest.fixture(autouse=True)
def restore_config():
    """main() reconfigures root logging; reset it and the config after every test."""
    yield
    config_manager.reset()
    logging.getLogger().handlers.clear()


@pytest.fixture
def build_dir(tmp_path):
    (tmp_path / "app.js").write_bytes(b"known bytes")
    return tmp_path


def test_parser_defaults():
    args = build_parser().parse_args(["dist"])
    assert args.output_path == "dist"
    assert args.public_path == "/"
    assert args.timeout is None
    assert not args.progress


def test_main_annotates_local_assets(build_dir):
    (build_dir / "index.html").write_text('<script src="/app.js"></script>', encoding="utf-8")

    code = main([str(build_dir)])

    assert code == EXIT_OK
    script = BeautifulSoup((build_dir / "index.html").read_text(encoding="utf-8"), "html.parser").find("script")
    expected = "sha384-" + base64.b64encode(hashlib.sha384(b"known bytes").digest()).decode("ascii")
    assert script["integrity"] == expected
    assert script["crossorigin"] == "anonymous"


def test_main_reports_missing_asset(build_dir, capsys):
    (build_dir / "index.html").write_text('<script src="/missing.js"></script>', encoding="utf-8")

    code = main([str(build_dir), "--no-color"])

    assert code == EXIT_FAILED
    assert "/missing.js" in capsys.readouterr().err


def test_main_reports_missing_index(tmp_path, capsys):
    assert main([str(tmp_path)]) == EXIT_FAILED
    assert "index.html" in capsys.readouterr().err


def test_main_reports_undecodable_index(tmp_path, capsys):
    (tmp_path / "index.html").write_bytes(b'<script src="/app.js"></script>\xff\xfe')

    assert main([str(tmp_path)]) == EXIT_FAILED
    err = capsys.readouterr().err
    assert "Could not read" in err
    assert "index.html" in err


def test_build_settings_routes_flags_through_config(tmp_path):
    args = build_parser().parse_args([str(tmp_path), "--timeout", "2.5", "--progress", "--no-color"])

    settings = build_settings(args)

    assert settings.timeout == 2.5
    assert settings.show_progress is True
    assert settings.color is False
    assert config_manager.get_nested("session.time_out") == 2.5
    assert config_manager.get_nested("report.color") is False


def test_build_settings_without_flags_uses_settings_json(tmp_path):
    settings = build_settings(build_parser().parse_args([str(tmp_path)]))

    assert settings.timeout == config_manager.get_nested("session.time_out")
    assert settings.concurrency == config_manager.get_nested("session.concurrency")
    assert settings.color is True


def test_main_untrusted_external_asset(build_dir, capsys, monkeypatch):
    """External assets are fetched; the CDN is replaced by a fixed payload."""
    original_fetch = AssetResolverService._fetch

    async def fake_fetch(self, url):
        if url == "https://cdn.example.com/lib.css":
            return b".lib {}"
        return await original_fetch(self, url)

    monkeypatch.setattr(AssetResolverService, "_fetch", fake_fetch)
    html = '<link rel="stylesheet" href="https://cdn.example.com/lib.css">\n<script src="/app.js"></script>'
    (build_dir / "index.html").write_text(html, encoding="utf-8")

    code = main([str(build_dir), "--no-color"])

    assert code == EXIT_UNTRUSTED
    assert (build_dir / "index.html").read_text(encoding="utf-8") == html
    err = capsys.readouterr().err
    assert "The https://cdn.example.com/lib.css resource is served from an external URL" in err
    assert 'crossorigin="anonymous"' in err


def test_main_rejects_invalid_timeout(build_dir, capsys):
    (build_dir / "index.html").write_text('<script src="/app.js"></script>', encoding="utf-8")
    assert main([str(build_dir), "--timeout", "0"]) == EXIT_FAILED
    assert "Invalid settings" in capsys.readouterr().err


def test_configure_logger_installs_single_tqdm_handler():
    stream = io.StringIO()
    root = configure_logger("info", silenced_loggers={"aiohttp": "error"}, stream=stream)

    assert len(root.handlers) == 1
    assert isinstance(root.handlers[0], LogWithTqdm)
    assert root.level == logging.INFO
    assert logging.getLogger("aiohttp").level == logging.ERROR

    logging.getLogger("annotator.test").info("hashed %s", "app.js")
    assert "INFO - [annotator.test:" in stream.getvalue()
    assert "hashed app.js" in stream.getvalue()
