import json
import logging
import zlib

import pytest
from conftest import make_png

import main
from barmaid.signatures import BTW_ZLIB_MARKER


@pytest.fixture(autouse=True)
def restore_root_handlers():
    """main() reconfigures the root logger; drop what it installed."""
    root = logging.getLogger()
    before = list(root.handlers)
    yield
    for handler in root.handlers[:]:
        if handler not in before:
            root.removeHandler(handler)
            handler.close()


def test_extract_everything(tmp_path, btw_file, btw_bytes):
    prefix = tmp_path / "prefix.bin"
    container = tmp_path / "container.bin"
    preview = tmp_path / "preview.png"
    mask = tmp_path / "mask.png"

    status = main.main(
        ["-e", "-p", str(prefix), "-c", str(container), "-i", str(preview), "-m", str(mask), str(btw_file)]
    )

    assert status == 0
    assert prefix.read_bytes() == btw_bytes[:52]
    assert container.read_bytes() == b"<document/>"
    assert preview.read_bytes() == make_png(b"preview")
    assert mask.read_bytes() == make_png(b"mask-data")


def test_prefix_and_container_rebuild_original(tmp_path, btw_file, btw_bytes):
    """prefix + compressed container reproduce the document, as in the shell workflow."""
    prefix = tmp_path / "prefix.bin"
    container = tmp_path / "container.bin"

    assert main.main(["-e", "-p", str(prefix), "-c", str(container), str(btw_file)]) == 0

    head = btw_bytes[: len(btw_bytes) - len(zlib.compress(b"<document/>"))]
    assert head.endswith(BTW_ZLIB_MARKER)
    assert zlib.decompress(btw_bytes[len(head):]) == container.read_bytes()


def test_heuristic_scan(tmp_path, btw_file):
    preview = tmp_path / "preview.png"

    assert main.main(["-e", "-s", "-v", "-i", str(preview), str(btw_file)]) == 0
    assert preview.read_bytes() == make_png(b"preview")


def test_manifest_and_log_file(tmp_path, btw_file):
    manifest = tmp_path / "manifest.json"
    log_file = tmp_path / "barmaid.log"

    status = main.main(
        ["-e", "-v", "-m", str(tmp_path / "mask.png"), "--manifest", str(manifest), "--log-file", str(log_file), str(btw_file)]
    )

    assert status == 0
    assert json.loads(manifest.read_text())["entries"][0]["section"] == "mask"
    assert "Found PNG #1" in log_file.read_text()


def test_sections_logged_only_when_verbose(tmp_path, btw_file):
    log_file = tmp_path / "barmaid.log"

    assert main.main(["-e", "--log-file", str(log_file), str(btw_file)]) == 0
    assert "Found PNG" not in log_file.read_text()


def test_unwritable_manifest(tmp_path, btw_file):
    manifest = tmp_path / "missing" / "manifest.json"

    assert main.main(["-e", "--manifest", str(manifest), str(btw_file)]) == 1


def test_build_not_implemented(btw_file):
    assert main.main(["-b", str(btw_file)]) == 1


def test_mode_required(btw_file, capsys):
    with pytest.raises(SystemExit) as exc:
        main.main([str(btw_file)])
    assert exc.value.code == 1
    assert "error:" in capsys.readouterr().err


def test_filename_required():
    with pytest.raises(SystemExit) as exc:
        main.main(["-e"])
    assert exc.value.code == 1


def test_too_many_arguments(btw_file):
    with pytest.raises(SystemExit) as exc:
        main.main(["-e", str(btw_file), str(btw_file)])
    assert exc.value.code == 1


def test_extract_and_build_exclusive(btw_file):
    with pytest.raises(SystemExit) as exc:
        main.main(["-e", "-b", str(btw_file)])
    assert exc.value.code == 1


def test_missing_input(tmp_path):
    assert main.main(["-e", str(tmp_path / "nope.btw")]) == 1


def test_not_a_btw_file(tmp_path):
    path = tmp_path / "image.png"
    path.write_bytes(make_png())

    assert main.main(["-e", str(path)]) == 1


def test_bad_buffer_size(btw_file):
    assert main.main(["-e", "--buffer-size", "0", str(btw_file)]) == 1


def test_version(capsys):
    with pytest.raises(SystemExit) as exc:
        main.main(["--version"])
    assert exc.value.code == 0
    assert "barmaid" in capsys.readouterr().out
