import os

import pytest

from servicectl.errors import ManifestError
from servicectl.manifest import (
    ManifestStore,
    ServiceManifest,
    format_record,
    parse_record,
)


def _manifest(**overrides):
    defaults = dict(
        name="svcA", unit_path="/etc/systemd/system/svcA.service",
        env_file="/etc/default/svcA", env_file_created=True,
        run_as="root", description="svcA service",
    )
    defaults.update(overrides)
    return ServiceManifest(**defaults)


class TestRecord:
    def test_record_keys(self):
        record = _manifest().to_record()
        assert record == {
            "UNIT_PATH": "/etc/systemd/system/svcA.service",
            "ENV_FILE": "/etc/default/svcA",
            "ENV_CREATED": "1",
            "RUN_AS": "root",
            "DESC": "svcA service",
        }

    def test_working_dir_only_when_set(self):
        record = _manifest(working_dir="/opt/svcA").to_record()
        assert record["WORKING_DIR"] == "/opt/svcA"

    def test_parse_skips_blank_and_comments(self):
        text = "# header\n\nRUN_AS=svc\nnonsense\nDESC=a=b c\n"
        assert parse_record(text) == {"RUN_AS": "svc", "DESC": "a=b c"}

    def test_format_is_key_value_lines(self):
        assert format_record({"A": "1", "B": "x y"}) == "A=1\nB=x y\n"

    def test_missing_env_created_means_false(self):
        manifest = ServiceManifest.from_record("svc", {"UNIT_PATH": "/u"})
        assert manifest.env_file_created is False
        assert manifest.working_dir is None


class TestManifestStore:
    def test_save_and_load(self, tmp_path):
        store = ManifestStore(str(tmp_path / "m"))
        original = _manifest(working_dir="/opt/svcA")
        path = store.save(original)
        assert path == str(tmp_path / "m" / "svcA.manifest")
        assert store.load("svcA") == original

    def test_load_missing_returns_none(self, tmp_path):
        assert ManifestStore(str(tmp_path)).load("nope") is None

    def test_file_contents(self, tmp_path):
        store = ManifestStore(str(tmp_path))
        store.save(_manifest(env_file_created=False))
        text = (tmp_path / "svcA.manifest").read_text()
        assert "ENV_CREATED=0\n" in text
        assert "DESC=svcA service\n" in text
        assert "WORKING_DIR" not in text

    def test_save_overwrites(self, tmp_path):
        store = ManifestStore(str(tmp_path))
        store.save(_manifest(run_as="a"))
        store.save(_manifest(run_as="b"))
        assert store.load("svcA").run_as == "b"

    def test_save_leaves_no_temp_files(self, tmp_path):
        store = ManifestStore(str(tmp_path))
        store.save(_manifest())
        assert os.listdir(tmp_path) == ["svcA.manifest"]

    def test_delete(self, tmp_path):
        store = ManifestStore(str(tmp_path))
        store.save(_manifest())
        assert store.delete("svcA") is True
        assert store.load("svcA") is None

    def test_delete_missing_is_noop(self, tmp_path):
        assert ManifestStore(str(tmp_path)).delete("svcA") is False

    def test_undecodable_manifest_raises_manifest_error(self, tmp_path):
        store = ManifestStore(str(tmp_path))
        (tmp_path / "svcA.manifest").write_bytes(b"DESC=\xff\xfe\n")
        with pytest.raises(ManifestError, match="cannot read"):
            store.load("svcA")
