"""Tests for local private key discovery."""

from sshready.ssh.keys import KeyLocator

from conftest import PRIVATE_KEY_HEADER


class TestKeyLocator:
    """Priority chain: standard names, then a directory scan, then ssh config."""

    def test_missing_directory(self, tmp_path):
        locator = KeyLocator(ssh_dir=tmp_path / "missing")
        assert locator.find_keys() == []
        assert not locator.has_local_keys()

    def test_default_names_in_order(self, tmp_path):
        for name in ("id_ecdsa", "id_rsa", "id_ed25519"):
            (tmp_path / name).write_text(PRIVATE_KEY_HEADER)
        (tmp_path / "deploy_key").write_text(PRIVATE_KEY_HEADER)

        keys = KeyLocator(ssh_dir=tmp_path).find_keys()

        assert [k.name for k in keys] == ["id_rsa", "id_ed25519", "id_ecdsa"]

    def test_scan_when_no_default_keys(self, tmp_path):
        (tmp_path / "deploy_key").write_text(PRIVATE_KEY_HEADER)
        (tmp_path / "deploy_key.pub").write_text("ssh-ed25519 AAAA")
        (tmp_path / "known_hosts").write_text(PRIVATE_KEY_HEADER)
        (tmp_path / "notes.txt").write_text(PRIVATE_KEY_HEADER)
        (tmp_path / "random").write_text("not a key")

        keys = KeyLocator(ssh_dir=tmp_path).find_keys()

        assert [k.name for k in keys] == ["deploy_key"]

    def test_config_identity_files(self, tmp_path):
        ssh_dir = tmp_path / "ssh"
        ssh_dir.mkdir()
        elsewhere = tmp_path / "keys" / "work.pem"
        elsewhere.parent.mkdir()
        elsewhere.write_text("key material")
        (ssh_dir / "config").write_text(
            f'Host work\n    IdentityFile "{elsewhere}"\n    IdentityFile {tmp_path}/missing\n'
        )

        keys = KeyLocator(ssh_dir=ssh_dir).find_keys()

        assert keys == [elsewhere]

    def test_capped_at_max_keys(self, tmp_path):
        for name in ("id_rsa", "id_ed25519", "id_ecdsa", "id_dsa"):
            (tmp_path / name).write_text(PRIVATE_KEY_HEADER)

        keys = KeyLocator(ssh_dir=tmp_path, max_keys=2).find_keys()

        assert len(keys) == 2
