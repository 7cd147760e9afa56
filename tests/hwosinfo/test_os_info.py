from pvdfr.hwosinfo.os import get_os_info


def test_get_os_info(tmp_path):
    path = tmp_path / "os-release"
    path.write_text('PRETTY_NAME="Debian GNU/Linux 12 (bookworm)"\nID=debian\nVERSION_ID="12"\n# comment\n')

    info = get_os_info(str(path))

    assert info["id"] == "debian"
    assert info["version_id"] == "12"
    assert info["pretty_name"] == "Debian GNU/Linux 12 (bookworm)"


def test_get_os_info_missing_file(tmp_path):
    assert get_os_info(str(tmp_path / "missing")) == {}
