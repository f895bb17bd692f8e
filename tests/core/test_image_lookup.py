"""Icon file and HTML image path lookup."""

from pathlib import Path

import pytest

from lootstash.core.images.lookup import (
    content_hash,
    content_type_for,
    extension_for,
    fallback_icon,
    find_image_file,
    find_in_mapping,
    rune_icon_filename,
    storage_key,
)


class TestKeys:
    def test_content_hash_is_sha1(self) -> None:
        assert content_hash(b"abc") == "a9993e364706816aba3e25717850c26c9cd0d89d"

    def test_storage_key(self) -> None:
        assert storage_key("d2/unique", "abc", ".png") == "d2/unique/abc.png"
        assert storage_key("/d2/unique/", "abc") == "d2/unique/abc.png"

    def test_content_types(self) -> None:
        assert content_type_for("a.JPG") == "image/jpeg"
        assert content_type_for("a.png") == "image/png"
        assert extension_for("a.PNG") == ".png"
        assert extension_for("noext") == ".png"


class TestRuneIconFilename:
    @pytest.mark.parametrize(
        "name,expected",
        [
            ("Ber Rune", "runeBer_graphic.png"),
            ("Ber", "runeBer_graphic.png"),
            ("Jah Rune", "runeJo_graphic.png"),
            ("Shael", "runeShae_graphic.png"),
        ],
    )
    def test_names(self, name: str, expected: str) -> None:
        assert rune_icon_filename(name) == expected


class TestFindInMapping:
    MAPPING = {
        "stonecrusher": "/u/stone.png",
        "gheedsfortune": "/u/gheed.png",
        "ber": "/m/ber.png",
        "topaz": "/m/topaz.png",
        "rubyflawless": "/m/ruby_fl.png",
        "harlequincrestshako": "/u/shako.png",
    }

    def test_exact(self) -> None:
        assert find_in_mapping("Stone Crusher", self.MAPPING) == "/u/stone.png"

    def test_the_prefix(self) -> None:
        assert find_in_mapping("The Stone Crusher", self.MAPPING) == "/u/stone.png"

    def test_rune_suffix(self) -> None:
        assert find_in_mapping("Ber Rune", self.MAPPING) == "/m/ber.png"

    def test_gem_quality(self) -> None:
        assert find_in_mapping("Chipped Topaz", self.MAPPING) == "/m/topaz.png"
        assert find_in_mapping("Flawless Ruby", self.MAPPING) == "/m/ruby_fl.png"

    def test_partial(self) -> None:
        assert find_in_mapping("Harlequin Crest", self.MAPPING) == "/u/shako.png"

    def test_missing(self) -> None:
        assert find_in_mapping("Windforce", self.MAPPING) is None
        assert find_in_mapping("", self.MAPPING) is None


class TestFallbackIcon:
    def test_by_code_then_name(self) -> None:
        assert fallback_icon("cm1", "Small Charm") == "charm_small.png"
        assert fallback_icon("", "Sword Back Hold") == "swordbackhold_graphic.png"
        assert fallback_icon("xyz", "Nothing") is None


class TestFindImageFile:
    def test_exact(self, tmp_path: Path) -> None:
        (tmp_path / "cap.png").write_bytes(b"x")
        assert find_image_file(tmp_path, "/base/cap.png") == tmp_path / "cap.png"

    def test_download_duplicate_name(self, tmp_path: Path) -> None:
        (tmp_path / "cap (1).png").write_bytes(b"x")
        assert find_image_file(tmp_path, "cap.png") == tmp_path / "cap (1).png"

    def test_case_insensitive_scan(self, tmp_path: Path) -> None:
        (tmp_path / "RuneBer_Graphic(2).png").write_bytes(b"x")
        assert find_image_file(tmp_path, "runeBer_graphic.png") == tmp_path / "RuneBer_Graphic(2).png"

    def test_missing(self, tmp_path: Path) -> None:
        assert find_image_file(tmp_path, "nope.png") is None
        assert find_image_file(tmp_path / "absent", "nope.png") is None
