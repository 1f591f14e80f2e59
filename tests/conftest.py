from pathlib import Path

import pytest

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def repo_source() -> str:
    return (FIXTURES / "UserRepository.php").read_text(encoding="utf-8")


@pytest.fixture
def php_tree(tmp_path: Path) -> Path:
    """Small project: two searchable dirs, a vendor dir and a non-PHP file."""
    (tmp_path / "sub").mkdir()
    (tmp_path / "vendor").mkdir()
    (tmp_path / "a.php").write_text(
        "<?php\nfunction alpha() {\n    return 'needle';\n}\n", encoding="utf-8"
    )
    (tmp_path / "z.php").write_text(
        "<?php\n$x = 'needle';\n", encoding="utf-8"
    )
    (tmp_path / "sub" / "b.php").write_text(
        "<?php\nclass B {\n    public function beta() {\n        return 'needle';\n    }\n}\n",
        encoding="utf-8",
    )
    (tmp_path / "vendor" / "c.php").write_text(
        "<?php\nfunction vendored() { return 'needle'; }\n", encoding="utf-8"
    )
    (tmp_path / "notes.txt").write_text("needle\n", encoding="utf-8")
    return tmp_path
