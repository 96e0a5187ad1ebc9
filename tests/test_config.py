"""設定管理のテスト。"""

import pytest
from pathlib import Path
from tempfile import TemporaryDirectory

from hierarchy_lint.config import Config, ConfigurationError


class TestConfig:
    """Configデータクラスのテスト。"""

    def test_default_values(self):
        """デフォルト値のテスト。"""
        config = Config()
        assert config.bloat_threshold == 4
        assert config.treat_cycles_as_error is True
        assert config.max_workers is None
        assert config.include_paths == []
        assert config.cxx_standard == "c++17"
        assert config.validate() == []

    def test_from_dict_ignores_unknown_keys(self):
        """未知のキーは無視する。"""
        config = Config.from_dict({"bloat_threshold": 8, "unknown": 1})
        assert config.bloat_threshold == 8
        assert not hasattr(config, "unknown")

    def test_validate_reports_each_error(self):
        """検証エラーを項目ごとに返す。"""
        config = Config(bloat_threshold=0, max_workers=-2, log_level="LOUD")
        errors = config.validate()
        assert len(errors) == 3

        with pytest.raises(ConfigurationError):
            config.ensure_valid()

    def test_missing_source_directory(self):
        """存在しないソースディレクトリはエラー。"""
        config = Config(source_directories=["/nonexistent/hierarchy-lint-src"])
        assert len(config.validate()) == 1


class TestConfigYaml:
    """YAML読み書きのテスト。"""

    def test_round_trip(self):
        """保存した設定を読み込める。"""
        with TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "conf" / "lint.yaml"
            Config(bloat_threshold=6, treat_cycles_as_error=False).save_yaml(str(path))

            loaded = Config.from_yaml(str(path))

            assert loaded.bloat_threshold == 6
            assert loaded.treat_cycles_as_error is False

    def test_environment_overrides_log_level(self, monkeypatch):
        """ログレベルは環境変数が優先される。"""
        monkeypatch.setenv("HIERARCHY_LINT_LOG_LEVEL", "DEBUG")
        with TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "lint.yaml"
            path.write_text("log_level: WARNING\n", encoding="utf-8")

            assert Config.from_yaml(str(path)).log_level == "DEBUG"

    def test_empty_file_gives_defaults(self):
        """空ファイルはデフォルト設定。"""
        with TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "lint.yaml"
            path.write_text("", encoding="utf-8")

            assert Config.from_yaml(str(path)).bloat_threshold == 4

    def test_non_mapping_rejected(self):
        """マッピング以外のYAMLは設定エラー。"""
        with TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "lint.yaml"
            path.write_text("- 1\n- 2\n", encoding="utf-8")

            with pytest.raises(ConfigurationError):
                Config.from_yaml(str(path))

    def test_get_source_files(self):
        """ソースディレクトリからC++ファイルのみを収集する。"""
        with TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            (root / "sub").mkdir()
            (root / "shape.h").write_text("", encoding="utf-8")
            (root / "sub" / "circle.cpp").write_text("", encoding="utf-8")
            (root / "notes.txt").write_text("", encoding="utf-8")

            files = Config(source_directories=[tmpdir]).get_source_files()

            assert sorted(Path(f).name for f in files) == ["circle.cpp", "shape.h"]
