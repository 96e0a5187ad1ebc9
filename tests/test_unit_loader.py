"""解析単位ドキュメント読み込みのテスト。"""

import json

import pytest
from pathlib import Path
from tempfile import TemporaryDirectory

from hierarchy_lint.io.unit_loader import InputFormatError, UnitLoader
from hierarchy_lint.models.declaration import MemberKind, Virtuality, Visibility
from hierarchy_lint.models.finding import FindingKind, Rule

UNIT_YAML = """\
classes:
  - name: geo::IShape
    file: include/shape.h
    line: 3
    members:
      - {name: ~IShape, kind: destructor, visibility: public, virtuality: virtual,
         noexcept: true, defaulted: true, line: 5}
      - {name: IShape, kind: constructor, visibility: protected, noexcept: true,
         defaulted: true}
      - {name: area, kind: method, visibility: public, virtuality: Pure-Virtual}
  - name: geo::Circle
    file: include/circle.h
    line: 7
    bases:
      - geo::IShape
      - {name: util::Loggable, visibility: private}
    members:
      - {name: radius_, kind: data}
call_sites:
  - template: geo::scale
    arguments: [int, "const double&"]
    file: src/main.cpp
    line: 12
"""


def write(tmpdir, name, text):
    path = Path(tmpdir) / name
    path.write_text(text, encoding="utf-8")
    return str(path)


class TestUnitLoader:
    """UnitLoaderのテスト。"""

    def test_load_yaml(self):
        """YAMLの解析単位を読み込む。"""
        with TemporaryDirectory() as tmpdir:
            unit = UnitLoader().load(write(tmpdir, "unit.yaml", UNIT_YAML))

        assert [c.name for c in unit.classes] == ["geo::IShape", "geo::Circle"]
        assert unit.load_violations == []

        shape = unit.classes[0]
        assert shape.location.line == 3
        assert shape.destructor.virtuality == Virtuality.VIRTUAL
        assert shape.destructor.location.line == 5
        assert shape.methods[0].virtuality == Virtuality.PURE_VIRTUAL
        assert shape.constructors[0].visibility == Visibility.PROTECTED

        circle = unit.classes[1]
        assert circle.base_names == ("geo::IShape", "util::Loggable")
        assert circle.bases[0].visibility == Visibility.PUBLIC
        assert circle.bases[1].visibility == Visibility.PRIVATE
        assert circle.data_members[0].kind == MemberKind.DATA
        assert circle.data_members[0].visibility == Visibility.PRIVATE

        assert len(unit.call_sites) == 1
        assert unit.call_sites[0].argument_types == ("int", "const double&")
        assert unit.call_sites[0].location.line == 12

    def test_load_json(self):
        """JSONの解析単位を読み込む。"""
        document = {
            "classes": [{"name": "Tag"}],
            "call_sites": [{"template": "f", "arguments": ["int"]}],
        }
        with TemporaryDirectory() as tmpdir:
            unit = UnitLoader().load(write(tmpdir, "unit.json", json.dumps(document)))

        assert [c.name for c in unit.classes] == ["Tag"]
        assert unit.call_sites[0].template_name == "f"

    def test_invalid_records_become_violations(self):
        """不正なレコードは指摘として記録し、残りは読み込む。"""
        document = {
            "classes": [
                {"name": "Good"},
                {"name": "Bad", "members": [{"name": "x", "kind": "field"}]},
                {"members": []},
            ],
            "call_sites": [{"template": "f", "arguments": "int", "line": 9}],
        }
        unit = UnitLoader().load_data(document, source="unit.yaml")

        assert [c.name for c in unit.classes] == ["Good"]
        assert len(unit.load_violations) == 3
        assert all(v.rule == Rule.MALFORMED_RECORD for v in unit.load_violations)
        assert all(v.kind == FindingKind.MALFORMED_INPUT for v in unit.load_violations)

        subjects = [v.subject for v in unit.load_violations]
        assert subjects == ["Bad", "classes[2]", "f"]
        assert unit.load_violations[2].location.line == 9

    def test_unknown_field_rejected(self):
        """スキーマにないフィールドは不正なレコード。"""
        unit = UnitLoader().load_data({"classes": [{"name": "A", "colour": "red"}]})

        assert unit.classes == []
        assert "colour" in unit.load_violations[0].message

    @pytest.mark.parametrize("text", ["- a\n- b\n", "just text\n"])
    def test_non_mapping_document(self, text):
        """トップレベルがマッピングでなければ入力エラー。"""
        with TemporaryDirectory() as tmpdir:
            path = write(tmpdir, "unit.yaml", text)
            with pytest.raises(InputFormatError):
                UnitLoader().load(path)

    def test_sections_must_be_lists(self):
        """classesがリストでなければ入力エラー。"""
        with pytest.raises(InputFormatError):
            UnitLoader().load_data({"classes": {"name": "A"}})

    def test_unsupported_suffix(self):
        """未対応の拡張子は入力エラー。"""
        with pytest.raises(InputFormatError):
            UnitLoader().load("unit.toml")

    def test_broken_json(self):
        """構文エラーのJSONは入力エラー。"""
        with TemporaryDirectory() as tmpdir:
            path = write(tmpdir, "unit.json", "{not json")
            with pytest.raises(InputFormatError):
                UnitLoader().load(path)

    def test_missing_file(self):
        """存在しないファイルは入力エラー。"""
        with pytest.raises(InputFormatError):
            UnitLoader().load("/nonexistent/unit.yaml")
