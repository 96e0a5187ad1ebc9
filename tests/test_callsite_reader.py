"""呼び出し箇所一覧の読み込みテスト。"""

import pandas as pd
import pytest
from pathlib import Path
from tempfile import TemporaryDirectory

from hierarchy_lint.io.callsite_reader import CallSiteReader
from hierarchy_lint.io.unit_loader import InputFormatError
from hierarchy_lint.models.finding import Rule

CSV_TEXT = """\
Template,Arguments,File,Line,Column
util::format,char[6],src/a.cpp,10,5
util::format,const char*;int,src/a.cpp,11,
util::format,,src/b.cpp,3,1
,int,src/b.cpp,4,1
"""


class TestCallSiteReader:
    """CallSiteReaderのテスト。"""

    def test_read_csv(self):
        """CSVの各行を呼び出し箇所に変換する。"""
        with TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "calls.csv"
            path.write_text(CSV_TEXT, encoding="utf-8")

            unit = CallSiteReader(str(path)).read()

        assert len(unit.call_sites) == 4
        assert unit.load_violations == []

        first, second, third, fourth = unit.call_sites
        assert first.template_name == "util::format"
        assert first.argument_types == ("char[6]",)
        assert (first.location.line, first.location.column) == (10, 5)
        assert second.argument_types == ("const char*", "int")
        assert second.location.column == 0
        # 引数なしの呼び出し
        assert third.argument_types == ()
        # テンプレート名が空の行は解析時に不正入力となる
        assert fourth.template_name == ""

    def test_japanese_headers(self):
        """日本語の列名にも対応する。"""
        with TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "calls.csv"
            path.write_text(
                "テンプレート,引数型,ファイル,行\nf,int,a.cpp,1\n",
                encoding="utf-8"
            )

            unit = CallSiteReader(str(path)).read()

        assert unit.call_sites[0].template_name == "f"
        assert unit.call_sites[0].location.file_path == "a.cpp"

    def test_invalid_line_number(self):
        """行番号が数値でない行は不正なレコード。"""
        with TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "calls.csv"
            path.write_text(
                "Template,Arguments,File,Line\nf,int,a.cpp,abc\ng,int,a.cpp,2\n",
                encoding="utf-8"
            )

            unit = CallSiteReader(str(path)).read()

        assert [s.template_name for s in unit.call_sites] == ["g"]
        assert len(unit.load_violations) == 1
        assert unit.load_violations[0].rule == Rule.MALFORMED_RECORD
        assert unit.load_violations[0].subject == "f"

    def test_custom_separator(self):
        """引数型の区切り文字を変更できる。"""
        with TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "calls.csv"
            path.write_text(
                "Template,Arguments\nf,\"std::map<int, int>|bool\"\n",
                encoding="utf-8"
            )

            unit = CallSiteReader(str(path), separator="|").read()

        assert unit.call_sites[0].argument_types == ("std::map<int, int>", "bool")

    def test_read_excel(self):
        """Excelファイルを読み込む。"""
        with TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "calls.xlsx"
            pd.DataFrame({
                "Template": ["f", "f"],
                "Arguments": ["int", "long"],
                "File": ["a.cpp", "a.cpp"],
                "Line": [1, 2],
            }).to_excel(path, index=False, engine="openpyxl")

            unit = CallSiteReader(str(path)).read()

        assert [s.argument_types for s in unit.call_sites] == [("int",), ("long",)]
        assert [s.location.line for s in unit.call_sites] == [1, 2]

    def test_missing_required_column(self):
        """必須列がなければ入力エラー。"""
        with TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "calls.csv"
            path.write_text("Template,File\nf,a.cpp\n", encoding="utf-8")

            with pytest.raises(InputFormatError):
                CallSiteReader(str(path)).read()

    def test_unsupported_format(self):
        """未対応の拡張子は入力エラー。"""
        with pytest.raises(InputFormatError):
            CallSiteReader("calls.txt").read()
