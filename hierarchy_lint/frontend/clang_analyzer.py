"""libclangによるC++ソースのパースとTranslationUnitキャッシュ。"""

from typing import Dict, List, Optional, Sequence, Tuple
import os
import logging
import threading

logger = logging.getLogger(__name__)


class ClangParseError(Exception):
    """libclangの読み込みやソースのパースに失敗した。"""
    pass


class ClangAnalyzer:
    """クラス宣言抽出用にTranslationUnitを生成する。

    ファイル単位の結果はスレッド間で共有し、同じファイルは一度だけパースする。
    テンプレート呼び出しを拾うため関数本体は常にパースする。
    """

    # 抽出に不要な診断を抑える
    BASE_ARGS = ("-x", "c++", "-Wno-pragma-once-outside-header")

    def __init__(
        self,
        include_paths: Optional[List[str]] = None,
        additional_args: Optional[List[str]] = None,
        cxx_standard: str = "c++17",
        library_path: Optional[str] = None
    ):
        """
        Args:
            include_paths: ``-I`` で渡すディレクトリ
            additional_args: そのまま末尾に付けるコンパイラ引数
            cxx_standard: ``-std=`` の値
            library_path: libclang共有ライブラリのディレクトリ（省略時はpipパッケージ同梱のもの）

        Raises:
            ClangParseError: libclangを読み込めない場合
        """
        import clang.cindex as ci
        self._ci = ci

        if library_path:
            ci.Config.set_library_path(library_path)

        try:
            self.index = ci.Index.create()
        except Exception as e:
            raise ClangParseError(
                f"libclang could not be loaded ({e}); "
                "install it with 'pip install libclang' or pass library_path"
            ) from e

        self.include_paths = list(include_paths or [])
        self.additional_args = list(additional_args or [])
        self.cxx_standard = cxx_standard

        self._units: Dict[str, object] = {}
        self._lock = threading.Lock()

        logger.debug(
            f"libclang ready (std={cxx_standard}, "
            f"{len(self.include_paths)} include dirs)"
        )

    @property
    def ci(self):
        """``clang.cindex`` モジュール。"""
        return self._ci

    def compiler_args(self) -> List[str]:
        args = list(self.BASE_ARGS)
        args.append(f"-std={self.cxx_standard}")
        for directory in self.include_paths:
            args.extend(["-I", directory])
        return args + self.additional_args

    def get_translation_unit(self, file_path: str):
        """ソースファイルをパースする（キャッシュ付き）。

        Args:
            file_path: C++ソースまたはヘッダーのパス

        Returns:
            clang.cindex.TranslationUnit

        Raises:
            ClangParseError: パースに失敗した場合
        """
        key = os.path.abspath(file_path)

        with self._lock:
            cached = self._units.get(key)
        if cached is not None:
            return cached

        tu = self._parse(key)
        with self._lock:
            self._units[key] = tu
        return tu

    def parse_string(self, source_code: str, filename: str = "input.cpp"):
        """メモリ上のソースをパースする。結果はキャッシュしない。

        Raises:
            ClangParseError: パースに失敗した場合
        """
        return self._parse(filename, unsaved_files=[(filename, source_code)])

    def _parse(
        self,
        path: str,
        unsaved_files: Sequence[Tuple[str, str]] = ()
    ):
        try:
            tu = self.index.parse(
                path,
                args=self.compiler_args(),
                unsaved_files=list(unsaved_files) or None,
                options=self._ci.TranslationUnit.PARSE_DETAILED_PROCESSING_RECORD
            )
        except self._ci.TranslationUnitLoadError as e:
            raise ClangParseError(f"Failed to parse {path}: {e}") from e

        if tu is None:
            raise ClangParseError(f"Failed to parse {path}: no translation unit")

        errors = [
            d for d in tu.diagnostics
            if d.severity >= self._ci.Diagnostic.Error
        ]
        for diag in errors:
            logger.warning(f"{path}:{diag.location.line}: {diag.spelling}")
        if errors:
            logger.info(
                f"{path}: {len(errors)} parse error(s), "
                "declarations may be incomplete"
            )

        return tu
