"""libclangを使用したC++ソースコードの読み込みモジュール。"""

from .clang_analyzer import ClangAnalyzer, ClangParseError
from .declaration_extractor import DeclarationExtractor

__all__ = ["ClangAnalyzer", "ClangParseError", "DeclarationExtractor"]
