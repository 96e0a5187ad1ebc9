"""C++クラス階層の分類・適合性検査ツール。"""

__version__ = "0.1.0"
