"""設定管理モジュール。"""

from dataclasses import dataclass, field
from typing import List, Dict, Optional, Any
from pathlib import Path
import os
import logging

import yaml

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

SOURCE_SUFFIXES = (".h", ".hh", ".hpp", ".hxx", ".cpp", ".cc", ".cxx")


def _is_positive_int(value: Any) -> bool:
    # boolはintのサブクラス
    return isinstance(value, int) and not isinstance(value, bool) and value >= 1


class ConfigurationError(Exception):
    """解析開始前に検出される不正な設定。"""
    pass


@dataclass
class Config:
    """アプリケーション設定。"""

    # テンプレート肥大化の閾値。インスタンス化数がこの値を超えたとき（count > threshold）に指摘し、
    # 閾値ちょうどは許容する（既定の4なら5種類目から指摘）
    bloat_threshold: int = 4

    # 循環継承をエラーとして扱うか（Falseなら警告）
    treat_cycles_as_error: bool = True

    # ワーカースレッド数（Noneで自動）
    max_workers: Optional[int] = None

    # libclangフロントエンド用
    include_paths: List[str] = field(default_factory=list)
    compiler_args: List[str] = field(default_factory=list)
    cxx_standard: str = "c++17"
    source_directories: List[str] = field(default_factory=list)

    # ロギング設定
    log_level: str = "INFO"
    log_file: Optional[str] = None

    @classmethod
    def from_yaml(cls, file_path: str) -> "Config":
        """YAMLファイルから設定を読み込む。

        Args:
            file_path: YAML設定ファイルのパス

        Returns:
            Configインスタンス
        """
        with open(file_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ConfigurationError(
                f"設定ファイルの形式が不正です（マッピングが必要）: {file_path}"
            )

        config = cls.from_dict(data)

        # ログレベルは環境変数が優先
        config.log_level = os.getenv("HIERARCHY_LINT_LOG_LEVEL", config.log_level)

        logger.info(f"Configuration loaded from {file_path}")
        return config

    @classmethod
    def from_dict(cls, data: dict) -> "Config":
        """辞書から設定を作成する。

        未知のキーは警告して無視する。

        Args:
            data: 設定辞書

        Returns:
            Configインスタンス
        """
        config = cls()

        for key, value in data.items():
            if hasattr(config, key):
                setattr(config, key, value)
            else:
                logger.warning(f"Unknown configuration key ignored: {key}")

        return config

    def validate(self) -> List[str]:
        """すべての設定項目を検証する。

        存在しないインクルードパスは警告のみ。

        Returns:
            エラーメッセージのリスト（有効な場合は空）
        """
        errors = []

        if not _is_positive_int(self.bloat_threshold):
            errors.append(
                f"bloat_thresholdは1以上の整数が必要です: {self.bloat_threshold!r}"
            )

        if not isinstance(self.treat_cycles_as_error, bool):
            errors.append(
                "treat_cycles_as_errorは真偽値が必要です: "
                f"{self.treat_cycles_as_error!r}"
            )

        if self.max_workers is not None and not _is_positive_int(self.max_workers):
            errors.append(f"max_workersは1以上の整数が必要です: {self.max_workers!r}")

        if str(self.log_level).upper() not in LOG_LEVELS:
            errors.append(f"log_levelが不正です: {self.log_level!r}")

        # パスの存在を検証
        for path in self.include_paths:
            if not Path(path).exists():
                logger.warning(f"Include path does not exist: {path}")

        for path in self.source_directories:
            if not Path(path).exists():
                errors.append(f"ソースディレクトリが存在しません: {path}")

        return errors

    def ensure_valid(self) -> None:
        """設定を検証し、不正な場合はConfigurationErrorを送出する。

        Raises:
            ConfigurationError: 検証エラーがある場合
        """
        errors = self.validate()
        if errors:
            raise ConfigurationError("; ".join(errors))

    def to_dict(self) -> Dict[str, Any]:
        """YAML出力用の辞書。"""
        return {
            "bloat_threshold": self.bloat_threshold,
            "treat_cycles_as_error": self.treat_cycles_as_error,
            "max_workers": self.max_workers,
            "include_paths": self.include_paths,
            "compiler_args": self.compiler_args,
            "cxx_standard": self.cxx_standard,
            "source_directories": self.source_directories,
            "log_level": self.log_level,
            "log_file": self.log_file,
        }

    def get_source_files(self) -> List[str]:
        """source_directories以下のC++ファイルを再帰的に集める。"""
        source_files = set()

        for source_dir in self.source_directories:
            path = Path(source_dir)
            if not path.exists():
                continue
            for suffix in SOURCE_SUFFIXES:
                source_files.update(str(f) for f in path.rglob(f"*{suffix}"))

        logger.debug(f"Found {len(source_files)} source files")
        return sorted(source_files)

    def save_yaml(self, file_path: str) -> None:
        """設定をYAMLファイルに保存。

        Args:
            file_path: 保存先パス
        """
        output_path = Path(file_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        data = self.to_dict()
        if not self.log_file:
            del data["log_file"]

        with open(file_path, "w", encoding="utf-8") as f:
            yaml.dump(
                data,
                f,
                default_flow_style=False,
                allow_unicode=True,
                sort_keys=False
            )

        logger.info(f"Configuration saved to {file_path}")
