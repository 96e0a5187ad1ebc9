"""ロギング設定と進捗ログ。"""

import logging
import sys
import threading
from pathlib import Path
from typing import Optional

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _attach(
    logger: logging.Logger,
    handler: logging.Handler,
    level: int,
    formatter: logging.Formatter
) -> None:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    format_string: Optional[str] = None
) -> logging.Logger:
    """ルートロガーにコンソール（stdout）とファイルのハンドラーを設定する。

    何度呼んでもハンドラーは重複しない。

    Args:
        level: ログレベル名。不明な名前はINFO扱い
        log_file: ログファイルのパス。親ディレクトリは自動作成
        format_string: ``logging.Formatter`` 形式の書式

    Returns:
        ルートロガー
    """
    log_level = getattr(logging, str(level).upper(), logging.INFO)
    formatter = logging.Formatter(format_string or DEFAULT_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    _attach(root_logger, logging.StreamHandler(sys.stdout), log_level, formatter)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        _attach(
            root_logger,
            logging.FileHandler(log_path, encoding="utf-8"),
            log_level,
            formatter
        )

    return root_logger


class ProgressLogger:
    """処理件数を数え、一定件数ごとに進捗率をログ出力する。

    カウンターはロックで保護しており、ワーカースレッドから直接updateしてよい。
    """

    def __init__(
        self,
        total: int,
        logger: Optional[logging.Logger] = None,
        log_interval: int = 10,
        label: str = "Progress"
    ):
        """
        Args:
            total: 処理予定の件数
            logger: 出力先（省略時はこのモジュールのロガー）
            log_interval: 何件ごとに出力するか
            label: ログ行の接頭辞
        """
        self.total = total
        self.current = 0
        self.logger = logger or logging.getLogger(__name__)
        self.log_interval = max(1, log_interval)
        self.label = label
        self._lock = threading.Lock()

    def update(self, message: Optional[str] = None) -> None:
        """1件処理済みとして数える。messageは出力時に末尾へ付ける。"""
        with self._lock:
            self.current += 1
            current = self.current

        if self.total <= 0:
            return

        if current % self.log_interval == 0 or current == self.total:
            progress = current / self.total * 100
            msg = f"{self.label}: {current}/{self.total} ({progress:.1f}%)"
            if message:
                msg += f" - {message}"
            self.logger.info(msg)

    def complete(self, message: str = "Complete") -> None:
        """最終件数をログ出力する。"""
        self.logger.info(f"{message}: {self.current}/{self.total} items processed")
